"""accessmap - multi-level resource access resolution."""

__version__ = "1.0.0"
