"""HTTP API for access resolution and sharing management."""
