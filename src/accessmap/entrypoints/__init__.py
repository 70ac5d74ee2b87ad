"""Entrypoints - Outer surfaces of the application."""
