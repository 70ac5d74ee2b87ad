"""Demo sample data."""
