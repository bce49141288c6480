"""Data access functions grouped by domain."""
