"""Core data access, parsing and correlation logic."""
