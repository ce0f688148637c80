"""Vehicle monitoring dashboard backend."""
