"""Request hooks: logging, session resolution, timing and security headers."""
