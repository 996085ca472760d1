"""Core infrastructure: logging, configuration, event bus and frame scheduling."""
