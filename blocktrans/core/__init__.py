"""Core models, block grammar and error types."""
