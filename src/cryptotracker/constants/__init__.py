"""Application-wide constants."""
