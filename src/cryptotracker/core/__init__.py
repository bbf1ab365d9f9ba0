"""Core domain utilities for CryptoTracker."""
