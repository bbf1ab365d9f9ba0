"""HTTP API for CryptoTracker."""
