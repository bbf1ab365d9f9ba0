"""CoinGecko market data client."""

from cryptotracker.services.coingecko.client import CoinGeckoClient

__all__ = ["CoinGeckoClient"]
