"""Service layer: upstream API clients and market data orchestration."""
