"""Protocol interfaces for the Red Bank monitor."""
from .chain import ChainClient
from .price_oracle import PriceOracle

__all__ = ["ChainClient", "PriceOracle"]
