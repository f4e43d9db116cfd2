"""CosmWasm chain access."""
from .client import CosmosClient
from .retry import RetryPolicy

__all__ = ["CosmosClient", "RetryPolicy"]
