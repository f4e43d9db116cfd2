"""Price oracle modules."""
from .mars import MarsOracle

__all__ = ["MarsOracle"]
