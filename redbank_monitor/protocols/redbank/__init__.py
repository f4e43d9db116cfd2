"""Mars Red Bank lending protocol."""
from .adapter import RedBankAdapter

__all__ = ["RedBankAdapter"]
