"""Chain client protocol — CosmWasm query abstraction."""
from typing import Any, Protocol

from ..models import StatePage


class ChainClient(Protocol):
    """Abstract interface for the chain queries the monitor consumes."""

    async def get_height(self) -> int: ...

    async def query_all_state(
        self,
        contract_address: str,
        cursor: bytes = b"",
        limit: int = 100,
        height: int | None = None,
    ) -> StatePage: ...

    async def query_contract_smart(
        self,
        contract_address: str,
        msg: dict[str, Any],
        height: int | None = None,
    ) -> Any: ...
