"""Full enumeration of a contract's raw key/value store."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from ..errors import PaginationLimitError
from ..interfaces.chain import ChainClient
from ..models import StorageEntry

logger = logging.getLogger(__name__)


class StateScanner:
    """Walk every page of a contract store, following the cursor chain.

    A scan cannot be resumed; a failure on any page propagates and the next
    scan starts again from the first page.
    """

    def __init__(
        self, chain_client: ChainClient, page_size: int = 100, max_pages: int = 10_000
    ) -> None:
        self._client = chain_client
        self.page_size = page_size
        self.max_pages = max_pages

    async def scan(
        self, contract_address: str, height: int | None = None
    ) -> AsyncIterator[StorageEntry]:
        """Yield every storage entry of ``contract_address``.

        Raises:
            PaginationLimitError: the cursor repeated or ``max_pages`` was hit.
        """
        cursor = b""
        pages = 0

        while True:
            if pages >= self.max_pages:
                raise PaginationLimitError(
                    f"Scan of {contract_address} exceeded {self.max_pages} pages"
                )

            page = await self._client.query_all_state(
                contract_address, cursor, limit=self.page_size, height=height
            )
            pages += 1
            logger.debug(
                "State page %d of %s: %d entries", pages, contract_address, len(page.entries)
            )

            for entry in page.entries:
                yield entry

            if not page.next_cursor:
                logger.info("Scanned %d pages of %s", pages, contract_address)
                return
            if cursor and page.next_cursor == cursor:
                raise PaginationLimitError(
                    f"Cursor {page.next_cursor.hex()} did not advance on page {pages}"
                )
            cursor = page.next_cursor
