"""Cosmos SDK REST gateway client with endpoint fallback."""
from __future__ import annotations

import base64
import json
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import QueryError, TransportError
from ...models import StatePage, StorageEntry
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

HEIGHT_HEADER = "x-cosmos-block-height"

_LATEST_BLOCK_PATH = "/cosmos/base/tendermint/v1beta1/blocks/latest"
_CONTRACT_STATE_PATH = "/cosmwasm/wasm/v1/contract/{address}/state"
_CONTRACT_SMART_PATH = "/cosmwasm/wasm/v1/contract/{address}/smart/{query}"

# Gateway statuses and gRPC codes that report on the endpoint, not the query
_TRANSIENT_GRPC_CODES = frozenset({4, 8, 14})
_TRANSIENT_HTTP_STATUSES = frozenset({429, 502, 503, 504})


def encode_smart_query(msg: dict[str, Any]) -> str:
    """URL-safe base64 of the compact JSON query message."""
    raw = json.dumps(msg, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _is_query_failure(status: int, body: Any) -> bool:
    """Whether an error response rejects the query rather than the endpoint."""
    if status in _TRANSIENT_HTTP_STATUSES:
        return False
    if not isinstance(body, dict) or "code" not in body:
        return False
    return body["code"] not in _TRANSIENT_GRPC_CODES


class CosmosClient:
    """CosmWasm chain client over the REST (LCD) gateway.

    Endpoints are tried in order; the last one that answered becomes the
    first choice for the next call.
    """

    def __init__(self, config: ChainConfig, retry: RetryPolicy | None = None) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0
        self._retry = retry or RetryPolicy()

    async def rest_get(
        self,
        path: str,
        params: dict[str, str] | None = None,
        height: int | None = None,
    ) -> dict[str, Any]:
        """GET ``path`` with fallback to alternative endpoints.

        Raises:
            QueryError: the gateway answered with an error body.
            TransportError: no endpoint produced a usable answer.
        """
        headers = {HEIGHT_HEADER: str(height)} if height is not None else {}
        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index].rstrip("/")

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.get(
                        rpc_url + path,
                        params=params,
                        headers=headers,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json(content_type=None)
                        if response.status != 200:
                            if _is_query_failure(response.status, result):
                                raise QueryError(
                                    f"Gateway error {result.get('code')}: "
                                    f"{result.get('message', '')}"
                                )
                            raise RuntimeError(f"HTTP {response.status}")
                        if not isinstance(result, dict):
                            raise RuntimeError("Response body is not a JSON object")

                        if rpc_index != self.current_rpc_index:
                            logger.info("Switched to RPC endpoint: %s", rpc_url)
                            self.current_rpc_index = rpc_index

                        return result
            except QueryError:
                raise
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise TransportError(f"All RPC endpoints failed. Last error: {last_error}")

    async def _get(
        self,
        path: str,
        params: dict[str, str] | None = None,
        height: int | None = None,
    ) -> dict[str, Any]:
        return await self._retry.run(
            lambda: self.rest_get(path, params=params, height=height), path
        )

    async def get_height(self) -> int:
        """Latest block height."""
        data = await self._get(_LATEST_BLOCK_PATH)
        try:
            return int(data["block"]["header"]["height"])
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"Malformed latest block response: {e}") from e

    async def query_all_state(
        self,
        contract_address: str,
        cursor: bytes = b"",
        limit: int = 100,
        height: int | None = None,
    ) -> StatePage:
        """Fetch one page of a contract's raw key/value store."""
        params = {
            "pagination.limit": str(limit),
            "pagination.count_total": "false",
        }
        if cursor:
            params["pagination.key"] = base64.b64encode(cursor).decode("ascii")

        data = await self._get(
            _CONTRACT_STATE_PATH.format(address=contract_address),
            params=params,
            height=height,
        )

        try:
            entries = tuple(
                StorageEntry(
                    key=bytes.fromhex(model["key"]),
                    value=base64.b64decode(model.get("value") or ""),
                )
                for model in data.get("models") or []
            )
            next_key = (data.get("pagination") or {}).get("next_key") or ""
            next_cursor = base64.b64decode(next_key)
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"Malformed contract state page: {e}") from e

        return StatePage(entries=entries, next_cursor=next_cursor)

    async def query_contract_smart(
        self,
        contract_address: str,
        msg: dict[str, Any],
        height: int | None = None,
    ) -> Any:
        """Run a smart query and return its JSON ``data`` member."""
        path = _CONTRACT_SMART_PATH.format(
            address=contract_address, query=encode_smart_query(msg)
        )
        try:
            data = await self._get(path, height=height)
        except QueryError as e:
            raise QueryError(str(e), msg) from e

        if "data" not in data:
            raise QueryError("Smart query response has no 'data'", msg)
        return data["data"]
