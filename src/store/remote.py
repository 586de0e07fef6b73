# src/store/remote.py
# thin async client for the JSON REST store (json-server style collections)
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from utils.errors import RemoteUnavailable
from utils.logger import get_logger

_logger = get_logger(__name__)


class RemoteStore:
    """
    Collection-level CRUD against the remote store.

    Every failure (connection error, timeout, non-2xx answer, undecodable
    body) surfaces as RemoteUnavailable.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            _logger.warning(f"{method} {url} answered {status}")
            raise RemoteUnavailable(
                f"Remote store answered {status} for {method} {url}", status
            ) from e
        except httpx.HTTPError as e:
            _logger.warning(f"{method} {url} failed: {e!r}")
            raise RemoteUnavailable(f"Remote store unreachable: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailable(f"Malformed JSON from {method} {url}") from e

    async def list(self, collection: str, **filters: Any) -> List[Dict[str, Any]]:
        """GET /<collection>?k=v; filters with a None value are dropped."""
        params = {k: v for k, v in filters.items() if v is not None}
        data = await self._request("GET", f"/{collection}", params=params)
        if not isinstance(data, list):
            raise RemoteUnavailable(f"Expected a list from /{collection}")
        return data

    async def get(self, collection: str, record_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/{collection}/{record_id}")

    async def create(self, collection: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/{collection}", json=payload)

    async def replace(
        self, collection: str, record_id: str, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self._request("PUT", f"/{collection}/{record_id}", json=payload)

    async def patch(
        self, collection: str, record_id: str, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self._request("PATCH", f"/{collection}/{record_id}", json=payload)

    async def delete(self, collection: str, record_id: str) -> None:
        await self._request("DELETE", f"/{collection}/{record_id}")

    async def is_reachable(self, collection: str, timeout: float) -> bool:
        """Short check used to decide whether a write is worth attempting."""
        try:
            response = await self._client.get(
                f"/{collection}", timeout=httpx.Timeout(timeout)
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            _logger.info(f"Remote store not reachable ({e!r}), using local storage")
            return False
        return True
