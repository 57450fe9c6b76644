"""RecordStore backed by the hosted record API.

Wire format: every response is an envelope
``{"success": bool, "message": str, "data": ..., "results": [...]}`` where
``results`` carries one ``{"success", "data", "message"}`` entry per record
written or deleted, in request order.
"""

from typing import Any, Dict, List, Optional, Sequence

import httpx
import structlog

from forumkit.config import Settings
from forumkit.core.exceptions import NotFoundError, StoreError
from forumkit.store.base import EntityKind, Record, RecordStore
from forumkit.store.query import RecordQuery
from forumkit.store.retry import http_retrying

logger = structlog.get_logger(__name__)


class HttpRecordStore(RecordStore):
    """Async client for the hosted record API."""

    def __init__(
        self,
        base_url: str,
        project_id: str = "",
        api_key: str = "",
        timeout: float = 10.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_wait_min: float = 2,
        retry_wait_max: float = 30,
    ):
        """Initialize the store.

        Args:
            base_url: API root, e.g. "https://records.example.com/api"
            project_id: Project the tables belong to (sent as X-Project-Id)
            api_key: Bearer token for the API
            timeout: Per-request timeout in seconds
            max_retries: Attempts per request for retryable failures
            transport: Custom httpx transport (tests inject a MockTransport)
            retry_wait_min: Minimum backoff between attempts in seconds
            retry_wait_max: Maximum backoff between attempts in seconds
        """
        headers = {"Accept": "application/json"}
        if project_id:
            headers["X-Project-Id"] = project_id
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self.max_retries = max_retries
        self.retry_wait_min = retry_wait_min
        self.retry_wait_max = retry_wait_max
        self.logger = logger.bind(store="http")

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpRecordStore":
        return cls(
            base_url=settings.RECORD_STORE_URL,
            project_id=settings.RECORD_STORE_PROJECT_ID,
            api_key=settings.RECORD_STORE_API_KEY,
            timeout=settings.RECORD_STORE_TIMEOUT_SECONDS,
            max_retries=settings.RECORD_STORE_MAX_RETRIES,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _send(
        self,
        kind: EntityKind,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        allow_404: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """Send one request with retries and return the decoded envelope.

        Returns None only when ``allow_404`` is set and the API answered 404.

        Raises:
            StoreError: On transport failure, non-2xx status or a
                ``success: false`` envelope
        """
        try:
            async for attempt in http_retrying(
                self.max_retries, self.retry_wait_min, self.retry_wait_max
            ):
                with attempt:
                    response = await self._client.request(method, path, json=json)
                    if allow_404 and response.status_code == 404:
                        return None
                    response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.error(
                "record_api_status_error",
                kind=kind.value,
                method=method,
                path=path,
                status_code=e.response.status_code,
            )
            raise StoreError(kind.value, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            self.logger.error(
                "record_api_transport_error",
                kind=kind.value,
                method=method,
                path=path,
                error=str(e),
            )
            raise StoreError(kind.value, str(e) or type(e).__name__) from e

        try:
            body = response.json()
        except ValueError as e:
            raise StoreError(kind.value, "Response body is not JSON") from e

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            self.logger.error("record_api_failure", kind=kind.value, path=path, message=message)
            raise StoreError(kind.value, message or "Request failed")

        return body

    async def fetch_all(
        self,
        kind: EntityKind,
        query: Optional[RecordQuery] = None,
    ) -> List[Record]:
        payload = query.to_payload() if query else {}
        body = await self._send(kind, "POST", f"/tables/{kind.value}/records/query", json=payload)
        records = body.get("data") or []
        self.logger.debug("records_fetched", kind=kind.value, count=len(records))
        return list(records)

    async def fetch_one(self, kind: EntityKind, record_id: int) -> Optional[Record]:
        body = await self._send(
            kind, "GET", f"/tables/{kind.value}/records/{int(record_id)}", allow_404=True
        )
        if body is None:
            return None
        return body.get("data") or None

    async def create(self, kind: EntityKind, record: Record) -> Record:
        body = await self._send(
            kind, "POST", f"/tables/{kind.value}/records", json={"records": [record]}
        )
        result = _first_result(body)
        if result is None or not result.get("success") or not result.get("data"):
            message = (result or {}).get("message") or "Record was not created"
            raise StoreError(kind.value, message)
        return result["data"]

    async def update(self, kind: EntityKind, record_id: int, partial: Record) -> Record:
        record = {**partial, "Id": int(record_id)}
        body = await self._send(
            kind, "PATCH", f"/tables/{kind.value}/records", json={"records": [record]}
        )
        result = _first_result(body)
        if result is None or not result.get("success"):
            raise NotFoundError(kind.value, record_id)

        if result.get("data"):
            return result["data"]

        # Some tables acknowledge updates without echoing the record
        fetched = await self.fetch_one(kind, record_id)
        if fetched is None:
            raise NotFoundError(kind.value, record_id)
        return fetched

    async def delete(self, kind: EntityKind, record_ids: Sequence[int]) -> Dict[int, bool]:
        ids = [int(i) for i in record_ids]
        if not ids:
            return {}

        body = await self._send(
            kind, "DELETE", f"/tables/{kind.value}/records", json={"RecordIds": ids}
        )
        results = body.get("results") or []
        outcome = {}
        for index, record_id in enumerate(ids):
            outcome[record_id] = bool(index < len(results) and results[index].get("success"))
        return outcome


def _first_result(body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    results = body.get("results") or []
    return results[0] if results else None
