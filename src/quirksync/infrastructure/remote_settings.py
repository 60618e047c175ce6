"""Minimal Remote Settings (Kinto HTTP API v1) client.

Covers only what the reconcilers call: list, create and update records,
batches split to the server's size limit, and reading or patching
collection metadata. There is no retry, no pagination, and no timeout
beyond the httpx default.

Every record body travels wrapped as ``{"data": {...}}``, and every
response carries its payload under ``"data"`` the same way.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from quirksync.errors import StorageError, StorageWriteError

if TYPE_CHECKING:
    from quirksync.config.models import WriterCredentials

log = structlog.get_logger(__name__)

# Kinto's default for ``batch_max_requests``.
DEFAULT_BATCH_MAX_REQUESTS = 25


@dataclass(frozen=True)
class BatchOperation:
    """One sub-request of a ``POST /batch`` call."""

    method: str
    path: str
    body: dict[str, Any] = field(default_factory=dict)

    def to_request(self) -> dict[str, Any]:
        return {"method": self.method, "path": self.path, "body": self.body}


class RemoteSettingsClient:
    """Authenticated session against one Remote Settings server.

    Built once per run. Use as a context manager, or call :meth:`close`.
    """

    def __init__(
        self,
        server: str,
        *,
        token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Basic {token}"} if token else {}
        self._http = httpx.Client(
            base_url=server.rstrip("/"),
            headers=headers,
            transport=transport,
        )
        self._batch_max_requests: int | None = None

    @classmethod
    def from_credentials(
        cls,
        credentials: WriterCredentials,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> RemoteSettingsClient:
        return cls(credentials.server, token=credentials.basic_token(), transport=transport)

    def collection(self, bucket: str, collection: str) -> Collection:
        return Collection(self, bucket, collection)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> RemoteSettingsClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        write: bool = False,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON body.

        Failures raise :class:`StorageWriteError` when *write* is set,
        :class:`StorageError` otherwise.
        """
        error_cls = StorageWriteError if write else StorageError
        log.debug("storage.request", method=method, path=path)
        try:
            response = self._http.request(method, path, json=body)
        except httpx.HTTPError as exc:
            raise error_cls(f"{method} {path} failed: {exc}", path=path) from exc

        if response.is_error:
            raise error_cls(
                f"{method} {path} answered {response.status_code}: {_error_message(response)}",
                path=path,
                status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise error_cls(f"{method} {path} returned a non-JSON body", path=path) from exc

    def batch_max_requests(self) -> int:
        """Largest batch the server accepts, read once from ``GET /``.

        Falls back to Kinto's default when the server does not advertise
        a positive limit.
        """
        if self._batch_max_requests is None:
            settings = self.request("GET", "/").get("settings", {})
            limit = settings.get("batch_max_requests")
            if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
                limit = DEFAULT_BATCH_MAX_REQUESTS
            self._batch_max_requests = limit
        return self._batch_max_requests

    def batch(self, operations: Sequence[BatchOperation]) -> list[dict[str, Any]]:
        """Send *operations* as ``POST /batch`` calls and return the sub-responses.

        Operations are split into chunks no larger than
        :meth:`batch_max_requests`, sent in order. An empty batch sends
        nothing. The first chunk with an error status fails the whole call
        and later chunks are not sent; chunks the server already applied
        stay applied.
        """
        if not operations:
            return []
        size = self.batch_max_requests()
        responses: list[dict[str, Any]] = []
        for offset in range(0, len(operations), size):
            chunk = operations[offset : offset + size]
            log.debug("storage.batch", offset=offset, size=len(chunk), total=len(operations))
            payload = self.request(
                "POST",
                "/batch",
                body={"requests": [op.to_request() for op in chunk]},
                write=True,
            )
            chunk_responses: list[dict[str, Any]] = payload.get("responses", [])
            failed = [r for r in chunk_responses if int(r.get("status", 0)) >= 400]
            if failed:
                first = failed[0]
                raise StorageWriteError(
                    f"Batch rejected {len(failed)} of {len(chunk_responses)} requests "
                    f"(first: {first.get('status')} on {first.get('path')})",
                    path="/batch",
                    status=int(first.get("status", 0)),
                )
            responses.extend(chunk_responses)
        return responses


class Collection:
    """Record and metadata operations for one bucket/collection pair."""

    def __init__(self, client: RemoteSettingsClient, bucket: str, collection: str) -> None:
        self._client = client
        self.bucket = bucket
        self.id = collection

    @property
    def path(self) -> str:
        return f"/buckets/{self.bucket}/collections/{self.id}"

    @property
    def records_path(self) -> str:
        return f"{self.path}/records"

    def record_path(self, record_id: str) -> str:
        return f"{self.records_path}/{record_id}"

    # --- Records ---

    def list_records(self) -> list[dict[str, Any]]:
        return self._client.request("GET", self.records_path).get("data", [])

    def create_record(self, data: dict[str, Any]) -> dict[str, Any]:
        body = self._client.request("POST", self.records_path, body={"data": data}, write=True)
        return body.get("data", {})

    def update_record(self, data: dict[str, Any]) -> dict[str, Any]:
        """Replace the record identified by ``data["id"]``."""
        record_id = data["id"]
        body = self._client.request(
            "PUT", self.record_path(record_id), body={"data": data}, write=True
        )
        return body.get("data", {})

    def create_operation(self, data: dict[str, Any]) -> BatchOperation:
        return BatchOperation("POST", self.records_path, {"data": data})

    def update_operation(self, data: dict[str, Any]) -> BatchOperation:
        return BatchOperation("PUT", self.record_path(data["id"]), {"data": data})

    def batch(self, operations: Sequence[BatchOperation]) -> list[dict[str, Any]]:
        return self._client.batch(operations)

    # --- Collection metadata ---

    def get_data(self) -> dict[str, Any]:
        return self._client.request("GET", self.path).get("data", {})

    def patch_data(self, data: dict[str, Any]) -> dict[str, Any]:
        """Merge *data* into the collection metadata (PATCH, not replace)."""
        body = self._client.request("PATCH", self.path, body={"data": data}, write=True)
        return body.get("data", {})


def _error_message(response: httpx.Response) -> str:
    """Kinto error bodies carry a ``message``; fall back to the raw text."""
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and "message" in payload:
        return str(payload["message"])
    return response.text
