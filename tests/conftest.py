"""Shared pytest fixtures and in-memory HTTP fakes for quirksync tests.

``FakeRemoteSettings`` answers the Kinto v1 calls the client makes, and
``FakeUpstream`` serves the two GitHub feeds. Both record every request so
tests can assert on exactly which calls a run made.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from typing import Any

import httpx
import pytest
import structlog
from click.testing import CliRunner

from quirksync.config.models import SourceConfig, WriterCredentials
from quirksync.config.settings import SyncSettings
from quirksync.infrastructure.remote_settings import RemoteSettingsClient

SERVER = "https://rs.example.test/v1"
BUCKET = "main"
REALMS_CID = "websites-with-shared-credential-backends"
RULES_CID = "password-rules"
REALMS_URL = "https://upstream.example.test/quirks/websites-with-shared-credential-backends.json"
RULES_URL = "https://upstream.example.test/quirks/password-rules.json"

WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class FakeRemoteSettings:
    """In-memory Kinto server: collections, records, metadata, capped batch."""

    def __init__(self) -> None:
        self.collections: dict[tuple[str, str], dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], int] = {}
        self.batch_max_requests = 25
        self._clock = 1000
        self._ids = 0

    # --- Setup helpers ---

    def seed(self, cid: str, records: list[dict[str, Any]] | None = None) -> None:
        """Create collection *cid* in the test bucket with *records*."""
        coll = self._collection(BUCKET, cid)
        for record in records or []:
            stored = dict(record)
            stored.setdefault("id", self._next_id())
            stored["last_modified"] = self._tick(coll)
            coll["records"][stored["id"]] = stored

    def fail(self, method: str, path: str, status: int = 503) -> None:
        """Answer *method* on *path* (no ``/v1`` prefix) with *status*."""
        self.failures[(method, path)] = status

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    # --- Inspection helpers ---

    def records(self, cid: str) -> list[dict[str, Any]]:
        return list(self._collection(BUCKET, cid)["records"].values())

    def metadata(self, cid: str) -> dict[str, Any]:
        return self._collection(BUCKET, cid)["metadata"]

    @property
    def writes(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method in WRITE_METHODS]

    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, _strip_prefix(r.url.path)) for r in self.requests]

    def batch_requests(self) -> list[list[dict[str, Any]]]:
        return [
            json.loads(r.content)["requests"]
            for r in self.requests
            if r.method == "POST" and _strip_prefix(r.url.path) == "/batch"
        ]

    # --- Transport ---

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content) if request.content else None
        status, payload = self._dispatch(request.method, _strip_prefix(request.url.path), body)
        return httpx.Response(status, json=payload)

    def _dispatch(
        self, method: str, path: str, body: dict[str, Any] | None
    ) -> tuple[int, dict[str, Any]]:
        if (method, path) in self.failures:
            status = self.failures[(method, path)]
            return status, {"code": status, "message": f"forced failure on {method} {path}"}

        if path == "/batch" and method == "POST":
            subs = (body or {}).get("requests", [])
            if len(subs) > self.batch_max_requests:
                message = f"too many requests: {len(subs)} > {self.batch_max_requests}"
                return 400, {"code": 400, "message": message}
            responses = []
            for sub in subs:
                sub_status, sub_body = self._dispatch(sub["method"], sub["path"], sub.get("body"))
                responses.append({"status": sub_status, "path": sub["path"], "body": sub_body})
            return 200, {"responses": responses}

        if path == "/" and method == "GET":
            return 200, {"settings": {"batch_max_requests": self.batch_max_requests}}

        parts = path.strip("/").split("/")
        if len(parts) < 4 or parts[0] != "buckets" or parts[2] != "collections":
            return 404, {"code": 404, "message": f"unknown path {path}"}
        coll = self._collection(parts[1], parts[3])

        if len(parts) == 4:
            if method == "GET":
                return 200, {"data": dict(coll["metadata"])}
            if method == "PATCH":
                coll["metadata"].update((body or {}).get("data", {}))
                return 200, {"data": dict(coll["metadata"])}
        elif len(parts) == 5 and parts[4] == "records":
            if method == "GET":
                return 200, {"data": [dict(r) for r in coll["records"].values()]}
            if method == "POST":
                record = dict((body or {}).get("data", {}))
                record.setdefault("id", self._next_id())
                record["last_modified"] = self._tick(coll)
                coll["records"][record["id"]] = record
                return 201, {"data": dict(record)}
        elif len(parts) == 6 and parts[4] == "records":
            if method == "PUT":
                record = dict((body or {}).get("data", {}))
                record["id"] = parts[5]
                record["last_modified"] = self._tick(coll)
                existed = parts[5] in coll["records"]
                coll["records"][parts[5]] = record
                return (200 if existed else 201), {"data": dict(record)}
        return 405, {"code": 405, "message": f"{method} not allowed on {path}"}

    def _collection(self, bucket: str, cid: str) -> dict[str, Any]:
        key = (bucket, cid)
        if key not in self.collections:
            self.collections[key] = {
                "metadata": {"id": cid, "last_modified": self._clock},
                "records": {},
            }
        return self.collections[key]

    def _tick(self, coll: dict[str, Any]) -> int:
        self._clock += 1
        coll["metadata"]["last_modified"] = self._clock
        return self._clock

    def _next_id(self) -> str:
        self._ids += 1
        return f"rec-{self._ids}"


class FakeUpstream:
    """Serves JSON (or failures) per URL, like the GitHub contents API."""

    def __init__(self) -> None:
        self.responses: dict[str, tuple[int, bytes]] = {}
        self.requests: list[httpx.Request] = []

    def serve(self, url: str, payload: Any) -> None:
        self.responses[url] = (200, json.dumps(payload).encode())

    def serve_raw(self, url: str, status: int, text: str) -> None:
        self.responses[url] = (status, text.encode())

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) not in self.responses:
            return httpx.Response(404, json={"message": "Not Found"})
        status, content = self.responses[str(request.url)]
        return httpx.Response(status, content=content)


def _strip_prefix(path: str) -> str:
    return path[len("/v1") :] if path.startswith("/v1/") else path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's real secrets and config out of the tests."""
    for name in list(os.environ):
        if name.startswith(("FX_REMOTE_SETTINGS_WRITER_", "QUIRKSYNC_")):
            monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Undo configure_logging so handlers never outlive a CliRunner stream."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    qs = logging.getLogger("quirksync")
    qs_level = qs.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    qs.setLevel(qs_level)
    structlog.reset_defaults()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def remote() -> FakeRemoteSettings:
    return FakeRemoteSettings()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def credentials() -> WriterCredentials:
    return WriterCredentials(user="writer", password="s3cret", server=SERVER)


@pytest.fixture
def settings(credentials: WriterCredentials) -> SyncSettings:
    """Settings pointing at the fake server and fake upstream URLs."""
    return SyncSettings(
        writer=credentials,
        source=SourceConfig(realms_url=REALMS_URL, rules_url=RULES_URL),
    )


@pytest.fixture
def rs_client(
    remote: FakeRemoteSettings, credentials: WriterCredentials
) -> Iterator[RemoteSettingsClient]:
    client = RemoteSettingsClient.from_credentials(credentials, transport=remote.transport)
    try:
        yield client
    finally:
        client.close()


@pytest.fixture
def upstream_client(upstream: FakeUpstream) -> Iterator[httpx.Client]:
    client = httpx.Client(transport=upstream.transport)
    try:
        yield client
    finally:
        client.close()
