"""SyncRunner — one sync run as an explicit state machine.

    uninitialized -> credentials_checked -> authenticated
        -> realms_reconciled -> rules_reconciled -> done

Any exception moves the run to ``failed``. The failed result records the
last stage reached, so a missing secret, a bad upstream read, and a
rejected write are told apart without reading logs. There is no partial
success: if realms were written and rules then fail, the run failed and
the realms write stays in place.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from quirksync.domain.lifecycle import Stage, is_valid_transition
from quirksync.errors import SyncError
from quirksync.infrastructure.remote_settings import RemoteSettingsClient
from quirksync.services.realms import RealmsReconciler
from quirksync.services.result import ServiceError, ServiceResult
from quirksync.services.rules import RulesReconciler

if TYPE_CHECKING:
    from quirksync.config.settings import SyncSettings

log = structlog.get_logger(__name__)

UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class SyncRunner:
    """Drive one run from credential check to ``done`` or ``failed``.

    Transports are injectable so tests can answer every HTTP call from
    memory; in production both default to real network transports.
    """

    def __init__(
        self,
        settings: SyncSettings,
        *,
        dry_run: bool = False,
        storage_transport: httpx.BaseTransport | None = None,
        upstream_transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._dry_run = dry_run
        self._storage_transport = storage_transport
        self._upstream_transport = upstream_transport
        self._client: RemoteSettingsClient | None = None
        self._upstream: httpx.Client | None = None
        self._results: dict[str, ServiceResult] = {}
        self.stage = Stage.UNINITIALIZED

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> ServiceResult:
        if self.stage is not Stage.UNINITIALIZED:
            raise RuntimeError(f"SyncRunner already used (stage={self.stage})")
        try:
            for step, target in self._steps():
                step()
                self._advance(target)
        except SyncError as exc:
            return self._fail(exc.code, exc)
        except Exception as exc:
            return self._fail(UNEXPECTED_ERROR, exc)
        finally:
            self._close()
        return self._succeed()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _steps(self) -> list[tuple[Callable[[], None], Stage]]:
        return [
            (self._check_credentials, Stage.CREDENTIALS_CHECKED),
            (self._authenticate, Stage.AUTHENTICATED),
            (self._reconcile_realms, Stage.REALMS_RECONCILED),
            (self._reconcile_rules, Stage.RULES_RECONCILED),
            (self._finish, Stage.DONE),
        ]

    def _check_credentials(self) -> None:
        self._settings.writer.check()

    def _authenticate(self) -> None:
        self._client = RemoteSettingsClient.from_credentials(
            self._settings.writer, transport=self._storage_transport
        )
        self._upstream = httpx.Client(transport=self._upstream_transport, follow_redirects=True)

    def _reconcile_realms(self) -> None:
        dest = self._settings.destination
        reconciler = RealmsReconciler(
            self._require_client().collection(dest.bucket, dest.realms_collection),
            source_url=self._settings.source.realms_url,
            upstream=self._require_upstream(),
            dry_run=self._dry_run,
        )
        self._results["realms"] = reconciler.reconcile()

    def _reconcile_rules(self) -> None:
        dest = self._settings.destination
        reconciler = RulesReconciler(
            self._require_client().collection(dest.bucket, dest.rules_collection),
            source_url=self._settings.source.rules_url,
            upstream=self._require_upstream(),
            dry_run=self._dry_run,
        )
        self._results["rules"] = reconciler.reconcile()

    def _finish(self) -> None:
        log.info("Script finished successfully!", dry_run=self._dry_run)

    # ------------------------------------------------------------------
    # State handling
    # ------------------------------------------------------------------

    def _advance(self, target: Stage) -> None:
        if not is_valid_transition(self.stage, target):
            raise RuntimeError(f"Invalid stage transition {self.stage} -> {target}")
        log.debug("sync.stage", previous=str(self.stage), stage=str(target))
        self.stage = target

    def _require_client(self) -> RemoteSettingsClient:
        if self._client is None:
            raise RuntimeError("Remote Settings client used before authentication")
        return self._client

    def _require_upstream(self) -> httpx.Client:
        if self._upstream is None:
            raise RuntimeError("Upstream client used before authentication")
        return self._upstream

    def _close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
        if self._upstream is not None:
            self._upstream.close()
            self._upstream = None

    def _payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {"stage": str(self.stage)}
        for name, result in self._results.items():
            data[name] = result.data
        return data

    def _warnings(self) -> list[str]:
        return [w for result in self._results.values() for w in result.warnings]

    def _succeed(self) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op="sync",
            data=self._payload(),
            warnings=self._warnings(),
            meta={"dry_run": self._dry_run},
        )

    def _fail(self, code: str, exc: Exception) -> ServiceResult:
        reached = self.stage
        log.error(
            str(exc) or type(exc).__name__,
            code=code,
            stage=str(reached),
            exc_info=code == UNEXPECTED_ERROR,
        )
        self._advance(Stage.FAILED)
        detail: dict[str, Any] = {"stage": str(reached), "exception": type(exc).__name__}
        for attr in ("url", "path", "status"):
            value = getattr(exc, attr, None)
            if value is not None:
                detail[attr] = value
        return ServiceResult(
            ok=False,
            op="sync",
            data=self._payload(),
            warnings=self._warnings(),
            error=ServiceError(code=code, message=str(exc) or type(exc).__name__, detail=detail),
            meta={"dry_run": self._dry_run},
        )
