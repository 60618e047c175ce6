"""BaseReconciler — shared plumbing for the two collection reconcilers.

Each reconciler owns one destination collection and one upstream URL.
Upstream reads go through a plain, unauthenticated httpx client so the
writer credentials never leave for GitHub.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from quirksync.domain.types import STATUS_TO_REVIEW
from quirksync.infrastructure.fetcher import fetch_json

if TYPE_CHECKING:
    import httpx

    from quirksync.infrastructure.remote_settings import Collection

log = structlog.get_logger(__name__)


class BaseReconciler:
    """Abstract base for the reconcilers.

    Usage::

        class RealmsReconciler(BaseReconciler):
            def reconcile(self) -> ServiceResult:
                source = self.fetch_source()
                ...
                self.flag_for_review()
    """

    def __init__(
        self,
        collection: Collection,
        *,
        source_url: str,
        upstream: httpx.Client,
        dry_run: bool = False,
    ) -> None:
        self._collection = collection
        self._source_url = source_url
        self._upstream = upstream
        self._dry_run = dry_run

    @property
    def collection_id(self) -> str:
        return self._collection.id

    def fetch_source(self) -> Any:
        return fetch_json(self._source_url, client=self._upstream)

    def flag_for_review(self) -> dict[str, Any]:
        """Patch collection metadata to ``status: to-review``.

        The collection's current ``last_modified`` is read back and sent
        with the patch.
        """
        current = self._collection.get_data()
        patch = {"status": STATUS_TO_REVIEW, "last_modified": current.get("last_modified")}
        self._collection.patch_data(patch)
        log.debug("collection.flagged", collection=self.collection_id, **patch)
        return patch
