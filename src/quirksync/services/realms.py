"""RealmsReconciler — keep the related-realms record equal to upstream.

The collection holds exactly one record. First run creates it; later runs
replace ``relatedRealms`` wholesale when anything differs, and leave the
collection untouched otherwise. Only a write flags the collection for
review.
"""

from __future__ import annotations

from typing import Any

import structlog

from quirksync.domain.realms import RealmGroup, RelatedRealmsRecord, realms_differ
from quirksync.domain.types import RealmsAction
from quirksync.services.base import BaseReconciler
from quirksync.services.result import ServiceResult

log = structlog.get_logger(__name__)


class RealmsReconciler(BaseReconciler):
    """Reconciles the websites-with-shared-credential-backends collection."""

    def load_destination(self) -> tuple[str | None, list[RealmGroup]]:
        """Return ``(record id, groups)`` of the stored record, or ``(None, [])``."""
        records = self._collection.list_records()
        if not records:
            return None, []
        if len(records) > 1:
            log.warning(
                "realms.extra_records",
                collection=self.collection_id,
                count=len(records),
            )
        stored = RelatedRealmsRecord.from_wire(records[0])
        return stored.id, stored.related_realms

    def diff(self, source: list[RealmGroup], current: list[RealmGroup]) -> bool:
        return realms_differ(source, current)

    def reconcile(self) -> ServiceResult:
        record_id, current = self.load_destination()
        source: list[RealmGroup] = self.fetch_source()
        warnings: list[str] = []

        if record_id is None:
            action = RealmsAction.CREATED
        elif self.diff(source, current):
            action = RealmsAction.UPDATED
        else:
            log.info(
                "No new records! Not committing any changes.",
                collection=self.collection_id,
            )
            return self._result(RealmsAction.UNCHANGED, record_id, source)

        if self._dry_run:
            warnings.append(f"Dry run: would have {action} the related realms record")
            return self._result(RealmsAction.PLANNED, record_id, source, warnings=warnings)

        record = RelatedRealmsRecord(id=record_id, relatedRealms=source)
        if action is RealmsAction.CREATED:
            created = self._collection.create_record(record.to_wire())
            record_id = created.get("id")
            log.info("Added new record.", collection=self.collection_id, record_id=record_id)
        else:
            self._collection.update_record(record.to_wire())
            log.info(
                "Found new records, committed changes.",
                collection=self.collection_id,
                record_id=record_id,
            )
        self.flag_for_review()
        return self._result(action, record_id, source, flagged=True)

    def _result(
        self,
        action: RealmsAction,
        record_id: str | None,
        source: list[RealmGroup],
        *,
        flagged: bool = False,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        data: dict[str, Any] = {
            "collection": self.collection_id,
            "action": str(action),
            "record_id": record_id,
            "groups": len(source),
            "flagged_for_review": flagged,
        }
        return ServiceResult(ok=True, op="reconcile_realms", data=data, warnings=warnings or [])
