"""RulesReconciler — upsert one password-rules record per upstream domain.

New domains are created and changed rules are updated. The writes go out
as batches no larger than the server accepts. Stale destination domains
are left alone. The collection is flagged for review after every
successful batch, including an empty one.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from quirksync.domain.rules import PasswordRuleEntry, RuleDirective, index_by_domain, plan_changes
from quirksync.domain.types import DirectiveKind
from quirksync.services.base import BaseReconciler
from quirksync.services.result import ServiceResult

log = structlog.get_logger(__name__)


class RulesReconciler(BaseReconciler):
    """Reconciles the password-rules collection."""

    def load_destination(self) -> dict[str, PasswordRuleEntry]:
        return index_by_domain(self._collection.list_records())

    def plan_changes(
        self,
        source: Mapping[str, Mapping[str, Any]],
        destination: Mapping[str, PasswordRuleEntry],
    ) -> list[RuleDirective]:
        directives = plan_changes(source, destination)
        for directive in directives:
            if directive.kind is DirectiveKind.CREATE:
                log.info("Added new record to batch!", record=directive.to_record())
            else:
                log.info("Added updated record to batch!", record=directive.to_record())
        return directives

    def apply_changes(self, directives: Sequence[RuleDirective]) -> list[dict[str, Any]]:
        operations = [
            self._collection.create_operation(d.to_record())
            if d.kind is DirectiveKind.CREATE
            else self._collection.update_operation(d.to_record())
            for d in directives
        ]
        return self._collection.batch(operations)

    def reconcile(self) -> ServiceResult:
        source = self.fetch_source()
        destination = self.load_destination()
        directives = self.plan_changes(source, destination)

        created = sum(1 for d in directives if d.kind is DirectiveKind.CREATE)
        data: dict[str, Any] = {
            "collection": self.collection_id,
            "created": created,
            "updated": len(directives) - created,
            "unchanged": len(source) - len(directives),
            "directives": [d.model_dump(mode="json", exclude_none=True) for d in directives],
            "flagged_for_review": False,
        }

        if self._dry_run:
            warnings = [f"Dry run: {len(directives)} rule writes not sent"] if directives else []
            return ServiceResult(ok=True, op="reconcile_rules", data=data, warnings=warnings)

        self.apply_changes(directives)
        self.flag_for_review()
        data["flagged_for_review"] = True

        if directives:
            log.info(
                "Found new and/or updated records, committed changes.",
                collection=self.collection_id,
                created=data["created"],
                updated=data["updated"],
            )
        else:
            log.info("Found no new or updated records.", collection=self.collection_id)
        return ServiceResult(ok=True, op="reconcile_rules", data=data)
