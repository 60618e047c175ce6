"""Password rules by domain and the create/update plan for them.

Upstream maps ``domain -> {"password-rules": str}``. The destination
collection stores one record per domain as
``{"id", "Domain", "password-rules"}``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from quirksync.domain.types import DirectiveKind

log = structlog.get_logger(__name__)

RULES_KEY = "password-rules"
DOMAIN_KEY = "Domain"


class PasswordRuleEntry(BaseModel):
    """A stored per-domain rules record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | None = None
    domain: str = Field(alias=DOMAIN_KEY)
    rules: str | None = Field(default=None, alias=RULES_KEY)


class RuleDirective(BaseModel):
    """One write in the rules batch."""

    model_config = {"frozen": True}

    kind: DirectiveKind
    domain: str
    rules: str
    id: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Record body for the batch request."""
        record: dict[str, Any] = {DOMAIN_KEY: self.domain, RULES_KEY: self.rules}
        if self.id is not None:
            record = {"id": self.id, **record}
        return record


def index_by_domain(records: Iterable[Mapping[str, Any]]) -> dict[str, PasswordRuleEntry]:
    """Key stored records by their ``Domain`` field.

    If the collection holds two records for one domain the later one wins.
    Records without a string ``Domain`` can never match an upstream domain
    and are skipped. A non-string rules value is kept as ``None`` so the
    record gets rewritten.
    """
    index: dict[str, PasswordRuleEntry] = {}
    for record in records:
        domain = record.get(DOMAIN_KEY)
        if not isinstance(domain, str):
            log.warning("Skipping stored rules record without a domain", record_id=record.get("id"))
            continue
        rules = record.get(RULES_KEY)
        entry = PasswordRuleEntry(
            id=record.get("id"),
            domain=domain,
            rules=rules if isinstance(rules, str) else None,
        )
        index[entry.domain] = entry
    return index


def plan_changes(
    source: Mapping[str, Mapping[str, Any]],
    destination: Mapping[str, PasswordRuleEntry],
) -> list[RuleDirective]:
    """Directives that bring *destination* in line with *source*.

    Walks source domains in source order. Domains only present in the
    destination are never visited, so they are neither updated nor removed.
    """
    directives: list[RuleDirective] = []
    for domain, payload in source.items():
        rules = payload[RULES_KEY]
        current = destination.get(domain)
        if current is None:
            directives.append(RuleDirective(kind=DirectiveKind.CREATE, domain=domain, rules=rules))
        elif current.rules != rules:
            directives.append(
                RuleDirective(kind=DirectiveKind.UPDATE, id=current.id, domain=domain, rules=rules)
            )
    return directives
