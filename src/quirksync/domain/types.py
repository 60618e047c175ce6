"""Classification enums shared by the reconcilers."""

from __future__ import annotations

from enum import StrEnum


class DirectiveKind(StrEnum):
    """Write kind carried by a rule directive into the batch."""

    CREATE = "create"
    UPDATE = "update"


class RealmsAction(StrEnum):
    """Outcome of one realms reconciliation."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    PLANNED = "planned"  # dry run, a write would have happened


# Collection metadata value asking a reviewer to sign off the latest change.
STATUS_TO_REVIEW = "to-review"
