"""Sync run lifecycle.

A run moves strictly forward through the stages below. ``failed`` is the
single error state, reachable from every stage that has not finished.
"""

from __future__ import annotations

from enum import StrEnum


class Stage(StrEnum):
    """Stages of one sync run, in execution order."""

    UNINITIALIZED = "uninitialized"
    CREDENTIALS_CHECKED = "credentials_checked"
    AUTHENTICATED = "authenticated"
    REALMS_RECONCILED = "realms_reconciled"
    RULES_RECONCILED = "rules_reconciled"
    DONE = "done"
    FAILED = "failed"


STAGE_TRANSITIONS: dict[str, list[str]] = {
    "uninitialized": ["credentials_checked", "failed"],
    "credentials_checked": ["authenticated", "failed"],
    "authenticated": ["realms_reconciled", "failed"],
    "realms_reconciled": ["rules_reconciled", "failed"],
    "rules_reconciled": ["done", "failed"],
    "done": [],
    "failed": [],
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = STAGE_TRANSITIONS,
) -> bool:
    """Check if moving from *current* to *target* is allowed."""
    return target in transitions.get(current, [])
