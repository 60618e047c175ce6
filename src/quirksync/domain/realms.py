"""Related realms: groups of domains sharing one credential backend.

The destination collection holds a single record whose ``relatedRealms``
field is the whole ordered list of groups. Comparison is positional and
order sensitive at both levels; reordering counts as a change.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

RealmGroup = list[str]


class RelatedRealmsRecord(BaseModel):
    """The one record stored in the related-realms collection."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | None = None
    related_realms: list[RealmGroup] = Field(default_factory=list, alias="relatedRealms")

    @classmethod
    def from_wire(cls, record: dict[str, Any]) -> RelatedRealmsRecord:
        return cls(id=record.get("id"), relatedRealms=record.get("relatedRealms") or [])

    def to_wire(self) -> dict[str, Any]:
        """Record body as stored on the server (``id`` only when known)."""
        return self.model_dump(by_alias=True, exclude_none=True)


def groups_equal(a: Sequence[str], b: Sequence[str]) -> bool:
    """Same length and element-wise string equality."""
    return len(a) == len(b) and all(x == y for x, y in zip(a, b, strict=True))


def realms_differ(source: Sequence[Sequence[str]], current: Sequence[Sequence[str]]) -> bool:
    """True if *current* needs replacing with *source*.

    Examples:
        >>> realms_differ([["a.com", "b.com"]], [["a.com", "b.com"]])
        False
        >>> realms_differ([["a.com", "b.com"]], [["b.com", "a.com"]])
        True
        >>> realms_differ([["a.com"]], [])
        True
    """
    if len(source) != len(current):
        return True
    return any(not groups_equal(s, c) for s, c in zip(source, current, strict=True))
