"""ServiceResult and ServiceError — what every service operation returns.

The CLI renders these; the runner folds the reconcilers' results into its
own. Exceptions stop at the runner, which turns them into a failed result.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name (``"sync"``, ``"reconcile_realms"``, ...).
        data: Operation-specific payload.
        warnings: Non-fatal issues worth surfacing.
        error: Set when ``ok`` is False.
        meta: Run bookkeeping (stage reached, dry-run flag).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
