"""Rich renderers for sync results.

Renderers are dispatched by ``result.op``; unknown ops fall through to a
generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from quirksync.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from quirksync.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a string via Rich."""
    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """One line: ``OK: <op>`` or ``ERROR: <op> — <message>``."""
    if result.ok:
        return f"OK: {result.op}"
    msg = result.error.message if result.error else "Unknown error"
    return f"ERROR: {result.op} — {msg}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="qs.ok")
    op = Text(f"  {result.op}", style="qs.op")
    if result.meta and result.meta.get("dry_run"):
        op.append("  (dry run)", style="qs.warning")
    console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="qs.key")
    if key.endswith("_id"):
        v = Text(str(value), style="qs.id")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v)


def _warnings(console: Console, result: ServiceResult) -> None:
    for warning in result.warnings:
        console.print(Text("  warning: ", style="qs.warning"), Text(warning))


def _directive_table(directives: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Kind")
    table.add_column("Domain")
    table.add_column("ID", style="qs.id")
    table.add_column("Rules")
    for d in directives:
        kind = str(d.get("kind", ""))
        table.add_row(
            Text(kind, style=f"qs.{kind}" if kind in ("create", "update") else ""),
            str(d.get("domain", "")),
            str(d.get("id", "")),
            str(d.get("rules", "")),
        )
    return table


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="qs.error"),
        Text(f"  {result.op}", style="qs.op"),
        Text(" — "),
        Text(msg),
    )
    if err:
        console.print(Text(f"  code: {err.code}", style="dim"))
        if verbose and err.detail:
            console.print(Text("  detail:", style="dim"))
            for k, v in err.detail.items():
                console.print(Text(f"    {k}: {v}"))


def _render_realms(data: dict[str, Any], console: Console) -> None:
    action = str(data.get("action", ""))
    console.print(Text(f"  realms ({data.get('collection')}): ", style="qs.key"), action)
    if data.get("record_id"):
        _field(console, "  record_id", data["record_id"])
    _field(console, "  groups", data.get("groups", 0))
    _field(console, "  flagged_for_review", data.get("flagged_for_review", False))


def _render_rules(data: dict[str, Any], console: Console, *, verbose: bool) -> None:
    summary = (
        f"{data.get('created', 0)} created, {data.get('updated', 0)} updated, "
        f"{data.get('unchanged', 0)} unchanged"
    )
    console.print(Text(f"  rules ({data.get('collection')}): ", style="qs.key"), summary)
    _field(console, "  flagged_for_review", data.get("flagged_for_review", False))
    directives = data.get("directives") or []
    if verbose and directives:
        console.print(_directive_table(directives))


def _render_sync(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    if "realms" in result.data:
        _render_realms(result.data["realms"], console)
    if "rules" in result.data:
        _render_rules(result.data["rules"], console, verbose=verbose)
    _warnings(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    _warnings(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "sync": _render_sync,
}
