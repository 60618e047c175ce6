"""Rich Console factory and theme for quirksync output.

Consoles render into a StringIO buffer so callers get a plain string back.
Rich drops color codes by itself when not attached to a terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

QS_THEME = Theme(
    {
        "qs.ok": "bold green",
        "qs.error": "bold red",
        "qs.warning": "bold yellow",
        "qs.op": "bold cyan",
        "qs.key": "dim",
        "qs.id": "bold blue",
        "qs.create": "green",
        "qs.update": "yellow",
        "qs.unchanged": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=QS_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
