"""Locate quirksync.toml.

The QUIRKSYNC_CONFIG env var wins; otherwise walk up from the working
directory the way git looks for .git/.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "quirksync.toml"
CONFIG_ENV_VAR = "QUIRKSYNC_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the nearest quirksync.toml at or above *start*, or None.

    A QUIRKSYNC_CONFIG pointing at a missing file yields None rather than
    falling back to the walk-up search.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
