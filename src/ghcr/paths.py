"""Filesystem locations for gh-cr state."""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "gh-cr"


def state_dir() -> Path:
    """Return the per-user state directory.

    ``$XDG_STATE_HOME/gh-cr`` when the variable is set and non-empty,
    otherwise ``~/.local/state/gh-cr``.
    """
    xdg = os.environ.get("XDG_STATE_HOME", "")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".local" / "state" / APP_NAME
