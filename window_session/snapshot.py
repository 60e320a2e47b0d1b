"""
Saved session file.

    {
      "schema": "window-session",
      "created_at": "2026-01-01 09:00:00",
      "windows": {
        "<id>": {"class": ..., "title": ..., "workspace": 0,
                 "rect": {"x": .., "y": .., "width": .., "height": ..},
                 "state": {"maximized-horizontal": true},
                 "pid": 1234, "comm": ["gedit", "notes.txt"]}
      }
    }

Only true state flags are written.  Group, geometry and the command string
are recomputed on load.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Dict, Iterable, Mapping, Optional

from .commands import resolve_comm
from .desktop import Desktop
from .errors import NothingToRestore, SnapshotError
from .log import DETAIL
from .records import WindowRecord

logger = logging.getLogger(__name__)

SCHEMA = "window-session"

Windows = Dict[int, WindowRecord]


def _now() -> str:
    return time.strftime("%Y-%m-%d %H:%M:%S")


def capture_windows(desktop: Desktop, launchers: Optional[Mapping[str, str]] = None) -> Windows:
    """Live windows keyed by id, with commands reconciled against launchers."""
    launchers = launchers or {}
    windows: Windows = {}
    for window in desktop.windows():
        template = launchers.get(window.wm_class)
        if template:
            comm = resolve_comm(template, window.comm)
            logger.debug("%s: %s vs %s -> %s", window.label, template, window.command, comm)
            window.comm = comm
        windows[window.id] = window
    return windows


def save_snapshot(path: str, windows: Iterable[WindowRecord]) -> int:
    entries = {str(w.id): w.to_dict() for w in windows}
    data = {"schema": SCHEMA, "created_at": _now(), "windows": entries}

    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.log(DETAIL, "Saved %d windows to %s", len(entries), path)
    return len(entries)


def load_snapshot(path: str) -> Windows:
    if not os.path.exists(path):
        raise NothingToRestore(f"No saved session at {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except ValueError as exc:
        raise SnapshotError(f"Saved session {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict) or str(data.get("schema") or "").strip() != SCHEMA:
        schema = data.get("schema") if isinstance(data, dict) else None
        raise SnapshotError(
            f"Unrecognised session schema {schema!r}. "
            f"Expected {SCHEMA!r}. Re-save your session with the current tool."
        )

    entries = data.get("windows")
    if not isinstance(entries, dict):
        raise SnapshotError(f"Saved session {path} has no windows table")

    windows: Windows = {}
    for key, entry in entries.items():
        try:
            window = WindowRecord.from_dict(key, entry)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Saved window {key!r} is malformed: {exc!r}") from exc
        windows[window.id] = window
    logger.log(DETAIL, "Loaded %d saved windows from %s", len(windows), path)
    return windows
