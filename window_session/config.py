"""Settings passed explicitly into a Session; loaded from config.json."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

CONFIG_PATH = "config.json"
DEFAULT_SESSION_PATH = os.path.join("~", ".config", "window-session", "session.json")

# Applications that manage their own session restore.
DEFAULT_SELF_MANAGED = [
    "firefox.exe",
    "chrome.exe",
    "msedge.exe",
    "firefox",
    "Google-chrome",
]


@dataclass
class SessionConfig:
    session_path: str = DEFAULT_SESSION_PATH
    log_level: str = "DETAIL"
    log_file: Optional[str] = None
    self_managed: List[str] = field(default_factory=lambda: list(DEFAULT_SELF_MANAGED))
    # class -> launcher command template, e.g. {"gedit": "gedit %U"}
    launchers: Dict[str, str] = field(default_factory=dict)
    poll_interval: float = 0.25
    max_solver_group: int = 12

    @property
    def session_file(self) -> str:
        return os.path.expanduser(self.session_path)


def _load_config(path: str = CONFIG_PATH) -> Dict:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            d = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}
    if not isinstance(d, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return {}
    return d


def load_config(path: str = CONFIG_PATH) -> SessionConfig:
    raw = _load_config(path)
    known = {f.name for f in fields(SessionConfig)}
    return SessionConfig(**{k: v for k, v in raw.items() if k in known})
