"""Window records: one saved or live top-level window."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .commands import args_to_command

# Order matters: property application walks the flags in this order.
STATE_FLAGS = (
    "minimized",
    "maximized-horizontal",
    "maximized-vertical",
    "fullscreen",
    "above",
    "sticky",
    "focused",
)


# ══════════════════════════════════════════════════════════════════════════
#  Match variant
# ══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class Unmatched:
    """No live window is associated with the saved record."""


@dataclass(frozen=True)
class Tentative:
    """Solver proposal, pending confirmation."""
    live_id: int


@dataclass(frozen=True)
class Confirmed:
    """Accepted pairing, used for property application."""
    live_id: int


Match = Union[Unmatched, Tentative, Confirmed]
UNMATCHED = Unmatched()


# ══════════════════════════════════════════════════════════════════════════
#  Records
# ══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def geometry(self) -> str:
        return f"{self.x},{self.y}+{self.width}x{self.height}"

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: Dict) -> "Rect":
        return cls(int(d["x"]), int(d["y"]), int(d["width"]), int(d["height"]))


@dataclass
class WindowRecord:
    """
    A saved or live window.

    ``group`` is fixed when the record is built: a launch later stamps the
    spawned pid onto saved records to help identity scoring, but the group
    they belong to must not move.
    """
    id: int
    wm_class: str
    title: str
    workspace: int
    rect: Rect
    state: Dict[str, bool] = field(default_factory=dict)
    pid: Optional[int] = None
    comm: List[str] = field(default_factory=list)
    match: Match = UNMATCHED
    group: str = field(init=False)

    def __post_init__(self) -> None:
        self.state = {flag: bool(self.state.get(flag, False)) for flag in STATE_FLAGS}
        self.group = f"{self.pid} {self.wm_class}"

    # ── derived ─────────────────────────────────────────────────────────
    @property
    def geometry(self) -> str:
        return self.rect.geometry

    @property
    def command(self) -> str:
        return args_to_command(self.comm)

    @property
    def label(self) -> str:
        return f"{self.wm_class} ({self.id})"

    # ── match transitions ───────────────────────────────────────────────
    @property
    def confirmed_id(self) -> Optional[int]:
        return self.match.live_id if isinstance(self.match, Confirmed) else None

    @property
    def tentative_id(self) -> Optional[int]:
        return self.match.live_id if isinstance(self.match, Tentative) else None

    @property
    def matched_id(self) -> Optional[int]:
        """Live id of either a confirmed or a tentative match."""
        if isinstance(self.match, (Confirmed, Tentative)):
            return self.match.live_id
        return None

    def confirm(self, live_id: int) -> None:
        self.match = Confirmed(live_id)

    def propose(self, live_id: int) -> None:
        self.match = Tentative(live_id)

    def promote(self) -> None:
        if isinstance(self.match, Tentative):
            self.match = Confirmed(self.match.live_id)

    def clear(self) -> None:
        self.match = UNMATCHED

    # ── persistence ─────────────────────────────────────────────────────
    def to_dict(self) -> Dict:
        """Persisted form: only true flags, no derived fields."""
        return {
            "class":     self.wm_class,
            "title":     self.title,
            "workspace": self.workspace,
            "rect":      self.rect.to_dict(),
            "state":     {k: True for k, v in self.state.items() if v},
            "pid":       self.pid,
            "comm":      list(self.comm),
        }

    @classmethod
    def from_dict(cls, window_id: Union[int, str], d: Dict) -> "WindowRecord":
        pid = d.get("pid")
        return cls(
            id=int(window_id),
            wm_class=str(d["class"]),
            title=str(d.get("title") or ""),
            workspace=int(d.get("workspace") or 0),
            rect=Rect.from_dict(d["rect"]),
            state={str(k): bool(v) for k, v in (d.get("state") or {}).items()},
            pid=int(pid) if pid is not None else None,
            comm=[str(a) for a in (d.get("comm") or [])],
        )
