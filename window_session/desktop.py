"""The window-manager binding the restore core talks to."""

from __future__ import annotations

from typing import List, Protocol, Set

from .records import Rect, WindowRecord

HORIZONTAL = "horizontal"
VERTICAL = "vertical"


class Desktop(Protocol):
    """
    Enumeration and mutation of normal (non-dialog, non-transient)
    top-level windows.  Window ids are whatever the binding uses as a
    stable per-window identity.
    """

    def windows(self) -> List[WindowRecord]: ...

    def window_ids(self) -> Set[int]: ...

    def move_resize(self, window_id: int, rect: Rect) -> None: ...

    def minimize(self, window_id: int) -> None: ...

    def unminimize(self, window_id: int) -> None: ...

    def maximize(self, window_id: int, axis: str) -> None: ...

    def unmaximize(self, window_id: int, axis: str) -> None: ...

    def set_fullscreen(self, window_id: int, on: bool) -> None: ...

    def set_above(self, window_id: int, on: bool) -> None: ...

    def set_sticky(self, window_id: int, on: bool) -> None: ...

    def change_workspace(self, window_id: int, index: int) -> None:
        """Move to workspace ``index``, creating workspaces up to it."""

    def activate(self, window_id: int) -> None: ...
