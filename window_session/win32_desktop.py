"""
win32_desktop.py  –  Desktop binding for Windows (pywin32 + psutil)

Key behaviours
  · Enumeration keeps visible, titled, unowned top-level windows and drops
    tool windows and shell hosts (UWP frames, text input, search, ...).
  · Window id is the HWND; class is the owning process image name, which
    identifies the application far better than the window class does
    (Chromium and Electron apps all share Chrome_WidgetWin_1).
  · Geometry is the placement's normal position, so minimised and
    maximised windows still report the size they restore to.
  · Moves go through SetWindowPlacement keeping the current show state.
  · Windows has no per-axis maximise: one axis is emulated by stretching
    the window across its monitor's work area; both axes maximise.
  · Virtual desktops and sticky windows are not reachable through
    pywin32; every window reports workspace 0 and those calls are no-ops.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Set, Tuple

import psutil
import win32api
import win32con
import win32gui
import win32process

from .commands import split_cmdline
from .desktop import HORIZONTAL, VERTICAL
from .records import Rect, WindowRecord

logger = logging.getLogger(__name__)

# Processes that appear as visible top-level windows but cannot be
# meaningfully captured, repositioned, or relaunched.
_BLOCKED_PROC: Set[str] = {
    "textinputhost.exe",          # Windows Input Experience
    "applicationframehost.exe",   # UWP shell host
    "shellhost.exe",
    "startmenuexperiencehost.exe",
    "searchhost.exe",
    "searchapp.exe",
    "lockapp.exe",
    "systemsettings.exe",         # Settings UWP
    "dwm.exe",
    "fontdrvhost.exe",
    "rtkuwp.exe",                 # Realtek Audio Console UWP
}

# Window classes that are always noise.
_BLOCKED_CLASS: Set[str] = {
    "windows.ui.core.corewindow",  # UWP content host
    "applicationframewindow",      # UWP shell chrome
    "progman",                     # desktop
    "workerw",                     # desktop icon layer
}

_SWP_ZORDER_ONLY = win32con.SWP_NOMOVE | win32con.SWP_NOSIZE | win32con.SWP_NOACTIVATE


# ══════════════════════════════════════════════════════════════════════════
#  Tiny helpers
# ══════════════════════════════════════════════════════════════════════════
def _safe_text(hwnd: int) -> str:
    try:
        return win32gui.GetWindowText(hwnd) or ""
    except win32gui.error:
        return ""

def _safe_class(hwnd: int) -> str:
    try:
        return win32gui.GetClassName(hwnd) or ""
    except win32gui.error:
        return ""

def _get_pid(hwnd: int) -> int:
    try:
        _, pid = win32process.GetWindowThreadProcessId(hwnd)
        return int(pid or 0)
    except win32process.error:
        return 0

def _proc_name(pid: int) -> str:
    if not pid:
        return ""
    try:
        return psutil.Process(pid).name() or ""
    except psutil.Error:
        return ""

def _proc_cmdline(pid: int) -> List[str]:
    if not pid:
        return []
    try:
        return psutil.Process(pid).cmdline()
    except psutil.Error:
        return []

def _ex_style(hwnd: int) -> int:
    try:
        return win32gui.GetWindowLong(hwnd, win32con.GWL_EXSTYLE)
    except win32gui.error:
        return 0

def _style(hwnd: int) -> int:
    try:
        return win32gui.GetWindowLong(hwnd, win32con.GWL_STYLE)
    except win32gui.error:
        return 0

def _window_rect(hwnd: int) -> Tuple[int, int, int, int]:
    try:
        return tuple(win32gui.GetWindowRect(hwnd))
    except win32gui.error:
        return (0, 0, 0, 0)

def _window_placement(hwnd: int) -> Tuple[int, Tuple[int, int, int, int]]:
    """Returns (showCmd, normalPositionRect)."""
    try:
        pl = win32gui.GetWindowPlacement(hwnd)
        return int(pl[1]), tuple(pl[4])
    except win32gui.error:
        return win32con.SW_SHOWNORMAL, (0, 0, 0, 0)

def _monitor_info(hwnd: int) -> Dict:
    monitor = win32api.MonitorFromWindow(hwnd, win32con.MONITOR_DEFAULTTONEAREST)
    return win32api.GetMonitorInfo(monitor)

def _rects_intersect(a, b) -> bool:
    return not (a[2] <= b[0] or a[0] >= b[2] or a[3] <= b[1] or a[1] >= b[3])

def _clamp(left: int, top: int, w: int, h: int) -> Tuple[int, int, int, int]:
    """Pull a rect that is off every monitor back onto the primary one."""
    try:
        bounds = [
            win32api.GetMonitorInfo(m[0]).get("Monitor")
            for m in win32api.EnumDisplayMonitors()
        ]
    except win32api.error:
        return left, top, w, h
    bounds = [b for b in bounds if b]
    if bounds and not any(_rects_intersect((left, top, left + w, top + h), b)
                          for b in bounds):
        prim = bounds[0]
        left = min(max(left, prim[0]), prim[2] - w)
        top  = min(max(top,  prim[1]), prim[3] - h)
    return left, top, w, h


# ══════════════════════════════════════════════════════════════════════════
#  Window filter
# ══════════════════════════════════════════════════════════════════════════
def _is_normal(hwnd: int) -> bool:
    """True for top-level user-facing windows (no dialogs, tools, shell)."""
    if not win32gui.IsWindow(hwnd):         return False
    if win32gui.GetParent(hwnd):            return False
    if not win32gui.IsWindowVisible(hwnd):  return False

    if not _safe_text(hwnd).strip():        return False
    if _safe_class(hwnd).strip().lower() in _BLOCKED_CLASS:
        return False

    ex_style = _ex_style(hwnd)
    try:
        owner = win32gui.GetWindow(hwnd, win32con.GW_OWNER)
    except win32gui.error:
        owner = 0
    if (ex_style & win32con.WS_EX_TOOLWINDOW) and not (ex_style & win32con.WS_EX_APPWINDOW):
        return False
    if owner and not (ex_style & win32con.WS_EX_APPWINDOW):
        return False

    if _proc_name(_get_pid(hwnd)).lower() in _BLOCKED_PROC:
        return False
    return True


def _is_fullscreen(hwnd: int) -> bool:
    if _style(hwnd) & win32con.WS_CAPTION:
        return False
    try:
        mon = _monitor_info(hwnd).get("Monitor")
    except win32api.error:
        return False
    return bool(mon) and tuple(_window_rect(hwnd)) == tuple(mon)


# ══════════════════════════════════════════════════════════════════════════
#  Binding
# ══════════════════════════════════════════════════════════════════════════
class Win32Desktop:
    def __init__(self) -> None:
        # hwnd -> axes maximised so far by this binding
        self._axes: Dict[int, Set[str]] = {}

    # ── enumeration ─────────────────────────────────────────────────────
    def window_ids(self) -> Set[int]:
        ids: Set[int] = set()

        def _cb(hwnd, _):
            if _is_normal(hwnd):
                ids.add(hwnd)

        win32gui.EnumWindows(_cb, None)
        return ids

    def windows(self) -> List[WindowRecord]:
        foreground = win32gui.GetForegroundWindow()
        records: List[WindowRecord] = []

        def _cb(hwnd, _):
            if not _is_normal(hwnd):
                return
            records.append(self._record(hwnd, foreground))

        win32gui.EnumWindows(_cb, None)
        return records

    def _record(self, hwnd: int, foreground: int) -> WindowRecord:
        pid = _get_pid(hwnd)
        show_cmd, (left, top, right, bottom) = _window_placement(hwnd)
        maximized = show_cmd == win32con.SW_SHOWMAXIMIZED
        state = {
            "minimized":            show_cmd == win32con.SW_SHOWMINIMIZED,
            "maximized-horizontal": maximized,
            "maximized-vertical":   maximized,
            "fullscreen":           _is_fullscreen(hwnd),
            "above":                bool(_ex_style(hwnd) & win32con.WS_EX_TOPMOST),
            "focused":              hwnd == foreground,
        }
        return WindowRecord(
            id=hwnd,
            wm_class=_proc_name(pid).lower() or _safe_class(hwnd),
            title=_safe_text(hwnd).strip(),
            workspace=0,
            rect=Rect(left, top, right - left, bottom - top),
            state=state,
            pid=pid or None,
            comm=split_cmdline(_proc_cmdline(pid)),
        )

    # ── mutation ────────────────────────────────────────────────────────
    def move_resize(self, window_id: int, rect: Rect) -> None:
        left, top, w, h = _clamp(rect.x, rect.y, max(80, rect.width), max(60, rect.height))
        cur = win32gui.GetWindowPlacement(window_id)
        win32gui.SetWindowPlacement(
            window_id, (cur[0], cur[1], cur[2], cur[3], (left, top, left + w, top + h))
        )

    def minimize(self, window_id: int) -> None:
        win32gui.ShowWindow(window_id, win32con.SW_MINIMIZE)

    def unminimize(self, window_id: int) -> None:
        win32gui.ShowWindow(window_id, win32con.SW_RESTORE)

    def maximize(self, window_id: int, axis: str) -> None:
        axes = self._axes.setdefault(window_id, set())
        axes.add(axis)
        if axes >= {HORIZONTAL, VERTICAL}:
            win32gui.ShowWindow(window_id, win32con.SW_MAXIMIZE)
            return
        work = _monitor_info(window_id)["Work"]
        left, top, right, bottom = _window_rect(window_id)
        if axis == HORIZONTAL:
            left, right = work[0], work[2]
        else:
            top, bottom = work[1], work[3]
        win32gui.MoveWindow(window_id, left, top, right - left, bottom - top, True)

    def unmaximize(self, window_id: int, axis: str) -> None:
        self._axes.get(window_id, set()).discard(axis)
        if win32gui.IsZoomed(window_id):
            win32gui.ShowWindow(window_id, win32con.SW_RESTORE)

    def set_fullscreen(self, window_id: int, on: bool) -> None:
        if not on:
            win32gui.ShowWindow(window_id, win32con.SW_RESTORE)
            return
        mon = _monitor_info(window_id)["Monitor"]
        win32gui.SetWindowPos(window_id, win32con.HWND_TOP, mon[0], mon[1],
                              mon[2] - mon[0], mon[3] - mon[1], win32con.SWP_NOACTIVATE)

    def set_above(self, window_id: int, on: bool) -> None:
        insert_after = win32con.HWND_TOPMOST if on else win32con.HWND_NOTOPMOST
        win32gui.SetWindowPos(window_id, insert_after, 0, 0, 0, 0, _SWP_ZORDER_ONLY)

    def set_sticky(self, window_id: int, on: bool) -> None:
        logger.debug("Sticky windows unsupported on Windows (hwnd=%s)", hex(window_id))

    def change_workspace(self, window_id: int, index: int) -> None:
        logger.debug("Virtual desktops unsupported on Windows (hwnd=%s -> %d)",
                     hex(window_id), index)

    def activate(self, window_id: int) -> None:
        show_cmd, _ = _window_placement(window_id)
        if show_cmd == win32con.SW_SHOWMINIMIZED:
            win32gui.ShowWindow(window_id, win32con.SW_RESTORE)
        win32gui.SetForegroundWindow(window_id)
