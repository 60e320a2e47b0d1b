"""
A restore: saved windows from the session file, live windows from the
desktop, and the passes that pair them up and put them back.

    1. match_by_id          same id, class, pid and command -> confirmed
    2. match_by_properties  score + solve per class -> tentative
    3. restore_missing      launch what is still missing, rematching as
                            windows appear, until nothing is pending or we
                            get tired of waiting
    4. restore_properties   workspace, state flags, geometry, then focus
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Set

from .config import SessionConfig
from .desktop import HORIZONTAL, VERTICAL, Desktop
from .launcher import Orchestrator, tired_timeout
from .log import DETAIL
from .loop import Event, EventLoop, ProcessExited, TiredOfWaiting, WindowShown
from .processes import ProcessTable, load_average
from .records import STATE_FLAGS, WindowRecord
from .scoring import score_table
from .snapshot import Windows, capture_windows, load_snapshot
from .solver import best_assignment

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


class RestoreMode(Enum):
    EXISTING = "existing"
    MATCHING = "matching"
    MISSING = "missing"


@dataclass
class RestoreReport:
    saved: int = 0
    matched: int = 0
    changed: int = 0
    launched: int = 0
    errors: int = 0


def _log_notifier(title: str, message: str) -> None:
    logger.info("%s: %s", title, message)


class Session:
    def __init__(
        self,
        config: SessionConfig,
        desktop: Desktop,
        processes: Optional[ProcessTable] = None,
        loop: Optional[EventLoop] = None,
        notify: Optional[Notifier] = None,
        load_average: Callable[[], float] = load_average,
    ) -> None:
        self.config = config
        self.desktop = desktop
        self.processes = processes if processes is not None else ProcessTable()
        self.loop = loop if loop is not None else EventLoop(poll_interval=config.poll_interval)
        self.loop.on_error = self._report_error
        self.notify = notify or _log_notifier
        self.load_average = load_average

        self.saved: Windows = load_snapshot(config.session_file)
        self.live: Windows = capture_windows(desktop, config.launchers)
        logger.log(DETAIL, "Loaded restore (%d) and current (%d) windows",
                   len(self.saved), len(self.live))

        self.orchestrator: Optional[Orchestrator] = None
        self.report = RestoreReport(saved=len(self.saved))
        self._generation = 0
        self._active = False
        self._waited = False
        self._tired: Optional[int] = None
        self._pollers: List[int] = []
        self._seen: Set[int] = set()
        self._error_reported = False

    # ══════════════════════════════════════════════════════════════════
    #  Entry point
    # ══════════════════════════════════════════════════════════════════
    def restore(self, mode: RestoreMode = RestoreMode.MISSING) -> RestoreReport:
        logger.info("Restoring session (%s).", mode.value)
        try:
            self.match_by_id()
            if mode is RestoreMode.EXISTING:
                self.restore_properties()
            elif mode is RestoreMode.MATCHING:
                self.match_by_properties()
                self.restore_properties()
            else:
                self.match_by_properties()
                self.restore_missing()
        except Exception as exc:
            logger.exception("Runtime error: %s", exc)
            if self._active:
                self._disconnect()
            self._report_error(exc)
        return self.report

    # ══════════════════════════════════════════════════════════════════
    #  Matching passes
    # ══════════════════════════════════════════════════════════════════
    def match_by_id(self) -> None:
        logger.log(DETAIL, "Matching by ID...")
        for saved in self.saved.values():
            saved.clear()
            live = self.live.get(saved.id)
            if (live is not None and saved.wm_class == live.wm_class
                    and saved.pid == live.pid and saved.command == live.command):
                logger.log(DETAIL, "Window exists: %s pid=%s", saved.label, saved.pid)
                saved.confirm(live.id)

    def match_by_properties(self) -> None:
        logger.log(DETAIL, "Matching by properties...")
        claimed = {s.confirmed_id for s in self.saved.values() if s.confirmed_id is not None}
        unmatched = [s for s in self.saved.values() if s.confirmed_id is None]
        for saved in unmatched:
            saved.clear()
        candidates = [c for c in self.live.values() if c.id not in claimed]

        table = score_table(unmatched, candidates)
        for wm_class, group in table.items():
            logger.log(DETAIL, "Group %s (%d windows)...", wm_class, len(group))
            if len(group) > self.config.max_solver_group:
                logger.warning("Group %s has %d windows; matching may be slow",
                               wm_class, len(group))
            total, assignment = best_assignment(group)
            logger.log(DETAIL, "Best match score = %d", total)
            for saved_id, live_id in assignment.items():
                if live_id is None:
                    continue
                saved, live = self.saved[saved_id], self.live[live_id]
                logger.log(DETAIL, "Window matches: %s = %s pid=%s score=%d",
                           saved.label, live.label, live.pid, group[saved_id][live_id])
                saved.propose(live_id)

    # ══════════════════════════════════════════════════════════════════
    #  Missing windows
    # ══════════════════════════════════════════════════════════════════
    def restore_missing(self) -> None:
        logger.log(DETAIL, "Restoring missing windows...")
        self.orchestrator = Orchestrator(self.processes.spawn, self.config.self_managed)
        self.orchestrator.add(self.saved.values())

        self._generation += 1
        self._active = True
        self._seen = set(self.live)
        self._pollers = [
            self.loop.add_poller(self._poll_windows),
            self.loop.add_poller(self._poll_processes),
        ]
        self._process_launches()
        if self._active:
            self.loop.run(self._dispatch)

    def _poll_windows(self) -> List[Event]:
        fresh = self.desktop.window_ids() - self._seen
        self._seen |= fresh
        return [WindowShown(window_id, self._generation) for window_id in sorted(fresh)]

    def _poll_processes(self) -> List[Event]:
        return [ProcessExited(pid, status) for pid, status in self.processes.poll()]

    def _dispatch(self, event: Event) -> None:
        if isinstance(event, WindowShown):
            self._window_shown(event)
        elif isinstance(event, ProcessExited):
            if self.orchestrator is not None:
                self.orchestrator.process_exited(event.pid, event.status)
        elif isinstance(event, TiredOfWaiting):
            self._tired_of_waiting(event)

    def _window_shown(self, event: WindowShown) -> None:
        if not self._active or event.generation != self._generation:
            return
        if event.window_id in self.live:
            return
        self.live = capture_windows(self.desktop, self.config.launchers)
        window = self.live.get(event.window_id)
        if window is None:
            return
        logger.log(DETAIL, "Window shown: %s pid=%s", window.label, window.pid)
        self.match_by_properties()
        self._process_launches()

    def _tired_of_waiting(self, event: TiredOfWaiting) -> None:
        if not self._active or event.generation != self._generation:
            return
        logger.log(DETAIL, "Tired of waiting for launches...")
        self._finish_restore(recapture=True)

    def _process_launches(self) -> None:
        if self.orchestrator is None:
            return
        wait = self.orchestrator.evaluate(self.live)
        self.report.launched = self.orchestrator.launches

        logger.log(DETAIL, "%d pending launches.", wait)
        if wait:
            seconds = tired_timeout(wait, self.load_average())
            logger.debug("Waiting maximum %d more seconds.", seconds)
            self.loop.cancel(self._tired)
            self._tired = self.loop.call_later(seconds, TiredOfWaiting(self._generation))
            self._waited = True
        else:
            self._finish_restore()

    def _disconnect(self) -> None:
        """Leave the event loop; later events from this restore are stale."""
        self._active = False
        self._generation += 1
        for handle in self._pollers:
            self.loop.remove_poller(handle)
        self._pollers = []
        self.loop.cancel(self._tired)
        self._tired = None
        self.loop.stop()
        self.processes.forget()

    def _finish_restore(self, recapture: bool = False) -> None:
        self._disconnect()
        if recapture:
            self.live = capture_windows(self.desktop, self.config.launchers)

        # Launches took time; the user may have opened or closed windows.
        if self._waited:
            self.match_by_id()
            self.match_by_properties()
        self.restore_properties()

    # ══════════════════════════════════════════════════════════════════
    #  Property application
    # ══════════════════════════════════════════════════════════════════
    def restore_properties(self) -> None:
        logger.log(DETAIL, "Restoring window properties...")

        focused: Optional[WindowRecord] = None
        for saved in sorted(self.saved.values(), key=lambda w: w.workspace):
            saved.promote()
            live_id = saved.confirmed_id
            if live_id is None:
                continue
            live = self.live.get(live_id)
            if live is None:
                logger.warning("%s is gone, not restoring it", saved.label)
                continue
            self.report.matched += 1

            if saved.workspace != live.workspace:
                self.desktop.change_workspace(live.id, saved.workspace)
                self._changed(live, f"moved workspace from {live.workspace} => {saved.workspace}")

            for flag in STATE_FLAGS:
                want = saved.state[flag]
                if want == live.state[flag]:
                    continue
                if flag == "focused":
                    if want:
                        focused = live
                    continue
                self._apply_flag(live.id, flag, want)
                self._changed(live, f"{flag}: {live.state[flag]} => {want}")

            if saved.geometry != live.geometry:
                self.desktop.move_resize(live.id, saved.rect)
                self._changed(live, f"moved from {live.geometry} => {saved.geometry}")

        if focused is not None:
            self.desktop.activate(focused.id)
            logger.info("Focused window: %s", focused.label)

        self.notify("Session restored", f"Restored session from {self.config.session_file}")

    def _apply_flag(self, window_id: int, flag: str, on: bool) -> None:
        d = self.desktop
        if flag == "minimized":
            if on:
                d.minimize(window_id)
            else:
                d.unminimize(window_id)
        elif flag in ("maximized-horizontal", "maximized-vertical"):
            axis = HORIZONTAL if flag == "maximized-horizontal" else VERTICAL
            if on:
                d.maximize(window_id, axis)
            else:
                d.unmaximize(window_id, axis)
        elif flag == "fullscreen":
            d.set_fullscreen(window_id, on)
        elif flag == "above":
            d.set_above(window_id, on)
        elif flag == "sticky":
            d.set_sticky(window_id, on)

    def _changed(self, live: WindowRecord, what: str) -> None:
        self.report.changed += 1
        logger.info("%s - %s", live.label, what)

    # ══════════════════════════════════════════════════════════════════
    #  Errors
    # ══════════════════════════════════════════════════════════════════
    def _report_error(self, exc: Exception) -> None:
        """Count every failure; notify only the first."""
        self.report.errors += 1
        if self._error_reported:
            return
        self._error_reported = True
        self.notify("Runtime error", str(exc))
