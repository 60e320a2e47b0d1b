import copy
import itertools
import logging
from typing import Callable, Dict, List, Optional

import pytest

from window_session.config import SessionConfig
from window_session.errors import SpawnError
from window_session.loop import EventLoop
from window_session.records import Rect, WindowRecord
from window_session.snapshot import save_snapshot


def make_window(
    id: int,
    wm_class: str = "gedit",
    title: str = "notes.txt - gedit",
    workspace: int = 0,
    rect=(0, 0, 800, 600),
    state: Optional[Dict[str, bool]] = None,
    pid: Optional[int] = 100,
    comm: Optional[List[str]] = None,
) -> WindowRecord:
    return WindowRecord(
        id=id,
        wm_class=wm_class,
        title=title,
        workspace=workspace,
        rect=Rect(*rect),
        state=dict(state or {}),
        pid=pid,
        comm=list(comm) if comm is not None else [wm_class],
    )


class FakeDesktop:
    """
    In-memory window manager.  Every mutation is appended to ``calls``;
    ``faults[name]`` is raised, once, by the method of that name.
    """

    def __init__(self, windows=()):
        self.records: Dict[int, WindowRecord] = {w.id: w for w in windows}
        self.calls: List[tuple] = []
        self.faults: Dict[str, Exception] = {}

    def _call(self, name: str, *args) -> None:
        if name in self.faults:
            raise self.faults.pop(name)
        self.calls.append((name, *args))

    def add(self, window: WindowRecord) -> None:
        self.records[window.id] = window

    def windows(self) -> List[WindowRecord]:
        if "windows" in self.faults:
            raise self.faults.pop("windows")
        return [copy.deepcopy(w) for w in self.records.values()]

    def window_ids(self):
        return set(self.records)

    def move_resize(self, window_id, rect):
        self._call("move_resize", window_id, rect)
        self.records[window_id].rect = rect

    def minimize(self, window_id):
        self._call("minimize", window_id)

    def unminimize(self, window_id):
        self._call("unminimize", window_id)

    def maximize(self, window_id, axis):
        self._call("maximize", window_id, axis)

    def unmaximize(self, window_id, axis):
        self._call("unmaximize", window_id, axis)

    def set_fullscreen(self, window_id, on):
        self._call("set_fullscreen", window_id, on)

    def set_above(self, window_id, on):
        self._call("set_above", window_id, on)

    def set_sticky(self, window_id, on):
        self._call("set_sticky", window_id, on)

    def change_workspace(self, window_id, index):
        self._call("change_workspace", window_id, index)

    def activate(self, window_id):
        self._call("activate", window_id)


class FakeProcesses:
    """
    Process table double.  ``on_spawn(argv, pid)`` runs after each spawn,
    typically to make a window appear; ``fail`` makes spawns raise
    SpawnError.  ``spawn_error`` and ``poll_error`` are raised on every call.
    """

    def __init__(self, first_pid: int = 500):
        self.spawned: List[tuple] = []
        self.on_spawn: Optional[Callable[[List[str], int], None]] = None
        self.fail = False
        self.spawn_error: Optional[Exception] = None
        self.poll_error: Optional[Exception] = None
        self.forgotten = False
        self._pids = itertools.count(first_pid)
        self._exits: List[tuple] = []

    def spawn(self, argv):
        if self.spawn_error is not None:
            raise self.spawn_error
        if self.fail:
            raise SpawnError(f"{argv[0]}: not found")
        pid = next(self._pids)
        self.spawned.append((list(argv), pid))
        if self.on_spawn is not None:
            self.on_spawn(list(argv), pid)
        return pid

    def exit(self, pid: int, status: int = 0) -> None:
        self._exits.append((pid, status))

    def poll(self):
        if self.poll_error is not None:
            raise self.poll_error
        exited, self._exits = self._exits, []
        return exited

    def forget(self) -> None:
        self.forgotten = True


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("window_session")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def loop(clock):
    return EventLoop(poll_interval=0.25, clock=clock, sleep=clock.sleep)


@pytest.fixture
def session_config(tmp_path):
    return SessionConfig(session_path=str(tmp_path / "session.json"))


@pytest.fixture
def write_session(session_config):
    def _write(windows):
        save_snapshot(session_config.session_file, windows)
    return _write
