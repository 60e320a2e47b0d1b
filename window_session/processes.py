"""Process binding: spawn, exit watching and the system load query."""

from __future__ import annotations

import logging
import subprocess
from typing import Dict, List, Sequence, Tuple

import psutil

from .errors import SpawnError

logger = logging.getLogger(__name__)


def wait_status(returncode: int) -> int:
    """POSIX-style wait status: exit code in bits 8-15, signal in bits 0-6."""
    if returncode < 0:
        return -returncode & 0x7F
    return (returncode & 0xFF) << 8


def exit_code(status: int) -> int:
    return (status >> 8) & 0xFF


def exit_signal(status: int) -> int:
    return status & 0x7F


def load_average() -> float:
    """1-minute load average, 1.0 when unknown."""
    try:
        load = psutil.getloadavg()[0]
    except (OSError, RuntimeError, psutil.Error) as exc:
        logger.debug("Load average unavailable: %s", exc)
        return 1.0
    return float(load) or 1.0


class ProcessTable:
    """Children spawned during a restore, polled for exit."""

    def __init__(self) -> None:
        self._children: Dict[int, psutil.Popen] = {}

    def spawn(self, argv: Sequence[str]) -> int:
        if not argv:
            raise SpawnError("empty command")
        try:
            proc = psutil.Popen(
                list(argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except (OSError, ValueError, psutil.Error) as exc:
            raise SpawnError(f"{argv[0]}: {exc}") from exc
        self._children[proc.pid] = proc
        return proc.pid

    def poll(self) -> List[Tuple[int, int]]:
        """(pid, status) for each child that exited since the last call."""
        exited = []
        for pid, proc in list(self._children.items()):
            returncode = proc.poll()
            if returncode is None:
                continue
            del self._children[pid]
            exited.append((pid, wait_status(returncode)))
        return exited

    def forget(self) -> None:
        """Stop watching; the children keep running."""
        self._children.clear()
