"""
Single-threaded event loop for the restore.

Events come from three places: pollers (the desktop's window list, the
process table), timers, and direct posts.  Each event is handed to the
handler and runs to completion before the next one is looked at, so the
handler never needs locking.  Faults in a handler are logged and reported
through ``on_error``; they end that event's work only.
"""

from __future__ import annotations

import itertools
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterable, Optional, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowShown:
    window_id: int
    generation: int


@dataclass(frozen=True)
class ProcessExited:
    pid: int
    status: int


@dataclass(frozen=True)
class TiredOfWaiting:
    generation: int


Event = Union[WindowShown, ProcessExited, TiredOfWaiting]
Poller = Callable[[], Iterable[Event]]
Handler = Callable[[Event], None]


class EventLoop:
    def __init__(
        self,
        poll_interval: float = 0.25,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.poll_interval = poll_interval
        self.on_error: Optional[Callable[[Exception], None]] = None
        self._clock = clock
        self._sleep = sleep
        self._queue: Deque[Event] = deque()
        self._pollers: Dict[int, Poller] = {}
        self._timers: Dict[int, Tuple[float, Event]] = {}
        self._handles = itertools.count(1)
        self._stopped = False

    # ── sources ─────────────────────────────────────────────────────────
    def post(self, event: Event) -> None:
        self._queue.append(event)

    def add_poller(self, poller: Poller) -> int:
        handle = next(self._handles)
        self._pollers[handle] = poller
        return handle

    def remove_poller(self, handle: int) -> None:
        self._pollers.pop(handle, None)

    def call_later(self, delay: float, event: Event) -> int:
        handle = next(self._handles)
        self._timers[handle] = (self._clock() + delay, event)
        return handle

    def cancel(self, handle: Optional[int]) -> None:
        if handle is not None:
            self._timers.pop(handle, None)

    def stop(self) -> None:
        self._stopped = True

    @property
    def stopped(self) -> bool:
        return self._stopped

    # ── running ─────────────────────────────────────────────────────────
    def run(self, handler: Handler) -> None:
        """Deliver events until stopped or until nothing can produce one."""
        while not self._stopped:
            if self._queue:
                self._deliver(handler, self._queue.popleft())
                continue

            for poller in list(self._pollers.values()):
                self._guard(lambda: self._queue.extend(poller()))
            if self._queue:
                continue

            due = self._next_timer()
            now = self._clock()
            if due is not None and self._timers[due][0] <= now:
                _, event = self._timers.pop(due)
                self._queue.append(event)
                continue
            if due is None and not self._pollers:
                logger.debug("Event loop idle, leaving")
                break

            delay = self.poll_interval
            if due is not None:
                delay = min(delay, max(0.0, self._timers[due][0] - now))
            self._sleep(delay)

    def _next_timer(self) -> Optional[int]:
        if not self._timers:
            return None
        return min(self._timers, key=lambda h: (self._timers[h][0], h))

    def _deliver(self, handler: Handler, event: Event) -> None:
        logger.debug("Event %s", event)
        self._guard(lambda: handler(event))

    def _guard(self, work: Callable[[], None]) -> None:
        try:
            work()
        except Exception as exc:
            logger.exception("Runtime error: %s", exc)
            if self.on_error is not None:
                self.on_error(exc)
