"""
Launching the applications whose saved windows have no live counterpart.

Saved windows are grouped by the launch they came from (pid + class).  On
every evaluation pass each group compares how many of its remaining
windows are tentatively matched now against the best count seen before:

  nothing remaining            -> settled, no launch needed
  all remaining matched        -> done, tentative matches confirmed
  new matches, some missing    -> launch again (or give up if the
                                  application restores its own windows)
  no new matches               -> keep waiting on the running launch

Many applications serve all their windows from one process.  When a
launched process exits and exactly one more window turns up, and every
matched window of the group shares one pid, the group is flagged MSPW
(multiple single-pid windows) and all its missing windows are launched at
once instead of one at a time.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import SpawnError
from .log import DETAIL
from .processes import exit_code, exit_signal
from .records import WindowRecord

logger = logging.getLogger(__name__)


class LaunchState(Enum):
    PENDING = "pending"    # never attempted, or due for another attempt
    RUNNING = "running"    # waiting on the launched pid
    SETTLED = "settled"    # no launch needed, or gave up


class Outcome(Enum):
    NO_LAUNCH = "no launch needed"
    DONE = "done"
    GAVE_UP = "gave up"


@dataclass
class LaunchGroup:
    key: str
    wm_class: str
    comm: List[str]
    matched: List[WindowRecord] = field(default_factory=list)
    remaining: List[WindowRecord] = field(default_factory=list)
    state: LaunchState = LaunchState.PENDING
    pid: Optional[int] = None
    outcome: Optional[Outcome] = None
    launched: bool = False
    mspw: bool = False
    died: bool = False
    high_water: int = 0

    @property
    def label(self) -> str:
        return f"{self.wm_class} ({self.pid})"

    def tentative_count(self) -> int:
        return sum(1 for r in self.remaining if r.tentative_id is not None)

    def settle(self, outcome: Outcome) -> None:
        self.state = LaunchState.SETTLED
        self.outcome = outcome


def tired_timeout(pending: int, load: float) -> int:
    """
    Seconds to keep waiting for ``pending`` launches at system ``load``:
    5 + log20(pending) * (25 + 13 * load) + 5 * load, rounded half up.
    """
    seconds = 5 + math.log(pending, 20) * (25 + 13 * load) + 5 * load
    return int(math.floor(seconds + 0.5))


class Orchestrator:
    """
    Owns the launch groups of one restore.  ``spawn`` creates a process
    from argv and returns its pid, raising SpawnError on failure.
    """

    def __init__(
        self,
        spawn: Callable[[Sequence[str]], int],
        self_managed: Iterable[str] = (),
    ) -> None:
        self.groups: Dict[str, LaunchGroup] = {}
        self.finished: List[LaunchGroup] = []
        self.launches = 0
        self._spawn = spawn
        self._self_managed = set(self_managed)
        self._watched: Dict[int, LaunchGroup] = {}

    def add(self, saved: Iterable[WindowRecord]) -> None:
        for record in saved:
            group = self.groups.get(record.group)
            if group is None:
                group = LaunchGroup(record.group, record.wm_class, list(record.comm))
                self.groups[record.group] = group
            if record.confirmed_id is not None:
                group.matched.append(record)
            else:
                group.remaining.append(record)

    # ══════════════════════════════════════════════════════════════════
    #  Evaluation pass
    # ══════════════════════════════════════════════════════════════════
    def evaluate(self, live: Mapping[int, WindowRecord]) -> int:
        """Run one pass over every group; return the outstanding wait count."""
        logger.debug("launches = %s", {
            g.key: {"pid": g.pid, "state": g.state.value,
                    "matched": [r.id for r in g.matched],
                    "remaining": [r.id for r in g.remaining]}
            for g in self.groups.values()
        })
        wait = 0
        for group in list(self.groups.values()):
            wait += self._evaluate_group(group, live)
        return wait

    def _evaluate_group(self, group: LaunchGroup, live: Mapping[int, WindowRecord]) -> int:
        wait = 0
        matched = group.tentative_count()
        remaining = len(group.remaining)
        running = group.state is LaunchState.RUNNING

        if not remaining:
            group.settle(Outcome.NO_LAUNCH)
            self._drop(group)
        elif group.mspw and matched < remaining:
            if matched <= group.high_water:
                logger.log(DETAIL, "Launches pending: %s x%d -> waiting",
                           group.label, remaining - matched)
            else:
                logger.log(DETAIL, "Some windows matched: %s matched %d of %d -> waiting",
                           group.label, matched, remaining)
            wait += remaining - matched
        elif matched <= group.high_water:
            if running:
                logger.log(DETAIL, "Launch pending: %s -> waiting", group.label)
                wait += 1
        elif matched < remaining:
            if running and group.wm_class in self._self_managed:
                logger.log(DETAIL, "Launch self-managed: %s matched %d of %d -> give up",
                           group.label, matched, remaining)
                group.settle(Outcome.GAVE_UP)
                self._drop(group)
            elif running:
                logger.log(DETAIL, "Launch insufficient: %s matched %d of %d -> try again",
                           group.label, matched, remaining)
                group.state = LaunchState.PENDING
            elif group.state is LaunchState.SETTLED:
                logger.log(DETAIL, "Some windows matched: %s matched %d of %d -> gave up",
                           group.label, matched, remaining)
        else:
            if running:
                logger.log(DETAIL, "Launch successful: %s matched %d of %d -> launch done",
                           group.label, matched, remaining)
            elif group.state is LaunchState.SETTLED:
                logger.log(DETAIL, "All windows matched: %s matched %d of %d -> launch done",
                           group.label, matched, remaining)
            for record in group.remaining:
                record.promote()
            group.settle(Outcome.DONE)
            self._drop(group)

        if group.state is LaunchState.PENDING:
            wait += self._launch(group, matched, live)

        if matched > group.high_water:
            group.high_water = matched
        return wait

    # ══════════════════════════════════════════════════════════════════
    #  Launching
    # ══════════════════════════════════════════════════════════════════
    def _launch(self, group: LaunchGroup, matched: int, live: Mapping[int, WindowRecord]) -> int:
        if group.died and matched == group.high_water + 1 and len(group.matched) + matched > 1:
            shared = self._shared_pid(group, live)
            if shared is not None:
                group.pid = shared
                group.mspw = True
                group.state = LaunchState.RUNNING
                logger.debug("Multiple single-pid windows: %s", group.label)
        group.died = False

        wait = 0
        count = len(group.remaining) - matched if group.mspw else 1
        for _ in range(count):
            try:
                pid = self._spawn(group.comm)
            except SpawnError as exc:
                logger.warning("Launch failed: %s %s", group.wm_class, exc)
                group.settle(Outcome.GAVE_UP)
                self._drop(group)
                break
            if not group.mspw:
                group.pid = pid
                group.state = LaunchState.RUNNING
            self._watched[pid] = group
            self.launches += 1
            wait += 1

        if group.state is not LaunchState.SETTLED:
            if not group.mspw:
                logger.info("Launched window: %s", group.label)
            else:
                logger.info("Launched windows: %s x%d", group.label, count)
            if not group.launched:
                for record in group.remaining:
                    record.pid = group.pid
                group.launched = True
        return wait

    @staticmethod
    def _shared_pid(group: LaunchGroup, live: Mapping[int, WindowRecord]) -> Optional[int]:
        """The one live pid behind every matched window of the group, if any."""
        pids = set()
        for record in [*group.matched, *group.remaining]:
            live_id = record.matched_id
            if live_id is None or live_id not in live:
                continue
            pids.add(live[live_id].pid)
        if len(pids) != 1:
            return None
        return pids.pop()

    def process_exited(self, pid: int, status: int) -> None:
        group = self._watched.pop(pid, None)
        # finished groups keep their outcome
        if group is None or self.groups.get(group.key) is not group:
            return
        logger.debug("Process died: %s (%d)", group.wm_class, pid)
        if status:
            logger.log(DETAIL, "Launch died: %s exit = %d; signal = %d -> give up",
                       group.label, exit_code(status), exit_signal(status))
            group.settle(Outcome.GAVE_UP)
        group.died = True

    def _drop(self, group: LaunchGroup) -> None:
        if self.groups.pop(group.key, None) is not None:
            self.finished.append(group)
