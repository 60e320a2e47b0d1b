"""
Scoring saved windows against live ones.

    title similarity  +0..10  (floor of 10 x normalised Levenshtein)
    pid equal         +6
    command equal     +6
    workspace equal   +2
    geometry equal    +1

Only windows of the same class are compared, and a pair must score more
than MIN_SCORE to be a candidate.  The threshold is deliberately low: a
structural match plus a loosely similar title qualifies, and the solver
sorts out the false positives.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from rapidfuzz.distance import Levenshtein

from .records import WindowRecord

logger = logging.getLogger(__name__)

MIN_SCORE = 5

# class -> saved id -> live id -> score
ScoreTable = Dict[str, Dict[int, Dict[int, int]]]


def title_similarity(a: Optional[str], b: Optional[str]) -> float:
    a, b = a or "", b or ""
    if not a and not b:
        return 1.0
    longest = max(len(a), len(b))
    return (longest - Levenshtein.distance(a, b)) / longest


def title_points(a: Optional[str], b: Optional[str]) -> int:
    """floor(10 * title_similarity), in integer arithmetic."""
    a, b = a or "", b or ""
    if not a and not b:
        return 10
    longest = max(len(a), len(b))
    return (longest - Levenshtein.distance(a, b)) * 10 // longest


def score(saved: WindowRecord, live: WindowRecord) -> Optional[int]:
    """Desirability of pairing ``saved`` with ``live``; None if classes differ."""
    if saved.wm_class != live.wm_class:
        return None
    total = title_points(saved.title, live.title)
    if saved.pid == live.pid:
        total += 6
    if saved.command == live.command:
        total += 6
    if saved.workspace == live.workspace:
        total += 2
    if saved.geometry == live.geometry:
        total += 1
    return total


def score_table(saved: Iterable[WindowRecord], live: Iterable[WindowRecord]) -> ScoreTable:
    """Candidate pairs per class, in saved-then-live enumeration order."""
    live = list(live)
    table: ScoreTable = {}
    for s in saved:
        for c in live:
            points = score(s, c)
            if points is None or points <= MIN_SCORE:
                continue
            table.setdefault(s.wm_class, {}).setdefault(s.id, {})[c.id] = points
    logger.debug("scores = %s", table)
    return table
