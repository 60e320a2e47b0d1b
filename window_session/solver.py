"""
Best saved->live assignment for one window class.

Exhaustive depth-first search: saved ids are taken in table order and each
one branches over every still-free live candidate plus, while the group
cannot match everyone, a synthetic "no match" worth NO_MATCH_SCORE.  The
first branch reaching the best total wins, so ties resolve in saved-id
then live-id enumeration order.

The search is exponential in the group size.  Windows of one class rarely
number more than a dozen, which keeps it fast enough in practice.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

NO_MATCH_SCORE = 1

Assignment = Dict[int, Optional[int]]


def best_assignment(group: Mapping[int, Mapping[int, int]]) -> Tuple[int, Assignment]:
    """
    Return ``(total, {saved_id: live_id or None})`` maximising the total.

    ``group`` maps saved id -> live id -> score for candidate pairs only.
    A saved id whose branch dead-ends (no free candidate and no "no match"
    left) is absent from the result.
    """
    order = list(group)
    return _search(group, order, 0, frozenset(), 0)


def _search(
    group: Mapping[int, Mapping[int, int]],
    order: List[int],
    index: int,
    used: FrozenSet[int],
    nulls: int,
) -> Tuple[int, Assignment]:
    if index == len(order):
        return 0, {}

    rid = order[index]
    candidates = group[rid]
    options: List[Optional[int]] = [cid for cid in candidates if cid not in used]
    # Offer "no match" only while fewer saved ids have gone unmatched than
    # can possibly be left without a partner.
    if len(order) - len(candidates) > nulls:
        options.append(None)

    best_score, best_map = 0, {}
    for cid in options:
        if cid is None:
            gain = NO_MATCH_SCORE
            rest_score, rest_map = _search(group, order, index + 1, used, nulls + 1)
        else:
            gain = candidates[cid]
            rest_score, rest_map = _search(group, order, index + 1, used | {cid}, nulls)
        logger.debug("%sTrying %s + %s = %d + %d", "  " * index, rid, cid, gain, rest_score)
        total = gain + rest_score
        if total > best_score:
            best_score = total
            best_map = {rid: cid, **rest_map}
    return best_score, best_map
