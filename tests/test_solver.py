import itertools
import random

import pytest

from window_session.solver import NO_MATCH_SCORE, best_assignment


def _brute_force(group):
    """Best total over every injective mapping, "no match" worth 1."""
    saved = list(group)
    best = None
    choices = [list(group[rid]) + [None] for rid in saved]
    for combo in itertools.product(*choices):
        used = [c for c in combo if c is not None]
        if len(used) != len(set(used)):
            continue
        total = sum(group[rid][cid] if cid is not None else NO_MATCH_SCORE
                    for rid, cid in zip(saved, combo))
        if best is None or total > best:
            best = total
    return best


def _total(group, assignment):
    return sum(group[rid][cid] if cid is not None else NO_MATCH_SCORE
               for rid, cid in assignment.items())


def _random_group(rng):
    saved = rng.randint(1, 5)
    live = rng.randint(1, 5)
    group = {}
    for rid in range(1, saved + 1):
        row = {cid: rng.randint(6, 25) for cid in range(100, 100 + live) if rng.random() < 0.6}
        if not row:
            row = {rng.randrange(100, 100 + live): rng.randint(6, 25)}
        group[rid] = row
    return group


@pytest.mark.parametrize("seed", range(60))
def test_best_assignment_matches_brute_force(seed):
    group = _random_group(random.Random(seed))

    total, assignment = best_assignment(group)

    assert total == _brute_force(group)
    assert total == _total(group, assignment)
    assert set(assignment) == set(group)
    chosen = [cid for cid in assignment.values() if cid is not None]
    assert len(chosen) == len(set(chosen))
    for rid, cid in assignment.items():
        assert cid is None or cid in group[rid]


def test_prefers_real_matches_over_no_match():
    group = {1: {10: 6}, 2: {20: 6}}

    assert best_assignment(group) == (12, {1: 10, 2: 20})


def test_gives_contested_window_to_best_scorer():
    group = {1: {10: 10}, 2: {10: 20}}

    total, assignment = best_assignment(group)

    assert total == 21
    assert assignment == {1: None, 2: 10}


def test_ties_resolve_in_enumeration_order():
    assert best_assignment({1: {10: 8, 20: 8}}) == (8, {1: 10})
    assert best_assignment({1: {10: 8, 20: 8}, 2: {10: 8, 20: 8}}) == (16, {1: 10, 2: 20})


def test_empty_group():
    assert best_assignment({}) == (0, {})
