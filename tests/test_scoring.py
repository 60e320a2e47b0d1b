import pytest

from window_session.scoring import score, score_table, title_points, title_similarity

from conftest import make_window


@pytest.mark.parametrize("a, b", [
    ("kitten", "sitting"),
    ("notes.txt - gedit", "notes.txt (~) - gedit"),
    ("", "abc"),
    ("Inbox - Mail", "Inbox (3) - Mail"),
])
def test_title_similarity_is_symmetric(a, b):
    assert title_similarity(a, b) == title_similarity(b, a)


@pytest.mark.parametrize("s", ["", "x", "notes.txt - gedit", "ünïcödé"])
def test_title_similarity_of_a_string_with_itself_is_one(s):
    assert title_similarity(s, s) == 1.0


def test_title_similarity_values():
    assert title_similarity("abc", "") == 0.0
    assert title_similarity(None, None) == 1.0
    assert title_similarity("kitten", "sitting") == pytest.approx(4 / 7)


def test_title_points_floor():
    assert title_points("kitten", "sitting") == 5
    assert title_points("same", "same") == 10
    assert title_points("", "") == 10
    assert title_points("abc", "xyz") == 0


def test_score_different_class_is_not_a_candidate():
    assert score(make_window(1, wm_class="a"), make_window(2, wm_class="b")) is None


def test_score_components():
    saved = make_window(1, title="t", pid=100, comm=["gedit"], workspace=1, rect=(0, 0, 10, 10))

    identical = make_window(2, title="t", pid=100, comm=["gedit"], workspace=1, rect=(0, 0, 10, 10))
    assert score(saved, identical) == 10 + 6 + 6 + 2 + 1

    pid_only = make_window(3, title="x", pid=100, comm=["other"], workspace=0, rect=(5, 5, 1, 1))
    assert score(saved, pid_only) == 6

    workspace_geometry = make_window(4, title="x", pid=7, comm=["other"], workspace=1,
                                     rect=(0, 0, 10, 10))
    assert score(saved, workspace_geometry) == 3


def test_score_table_keeps_pairs_above_threshold_per_class():
    saved = [
        make_window(1, wm_class="gedit", title="a.txt", pid=100),
        make_window(2, wm_class="xterm", title="bash", pid=200, comm=["xterm"]),
    ]
    live = [
        make_window(10, wm_class="gedit", title="a.txt", pid=100),
        make_window(11, wm_class="gedit", title="zzzzz", pid=9, comm=["other"], workspace=3,
                    rect=(1, 1, 1, 1)),
        make_window(20, wm_class="xterm", title="bash", pid=201, comm=["xterm", "-e", "top"],
                    workspace=5, rect=(1, 1, 1, 1)),
    ]

    table = score_table(saved, live)

    assert table == {
        "gedit": {1: {10: 25}},
        "xterm": {2: {20: 10}},
    }


def test_score_table_threshold_is_exclusive():
    saved = [make_window(1, title="abcdefghij", pid=1, comm=["a"], workspace=0, rect=(0, 0, 1, 1))]
    # title 5 points, nothing else in common
    live = [make_window(2, title="abcdeVWXYZ", pid=2, comm=["b"], workspace=1, rect=(9, 9, 9, 9))]

    assert score(saved[0], live[0]) == 5
    assert score_table(saved, live) == {}
