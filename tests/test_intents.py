import pytest

from tornado_tracker.constants import ALL
from tornado_tracker.intents import (
    ClickTimelineYear,
    CommitRange,
    CommitRangeText,
    DragRange,
    Pause,
    Play,
    Reset,
    SelectBracket,
    SelectState,
    SetEFs,
    ToggleEF,
    is_committed,
    reduce,
)
from tornado_tracker.state import Bracket, Dimension, SelectionState


@pytest.fixture
def state():
    return SelectionState(year_start=2000, year_end=2005)


def test_commit_range_orders_and_clamps(state):
    assert reduce(state, CommitRange(2010, 1990)).year_range == (1990, 2010)
    assert reduce(state, CommitRange(1800, 3000)).year_range == (1950, 2025)


def test_text_commit_swaps_end_before_start(state):
    new = reduce(state, CommitRangeText("2000", "1995"))
    assert (new.year_start, new.year_end) == (1995, 2000)


def test_invalid_range_is_discarded(state):
    assert reduce(state, CommitRangeText("20x0", "2001")) is None
    assert reduce(state, CommitRange(None, 2001)) is None


def test_timeline_click_sets_single_year(state):
    new = reduce(state, ClickTimelineYear(2011))
    assert new.year_range == (2011, 2011)


def test_toggle_ef(state):
    new = reduce(state, ToggleEF(3, False))
    assert new.selected_efs == frozenset({0, 1, 2, 4, 5})
    new = reduce(new, ToggleEF(3, True))
    assert new.selected_efs == frozenset({0, 1, 2, 3, 4, 5})
    assert reduce(state, ToggleEF(9, True)) is None


def test_set_efs_allows_empty(state):
    assert reduce(state, SetEFs(frozenset())).selected_efs == frozenset()
    assert reduce(state, SetEFs(frozenset({7}))) is None


def test_select_state_must_exist(state):
    known = {"TX", "OK"}
    assert reduce(state, SelectState("TX"), known_states=known).selected_state == "TX"
    assert reduce(state, SelectState("ZZ"), known_states=known) is None
    assert reduce(state, SelectState(ALL), known_states=known).selected_state == ALL


def test_select_bracket(state):
    new = reduce(state, SelectBracket(Dimension.DAMAGE, Bracket.HIGH))
    assert new.damage_bracket is Bracket.HIGH
    assert reduce(state, SelectBracket(Dimension.FATALITIES, "HUGE")) is None


def test_reset_returns_to_defaults(state):
    changed = reduce(state, SelectBracket(Dimension.INJURIES, Bracket.LOW))
    defaults = SelectionState(year_start=1990, year_end=1990)
    assert reduce(changed, Reset(), defaults=defaults) == defaults


def test_intent_classes():
    assert not is_committed(DragRange(2000, 2001))
    assert not is_committed(Play())
    assert not is_committed(Pause())
    assert is_committed(CommitRange(2000, 2001))
    assert is_committed(ToggleEF(1, True))


def test_reduce_rejects_non_committed(state):
    with pytest.raises(TypeError):
        reduce(state, DragRange(2000, 2001))
