import gc
import threading

import pytest

from tornado_tracker import charts
from tornado_tracker.intents import (
    ClickTimelineYear,
    CommitRange,
    CommitRangeText,
    DragRange,
    Pause,
    Play,
    SelectBracket,
    SelectState,
    SetEFs,
    ToggleEF,
)
from tornado_tracker.state import Bracket, Dimension, SelectionState
from tornado_tracker.sync import ControlSynchronizer, ControlView


@pytest.fixture
def frames():
    return []


@pytest.fixture
def sync(records, timers, frames):
    return ControlSynchronizer(
        records,
        state=SelectionState(year_start=2000, year_end=2001),
        consumers=[frames.append],
        timer_factory=timers,
    )


def test_initial_frame(sync, frames):
    assert len(frames) == 1
    frame = frames[0]
    assert frame.state == sync.state
    assert frame.summary["tornadoes"] == 3
    assert frame.view.label == "2000 – 2001"
    assert frame.view.play_enabled and not frame.view.pause_enabled


def test_drag_updates_view_only(sync, frames):
    before = sync.state
    sync.dispatch(DragRange(2010, 2005))
    assert sync.state is before
    assert len(frames) == 1
    assert (sync.view.start_text, sync.view.end_text) == ("2005", "2010")
    assert sync.view.track_left_pct == pytest.approx(100 * 55 / 75)


def test_drag_with_garbage_is_ignored(sync):
    view = sync.view
    sync.dispatch(DragRange("abc", 2005))
    assert sync.view == view


def test_commit_recomputes_every_consumer_once(sync, frames):
    sync.dispatch(CommitRange(1999, 2011))
    assert len(frames) == 2
    frame = frames[-1]
    assert frame.state.year_range == (1999, 2011)
    assert frame.summary["tornadoes"] == 5
    assert frame.histogram["count"].sum() == 5
    assert frame.histogram["in_view"].sum() == 5
    assert frame.timeline.loc[frame.timeline["in_range"], "year"].tolist() == list(range(1999, 2012))


def test_text_commit_with_end_before_start(sync):
    state = sync.dispatch(CommitRangeText("2011", "1999"))
    assert state.year_range == (1999, 2011)


def test_invalid_commit_keeps_state(sync, frames):
    before = sync.state
    sync.dispatch(CommitRangeText("", "2001"))
    assert sync.state is before
    assert len(frames) == 1


def test_unknown_state_is_discarded(sync):
    sync.dispatch(SelectState("ZZ"))
    assert sync.state.selected_state == "ALL"
    sync.dispatch(SelectState("OK"))
    assert sync.state.selected_state == "OK"
    assert sync.frame.summary["tornadoes"] == 2


def test_empty_ef_shows_nothing(sync):
    sync.dispatch(SetEFs(frozenset()))
    assert sync.frame.summary["tornadoes"] == 0
    assert sync.frame.histogram["in_view"].sum() == 0
    assert sync.frame.histogram["count"].sum() == 3


def test_toggle_ef_and_brackets(sync):
    sync.dispatch(ToggleEF(5, False))
    sync.dispatch(SelectBracket(Dimension.DAMAGE, Bracket.MED))
    assert sync.frame.summary["tornadoes"] == 1
    assert sync.frame.summary["damage_usd"] == 5_000_000.0


def test_timeline_click(sync):
    sync.dispatch(ClickTimelineYear(2011))
    assert sync.state.year_range == (2011, 2011)
    assert sync.view.label == "2011"


def test_play_pause_buttons(sync, timers):
    sync.dispatch(Play())
    assert sync.state.is_playing
    assert sync.view == ControlView.for_range(2000, 2001, playing=True)
    assert not sync.view.play_enabled and sync.view.pause_enabled
    sync.dispatch(Play())
    assert len(timers.created) == 1
    sync.dispatch(Pause())
    assert not sync.state.is_playing
    assert sync.view.play_enabled and not sync.view.pause_enabled
    sync.dispatch(Pause())
    assert not sync.state.is_playing


def test_tick_advances_window(sync, timers, frames):
    sync.dispatch(Play())
    timers.created[0].fire()
    assert sync.state.year_range == (2001, 2002)
    assert sync.state.is_playing
    assert frames[-1].state.year_range == (2001, 2002)
    assert len(frames) == 2


def test_playback_wraps(records, timers):
    sync = ControlSynchronizer(records, state=SelectionState(year_start=2024, year_end=2025),
                               timer_factory=timers)
    sync.dispatch(Play())
    timers.created[0].fire()
    assert sync.state.year_range == (1950, 1951)


def test_manual_commit_stops_playback_before_recompute(sync, timers, frames):
    seen = []
    sync.subscribe(lambda frame: seen.append((sync.scheduler.is_playing, frame.state.is_playing)))
    sync.dispatch(Play())
    sync.dispatch(ToggleEF(0, False))
    assert seen == [(False, False)]
    assert timers.created[0].cancelled
    timers.created[0].fire()
    assert sync.state.year_range == (2000, 2001)


def test_invalid_commit_still_stops_playback(sync):
    sync.dispatch(Play())
    sync.dispatch(CommitRangeText("nope", "2001"))
    assert not sync.scheduler.is_playing
    assert sync.view.play_enabled


def test_unknown_intent(sync):
    with pytest.raises(TypeError):
        sync.dispatch(object())


def test_failing_tick_reenables_play(records, timers, monkeypatch):
    sync = ControlSynchronizer(records, state=SelectionState(year_start=2000, year_end=2001),
                               timer_factory=timers)
    sync.dispatch(Play())

    def broken(*args, **kwargs):
        raise ValueError("bad frame")

    monkeypatch.setattr(charts, "ef_histogram", broken)
    timers.created[0].fire()
    assert not sync.scheduler.is_playing
    assert not sync.state.is_playing
    assert sync.view.play_enabled and not sync.view.pause_enabled


def test_no_timer_thread_outlives_released_synchronizer(records):
    sync = ControlSynchronizer(records, interval_ms=10)
    sync.dispatch(Play())
    del sync
    for _ in range(50):
        gc.collect()
        alive = [t for t in threading.enumerate() if t.name == "playback-timer"]
        for thread in alive:
            thread.join(timeout=0.1)
        if not any(t.is_alive() for t in alive):
            break
    assert not [t for t in threading.enumerate() if t.name == "playback-timer"]
