"""Keep the controls, the selection state and every consumer in step.

All mutation goes through ``ControlSynchronizer.dispatch`` (manual
controls) or the playback tick. Both run under one lock, and a committed
manual change stops playback before it touches the state, so the two
mutators never interleave.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from tornado_tracker import charts
from tornado_tracker.constants import MAX_YEAR, MIN_YEAR, PLAYBACK_INTERVAL_MS
from tornado_tracker.intents import DragRange, Pause, Play, is_committed, reduce
from tornado_tracker.playback import PlaybackScheduler, RepeatingTimer, advance_window
from tornado_tracker.predicate import Predicate, compile_predicate
from tornado_tracker.state import SelectionState, normalize_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControlView:
    """What the controls should currently display."""

    start_text: str
    end_text: str
    label: str
    track_left_pct: float
    track_right_pct: float
    play_enabled: bool
    pause_enabled: bool

    @classmethod
    def for_range(cls, start, end, playing):
        span = MAX_YEAR - MIN_YEAR
        return cls(
            start_text=str(start),
            end_text=str(end),
            label=str(start) if start == end else f"{start} – {end}",
            track_left_pct=100.0 * (start - MIN_YEAR) / span,
            track_right_pct=100.0 * (end - MIN_YEAR) / span,
            play_enabled=not playing,
            pause_enabled=playing,
        )


@dataclass(frozen=True)
class Frame:
    """Everything a consumer needs to redraw after one committed change."""

    state: SelectionState
    predicate: Predicate
    histogram: pd.DataFrame
    timeline: pd.DataFrame
    summary: Dict[str, Any]
    view: ControlView


class ControlSynchronizer:
    def __init__(self, records, state=None, consumers=None, interval_ms=PLAYBACK_INTERVAL_MS,
                 timer_factory=RepeatingTimer):
        self.records = records
        self.defaults = state if state is not None else SelectionState()
        self.known_states = frozenset(records["state"].dropna().unique())
        self.consumers: List[Callable[[Frame], None]] = list(consumers or [])
        self._lock = threading.RLock()
        self._state = self.defaults
        self._timeline = charts.year_timeline(records)
        self.scheduler = PlaybackScheduler(
            self._tick, interval_ms=interval_ms, timer_factory=timer_factory, lock=self._lock,
            on_stop=lambda: self._set_playing(False),
        )
        self.view = self._view_for(self._state)
        self.frame: Optional[Frame] = None
        with self._lock:
            self._recompute()

    @property
    def state(self):
        return self._state

    @property
    def timeline(self):
        return self._timeline

    def subscribe(self, consumer):
        self.consumers.append(consumer)

    def dispatch(self, intent):
        """Apply one control intent; returns the (possibly unchanged) state."""
        if isinstance(intent, DragRange):
            self._drag(intent)
        elif isinstance(intent, Play):
            self.play()
        elif isinstance(intent, Pause):
            self.pause()
        elif is_committed(intent):
            self._commit(intent)
        else:
            raise TypeError(f"unknown intent: {intent!r}")
        return self._state

    def play(self):
        with self._lock:
            if self.scheduler.start():
                self._set_playing(True)

    def pause(self):
        with self._lock:
            self.scheduler.stop()

    def _set_playing(self, playing):
        self._state = replace(self._state, is_playing=playing)
        self.view = self._view_for(self._state)

    def _drag(self, intent):
        year_range = normalize_range(intent.start, intent.end)
        if year_range is None:
            return
        with self._lock:
            self.view = ControlView.for_range(
                year_range.start, year_range.end, self.scheduler.is_playing
            )

    def _commit(self, intent):
        with self._lock:
            # Manual interaction always preempts playback.
            self.pause()
            new_state = reduce(
                self._state, intent, known_states=self.known_states, defaults=self.defaults
            )
            if new_state is None:
                logger.debug("Discarded invalid intent %r", intent)
                self.view = self._view_for(self._state)
                return
            self._state = new_state
            self._recompute()

    def _tick(self):
        current = self._state
        year_range = advance_window(current.year_start, current.year_end)
        self._state = current.with_range(year_range)
        self._recompute()

    def _view_for(self, state):
        return ControlView.for_range(state.year_start, state.year_end, self.scheduler.is_playing)

    def _recompute(self):
        state = self._state
        predicate = compile_predicate(state)
        self.view = self._view_for(state)
        self.frame = Frame(
            state=state,
            predicate=predicate,
            histogram=charts.ef_histogram(self.records, state, predicate),
            timeline=charts.highlight_timeline(self._timeline, state),
            summary=charts.summarize(predicate.filter(self.records)),
            view=self.view,
        )
        logger.debug("Committed %s", state)
        for consumer in self.consumers:
            consumer(self.frame)
