"""Filter and playback engine behind the Tornado Tracker dashboard."""

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
    reduce,
)
from tornado_tracker.normalize import normalize_records, parse_count, parse_damage
from tornado_tracker.playback import PlaybackScheduler, advance_window
from tornado_tracker.predicate import Predicate, compile_predicate
from tornado_tracker.state import Bracket, SelectionState, YearRange, normalize_range
from tornado_tracker.sync import ControlSynchronizer, ControlView, Frame

__version__ = "0.1.0"
