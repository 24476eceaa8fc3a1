"""Tagged intents produced by the controls and the reducer that applies them.

Live intents only move the visual range indicator. Every other intent is a
committed change: ``reduce`` turns it into the next SelectionState, or
returns None when the input is invalid and must be discarded.
"""

from dataclasses import dataclass, replace
from typing import FrozenSet, Optional

from tornado_tracker.constants import ALL, EF_LEVELS
from tornado_tracker.state import Bracket, Dimension, SelectionState, normalize_range


@dataclass(frozen=True)
class DragRange:
    """Range handles moving; text inputs and track follow, nothing recomputes."""

    start: object
    end: object


@dataclass(frozen=True)
class CommitRange:
    start: object
    end: object


@dataclass(frozen=True)
class CommitRangeText:
    """Both year text inputs, read together so their order does not matter."""

    start_text: object
    end_text: object


@dataclass(frozen=True)
class ToggleEF:
    ef: int
    checked: bool


@dataclass(frozen=True)
class SetEFs:
    efs: FrozenSet[int]


@dataclass(frozen=True)
class SelectState:
    state: str


@dataclass(frozen=True)
class SelectBracket:
    dimension: Dimension
    bracket: Bracket


@dataclass(frozen=True)
class ClickTimelineYear:
    year: int


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class Play:
    pass


@dataclass(frozen=True)
class Pause:
    pass


LIVE_INTENTS = (DragRange,)
PLAYBACK_INTENTS = (Play, Pause)


def is_committed(intent):
    return not isinstance(intent, LIVE_INTENTS + PLAYBACK_INTENTS)


def reduce(state, intent, known_states=None, defaults=None) -> Optional[SelectionState]:
    """Return the state after ``intent``, or None to discard it.

    ``known_states`` restricts SelectState to codes present in the dataset.
    ``defaults`` is the state Reset returns to.
    """
    if isinstance(intent, CommitRange):
        year_range = normalize_range(intent.start, intent.end)
        return None if year_range is None else state.with_range(year_range)

    if isinstance(intent, CommitRangeText):
        year_range = normalize_range(intent.start_text, intent.end_text)
        return None if year_range is None else state.with_range(year_range)

    if isinstance(intent, ClickTimelineYear):
        year_range = normalize_range(intent.year, intent.year)
        return None if year_range is None else state.with_range(year_range)

    if isinstance(intent, ToggleEF):
        if intent.ef not in EF_LEVELS:
            return None
        efs = set(state.selected_efs)
        if intent.checked:
            efs.add(intent.ef)
        else:
            efs.discard(intent.ef)
        return replace(state, selected_efs=frozenset(efs))

    if isinstance(intent, SetEFs):
        efs = frozenset(intent.efs)
        if not efs <= set(EF_LEVELS):
            return None
        return replace(state, selected_efs=efs)

    if isinstance(intent, SelectState):
        code = intent.state
        if code != ALL and known_states is not None and code not in known_states:
            return None
        return replace(state, selected_state=code)

    if isinstance(intent, SelectBracket):
        try:
            return state.with_bracket(Dimension(intent.dimension), Bracket(intent.bracket))
        except ValueError:
            return None

    if isinstance(intent, Reset):
        base = defaults if defaults is not None else SelectionState()
        return replace(base, is_playing=state.is_playing)

    raise TypeError(f"not a committed intent: {intent!r}")
