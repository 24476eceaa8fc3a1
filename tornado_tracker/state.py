"""Range and selection state shared by every view of the dashboard."""

import enum
import math
from dataclasses import dataclass, field, replace
from typing import FrozenSet, NamedTuple, Optional

from tornado_tracker.constants import (
    ALL,
    DEFAULT_END_YEAR,
    DEFAULT_START_YEAR,
    EF_LEVELS,
    MAX_YEAR,
    MIN_YEAR,
)


class Bracket(str, enum.Enum):
    ALL = "ALL"
    NONE = "NONE"
    LOW = "LOW"
    MED = "MED"
    HIGH = "HIGH"


class Dimension(str, enum.Enum):
    """A bracketed quantity and the canonical column it filters on."""

    DAMAGE = "damage_usd"
    INJURIES = "injuries_num"
    FATALITIES = "deaths_num"


# Each bracket is a list of (operator, threshold) comparisons that must all hold.
BRACKET_BOUNDS = {
    Dimension.DAMAGE: {
        Bracket.NONE: [("==", 0)],
        Bracket.LOW: [(">", 0), ("<", 1_000_000)],
        Bracket.MED: [(">=", 1_000_000), ("<", 10_000_000)],
        Bracket.HIGH: [(">=", 10_000_000)],
    },
    Dimension.INJURIES: {
        Bracket.NONE: [("==", 0)],
        Bracket.LOW: [(">=", 1), ("<=", 10)],
        Bracket.MED: [(">=", 11), ("<=", 50)],
        Bracket.HIGH: [(">=", 51)],
    },
    Dimension.FATALITIES: {
        Bracket.NONE: [("==", 0)],
        Bracket.LOW: [(">=", 1), ("<=", 5)],
        Bracket.MED: [(">=", 6), ("<=", 20)],
        Bracket.HIGH: [(">=", 21)],
    },
}

BRACKET_LABELS = {
    Dimension.DAMAGE: {
        Bracket.ALL: "All damage",
        Bracket.NONE: "No damage",
        Bracket.LOW: "Under $1M",
        Bracket.MED: "$1M - $10M",
        Bracket.HIGH: "$10M and up",
    },
    Dimension.INJURIES: {
        Bracket.ALL: "All",
        Bracket.NONE: "None",
        Bracket.LOW: "1 - 10",
        Bracket.MED: "11 - 50",
        Bracket.HIGH: "51+",
    },
    Dimension.FATALITIES: {
        Bracket.ALL: "All",
        Bracket.NONE: "None",
        Bracket.LOW: "1 - 5",
        Bracket.MED: "6 - 20",
        Bracket.HIGH: "21+",
    },
}


class YearRange(NamedTuple):
    start: int
    end: int

    @property
    def width(self):
        return self.end - self.start


def _as_number(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def normalize_range(start, end) -> Optional[YearRange]:
    """Coerce, clamp and order a pair of years.

    Returns None when either side is not a finite number. On success the
    result always satisfies MIN_YEAR <= start <= end <= MAX_YEAR.
    """
    start, end = _as_number(start), _as_number(end)
    if start is None or end is None:
        return None
    start = max(MIN_YEAR, min(MAX_YEAR, int(start)))
    end = max(MIN_YEAR, min(MAX_YEAR, int(end)))
    if start > end:
        start, end = end, start
    return YearRange(start, end)


@dataclass(frozen=True)
class SelectionState:
    year_start: int = DEFAULT_START_YEAR
    year_end: int = DEFAULT_END_YEAR
    selected_efs: FrozenSet[int] = field(default_factory=lambda: frozenset(EF_LEVELS))
    selected_state: str = ALL
    damage_bracket: Bracket = Bracket.ALL
    injury_bracket: Bracket = Bracket.ALL
    fatality_bracket: Bracket = Bracket.ALL
    is_playing: bool = False

    def __post_init__(self):
        if not MIN_YEAR <= self.year_start <= self.year_end <= MAX_YEAR:
            raise ValueError(
                f"year range {self.year_start}-{self.year_end} outside {MIN_YEAR}-{MAX_YEAR}"
            )
        if not set(self.selected_efs) <= set(EF_LEVELS):
            raise ValueError(f"EF ratings must be within {EF_LEVELS}")

    @property
    def year_range(self):
        return YearRange(self.year_start, self.year_end)

    def bracket(self, dimension):
        return {
            Dimension.DAMAGE: self.damage_bracket,
            Dimension.INJURIES: self.injury_bracket,
            Dimension.FATALITIES: self.fatality_bracket,
        }[dimension]

    def with_range(self, year_range):
        return replace(self, year_start=year_range.start, year_end=year_range.end)

    def with_bracket(self, dimension, bracket):
        key = {
            Dimension.DAMAGE: "damage_bracket",
            Dimension.INJURIES: "injury_bracket",
            Dimension.FATALITIES: "fatality_bracket",
        }[dimension]
        return replace(self, **{key: Bracket(bracket)})


def default_state(year_range=None):
    if year_range is None:
        return SelectionState()
    return SelectionState().with_range(year_range)
