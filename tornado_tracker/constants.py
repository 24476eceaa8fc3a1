MIN_YEAR = 1950
MAX_YEAR = 2025

DEFAULT_START_YEAR = 2000
DEFAULT_END_YEAR = 2000

EF_LEVELS = (0, 1, 2, 3, 4, 5)

# ef values never carry this, so comparing against it matches nothing
EF_NONE_SENTINEL = -999

ALL = "ALL"
UNKNOWN = "Unknown"

PLAYBACK_INTERVAL_MS = 300

DAMAGE_SUFFIXES = {"K": 1e3, "M": 1e6, "B": 1e9}

EF_COLORS = {
    0: "#88c0ff",
    1: "#60a5fa",
    2: "#4ade80",
    3: "#facc15",
    4: "#fb923c",
    5: "#ef4444",
}
