"""Runtime settings read from the environment."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from tornado_tracker.constants import DEFAULT_END_YEAR, DEFAULT_START_YEAR, PLAYBACK_INTERVAL_MS
from tornado_tracker.state import YearRange, normalize_range

logger = logging.getLogger(__name__)

MIN_PLAYBACK_MS = 50
DEFAULT_DATA_PATH = Path("data") / "tornado_points.geojson"


@dataclass(frozen=True)
class Settings:
    data_path: Path = DEFAULT_DATA_PATH
    playback_ms: int = PLAYBACK_INTERVAL_MS
    default_range: YearRange = YearRange(DEFAULT_START_YEAR, DEFAULT_END_YEAR)
    log_level: str = "INFO"


def _int_setting(environ, name, default):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r, expected an integer", name, raw)
        return default


def load_settings(environ=None):
    environ = os.environ if environ is None else environ

    playback_ms = _int_setting(environ, "TORNADO_PLAYBACK_MS", PLAYBACK_INTERVAL_MS)
    if playback_ms < MIN_PLAYBACK_MS:
        logger.warning("TORNADO_PLAYBACK_MS=%d is too fast, using %d", playback_ms, MIN_PLAYBACK_MS)
        playback_ms = MIN_PLAYBACK_MS

    start = _int_setting(environ, "TORNADO_DEFAULT_START", DEFAULT_START_YEAR)
    end = _int_setting(environ, "TORNADO_DEFAULT_END", DEFAULT_END_YEAR)
    default_range = normalize_range(start, end)

    log_level = environ.get("TORNADO_LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        logger.warning("Unknown TORNADO_LOG_LEVEL %r, using INFO", log_level)
        log_level = "INFO"

    return Settings(
        data_path=Path(environ.get("TORNADO_DATA_PATH") or DEFAULT_DATA_PATH),
        playback_ms=playback_ms,
        default_range=default_range,
        log_level=log_level,
    )


def configure_logging(level="INFO"):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
