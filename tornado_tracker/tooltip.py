"""Hover text for a single tornado, with "Unknown" for anything missing."""

import pandas as pd

from tornado_tracker.constants import UNKNOWN
from tornado_tracker.normalize import parse_optional_float

HOVER_FIELDS = ("state", "date", "ef", "wind", "length", "width", "injuries", "deaths", "damage")


def _text(value):
    if value is None:
        return UNKNOWN
    try:
        if pd.isna(value):
            return UNKNOWN
    except (TypeError, ValueError):
        pass
    text = str(value).strip()
    if text.upper() in ("", "NULL", "NAT", "NAN", "NONE", "<NA>"):
        return UNKNOWN
    return text


def hover_details(record):
    """Display strings for the map hover popup."""
    wind_low = parse_optional_float(record.get("wind_low"))
    wind_high = parse_optional_float(record.get("wind_high"))
    length = parse_optional_float(record.get("length_miles"))
    width = parse_optional_float(record.get("width_yards"))

    if wind_low is not None and wind_high is not None:
        wind = f"{wind_low:g}–{wind_high:g} mph"
    else:
        wind = UNKNOWN

    return {
        "state": _text(record.get("state")),
        "date": _text(record.get("date")),
        "ef": _text(record.get("ef_display")),
        "wind": wind,
        "length": UNKNOWN if length is None else f"{length:.1f} mi",
        "width": UNKNOWN if width is None else f"{round(width)} yd",
        "injuries": _text(record.get("injuries")),
        "deaths": _text(record.get("deaths")),
        "damage": _text(record.get("damage_property")),
    }


def with_hover_columns(df):
    """Copy of ``df`` with a ``<field>_text`` column per hover field."""
    details = [hover_details(row) for row in df.to_dict("records")]
    hover = pd.DataFrame(details, index=df.index, columns=list(HOVER_FIELDS))
    out = df.copy()
    for field in HOVER_FIELDS:
        out[f"{field}_text"] = hover[field]
    return out
