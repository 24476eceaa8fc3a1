"""Field normalization for raw tornado records.

Raw records carry display strings ("2.5M", "NULL", "12") next to the
numbers the filters need. Everything here is total: malformed input
degrades to 0 or None and never raises.
"""

import logging
import math
import re

import pandas as pd
import us

from tornado_tracker.constants import DAMAGE_SUFFIXES, EF_LEVELS

logger = logging.getLogger(__name__)

_DAMAGE_PATTERN = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)?\s*([KMB])?$", re.IGNORECASE)
_EF_PATTERN = re.compile(r"^(?:E?F)?\s*(\d+)(?:\.0*)?$", re.IGNORECASE)
_MISSING = {"", "NULL", "NONE", "NAN", "NAT", "<NA>"}

COLUMNS = [
    "lon",
    "lat",
    "year",
    "ef",
    "ef_display",
    "state",
    "date",
    "damage_property",
    "damage_usd",
    "injuries",
    "injuries_num",
    "deaths",
    "deaths_num",
    "length_miles",
    "width_yards",
    "wind_low",
    "wind_high",
]


def _is_missing(value):
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip().upper() in _MISSING


def parse_damage(value):
    """Convert a damage string such as "25.00M" or "750K" to dollars."""
    if _is_missing(value):
        return 0.0
    text = str(value).strip().upper()
    if text == "0":
        return 0.0

    match = _DAMAGE_PATTERN.match(text)
    if match:
        amount, suffix = match.groups()
        dollars = float(amount) if amount else 0.0
        if suffix:
            dollars *= DAMAGE_SUFFIXES[suffix]
    else:
        try:
            dollars = float(text)
        except ValueError:
            return 0.0

    if not math.isfinite(dollars) or dollars < 0:
        return 0.0
    return dollars


def parse_count(value):
    if _is_missing(value) or isinstance(value, bool):
        return 0
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number)


def parse_optional_float(value):
    if _is_missing(value) or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_year(value):
    number = parse_optional_float(value)
    return None if number is None else int(number)


def parse_ef(value):
    """EF rating 0-5 from 3, "3", "EF3" or "F3"; None for "EFU" and the like."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    match = _EF_PATTERN.match(str(value).strip())
    if not match:
        return None
    rating = int(match.group(1))
    return rating if rating in EF_LEVELS else None


def canonical_state(value):
    """Two-letter postal code for a state name, code or FIPS string."""
    if _is_missing(value):
        return None
    text = str(value).strip()
    found = us.states.lookup(text)
    if found is not None:
        return found.abbr
    return text.upper()


def _optional_text(value):
    return None if _is_missing(value) else str(value).strip()


def normalize_properties(props, coordinates=None):
    """Return a new record dict with canonical numeric fields derived.

    Raw display fields are kept as they are, so running this again on
    its own output gives the same canonical fields.
    """
    record = dict(props)
    if coordinates is not None and len(coordinates) >= 2:
        record["lon"] = parse_optional_float(coordinates[0])
        record["lat"] = parse_optional_float(coordinates[1])
    else:
        record["lon"] = parse_optional_float(props.get("lon"))
        record["lat"] = parse_optional_float(props.get("lat"))

    ef = parse_ef(props.get("ef"))
    record["year"] = parse_year(props.get("year"))
    record["ef"] = ef
    record["ef_display"] = _optional_text(props.get("ef_display")) or (
        f"EF{ef}" if ef is not None else None
    )
    record["state"] = canonical_state(props.get("state"))
    record["date"] = _optional_text(props.get("date"))
    record["damage_property"] = props.get("damage_property")
    record["damage_usd"] = parse_damage(props.get("damage_property"))
    record["injuries"] = props.get("injuries")
    record["injuries_num"] = parse_count(props.get("injuries"))
    record["deaths"] = props.get("deaths")
    record["deaths_num"] = parse_count(props.get("deaths"))
    for key in ("length_miles", "width_yards", "wind_low", "wind_high"):
        record[key] = parse_optional_float(props.get(key))
    return record


def _iter_raw(raw):
    if isinstance(raw, dict):
        raw = raw.get("features", [])
    for item in raw:
        if isinstance(item, dict) and "properties" in item:
            geometry = item.get("geometry") or {}
            yield item.get("properties") or {}, geometry.get("coordinates")
        else:
            yield item, None


def normalize_records(raw):
    """Normalize a GeoJSON FeatureCollection (or list of property dicts) once.

    The input is not modified. Returns a DataFrame with one row per record.
    """
    rows = [normalize_properties(props, coords) for props, coords in _iter_raw(raw)]
    df = pd.DataFrame(rows)
    for column in COLUMNS:
        if column not in df.columns:
            df[column] = None

    df["year"] = df["year"].astype("Int64")
    df["ef"] = df["ef"].astype("Int64")
    df["damage_usd"] = df["damage_usd"].astype(float)
    df["injuries_num"] = df["injuries_num"].astype(int)
    df["deaths_num"] = df["deaths_num"].astype(int)
    for column in ("lon", "lat", "length_miles", "width_yards", "wind_low", "wind_high"):
        df[column] = pd.to_numeric(df[column], errors="coerce")

    missing_year = int(df["year"].isna().sum())
    if missing_year:
        logger.warning("%d records have no usable year", missing_year)
    logger.info("Normalized %d tornado records", len(df))
    return df[COLUMNS + [c for c in df.columns if c not in COLUMNS]]
