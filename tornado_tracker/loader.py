"""Load raw tornado records from GeoJSON or NOAA Storm Events CSV files."""

import glob
import json
import logging
import os
from typing import List, NamedTuple

import pandas as pd

from tornado_tracker.errors import DataSourceError
from tornado_tracker.normalize import normalize_records

logger = logging.getLogger(__name__)

STORM_EVENTS_PATTERN = "StormEvents_details-ftp_v1.0_d*_c*.csv"
REQUIRED_CSV_COLUMNS = ["TOR_F_SCALE", "BEGIN_YEARMONTH", "STATE", "DAMAGE_PROPERTY"]


class LoadReport(NamedTuple):
    records: pd.DataFrame
    warnings: List[str]


def read_geojson(path):
    try:
        with open(path, encoding="utf-8") as fh:
            collection = json.load(fh)
    except FileNotFoundError as e:
        raise DataSourceError(f"No tornado data at {path}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DataSourceError(f"Could not decode {path}: {e}") from e
    if not isinstance(collection, dict) or "features" not in collection:
        raise DataSourceError(f"{path} is not a GeoJSON FeatureCollection")
    return collection


def _sum_columns(df, columns):
    present = [c for c in columns if c in df.columns]
    if not present:
        return pd.Series([None] * len(df), index=df.index)
    return df[present].apply(pd.to_numeric, errors="coerce").fillna(0).sum(axis=1).astype(int)


def storm_events_to_properties(df):
    """Map NOAA Storm Events detail rows onto raw record properties."""
    df = df[~df["TOR_F_SCALE"].isna()].copy()
    props = pd.DataFrame({
        "year": df["BEGIN_YEARMONTH"].astype(str).str[:4],
        "ef": df["TOR_F_SCALE"],
        "state": df["STATE"],
        "date": df.get("BEGIN_DATE_TIME"),
        "damage_property": df["DAMAGE_PROPERTY"],
        "injuries": _sum_columns(df, ["INJURIES_DIRECT", "INJURIES_INDIRECT"]),
        "deaths": _sum_columns(df, ["DEATHS_DIRECT", "DEATHS_INDIRECT"]),
        "length_miles": df.get("TOR_LENGTH"),
        "width_yards": df.get("TOR_WIDTH"),
        "lon": df.get("BEGIN_LON"),
        "lat": df.get("BEGIN_LAT"),
    })
    return props.astype(object).where(props.notna(), None).to_dict("records")


def read_storm_events(directory):
    """Read every Storm Events detail CSV in ``directory``, keeping tornado rows."""
    files = sorted(glob.glob(os.path.join(directory, STORM_EVENTS_PATTERN)))
    warnings = []
    if not files:
        warnings.append(f"No Storm Events files found in {directory}")

    rows = []
    for file in files:
        name = os.path.basename(file)
        try:
            df = pd.read_csv(file, encoding="latin1", on_bad_lines="skip", low_memory=False)
        except (OSError, ValueError) as e:
            warnings.append(f"Could not read {name}: {e}")
            continue
        missing = [c for c in REQUIRED_CSV_COLUMNS if c not in df.columns]
        if missing:
            warnings.append(f"Missing expected columns {missing} in {name}")
            continue
        rows.extend(storm_events_to_properties(df))

    for message in warnings:
        logger.warning(message)
    return rows, warnings


def load_records(path):
    """Load and normalize records from a GeoJSON file or a CSV directory."""
    path = os.fspath(path)
    if os.path.isdir(path):
        raw, warnings = read_storm_events(path)
    else:
        raw, warnings = read_geojson(path), []

    records = normalize_records(raw)
    unmapped = sorted(
        s for s in records["state"].dropna().unique() if len(s) != 2
    )
    if unmapped:
        message = f"Unmapped states found: {unmapped}"
        logger.warning(message)
        warnings.append(message)
    logger.info("Loaded %d records from %s", len(records), path)
    return LoadReport(records, warnings)
