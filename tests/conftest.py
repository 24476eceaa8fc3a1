"""Shared fixtures for the tornado_tracker tests."""

import pytest

from tornado_tracker.normalize import normalize_records


class ManualTimer:
    """Stand-in for RepeatingTimer whose ticks are fired by the test."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        # Fires even after cancel, like a timer thread that already woke up.
        self.callback()


@pytest.fixture
def timers():
    created = []

    def factory(interval, callback):
        timer = ManualTimer(interval, callback)
        created.append(timer)
        return timer

    factory.created = created
    return factory


RAW_FEATURES = [
    {"year": 2000, "ef": 3, "state": "TX", "damage_property": "5M", "injuries": "0", "deaths": "0",
     "date": "2000-04-02", "length_miles": 12.4, "width_yards": 300, "wind_low": 136, "wind_high": 165},
    {"year": 2000, "ef": 1, "state": "OK", "damage_property": "750K", "injuries": "4", "deaths": "0"},
    {"year": 2001, "ef": 5, "state": "Oklahoma", "damage_property": "1.2B", "injuries": "583", "deaths": "36"},
    {"year": 1950, "ef": 0, "state": "KS", "damage_property": "NULL", "injuries": None, "deaths": "NULL"},
    {"year": 2011, "ef": 4, "state": "AL", "damage_property": "25.00M", "injuries": "12", "deaths": "8"},
    {"year": 2011, "ef": None, "state": None, "damage_property": "garbage", "injuries": "x", "deaths": "2"},
    {"year": 2025, "ef": "EF2", "state": "IL", "damage_property": "0", "injuries": "51", "deaths": "21"},
    {"year": "1999", "ef": "2", "state": "TX", "damage_property": "10M", "injuries": "11", "deaths": "6"},
]


def as_features(rows):
    features = []
    for i, props in enumerate(rows):
        features.append({
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [-97.0 - i, 35.0 + i * 0.5]},
            "properties": dict(props),
        })
    return {"type": "FeatureCollection", "features": features}


@pytest.fixture
def raw_collection():
    return as_features(RAW_FEATURES)


@pytest.fixture
def records(raw_collection):
    return normalize_records(raw_collection)
