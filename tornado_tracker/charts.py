"""Chart projections and the Altair surfaces that draw them."""

import altair as alt
import pandas as pd
from vega_datasets import data

from tornado_tracker.constants import EF_COLORS, EF_LEVELS, MAX_YEAR, MIN_YEAR

TIMELINE_SELECTION = "year_pick"

MAP_COLUMNS = [
    "lon", "lat", "year", "ef", "state", "damage_usd", "injuries_num", "deaths_num",
    "state_text", "date_text", "ef_text", "wind_text", "length_text", "width_text",
    "injuries_text", "deaths_text", "damage_text",
]


def _year_window(df, state):
    return df["year"].between(state.year_start, state.year_end).fillna(False).astype(bool)


def _ef_counts(frame):
    counts = frame["ef"].dropna().astype(int).value_counts()
    return counts.reindex(list(EF_LEVELS), fill_value=0).astype(int)


def ef_histogram(df, state, predicate=None):
    """Tornadoes per EF rating inside the year window.

    ``count`` covers every record in the window; ``in_view`` only the ones
    ``predicate`` keeps, which is what the map is showing.
    """
    window = df[_year_window(df, state)]
    counts = _ef_counts(window)
    in_view = _ef_counts(predicate.filter(df)) if predicate is not None else counts
    return pd.DataFrame({
        "ef": list(EF_LEVELS),
        "ef_label": [f"EF{ef}" for ef in EF_LEVELS],
        "count": counts.values,
        "in_view": in_view.values,
        "selected": [ef in state.selected_efs for ef in EF_LEVELS],
    })


def year_timeline(df, min_year=MIN_YEAR, max_year=MAX_YEAR):
    """Tornadoes per year over the whole dataset, ignoring every filter."""
    years = list(range(min_year, max_year + 1))
    counts = df["year"].dropna().astype(int).value_counts()
    counts = counts.reindex(years, fill_value=0).astype(int)
    return pd.DataFrame({"year": years, "count": counts.values})


def highlight_timeline(timeline, state):
    out = timeline.copy()
    out["in_range"] = out["year"].between(state.year_start, state.year_end)
    return out


def summarize(df):
    return {
        "tornadoes": int(len(df)),
        "injuries": int(df["injuries_num"].sum()) if len(df) else 0,
        "deaths": int(df["deaths_num"].sum()) if len(df) else 0,
        "damage_usd": float(df["damage_usd"].sum()) if len(df) else 0.0,
    }


def _ef_scale():
    return alt.Scale(domain=list(EF_LEVELS), range=[EF_COLORS[ef] for ef in EF_LEVELS])


def histogram_chart(histogram, width=400, height=250):
    return alt.Chart(histogram).mark_bar().encode(
        x=alt.X("ef_label:N", title="EF Rating", sort=[f"EF{ef}" for ef in EF_LEVELS],
                axis=alt.Axis(labelAngle=0)),
        y=alt.Y("count:Q", title="Tornadoes"),
        color=alt.Color("ef:O", scale=_ef_scale(), legend=None),
        opacity=alt.condition(alt.datum.selected, alt.value(1.0), alt.value(0.25)),
        tooltip=[
            alt.Tooltip("ef_label:N", title="EF"),
            alt.Tooltip("count:Q", title="In years"),
            alt.Tooltip("in_view:Q", title="On map"),
        ],
    ).properties(width=width, height=height)


def timeline_chart(timeline, width=800, height=120):
    """Per-year bars; the clicked bar comes back as the ``year_pick`` selection."""
    pick = alt.selection_point(name=TIMELINE_SELECTION, fields=["year"], on="click")
    return alt.Chart(timeline).mark_bar().encode(
        x=alt.X("year:O", title=None, axis=alt.Axis(labelAngle=0, values=list(range(1950, 2030, 10)))),
        y=alt.Y("count:Q", title="Tornadoes"),
        color=alt.condition(alt.datum.in_range, alt.value("orange"), alt.value("lightgray")),
        tooltip=[alt.Tooltip("year:O", title="Year"), alt.Tooltip("count:Q", title="Tornadoes")],
    ).add_params(pick).properties(width=width, height=height)


def picked_year(event):
    """Year of the clicked timeline bar in a Streamlit selection event, if any."""
    selection = (event or {}).get("selection", {}).get(TIMELINE_SELECTION) or []
    if isinstance(selection, dict):
        selection = [selection]
    for point in selection:
        if "year" in point:
            return int(point["year"])
    return None


class TimelineClicks:
    """Makes every timeline click count once, including a repeat of the same bar.

    The chart is drawn under ``key``; taking a click moves to a fresh key so
    the next render starts with no selection.
    """

    def __init__(self):
        self.generation = 0

    @property
    def key(self):
        return f"timeline-{self.generation}"

    def take(self, event):
        year = picked_year(event)
        if year is not None:
            self.generation += 1
        return year


def density_weights(records):
    """Heat weight per record: 0.1 at EF0 (or unknown EF) up to 1.0 at EF5."""
    return 0.1 + 0.18 * records["ef"].astype(float).fillna(0).clip(0, 5)


def map_records(records, predicate):
    """Rows the predicate keeps, cut down to the columns the map draws."""
    shown = predicate.filter(records)
    shown = shown[[c for c in MAP_COLUMNS if c in shown.columns]].copy()
    shown["ef_weight"] = density_weights(shown)
    return shown.reset_index(drop=True)


def map_chart(records, predicate, width=800, height=500):
    """State outlines with a density layer and an EF-colored point layer.

    Only the records ``predicate`` keeps are embedded in the chart, and only
    the columns the layers use. ``records`` should carry the hover ``*_text``
    columns. The density layer weighs each tornado by its EF rating.
    """
    states_geo = alt.topo_feature(data.us_10m.url, "states")
    background = alt.Chart(states_geo).mark_geoshape(fill="#2b2b2b", stroke="#666")

    located = "isValid(datum['lon']) && isValid(datum['lat'])"
    base = alt.Chart(map_records(records, predicate)).transform_filter(
        predicate.to_vega()
    ).transform_filter(located)

    density = base.transform_calculate(
        lon_bin="round(datum['lon'])",
        lat_bin="round(datum['lat'])",
    ).transform_aggregate(
        weight="sum(ef_weight)",
        tornadoes="count()",
        groupby=["lon_bin", "lat_bin"],
    ).mark_circle(opacity=0.35).encode(
        longitude="lon_bin:Q",
        latitude="lat_bin:Q",
        size=alt.Size("weight:Q", scale=alt.Scale(range=[30, 1200]), legend=None),
        color=alt.Color("weight:Q", scale=alt.Scale(scheme="reds"), legend=None),
        tooltip=[alt.Tooltip("tornadoes:Q", title="Tornadoes")],
    )

    points = base.mark_circle(size=14, opacity=0.75, stroke="#000", strokeWidth=0.4).encode(
        longitude="lon:Q",
        latitude="lat:Q",
        color=alt.Color("ef:O", scale=_ef_scale(), title="EF"),
        tooltip=[
            alt.Tooltip("state_text:N", title="State"),
            alt.Tooltip("date_text:N", title="Date"),
            alt.Tooltip("ef_text:N", title="EF"),
            alt.Tooltip("wind_text:N", title="Wind speed"),
            alt.Tooltip("length_text:N", title="Distance traveled"),
            alt.Tooltip("width_text:N", title="Max width"),
            alt.Tooltip("injuries_text:N", title="Injuries"),
            alt.Tooltip("deaths_text:N", title="Deaths"),
            alt.Tooltip("damage_text:N", title="Damage"),
        ],
    )

    return alt.layer(background, density, points).project(
        type="albersUsa"
    ).properties(width=width, height=height)
