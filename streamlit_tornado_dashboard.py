# streamlit_tornado_dashboard.py

import streamlit as st
import altair as alt
import us

from tornado_tracker.charts import TimelineClicks, histogram_chart, map_chart, timeline_chart
from tornado_tracker.config import configure_logging, load_settings
from tornado_tracker.constants import ALL, EF_LEVELS, MAX_YEAR, MIN_YEAR
from tornado_tracker.errors import DataSourceError
from tornado_tracker.intents import (
    ClickTimelineYear,
    CommitRange,
    CommitRangeText,
    Pause,
    Play,
    Reset,
    SelectBracket,
    SelectState,
    ToggleEF,
)
from tornado_tracker.loader import load_records
from tornado_tracker.state import BRACKET_LABELS, Bracket, Dimension, default_state
from tornado_tracker.sync import ControlSynchronizer
from tornado_tracker.tooltip import with_hover_columns

st.set_page_config(layout="wide")
alt.data_transformers.disable_max_rows()

settings = load_settings()
configure_logging(settings.log_level)

st.title("🌪️ Tornado Tracker: U.S. Tornado Tracks, 1950–2025")

st.markdown("""
Explore every recorded U.S. tornado on the map below.

- **📅 Years:** drag the range slider or type the first and last year
- **🌀 EF rating, state, damage, injuries, deaths:** narrow the tornadoes on the map and in the charts
- **▶️ Play:** slide the year window forward automatically, wrapping back to 1950
- **📊 Timeline:** click a bar to jump to that single year
""")

st.markdown("---")


@st.cache_data
def load_data(path):
    report = load_records(path)
    return with_hover_columns(report.records), report.warnings


try:
    records, load_warnings = load_data(str(settings.data_path))
except DataSourceError as e:
    st.error(f"❌ {e}")
    st.stop()

for message in load_warnings:
    st.sidebar.warning(f"⚠️ {message}")

if records.empty:
    st.error("⚠️ No tornado records loaded. Please check the data path.")
    st.stop()

if "synchronizer" not in st.session_state:
    st.session_state.synchronizer = ControlSynchronizer(
        records,
        state=default_state(settings.default_range),
        interval_ms=settings.playback_ms,
    )
sync = st.session_state.synchronizer
if "timeline_clicks" not in st.session_state:
    st.session_state.timeline_clicks = TimelineClicks()
clicks = st.session_state.timeline_clicks
state = sync.state
view = sync.view


def state_name(code):
    if code == ALL:
        return "All States"
    found = us.states.lookup(code)
    return found.name if found is not None else code


# Widgets mirror the synchronizer; set their values before they are drawn.
st.session_state["year_slider"] = (state.year_start, state.year_end)
st.session_state["start_input"] = state.year_start
st.session_state["end_input"] = state.year_end
for ef in EF_LEVELS:
    st.session_state[f"ef_{ef}"] = ef in state.selected_efs
st.session_state["state_select"] = state.selected_state
for dimension in Dimension:
    st.session_state[f"bracket_{dimension.name}"] = state.bracket(dimension)


def on_slider():
    sync.dispatch(CommitRange(*st.session_state["year_slider"]))


def on_year_text():
    sync.dispatch(CommitRangeText(st.session_state["start_input"], st.session_state["end_input"]))


def on_ef(ef):
    sync.dispatch(ToggleEF(ef, st.session_state[f"ef_{ef}"]))


def on_state():
    sync.dispatch(SelectState(st.session_state["state_select"]))


def on_bracket(dimension):
    sync.dispatch(SelectBracket(dimension, st.session_state[f"bracket_{dimension.name}"]))


# ========== SIDEBAR ==========
st.sidebar.title("Tornado Filters")

col_play, col_pause, col_reset = st.sidebar.columns(3)
col_play.button("▶️ Play", on_click=sync.dispatch, args=(Play(),), disabled=not view.play_enabled)
col_pause.button("⏸️ Pause", on_click=sync.dispatch, args=(Pause(),), disabled=not view.pause_enabled)
col_reset.button("⏮️ Reset", on_click=sync.dispatch, args=(Reset(),))

st.sidebar.markdown("### Years")
st.sidebar.slider("Year Range", min_value=MIN_YEAR, max_value=MAX_YEAR,
                  key="year_slider", on_change=on_slider)
col_start, col_end = st.sidebar.columns(2)
col_start.number_input("From", min_value=MIN_YEAR, max_value=MAX_YEAR, step=1,
                       key="start_input", on_change=on_year_text)
col_end.number_input("To", min_value=MIN_YEAR, max_value=MAX_YEAR, step=1,
                     key="end_input", on_change=on_year_text)

st.sidebar.markdown("### EF Rating")
ef_columns = st.sidebar.columns(len(EF_LEVELS))
for ef, column in zip(EF_LEVELS, ef_columns):
    column.checkbox(f"EF{ef}", key=f"ef_{ef}", on_change=on_ef, args=(ef,))

st.sidebar.markdown("### Location & Impact")
st.sidebar.selectbox("State", [ALL] + sorted(sync.known_states), key="state_select",
                     format_func=state_name, on_change=on_state)

bracket_titles = {
    Dimension.DAMAGE: "Property Damage",
    Dimension.INJURIES: "Injuries",
    Dimension.FATALITIES: "Deaths",
}
for dimension in Dimension:
    labels = BRACKET_LABELS[dimension]
    st.sidebar.selectbox(bracket_titles[dimension], list(Bracket), key=f"bracket_{dimension.name}",
                         format_func=labels.get, on_change=on_bracket, args=(dimension,))


def render_views():
    frame = sync.frame
    summary = frame.summary

    st.subheader(f"📍 Tornado Tracks – {frame.view.label}")
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Tornadoes", f"{summary['tornadoes']:,}")
    m2.metric("Injuries", f"{summary['injuries']:,}")
    m3.metric("Deaths", f"{summary['deaths']:,}")
    m4.metric("Property Damage", f"${summary['damage_usd'] / 1e6:,.1f}M")

    st.altair_chart(map_chart(sync.records, frame.predicate), use_container_width=True)

    st.subheader("📊 Tornadoes per Year")
    st.caption("Orange bars fall inside the selected years. Click a bar to show only that year.")
    event = st.altair_chart(timeline_chart(frame.timeline), use_container_width=True,
                            on_select="rerun", key=clicks.key)
    year = clicks.take(event)
    if year is not None:
        sync.dispatch(ClickTimelineYear(year))
        st.rerun()

    st.subheader(f"🌀 EF Ratings – {frame.view.label}")
    st.markdown("""
    The Enhanced Fujita (EF) scale classifies tornadoes by wind damage:

    - **EF0–EF1**: Weak (light to moderate damage)
    - **EF2–EF3**: Strong (considerable damage)
    - **EF4–EF5**: Violent (devastating to incredible damage)

    Faded bars are EF ratings unchecked in the sidebar.
    """)
    st.altair_chart(histogram_chart(frame.histogram), use_container_width=True)


run_every = settings.playback_ms / 1000.0 if sync.scheduler.is_playing else None
st.fragment(render_views, run_every=run_every)()

# Footer
st.markdown("---")
st.caption("Data: NOAA Storm Prediction Center tornado tracks | Interactive Dashboard built with Streamlit & Altair")
