import altair as alt
import pandas as pd
import streamlit as st

from dpm_weekly import ui
from dpm_weekly.aggregate import week_overview
from dpm_weekly.config import default_config, load_settings
from dpm_weekly.storage import list_weeks, load_week

st.set_page_config(page_title="DPM Weekly", layout="wide")
ui.init_page()

ui.render_page_header(
    "DPM Weekly",
    subtitle="Weekly project status submissions and roll-up reports",
)

settings = load_settings()
config = default_config(merge_regional=settings.merge_regional)

_TIER_ORDER = ["Green", "Amber", "Red", "Unknown", "Missing"]

# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

weeks = list_weeks(settings.data_dir)
if not weeks:
    st.info("No submissions yet. Use **Submit update** to add the first one.")
    st.stop()

week = st.selectbox("Week ending", weeks, index=0)
records, load_errors = load_week(settings.data_dir, week)
rows = week_overview(records, config)
submitted = [r for r in rows if r["status"] != "missing"]

# ---------------------------------------------------------------------------
# KPI row
# ---------------------------------------------------------------------------

k1, k2, k3 = st.columns(3)
with k1:
    ui.kpi_card("Submitted", f"{len(submitted)}/{len(rows)}", caption="Projects reported this week")
with k2:
    ui.kpi_card("Red", sum(1 for r in submitted if r["rag"] == "🔴"), caption="Projects flagged Red")
with k3:
    last = max((r["submitted_at"] for r in submitted), default="—")
    ui.kpi_card("Last submission", last[:16] if last else "—")

# ---------------------------------------------------------------------------
# Status table
# ---------------------------------------------------------------------------

df = pd.DataFrame(rows)

with ui.card("Project status", "Missing projects show as 'missing' until their DPM submits."):
    st.dataframe(
        df[["rag", "project", "project_key", "status", "dpm", "submitted_at"]],
        use_container_width=True,
        hide_index=True,
    )

# ---------------------------------------------------------------------------
# RAG distribution
# ---------------------------------------------------------------------------

tiers = df.groupby("tier").size().reset_index(name="count")
chart = (
    alt.Chart(tiers)
    .mark_bar()
    .encode(
        x=alt.X("count:Q", title="Projects"),
        y=alt.Y("tier:N", sort=_TIER_ORDER, title=None),
        color=alt.Color(
            "tier:N",
            scale=alt.Scale(
                domain=_TIER_ORDER,
                range=["#16A34A", "#D97706", "#DC2626", "#9CA3AF", "#E5E7EB"],
            ),
            legend=None,
        ),
        tooltip=["tier", "count"],
    )
    .properties(height=200)
)
with ui.card("RAG distribution"):
    st.altair_chart(chart, use_container_width=True)

if load_errors:
    with st.expander(f"{len(load_errors)} unreadable file(s)", expanded=False):
        for err in load_errors:
            st.markdown(f"- {err}")
