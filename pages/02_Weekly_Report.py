from __future__ import annotations

from urllib.parse import quote

import streamlit as st

from dpm_weekly import ui
from dpm_weekly.aggregate import MalformedInput, aggregate
from dpm_weekly.config import default_config, load_settings
from dpm_weekly.storage import commit_paths, list_weeks, load_week, write_summaries

st.set_page_config(page_title="Weekly Report", layout="wide")
ui.init_page()
ui.render_page_header("Weekly report", subtitle="Executive summary and combined update for one week.")

settings = load_settings()
config = default_config(merge_regional=settings.merge_regional)

weeks = list_weeks(settings.data_dir)
if not weeks:
    st.info("No submissions yet.")
    st.stop()

c1, c2 = st.columns([2, 1])
with c1:
    week = st.selectbox("Week ending", weeks, index=0)
with c2:
    allow_partial = st.checkbox("Render draft if incomplete", value=True)

records, load_errors = load_week(settings.data_dir, week)
for err in load_errors:
    st.warning(err)

try:
    report = aggregate(
        {"run_metadata": {"mode": "streamlit", "week_ending": week}, "submissions": records},
        config,
    )
except MalformedInput as e:
    st.error(f"Cannot build report: {e}")
    st.stop()

missing = report.completeness.missing
if missing and not allow_partial:
    st.warning(f"Waiting for {len(missing)}/{len(config.required)}: {', '.join(missing)}")
    st.stop()
if missing:
    st.warning(f"Draft: missing {', '.join(missing)}")
for skipped in report.skipped:
    st.caption(f"Skipped submission #{skipped['index']}: {skipped['error']}")

tab_exec, tab_combined = st.tabs(["Executive summary", "Combined update"])
with tab_exec:
    st.markdown(report.executive_summary_md)
    with st.expander("Markdown source"):
        st.code(report.executive_summary_md, language="markdown")
with tab_combined:
    st.markdown(report.combined_update_md)
    with st.expander("Markdown source"):
        st.code(report.combined_update_md, language="markdown")

st.divider()
st.subheader("Report actions")
full_md = f"{report.executive_summary_md}\n\n{report.combined_update_md}\n"

a1, a2, a3 = st.columns(3)
with a1:
    if st.button("Save to summaries/"):
        md_path, json_path = write_summaries(settings.summaries_dir, week, report.to_dict())
        st.success(f"Saved: {md_path}, {json_path}")
        if settings.git_commit:
            try:
                committed = commit_paths([md_path, json_path], f"Add combined summary for {week}")
            except RuntimeError as e:
                st.error(str(e))
            else:
                st.caption("Committed." if committed else "No changes to commit.")
with a2:
    st.download_button(
        "Download .md",
        data=full_md.encode("utf-8"),
        file_name=f"weekly_update_{week}.md",
        mime="text/markdown",
    )
with a3:
    mailto = "mailto:?subject=" + quote(f"Weekly Update ({week})") + "&body=" + quote(full_md)
    st.link_button("Open in Email Client", mailto)
