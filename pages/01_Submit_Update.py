from datetime import date, timedelta

import streamlit as st

from dpm_weekly import ui
from dpm_weekly.config import default_config, load_settings
from dpm_weekly.ingest import ingest_update
from dpm_weekly.summarizer import GeminiSummarizer, pick_summarizer

st.set_page_config(page_title="Submit Update", layout="wide")
ui.init_page()
ui.render_page_header("Submit update", subtitle="One raw update per project per week; resubmitting replaces it.")

settings = load_settings()
config = default_config(merge_regional=settings.merge_regional)
summarizer = pick_summarizer(settings)


def _this_friday() -> date:
    today = date.today()
    return today + timedelta(days=(4 - today.weekday()) % 7)


with st.sidebar:
    if isinstance(summarizer, GeminiSummarizer):
        st.caption(f"Summarizer: Gemini ({settings.gemini_model})")
    else:
        st.caption("Summarizer: local heuristic (GEMINI_API_KEY not set)")

with st.form("submit_update"):
    project_key = st.selectbox("Project", list(config.required), format_func=config.label_for)
    week_ending = st.date_input("Week ending", value=_this_friday())
    dpm = st.text_input("DPM name")
    raw_update = st.text_area("Raw update", height=260, placeholder="Paste this week's update as free text.")
    passcode = st.text_input("Passcode", type="password") if settings.passcode else ""
    submitted = st.form_submit_button("Summarize and save", type="primary")

if submitted:
    request = {
        "project_key": project_key,
        "week_ending": week_ending.isoformat(),
        "dpm": dpm,
        "raw_update": raw_update,
        "passcode": passcode,
    }
    with st.spinner("Summarizing update..."):
        result = ingest_update(request, summarizer, settings, config)

    if not result.ok:
        st.error(f"Not saved ({result.status}): {'; '.join(result.errors)}")
        if result.log:
            st.json(result.log)
        st.stop()

    st.success(f"Saved {result.path}")
    if "combine_exit_code" in result.log:
        code = result.log["combine_exit_code"]
        st.caption("Weekly combine ran." if code == 0 else f"Weekly combine failed (exit {code}); see server output.")
    usage = result.log.get("usage") or {}
    if usage:
        st.caption(
            f"Model: {usage.get('model', 'unknown')} | "
            f"prompt={usage.get('prompt_tokens', '?')} "
            f"output={usage.get('output_tokens', '?')} "
            f"total={usage.get('total_tokens', '?')}"
        )
    st.subheader("JSON record")
    st.json(result.record)
