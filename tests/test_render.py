"""Executive summary and combined update rendering."""

import re

from dpm_weekly.config import WeeklyConfig, default_config
from dpm_weekly.constants import PROJECT_KEYS
from dpm_weekly.normalize import RunMetadata, normalize
from dpm_weekly.render import render_combined_update, render_executive_summary

META = RunMetadata(week_ending="2026-10-16")
SECTION_HEADERS = ["**Status & Key Deltas**", "**Top Risks**", "**Upcoming Milestones**"]


def _base_record(**overrides):
    rec = {
        "project_key": "catalogue",
        "dpm": "Dana",
        "status": "Green",
        "delta": "Feed migration finished.",
        "milestones": "Cutover — 2026-10-30",
        "risks": "None",
        "metrics": "98% SKUs synced",
        "next7": "Cleanup",
        "asks": "",
        "notes": "n/a",
        "submitted_at": "2026-10-16T09:00:00+00:00",
    }
    rec.update(overrides)
    return normalize(rec)


def _full_week():
    return [
        _base_record(project_key="catalogue"),
        _base_record(project_key="fulfilment", status="Amber", risks="Carrier capacity for peak"),
        _base_record(project_key="shopify_eu", status="Green"),
        _base_record(project_key="shopify_us", status="Red", delta="Checkout blocked by tax bug"),
        _base_record(project_key="d365", status="Green", milestones=""),
        _base_record(project_key="zendesk", status="Green"),
    ]


def _lines_after(text, header):
    lines = text.split("\n")
    idx = lines.index(header)
    body = []
    for line in lines[idx + 1:]:
        if not line:
            break
        body.append(line)
    return body


class TestExecutiveSummary:
    def test_header_snapshot_and_status_lines(self):
        out = render_executive_summary(META, _full_week())
        lines = out.split("\n")
        assert lines[0] == "**Executive Summary — 2026-10-16**"
        assert lines[1] == "RAG snapshot: 🟢 4 · 🟡 1 · 🔴 1"
        assert "[Flag:" not in out
        status = _lines_after(out, "**Status & Key Deltas**")
        assert status[0] == "- 🟢 **catalogue** — Green: Feed migration finished."
        assert status[3] == "- 🔴 **shopify_us** — Red: Checkout blocked by tax bug"
        assert len(status) == 6

    def test_exactly_three_sections_each_with_a_body(self):
        for subs in ([], _full_week(), [_base_record()]):
            out = render_executive_summary(META, subs)
            headers = [line for line in out.split("\n") if re.fullmatch(r"\*\*[^*]+\*\*", line)]
            assert headers[1:] == SECTION_HEADERS
            for header in SECTION_HEADERS:
                assert len(_lines_after(out, header)) >= 1

    def test_empty_week_uses_placeholders(self):
        out = render_executive_summary(META, [])
        assert "[Flag: missing 6/6: catalogue, fulfilment, shopify_eu, shopify_us, d365, zendesk]" in out
        assert _lines_after(out, "**Status & Key Deltas**") == ["- No project updates found."]
        assert _lines_after(out, "**Top Risks**") == ["- None flagged."]
        assert _lines_after(out, "**Upcoming Milestones**") == ["- None listed."]

    def test_risk_none_is_excluded_from_highlights(self):
        subs = [
            _base_record(project_key="catalogue", risks="None"),
            _base_record(project_key="fulfilment", risks="NONE"),
            _base_record(project_key="d365", risks=""),
            _base_record(project_key="zendesk", risks="SLA breach risk"),
        ]
        out = render_executive_summary(META, subs)
        assert _lines_after(out, "**Top Risks**") == ["- **zendesk** — SLA breach risk"]

    def test_missing_status_and_delta_fallbacks(self):
        out = render_executive_summary(META, [normalize({"project_key": "d365"})])
        assert "- ⚪ **d365** — n/a: no update" in out
        assert _lines_after(out, "**Upcoming Milestones**") == ["- None listed."]

    def test_milestones_listed_only_when_present(self):
        out = render_executive_summary(META, _full_week())
        milestones = _lines_after(out, "**Upcoming Milestones**")
        assert "- **d365** — Cutover — 2026-10-30" not in milestones
        assert len(milestones) == 5

    def test_notables_appear_before_sections(self):
        subs = [_base_record(project_key="catalogue", delta="risk of slip in launch")]
        out = render_executive_summary(META, subs)
        assert "> ⚠️ **Catalogue** — risk or blocker flagged" in out
        assert "> ⏳ **Catalogue** — timeline slip or delay" in out
        assert "> 🚀 **Catalogue** — launch or go-live" in out
        assert out.index("> 🚀") < out.index("**Status & Key Deltas**")

    def test_notables_capped_across_report(self):
        subs = [
            _base_record(project_key="catalogue", delta="risk of slip in launch"),
            _base_record(project_key="zendesk", delta="blocked and delayed"),
        ]
        out = render_executive_summary(META, subs)
        assert len([line for line in out.split("\n") if line.startswith("> ")]) == 4
        assert "> ⚠️ **Zendesk** — risk or blocker flagged" in out
        assert "> ⏳ **Zendesk**" not in out


class TestCombinedUpdate:
    def test_one_block_per_required_key_in_order(self):
        shuffled = list(reversed(_full_week()))
        out = render_combined_update(META, shuffled)
        headings = [line for line in out.split("\n") if line.startswith("### ")]
        assert headings == [f"### {k}" for k in PROJECT_KEYS]
        assert out.startswith("**Combined Update — 2026-10-16**\n\n### catalogue")

    def test_field_block_layout(self):
        out = render_combined_update(META, [_base_record()])
        block = out.split("\n\n")[1]
        assert block.split("\n") == [
            "### catalogue",
            "- **DPM:** Dana",
            "- **Status:** 🟢 Green",
            "- **Delta:** Feed migration finished.",
            "- **Milestones:** Cutover — 2026-10-30",
            "- **Risks:** None",
            "- **Metrics:** 98% SKUs synced",
            "- **Next 7 days:** Cleanup",
            "- **Asks:** None.",
            "- **Notes:** n/a",
            "- **Submitted:** 2026-10-16T09:00:00+00:00",
        ]

    def test_placeholder_fields(self):
        out = render_combined_update(META, [normalize({"project_key": "zendesk"})])
        assert "- **DPM:** —" in out
        assert "- **Status:** ⚪ —" in out
        assert "- **Asks:** None." in out

    def test_missing_projects_render_flag(self):
        out = render_combined_update(META, [_base_record(project_key="d365")])
        assert out.count("[Flag: missing submission]") == 5
        assert "### catalogue\n[Flag: missing submission]" in out


class TestMergedPairs:
    def _config(self):
        return default_config(merge_regional=True)

    def test_pair_renders_single_block_with_merged_status(self):
        out = render_combined_update(META, _full_week(), self._config())
        headings = [line for line in out.split("\n") if line.startswith("### ")]
        assert headings == [
            "### catalogue",
            "### fulfilment",
            "### Shopify (EU + US)",
            "### d365",
            "### zendesk",
        ]
        block = [b for b in out.split("\n\n") if b.startswith("### Shopify")][0]
        lines = block.split("\n")
        assert lines[1] == "- **DPM:**"
        assert lines[2] == "  - EU: Dana"
        assert lines[3] == "  - US: Dana"
        assert lines[4] == "- **Status:** 🔴 Red"
        assert lines[5] == "  - EU: 🟢 Green"
        assert lines[6] == "  - US: 🔴 Red"
        assert "  - US: Checkout blocked by tax bug" in lines

    def test_half_missing_is_flagged_in_status(self):
        subs = [_base_record(project_key="shopify_us", status="Amber")]
        out = render_combined_update(META, subs, self._config())
        block = [b for b in out.split("\n\n") if b.startswith("### Shopify")][0]
        assert "- **Status:** 🟡 Amber" in block
        assert "  - EU: [Flag: missing submission]" in block
        assert "  - EU: Dana" not in block

    def test_both_halves_missing(self):
        out = render_combined_update(META, [], self._config())
        assert "### Shopify (EU + US)\n[Flag: missing submission]" in out
        assert out.count("[Flag: missing submission]") == 5

    def test_executive_summary_is_not_merged(self):
        out = render_executive_summary(META, _full_week(), self._config())
        assert "**shopify_eu**" in out
        assert "**shopify_us**" in out


def test_custom_required_set():
    config = WeeklyConfig(required=("alpha", "beta"), labels={"alpha": "Alpha"})
    subs = [normalize({"project_key": "beta", "status": "Red", "delta": "delay"})]
    summary = render_executive_summary(META, subs, config)
    assert "[Flag: missing 1/2: alpha]" in summary
    assert "> ⏳ **beta** — timeline slip or delay" in summary
    combined = render_combined_update(META, subs, config)
    assert combined.count("### ") == 2


def test_rendering_is_idempotent():
    subs = _full_week()
    assert render_executive_summary(META, subs) == render_executive_summary(META, subs)
    assert render_combined_update(META, subs) == render_combined_update(META, subs)
