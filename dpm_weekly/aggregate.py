"""Weekly aggregation entry point.

Takes the `{run_metadata, submissions}` payload produced by the combine job or
the report page, normalizes every submission and renders the executive summary
and the combined update. Business gaps (missing projects, blank fields) show up
as flag/placeholder text in the Markdown; only a structurally broken payload
raises.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dpm_weekly.completeness import Completeness, check_completeness, index_by_key
from dpm_weekly.config import WeeklyConfig
from dpm_weekly.normalize import InvalidSubmission, RunMetadata, Submission, normalize
from dpm_weekly.render import render_combined_update, render_executive_summary
from dpm_weekly.status import classify, status_glyph


class MalformedInput(ValueError):
    """Top-level payload is not `{run_metadata: {...}, submissions: [...]}`."""


@dataclass(frozen=True)
class WeeklyReport:
    week_ending: str
    executive_summary_md: str
    combined_update_md: str
    completeness: Completeness
    skipped: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "week_ending": self.week_ending,
            "executive_summary_md": self.executive_summary_md,
            "combined_update_md": self.combined_update_md,
            "present": list(self.completeness.present),
            "missing": list(self.completeness.missing),
            "skipped": list(self.skipped),
        }


def parse_payload(body: Any) -> Tuple[RunMetadata, List[Any]]:
    if not isinstance(body, Mapping):
        raise MalformedInput("Payload must be a JSON object")
    meta_raw = body.get("run_metadata")
    if meta_raw is None:
        meta_raw = {}
    if not isinstance(meta_raw, Mapping):
        raise MalformedInput("run_metadata must be an object")
    subs = body.get("submissions")
    if subs is None:
        subs = []
    if not isinstance(subs, list):
        raise MalformedInput("submissions must be a list")
    return RunMetadata.from_dict(meta_raw), subs


def normalize_all(raw_submissions: List[Any]) -> Tuple[List[Submission], List[Dict[str, Any]]]:
    """Normalize each raw record; unidentifiable ones are skipped, not fatal."""
    subs: List[Submission] = []
    skipped: List[Dict[str, Any]] = []
    for idx, raw in enumerate(raw_submissions):
        try:
            subs.append(normalize(raw))
        except InvalidSubmission as e:
            skipped.append({"index": idx, "error": str(e)})
    return subs, skipped


def week_overview(raw_submissions: List[Any], config: Optional[WeeklyConfig] = None) -> List[Dict[str, str]]:
    """One row per required project for the status table on the home page."""
    config = config or WeeklyConfig()
    subs, _skipped = normalize_all(raw_submissions)
    by_key = index_by_key(subs)
    rows: List[Dict[str, str]] = []
    for key in config.required:
        sub = by_key.get(key)
        rows.append(
            {
                "project": config.label_for(key),
                "project_key": key,
                "rag": status_glyph(sub.status) if sub else "",
                "tier": classify(sub.status).name.title() if sub else "Missing",
                "status": sub.status if sub else "missing",
                "dpm": sub.dpm if sub else "",
                "submitted_at": sub.submitted_at if sub else "",
            }
        )
    return rows


def aggregate(body: Any, config: Optional[WeeklyConfig] = None) -> WeeklyReport:
    config = config or WeeklyConfig()
    meta, raw_submissions = parse_payload(body)
    subs, skipped = normalize_all(raw_submissions)
    return WeeklyReport(
        week_ending=meta.week_ending,
        executive_summary_md=render_executive_summary(meta, subs, config),
        combined_update_md=render_combined_update(meta, subs, config),
        completeness=check_completeness(config.required, subs),
        skipped=skipped,
    )
