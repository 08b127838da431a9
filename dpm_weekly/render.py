from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from dpm_weekly.completeness import check_completeness, index_by_key
from dpm_weekly.config import MergedPair, WeeklyConfig
from dpm_weekly.constants import COMBINED_FIELDS, MISSING_FLAG
from dpm_weekly.normalize import RunMetadata, Submission, has_value, is_no_risk, safe
from dpm_weekly.notables import detect_notables
from dpm_weekly.status import format_snapshot, merge_severity, status_glyph, tally


def _section(title: str, body: List[str], placeholder: str) -> List[str]:
    return [f"**{title}**"] + (body or [f"- {placeholder}"])


def render_executive_summary(
    meta: RunMetadata,
    submissions: Iterable[Submission],
    config: Optional[WeeklyConfig] = None,
) -> str:
    config = config or WeeklyConfig()
    by_key = index_by_key(submissions)
    completeness = check_completeness(config.required, by_key.values())
    have = [by_key[k] for k in completeness.present]

    lines: List[str] = [f"**Executive Summary — {meta.week_ending}**"]
    if completeness.missing:
        total = len(config.required)
        lines.append(
            f"[Flag: missing {len(completeness.missing)}/{total}: {', '.join(completeness.missing)}]"
        )
    lines.append(format_snapshot(tally(have)))
    for notable in detect_notables(have, config.labels, required=config.required):
        lines.append(f"> {notable}")
    lines.append("")

    statuses = [
        f"- {status_glyph(s.status)} **{s.project_key}** — "
        f"{s.status if has_value(s.status) else 'n/a'}: {s.delta if has_value(s.delta) else 'no update'}"
        for s in have
    ]
    risks = [f"- **{s.project_key}** — {s.risks}" for s in have if not is_no_risk(s.risks)]
    milestones = [f"- **{s.project_key}** — {s.milestones}" for s in have if has_value(s.milestones)]

    lines += _section("Status & Key Deltas", statuses, "No project updates found.")
    lines.append("")
    lines += _section("Top Risks", risks, "None flagged.")
    lines.append("")
    lines += _section("Upcoming Milestones", milestones, "None listed.")
    return "\n".join(lines)


def _field_value(sub: Submission, field: str, fallback: str) -> str:
    value = safe(getattr(sub, field), fallback)
    if field == "status":
        return f"{status_glyph(sub.status)} {value}"
    return value


def _project_block(key: str, sub: Optional[Submission]) -> str:
    if sub is None:
        return f"### {key}\n{MISSING_FLAG}"
    lines = [f"### {key}"]
    for field, label, fallback in COMBINED_FIELDS:
        lines.append(f"- **{label}:** {_field_value(sub, field, fallback)}")
    return "\n".join(lines)


def _pair_block(pair: MergedPair, by_key: Dict[str, Submission]) -> str:
    halves = [(half, by_key.get(key)) for half, key in zip(pair.halves, pair.keys)]
    present = [(half, sub) for half, sub in halves if sub is not None]
    if not present:
        return f"### {pair.label}\n{MISSING_FLAG}"

    merged = present[0][1].status
    for _half, sub in present[1:]:
        merged = merge_severity(merged, sub.status)

    lines = [f"### {pair.label}"]
    for field, label, fallback in COMBINED_FIELDS:
        if field == "status":
            lines.append(f"- **{label}:** {status_glyph(merged)} {safe(merged)}")
            for half, sub in halves:
                value = MISSING_FLAG if sub is None else _field_value(sub, field, fallback)
                lines.append(f"  - {half}: {value}")
            continue
        lines.append(f"- **{label}:**")
        for half, sub in present:
            lines.append(f"  - {half}: {_field_value(sub, field, fallback)}")
    return "\n".join(lines)


def render_combined_update(
    meta: RunMetadata,
    submissions: Iterable[Submission],
    config: Optional[WeeklyConfig] = None,
) -> str:
    config = config or WeeklyConfig()
    by_key = index_by_key(submissions)

    sections: List[str] = []
    rendered_pairs = set()
    for key in config.required:
        pair = config.pair_for(key)
        if pair is None:
            sections.append(_project_block(key, by_key.get(key)))
            continue
        if pair.label in rendered_pairs:
            continue
        rendered_pairs.add(pair.label)
        sections.append(_pair_block(pair, by_key))

    return "\n\n".join([f"**Combined Update — {meta.week_ending}**"] + sections)
