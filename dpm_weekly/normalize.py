from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping

from dpm_weekly.constants import ASKS_FALLBACK, NO_RISK_VALUES, PLACEHOLDER


class InvalidSubmission(ValueError):
    """A raw record that cannot be identified (no project_key)."""


@dataclass(frozen=True)
class Submission:
    project_key: str
    dpm: str = PLACEHOLDER
    status: str = PLACEHOLDER
    delta: str = PLACEHOLDER
    milestones: str = PLACEHOLDER
    risks: str = PLACEHOLDER
    metrics: str = PLACEHOLDER
    next7: str = PLACEHOLDER
    asks: str = ASKS_FALLBACK
    notes: str = PLACEHOLDER
    submitted_at: str = PLACEHOLDER

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class RunMetadata:
    week_ending: str
    context: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "RunMetadata":
        week = _text(raw.get("week_ending")) or "unknown-week"
        context = {k: v for k, v in raw.items() if k != "week_ending"}
        return cls(week_ending=week, context=context)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "; ".join(str(x).strip() for x in value if x is not None and str(x).strip())
    return str(value).strip()


def safe(value: Any, fallback: str = PLACEHOLDER) -> str:
    s = _text(value)
    return s if s else fallback


def has_value(value: Any) -> bool:
    """True when a field carries real content (not blank, not the placeholder)."""
    s = _text(value)
    return bool(s) and s != PLACEHOLDER


def is_no_risk(value: Any) -> bool:
    return not has_value(value) or _text(value).lower() in NO_RISK_VALUES


def normalize(raw: Any) -> Submission:
    """Coerce a submitted object into a Submission.

    Blank or absent fields fall back to the placeholder ("None." for asks).
    Anything that is not a mapping is read as an empty record, which then
    fails on the missing project_key.
    """
    src: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    key = _text(src.get("project_key"))
    if not key:
        raise InvalidSubmission("Missing project_key")
    return Submission(
        project_key=key,
        dpm=safe(src.get("dpm")),
        status=safe(src.get("status")),
        delta=safe(src.get("delta")),
        milestones=safe(src.get("milestones")),
        risks=safe(src.get("risks")),
        metrics=safe(src.get("metrics")),
        next7=safe(src.get("next7")),
        asks=safe(src.get("asks"), ASKS_FALLBACK),
        notes=safe(src.get("notes")),
        submitted_at=safe(src.get("submitted_at")),
    )
