from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from dpm_weekly.completeness import index_by_key
from dpm_weekly.constants import MAX_NOTABLES, NOTABLE_RULES
from dpm_weekly.normalize import Submission, has_value


def _matching_rules(delta: str) -> List[Dict]:
    text = delta.lower()
    return [rule for rule in NOTABLE_RULES if any(term in text for term in rule["terms"])]


def detect_notables(
    submissions: Iterable[Submission],
    labels: Dict[str, str],
    required: Optional[Sequence[str]] = None,
    limit: int = MAX_NOTABLES,
) -> List[str]:
    """Keyword-triggered highlights from each project's delta text.

    Projects are scanned in `required` order when given (input order otherwise),
    one line per matching category, truncated to the first `limit` lines.
    """
    by_key = index_by_key(submissions)
    keys = [k for k in required if k in by_key] if required is not None else list(by_key)

    out: List[str] = []
    for key in keys:
        delta = by_key[key].delta
        if not has_value(delta):
            continue
        label = labels.get(key, key)
        for rule in _matching_rules(delta):
            out.append(f"{rule['glyph']} **{label}** — {rule['suffix']}")
    return out[:limit]
