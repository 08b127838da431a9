from __future__ import annotations

from enum import IntEnum
from typing import Dict, Iterable

from dpm_weekly.normalize import Submission


class SeverityTier(IntEnum):
    UNKNOWN = 0
    GREEN = 1
    AMBER = 2
    RED = 3


# Amber is always 🟡 and Unknown always ⚪, in both reports.
_GLYPHS = {
    SeverityTier.GREEN: "🟢",
    SeverityTier.AMBER: "🟡",
    SeverityTier.RED: "🔴",
    SeverityTier.UNKNOWN: "⚪",
}

TALLY_ORDER = [SeverityTier.GREEN, SeverityTier.AMBER, SeverityTier.RED, SeverityTier.UNKNOWN]


def classify(status: str) -> SeverityTier:
    s = (status or "").strip().lower()
    if s.startswith("g"):
        return SeverityTier.GREEN
    if s.startswith("a") or s.startswith("y"):
        return SeverityTier.AMBER
    if s.startswith("r"):
        return SeverityTier.RED
    return SeverityTier.UNKNOWN


def glyph(tier: SeverityTier) -> str:
    return _GLYPHS[tier]


def status_glyph(status: str) -> str:
    return glyph(classify(status))


def tally(submissions: Iterable[Submission]) -> Dict[SeverityTier, int]:
    counts = {tier: 0 for tier in TALLY_ORDER}
    for sub in submissions:
        counts[classify(sub.status)] += 1
    return counts


def format_snapshot(counts: Dict[SeverityTier, int]) -> str:
    # Unknown is counted but left out of the printed snapshot.
    parts = [f"{glyph(t)} {counts.get(t, 0)}" for t in TALLY_ORDER if t != SeverityTier.UNKNOWN]
    return "RAG snapshot: " + " · ".join(parts)


def merge_severity(a: str, b: str) -> str:
    """Return whichever status is more severe; ties keep `a`."""
    return b if classify(b) > classify(a) else a
