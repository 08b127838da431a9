from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from dpm_weekly.normalize import Submission


@dataclass(frozen=True)
class Completeness:
    present: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing


def index_by_key(submissions: Iterable[Submission]) -> Dict[str, Submission]:
    # Later submissions for the same project supersede earlier ones.
    by_key: Dict[str, Submission] = {}
    for sub in submissions:
        by_key[sub.project_key] = sub
    return by_key


def check_completeness(required: Sequence[str], submissions: Iterable[Submission]) -> Completeness:
    by_key = index_by_key(submissions)
    present = [k for k in required if k in by_key]
    missing = [k for k in required if k not in by_key]
    return Completeness(present=present, missing=missing)
