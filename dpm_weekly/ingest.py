from __future__ import annotations

import hmac
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from dpm_weekly.combine import run_combine
from dpm_weekly.config import Settings, WeeklyConfig
from dpm_weekly.storage import commit_paths, push_commits, save_submission
from dpm_weekly.summarizer import Summarizer, summarize_submission


@dataclass
class IngestResult:
    ok: bool
    status: int
    path: Optional[Path] = None
    record: Optional[Dict[str, Any]] = None
    errors: List[str] = field(default_factory=list)
    log: Dict[str, Any] = field(default_factory=dict)


def _must(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _is_iso_date(s: str) -> bool:
    try:
        datetime.strptime(s, "%Y-%m-%d")
        return True
    except ValueError:
        return False


def validate_ingest_request(req: Mapping[str, Any], allowed_keys: Sequence[str]) -> Tuple[bool, List[str]]:
    errs: List[str] = []
    if req.get("project_key") not in set(allowed_keys):
        errs.append("Invalid project_key")
    week = req.get("week_ending")
    if not _must(week) or len(week) != 10 or not _is_iso_date(week):
        errs.append("Invalid week_ending")
    if not _must(req.get("dpm")):
        errs.append("Missing dpm")
    if not _must(req.get("raw_update")):
        errs.append("raw_update required")
    return len(errs) == 0, errs


def check_passcode(supplied: Any, expected: str) -> bool:
    if not expected:
        return True
    return hmac.compare_digest(str(supplied or "").encode("utf-8"), expected.encode("utf-8"))


def ingest_update(
    req: Mapping[str, Any],
    summarizer: Summarizer,
    settings: Settings,
    config: Optional[WeeklyConfig] = None,
) -> IngestResult:
    """Validate, summarize and store one raw weekly update.

    With `dispatch_combine` set, the weekly combine runs for the same week
    after the save; its exit code lands in `log["combine_exit_code"]`.
    """
    config = config or WeeklyConfig()
    if not check_passcode(req.get("passcode"), settings.passcode):
        return IngestResult(ok=False, status=401, errors=["Unauthorized (bad passcode)"])

    ok, errs = validate_ingest_request(req, config.required)
    if not ok:
        return IngestResult(ok=False, status=400, errors=errs)

    project_key = req["project_key"]
    week = req["week_ending"].strip()
    dpm = req["dpm"].strip()
    record, log = summarize_submission(summarizer, req["raw_update"], project_key, week, dpm)
    if record is None:
        return IngestResult(ok=False, status=502, errors=list(log.get("errors") or []), log=log)

    path = save_submission(settings.data_dir, record)
    try:
        if settings.git_commit or settings.git_push:
            log["committed"] = commit_paths([path], f"chore: ingest {project_key} for {week}")
        if settings.git_push:
            push_commits(path.resolve().parent)
            log["pushed"] = True
    except RuntimeError as e:
        return IngestResult(ok=False, status=500, path=path, record=record, errors=[str(e)], log=log)

    if settings.dispatch_combine:
        # Waits (exit 0) until the week is complete, like the scheduled job.
        log["combine_exit_code"] = run_combine(
            week,
            settings,
            config,
            commit=settings.git_commit or settings.git_push,
            push=settings.git_push,
        )
    return IngestResult(ok=True, status=200, path=path, record=record, log=log)
