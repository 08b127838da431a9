"""Weekly combine job: gate on submissions, render, write, optionally publish.

Shared by `scripts/combine_week.py` and the ingest "combine after save" hook.
Progress goes to stdout with a `[combine]` prefix, failures to stderr; the
return value is a process exit code.
"""
from __future__ import annotations

import sys
from datetime import datetime
from typing import Optional

from dpm_weekly.aggregate import MalformedInput, aggregate
from dpm_weekly.config import Settings, WeeklyConfig
from dpm_weekly.storage import commit_paths, load_week, present_keys, push_commits, week_dir, write_summaries


def valid_week(week: str) -> bool:
    try:
        datetime.strptime(week, "%Y-%m-%d")
    except (TypeError, ValueError):
        return False
    return len(week) == 10


def run_combine(
    week: str,
    settings: Settings,
    config: Optional[WeeklyConfig] = None,
    allow_partial: bool = False,
    commit: bool = False,
    push: bool = False,
) -> int:
    config = config or WeeklyConfig()
    if not valid_week(week):
        print("[combine] ERROR: week parameter missing or invalid (YYYY-MM-DD).", file=sys.stderr)
        return 1
    if not week_dir(settings.data_dir, week).exists():
        print(f"[combine] No folder for week {week}. Exiting.")
        return 0

    have = present_keys(settings.data_dir, week, config.required)
    total = len(config.required)
    if len(have) != total and not allow_partial:
        print(f"[combine] Waiting for all submissions for {week}. Have {len(have)}/{total}: {', '.join(have)}")
        return 0

    records, errors = load_week(settings.data_dir, week)
    if errors and not allow_partial:
        for err in errors:
            print(f"[combine] ERROR: {err}", file=sys.stderr)
        return 1
    for err in errors:
        print(f"[combine] WARNING: {err}", file=sys.stderr)

    payload = {
        "run_metadata": {"mode": "cli", "week_ending": week, "hard_gate": not allow_partial},
        "submissions": records,
    }
    try:
        report = aggregate(payload, config).to_dict()
    except MalformedInput as e:
        print(f"[combine] ERROR: {e}", file=sys.stderr)
        return 1

    md_path, json_path = write_summaries(settings.summaries_dir, week, report)
    print(f"[combine] Wrote {md_path} and {json_path}")
    if report["missing"]:
        print(f"[combine] Draft: missing {', '.join(report['missing'])}")
    for skipped in report["skipped"]:
        print(f"[combine] Skipped submission #{skipped['index']}: {skipped['error']}")

    if not (commit or push):
        return 0
    try:
        committed = commit_paths([md_path, json_path], f"Add combined summary for {week}")
        print("[combine] Committed." if committed else "[combine] No changes to commit.")
        if push:
            push_commits(md_path.resolve().parent)
            print("[combine] Pushed.")
    except RuntimeError as e:
        print(f"[combine] ERROR: {e}", file=sys.stderr)
        return 1
    return 0
