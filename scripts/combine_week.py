#!/usr/bin/env python
"""
Combine one week's project submissions into the weekly reports.

Usage:
    python scripts/combine_week.py                       # today's date as week
    python scripts/combine_week.py --week 2026-10-16
    python scripts/combine_week.py --week 2026-10-16 --allow-partial --commit
    python scripts/combine_week.py --week 2026-10-16 --commit --push

Reads data/<week>/<project_key>.json, writes summaries/<week>.md and
summaries/<week>.json. Without --allow-partial the job waits (exit 0, no
output) until every required project has submitted, and stops with exit 1 if
any submission file is unreadable.

Environment variables:
    DPM_DATA_DIR, DPM_SUMMARIES_DIR, DPM_GIT_COMMIT, DPM_GIT_PUSH, DPM_MERGE_REGIONAL
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dpm_weekly.combine import run_combine
from dpm_weekly.config import default_config, load_settings


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Combine weekly DPM submissions into Markdown reports.")
    parser.add_argument("--week", type=str, default=date.today().isoformat(), help="Week ending, YYYY-MM-DD")
    parser.add_argument("--allow-partial", action="store_true", help="Render a flagged draft when projects are missing")
    parser.add_argument("--commit", action="store_true", help="git commit the written summaries")
    parser.add_argument("--push", action="store_true", help="git push after committing")
    args = parser.parse_args(argv)

    settings = load_settings()
    push = args.push or settings.git_push
    return run_combine(
        args.week,
        settings,
        default_config(merge_regional=settings.merge_regional),
        allow_partial=args.allow_partial,
        commit=args.commit or settings.git_commit or push,
        push=push,
    )


if __name__ == "__main__":
    raise SystemExit(main())
