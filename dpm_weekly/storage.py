from __future__ import annotations

import json
import re
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = ROOT / "data"
SUMMARIES_DIR = ROOT / "summaries"

_WEEK_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def week_dir(data_dir: Path, week: str) -> Path:
    return Path(data_dir) / week


def submission_path(data_dir: Path, week: str, project_key: str) -> Path:
    return week_dir(data_dir, week) / f"{project_key}.json"


def save_submission(data_dir: Path, record: Dict[str, Any]) -> Path:
    """Write one project's record for its week. Overwrites: last write wins."""
    path = submission_path(data_dir, record["week_ending"], record["project_key"])
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(record, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path


def present_keys(data_dir: Path, week: str, required: Sequence[str]) -> List[str]:
    return [k for k in required if submission_path(data_dir, week, k).exists()]


def load_week(data_dir: Path, week: str) -> Tuple[List[Dict[str, Any]], List[str]]:
    """Load every JSON document for a week, sorted by file name.

    Unreadable or non-object files, and files whose `project_key` disagrees
    with the file name, are reported in the error list and skipped.
    """
    wdir = week_dir(data_dir, week)
    if not wdir.exists():
        return [], []
    rows: List[Dict[str, Any]] = []
    errors: List[str] = []
    for path in sorted(wdir.glob("*.json")):
        try:
            obj = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            errors.append(f"Invalid JSON in {path}: {e}")
            continue
        if not isinstance(obj, dict):
            errors.append(f"Invalid JSON in {path}: expected an object")
            continue
        key = obj.setdefault("project_key", path.stem)
        if key != path.stem:
            errors.append(f"project_key mismatch in {path}: file holds {key!r}")
            continue
        rows.append(obj)
    return rows, errors


def list_weeks(data_dir: Path) -> List[str]:
    root = Path(data_dir)
    if not root.exists():
        return []
    return sorted((p.name for p in root.iterdir() if p.is_dir() and _WEEK_RE.match(p.name)), reverse=True)


def write_summaries(summaries_dir: Path, week: str, report: Dict[str, Any]) -> Tuple[Path, Path]:
    out = Path(summaries_dir)
    out.mkdir(parents=True, exist_ok=True)
    md_path = out / f"{week}.md"
    json_path = out / f"{week}.json"
    md_path.write_text(
        f"{report['executive_summary_md']}\n\n{report['combined_update_md']}\n",
        encoding="utf-8",
    )
    json_path.write_text(json.dumps(report, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return md_path, json_path


def _git_cwd(paths: Sequence[Path], cwd: Optional[Path]) -> Path:
    if cwd is not None:
        return Path(cwd)
    return Path(paths[0]).resolve().parent if paths else ROOT


def commit_paths(paths: Sequence[Path], message: str, cwd: Optional[Path] = None) -> bool:
    """git add + commit. Returns False when there was nothing to commit.

    Runs inside the directory of the first path unless `cwd` is given, so data
    kept in a separate checkout commits to that checkout.
    """
    cwd = _git_cwd(paths, cwd)
    try:
        subprocess.run(["git", "add", *[str(Path(p).resolve()) for p in paths]], cwd=cwd, check=True, capture_output=True, text=True)
        diff = subprocess.run(["git", "diff", "--cached", "--quiet"], cwd=cwd, capture_output=True, text=True)
        if diff.returncode == 0:
            return False
        subprocess.run(["git", "commit", "-m", message], cwd=cwd, check=True, capture_output=True, text=True)
    except (OSError, subprocess.CalledProcessError) as e:
        detail = getattr(e, "stderr", "") or str(e)
        raise RuntimeError(f"git commit failed: {detail}") from e
    return True


def push_commits(cwd: Path, remote: str = "origin") -> None:
    """git push the current branch to `remote`."""
    try:
        subprocess.run(["git", "push", remote, "HEAD"], cwd=cwd, check=True, capture_output=True, text=True)
    except (OSError, subprocess.CalledProcessError) as e:
        detail = getattr(e, "stderr", "") or str(e)
        raise RuntimeError(f"git push failed: {detail}") from e
