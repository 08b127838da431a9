import json
import shutil
import subprocess
from pathlib import Path

import pytest

from dpm_weekly.config import Settings
from dpm_weekly.storage import (
    DATA_DIR,
    ROOT,
    SUMMARIES_DIR,
    commit_paths,
    list_weeks,
    load_week,
    present_keys,
    push_commits,
    save_submission,
    submission_path,
    write_summaries,
)


def _rec(key, week="2026-10-16", **overrides):
    rec = {"week_ending": week, "project_key": key, "dpm": "Dana", "status": "Green"}
    rec.update(overrides)
    return rec


def test_save_and_load_week(tmp_path):
    path = save_submission(tmp_path, _rec("zendesk"))
    save_submission(tmp_path, _rec("catalogue"))
    assert path == tmp_path / "2026-10-16" / "zendesk.json"
    assert json.loads(path.read_text(encoding="utf-8"))["dpm"] == "Dana"

    records, errors = load_week(tmp_path, "2026-10-16")
    assert errors == []
    assert [r["project_key"] for r in records] == ["catalogue", "zendesk"]


def test_last_write_wins(tmp_path):
    save_submission(tmp_path, _rec("d365", status="Green"))
    save_submission(tmp_path, _rec("d365", status="Red"))
    records, _ = load_week(tmp_path, "2026-10-16")
    assert len(records) == 1
    assert records[0]["status"] == "Red"


def test_unreadable_files_are_reported(tmp_path):
    save_submission(tmp_path, _rec("catalogue"))
    wdir = tmp_path / "2026-10-16"
    (wdir / "d365.json").write_text("{not json", encoding="utf-8")
    (wdir / "zendesk.json").write_text("[1]", encoding="utf-8")
    records, errors = load_week(tmp_path, "2026-10-16")
    assert [r["project_key"] for r in records] == ["catalogue"]
    assert len(errors) == 2
    assert all(e.startswith("Invalid JSON in") for e in errors)


def test_project_key_defaults_to_file_name(tmp_path):
    wdir = tmp_path / "2026-10-16"
    wdir.mkdir()
    (wdir / "fulfilment.json").write_text(json.dumps({"status": "Amber"}), encoding="utf-8")
    records, _ = load_week(tmp_path, "2026-10-16")
    assert records[0]["project_key"] == "fulfilment"


def test_missing_week_is_empty(tmp_path):
    assert load_week(tmp_path, "2026-01-02") == ([], [])


def test_present_keys_and_list_weeks(tmp_path):
    save_submission(tmp_path, _rec("zendesk"))
    save_submission(tmp_path, _rec("catalogue", week="2026-10-09"))
    (tmp_path / "scratch").mkdir()
    assert present_keys(tmp_path, "2026-10-16", ["catalogue", "zendesk"]) == ["zendesk"]
    assert list_weeks(tmp_path) == ["2026-10-16", "2026-10-09"]
    assert list_weeks(tmp_path / "nope") == []
    assert submission_path(tmp_path, "2026-10-16", "zendesk").exists()


def test_write_summaries(tmp_path):
    report = {"executive_summary_md": "**Executive Summary**", "combined_update_md": "**Combined Update**"}
    md_path, json_path = write_summaries(tmp_path / "summaries", "2026-10-16", report)
    assert md_path.read_text(encoding="utf-8") == "**Executive Summary**\n\n**Combined Update**\n"
    assert json.loads(json_path.read_text(encoding="utf-8")) == report


def test_mismatched_project_key_is_reported(tmp_path):
    wdir = tmp_path / "2026-10-16"
    wdir.mkdir()
    (wdir / "catalogue.json").write_text(json.dumps({"project_key": "zendesk"}), encoding="utf-8")
    records, errors = load_week(tmp_path, "2026-10-16")
    assert records == []
    assert errors == [f"project_key mismatch in {wdir / 'catalogue.json'}: file holds 'zendesk'"]


def test_default_dirs_are_anchored_to_repo_root():
    assert ROOT == Path(__file__).resolve().parents[1]
    assert Settings().data_dir == DATA_DIR == ROOT / "data"
    assert Settings().summaries_dir == SUMMARIES_DIR == ROOT / "summaries"


# ---------------------------------------------------------------------------
# git helpers
# ---------------------------------------------------------------------------

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(cwd, *args):
    return subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True).stdout.strip()


def _init_repo(path):
    path.mkdir(parents=True, exist_ok=True)
    _git(path, "init", "-b", "main")
    _git(path, "config", "user.name", "Update Combiner")
    _git(path, "config", "user.email", "bot@example.com")
    _git(path, "config", "commit.gpgsign", "false")
    return path


@needs_git
def test_commit_paths_commits_then_reports_no_changes(tmp_path):
    repo = _init_repo(tmp_path / "repo")
    md_path, json_path = write_summaries(repo / "summaries", "2026-10-16", {"executive_summary_md": "a", "combined_update_md": "b"})

    assert commit_paths([md_path, json_path], "Add combined summary for 2026-10-16") is True
    assert _git(repo, "log", "--format=%s") == "Add combined summary for 2026-10-16"
    assert _git(repo, "status", "--porcelain") == ""

    assert commit_paths([md_path, json_path], "Add combined summary for 2026-10-16") is False
    assert _git(repo, "rev-list", "--count", "HEAD") == "1"


@needs_git
def test_commit_paths_outside_a_repo_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.parent))
    plain = tmp_path / "plain"
    plain.mkdir()
    path = plain / "note.md"
    path.write_text("x", encoding="utf-8")
    with pytest.raises(RuntimeError, match="git commit failed"):
        commit_paths([path], "nope")


@needs_git
def test_push_commits_updates_remote(tmp_path):
    remote = tmp_path / "remote.git"
    _git(tmp_path, "init", "--bare", "-b", "main", str(remote))
    repo = _init_repo(tmp_path / "repo")
    _git(repo, "remote", "add", "origin", str(remote))
    path = save_submission(repo / "data", _rec("zendesk"))

    assert commit_paths([path], "chore: ingest zendesk for 2026-10-16")
    push_commits(repo)
    assert _git(tmp_path, "--git-dir", str(remote), "rev-parse", "main") == _git(repo, "rev-parse", "HEAD")


@needs_git
def test_push_without_remote_raises(tmp_path):
    repo = _init_repo(tmp_path / "repo")
    with pytest.raises(RuntimeError, match="git push failed"):
        push_commits(repo)
