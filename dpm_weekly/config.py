from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dpm_weekly.constants import PROJECT_KEYS, PROJECT_LABELS, REGIONAL_PAIRS
from dpm_weekly.storage import DATA_DIR, SUMMARIES_DIR

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class MergedPair:
    """Two project keys rendered as one section of the combined update."""

    keys: Tuple[str, str]
    label: str
    halves: Tuple[str, str]


@dataclass(frozen=True)
class WeeklyConfig:
    required: Tuple[str, ...] = tuple(PROJECT_KEYS)
    labels: Dict[str, str] = field(default_factory=lambda: dict(PROJECT_LABELS))
    pairs: Tuple[MergedPair, ...] = ()

    def label_for(self, key: str) -> str:
        return self.labels.get(key, key)

    def pair_for(self, key: str) -> Optional[MergedPair]:
        for pair in self.pairs:
            if key in pair.keys:
                return pair
        return None


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    passcode: str = ""
    data_dir: Path = DATA_DIR
    summaries_dir: Path = SUMMARIES_DIR
    git_commit: bool = False
    git_push: bool = False
    dispatch_combine: bool = False
    merge_regional: bool = False


def default_config(merge_regional: bool = False) -> WeeklyConfig:
    pairs: List[MergedPair] = []
    if merge_regional:
        pairs = [MergedPair(keys=tuple(p["keys"]), label=p["label"], halves=tuple(p["halves"])) for p in REGIONAL_PAIRS]
    return WeeklyConfig(pairs=tuple(pairs))


def get_secret(name: str, default: str = "") -> str:
    """Environment first, then .streamlit/secrets.toml when running under Streamlit."""
    value = os.getenv(name)
    if value:
        return value
    try:
        import streamlit as st

        value = st.secrets.get(name)
    except Exception:
        value = None
    return str(value) if value else default


def _flag(name: str) -> bool:
    return get_secret(name).strip().lower() in _TRUTHY


def load_settings() -> Settings:
    return Settings(
        gemini_api_key=get_secret("GEMINI_API_KEY"),
        gemini_model=get_secret("GEMINI_MODEL", "gemini-2.5-flash"),
        passcode=get_secret("PASSCODE"),
        data_dir=Path(get_secret("DPM_DATA_DIR", str(DATA_DIR))),
        summaries_dir=Path(get_secret("DPM_SUMMARIES_DIR", str(SUMMARIES_DIR))),
        git_commit=_flag("DPM_GIT_COMMIT"),
        git_push=_flag("DPM_GIT_PUSH"),
        dispatch_combine=_flag("DPM_DISPATCH_COMBINE"),
        merge_regional=_flag("DPM_MERGE_REGIONAL"),
    )
