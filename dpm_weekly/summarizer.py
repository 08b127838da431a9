from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from dpm_weekly.config import Settings
from dpm_weekly.constants import ALLOWED_STATUS, PROJECT_KEYS

# (raw_text, project_key, week_ending, dpm) -> flat submission dict
Summarizer = Callable[[str, str, str, str], Dict[str, Any]]

_HEURISTIC_DELTA_CHARS = 240


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def submission_response_schema() -> Dict[str, Any]:
    properties = {
        "week_ending": {"type": "STRING", "pattern": r"^\d{4}-\d{2}-\d{2}$"},
        "project_key": {"type": "STRING", "enum": list(PROJECT_KEYS)},
        "dpm": {"type": "STRING"},
        "status": {"type": "STRING", "enum": sorted(ALLOWED_STATUS)},
        "delta": {"type": "STRING"},
        "milestones": {"type": "STRING"},
        "risks": {"type": "STRING"},
        "metrics": {"type": "STRING"},
        "next7": {"type": "STRING"},
        "asks": {"type": "STRING"},
        "notes": {"type": "STRING"},
    }
    return {"type": "OBJECT", "properties": properties, "required": list(properties)}


def summary_prompt(raw: str, project_key: str, week_ending: str, dpm: str) -> str:
    return (
        "You convert raw weekly project updates into a strict JSON object. "
        "Return JSON only matching the schema. No markdown, no code fences.\n\n"
        "FIELDS\n"
        "- week_ending: YYYY-MM-DD\n"
        f"- project_key: one of {' | '.join(PROJECT_KEYS)}\n"
        "- dpm: the delivery project manager's name\n"
        "- status: Green, Amber or Red only\n"
        "- delta: 1-3 sentences on the key change this week\n"
        "- milestones: 'Milestone — YYYY-MM-DD' entries\n"
        "- risks: concise risk summary, or 'None identified.'\n"
        "- metrics: key KPI, or 'n/a'\n"
        "- next7: what happens in the next 7 days\n"
        "- asks: help or decisions required, or 'None.'\n"
        "- notes: extra context, or 'n/a'\n\n"
        "If a field is missing in the raw text, fill a concise best effort from context; "
        "otherwise set a short default ('None.', 'n/a'). Use only the provided text.\n\n"
        "INPUT:\n"
        + json.dumps(
            {"week_ending": week_ending, "project_key": project_key, "dpm": dpm, "raw_update": raw},
            ensure_ascii=False,
        )
    )


def flat_template(
    project_key: str,
    week_ending: str,
    dpm: str,
    status: str = "Green",
    delta: str = "",
    milestones: str = "",
    risks: str = "",
    metrics: str = "",
    next7: str = "",
    asks: str = "",
    notes: str = "",
    **_ignored: Any,
) -> Dict[str, Any]:
    return {
        "week_ending": week_ending,
        "project_key": project_key,
        "dpm": dpm,
        "status": status,
        "delta": delta,
        "milestones": milestones,
        "risks": risks,
        "metrics": metrics,
        "next7": next7,
        "asks": asks,
        "notes": notes,
        "submitted_at": utc_now_iso(),
    }


def heuristic_summarize(raw: str, project_key: str, week_ending: str, dpm: str) -> Dict[str, Any]:
    """No-LLM fallback: keep the start of the raw text as the delta."""
    rec = flat_template(project_key=project_key, week_ending=week_ending, dpm=dpm)
    rec["delta"] = (raw or "").strip()[:_HEURISTIC_DELTA_CHARS] or "No delta provided."
    rec["risks"] = "None identified."
    rec["metrics"] = "n/a"
    rec["next7"] = "n/a"
    rec["asks"] = "None."
    return rec


def _extract_usage(resp: Any, model_used: str) -> Dict[str, Any]:
    usage = getattr(resp, "usage_metadata", None)
    return {
        "model": model_used,
        "prompt_tokens": getattr(usage, "prompt_token_count", None),
        "output_tokens": getattr(usage, "candidates_token_count", None),
        "total_tokens": getattr(usage, "total_token_count", None),
    }


class GeminiSummarizer:
    """Summarizer backed by a single Gemini call with a JSON response schema."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        self.api_key = api_key
        self.model = model
        self.last_usage: Optional[Dict[str, Any]] = None

    def __call__(self, raw: str, project_key: str, week_ending: str, dpm: str) -> Dict[str, Any]:
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY is not set. Set it in .streamlit/secrets.toml or as an environment variable.")
        try:
            from google import genai
            from google.genai import types
        except Exception as e:
            raise RuntimeError("google-genai is not installed. Install it with: pip install google-genai") from e

        client = genai.Client(api_key=self.api_key)
        try:
            resp = client.models.generate_content(
                model=self.model,
                contents=summary_prompt(raw, project_key, week_ending, dpm),
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=submission_response_schema(),
                    temperature=0.2,
                ),
            )
        except Exception as e:
            raise RuntimeError(f"Gemini API call failed: {e}") from e

        self.last_usage = _extract_usage(resp, self.model)
        text = (resp.text or "").strip()
        if not text:
            raise RuntimeError("Gemini API returned empty response text.")
        try:
            rec = json.loads(text)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Gemini response is not valid JSON: {e}") from e
        if not isinstance(rec, dict):
            raise RuntimeError("Gemini response must be a JSON object")
        return rec


def pick_summarizer(settings: Settings) -> Summarizer:
    if settings.gemini_api_key:
        return GeminiSummarizer(settings.gemini_api_key, model=settings.gemini_model)
    return heuristic_summarize


def summarize_submission(
    summarizer: Summarizer,
    raw: str,
    project_key: str,
    week_ending: str,
    dpm: str,
) -> Tuple[Optional[Dict[str, Any]], Dict[str, Any]]:
    """Run one summarizer call. A failure yields (None, log), never an exception."""
    log: Dict[str, Any] = {
        "summarizer": getattr(summarizer, "__name__", type(summarizer).__name__),
        "attempted_at": utc_now_iso(),
        "errors": [],
    }
    try:
        flat = summarizer(raw, project_key, week_ending, dpm)
    except Exception as e:
        log["errors"].append(f"summarizer_error: {e}")
        return None, log
    if not isinstance(flat, dict):
        log["errors"].append("summarizer_error: result must be a dict")
        return None, log

    usage = getattr(summarizer, "last_usage", None)
    if usage:
        log["usage"] = usage

    # Identity fields always come from the request, not the model.
    merged = flat_template(**{**flat, "project_key": project_key, "week_ending": week_ending, "dpm": dpm})
    return merged, log
