from __future__ import annotations

# ---------------------------------------------------------------------------
# Tracked projects. Order drives report section order and roll-up order.
# The Gemini summary prompt and the ingest validator both read this list.
# ---------------------------------------------------------------------------
PROJECT_KEYS = [
    "catalogue",
    "fulfilment",
    "shopify_eu",
    "shopify_us",
    "d365",
    "zendesk",
]

PROJECT_LABELS = {
    "catalogue": "Catalogue",
    "fulfilment": "Fulfilment",
    "shopify_eu": "Shopify EU",
    "shopify_us": "Shopify US",
    "d365": "Dynamics 365",
    "zendesk": "Zendesk",
}

# Regional halves that can be shown as one section in the combined update.
# Off by default; enable with DPM_MERGE_REGIONAL=true.
REGIONAL_PAIRS = [
    {"keys": ("shopify_eu", "shopify_us"), "label": "Shopify (EU + US)", "halves": ("EU", "US")},
]

SUBMISSION_FIELDS = [
    "project_key",
    "dpm",
    "status",
    "delta",
    "milestones",
    "risks",
    "metrics",
    "next7",
    "asks",
    "notes",
    "submitted_at",
]

PLACEHOLDER = "—"
ASKS_FALLBACK = "None."

ALLOWED_STATUS = {"Green", "Amber", "Red"}

# Combined-update field block: (field, label, fallback)
COMBINED_FIELDS = [
    ("dpm", "DPM", PLACEHOLDER),
    ("status", "Status", PLACEHOLDER),
    ("delta", "Delta", PLACEHOLDER),
    ("milestones", "Milestones", PLACEHOLDER),
    ("risks", "Risks", PLACEHOLDER),
    ("metrics", "Metrics", PLACEHOLDER),
    ("next7", "Next 7 days", PLACEHOLDER),
    ("asks", "Asks", ASKS_FALLBACK),
    ("notes", "Notes", PLACEHOLDER),
    ("submitted_at", "Submitted", PLACEHOLDER),
]

MISSING_FLAG = "[Flag: missing submission]"

# ---------------------------------------------------------------------------
# Notable-delta triggers. Category order is the emit order within a project.
#   risk      Use: anything reading as a risk or blocker in the delta text
#   timeline  Use: slips and delays
#   launch    Use: launches, go-lives, deployments
# ---------------------------------------------------------------------------
NOTABLE_RULES = [
    {"category": "risk", "glyph": "⚠️", "terms": ("risk", "block"), "suffix": "risk or blocker flagged"},
    {"category": "timeline", "glyph": "⏳", "terms": ("slip", "delay"), "suffix": "timeline slip or delay"},
    {"category": "launch", "glyph": "🚀", "terms": ("launch", "go live", "deployed"), "suffix": "launch or go-live"},
]

MAX_NOTABLES = 4

NO_RISK_VALUES = {"none", "none."}
