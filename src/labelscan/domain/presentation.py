"""Display-side helpers the results view applies to a ScanResult."""

from typing import Any

HIGHLIGHT_WARNING = "warning"
HIGHLIGHT_POSITIVE = "positive"
HIGHLIGHT_NEUTRAL = "neutral"

_WARNING_TOKENS = ("high", "contains")
_POSITIVE_TOKENS = ("good", "healthy")


def classify_highlight(highlight: Any) -> str:
    low = str(highlight or "").lower()
    if any(tok in low for tok in _WARNING_TOKENS):
        return HIGHLIGHT_WARNING
    if any(tok in low for tok in _POSITIVE_TOKENS):
        return HIGHLIGHT_POSITIVE
    return HIGHLIGHT_NEUTRAL


def display_score(value: Any) -> int:
    """Clamp a model-provided score into 0..100 for display; non-numbers show as 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if not isinstance(value, (int, float)) or value != value:
        return 0
    return int(round(max(0, min(100, value))))


def score_label(value: Any) -> str:
    score = display_score(value)
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


def as_text_list(value: Any) -> list:
    """Model lists for display; a non-list value shows as nothing."""
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]
