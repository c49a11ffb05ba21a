import json
import re
from typing import Any, Optional

from ..logging import get_logger
from .models import ScanResult

_LOG = get_logger("normalize")

FALLBACK_SCORE = 50
SUMMARY_PREVIEW_CHARS = 200

EMPTY_REPLY_HIGHLIGHT = "Could not analyze the image"
EMPTY_REPLY_SUMMARY = "Unable to analyze the food label. Please try with a clearer image."
UNEXPECTED_FORMAT_HIGHLIGHT = "Analysis completed but response format was unexpected"

_FENCED_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def _reject_constant(token: str) -> Any:
    # NaN, Infinity and -Infinity are not valid JSON.
    raise ValueError(f"non-standard JSON constant {token}")


def empty_result() -> ScanResult:
    """Result used when the model produced no text at all."""
    return ScanResult(
        score=FALLBACK_SCORE,
        ingredients=[],
        highlights=[EMPTY_REPLY_HIGHLIGHT],
        summary=EMPTY_REPLY_SUMMARY,
    )


def unexpected_format_result(raw_text: str) -> ScanResult:
    return ScanResult(
        score=FALLBACK_SCORE,
        ingredients=[],
        highlights=[UNEXPECTED_FORMAT_HIGHLIGHT],
        summary=raw_text[:SUMMARY_PREVIEW_CHARS],
    )


def _as_text(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return str(raw)


def extract_candidate(text: str) -> str:
    """Pick the substring most likely to hold the JSON reply.

    1) inner text of the first ``` or ```json fence
    2) first '{' through last '}'
    3) the text itself
    """
    fenced = _FENCED_RE.search(text)
    if fenced:
        return fenced.group(1).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return text


def normalize(raw_text: Any) -> ScanResult:
    """Turn a free-text model reply into a ScanResult. Never raises.

    Parsed fields are passed through unchanged; a key the model left out is
    carried as None. Anything that does not parse to a JSON object yields the
    "unexpected format" record with the first 200 characters as summary.
    """
    text = _as_text(raw_text)
    if not text:
        return empty_result()

    candidate = extract_candidate(text)
    try:
        parsed = json.loads(candidate, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        _LOG.warning("Model reply is not valid JSON (%s); first 200 chars: %r", exc, text[:SUMMARY_PREVIEW_CHARS])
        return unexpected_format_result(text)

    if not isinstance(parsed, dict):
        _LOG.warning("Model reply parsed to %s, expected an object", type(parsed).__name__)
        return unexpected_format_result(text)

    _LOG.debug("Parsed analysis reply with keys: %s", list(parsed.keys()))
    return ScanResult.from_dict(parsed)


__all__ = [
    "normalize",
    "extract_candidate",
    "empty_result",
    "unexpected_format_result",
]
