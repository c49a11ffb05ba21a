from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import requests

from ..config import ChatConfig
from ..domain.models import ROLE_ASSISTANT, ChatMessage, ScanResult
from ..errors import ConfigurationError, UpstreamError, ValidationError
from ..logging import get_logger
from .transport import BODY_PREVIEW_CHARS, is_success, post_json, response_json

LOG = get_logger("chat-gateway")

FALLBACK_REPLY = "Sorry, I couldn't generate a response."

UPSTREAM_USER_ROLE = "user"
UPSTREAM_MODEL_ROLE = "model"

PERSONA_PROMPT = """You are Health Assistant, a concise, friendly nutrition expert.
Use the provided scan context to answer user questions about the scanned food.
- Be practical and evidence-based
- If relevant, suggest healthier alternatives
- Consider common allergies/conditions if in the context
- Keep answers clear and brief unless asked for detail"""


def _context_fields(scan_context: Any) -> Optional[Dict[str, Any]]:
    if scan_context is None:
        return None
    if isinstance(scan_context, ScanResult):
        return scan_context.as_dict()
    if isinstance(scan_context, dict):
        return scan_context
    return None


def render_scan_context(scan_context: Any) -> str:
    """Scan Context block; each line only when that field is usable."""
    ctx = _context_fields(scan_context)
    if ctx is None:
        return ""
    lines = ["Scan Context:"]
    summary = ctx.get("summary")
    if summary:
        lines.append(f"Summary: {summary}")
    highlights = ctx.get("highlights")
    if isinstance(highlights, list):
        lines.append(f"Key Points: {', '.join(str(h) for h in highlights)}")
    ingredients = ctx.get("ingredients")
    if isinstance(ingredients, list):
        lines.append(f"Ingredients: {', '.join(str(i) for i in ingredients)}")
    score = ctx.get("score")
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        lines.append(f"Health Score: {score}")
    return "\n".join(lines) + "\n"


def build_system_instruction(scan_context: Any = None) -> str:
    context = render_scan_context(scan_context)
    if not context:
        return PERSONA_PROMPT
    return f"{PERSONA_PROMPT}\n\n{context}"


def _as_message(item: Any) -> ChatMessage:
    if isinstance(item, ChatMessage):
        return item
    if isinstance(item, dict):
        try:
            return ChatMessage.from_dict(item)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
    raise ValidationError("messages must be objects with role and content")


def build_contents(history: Iterable[Any], scan_context: Any = None) -> List[Dict[str, Any]]:
    """Map the system instruction plus history to generateContent turns."""
    contents: List[Dict[str, Any]] = [
        {"role": UPSTREAM_USER_ROLE, "parts": [{"text": build_system_instruction(scan_context)}]}
    ]
    for item in history or []:
        msg = _as_message(item)
        role = UPSTREAM_MODEL_ROLE if msg.role == ROLE_ASSISTANT else UPSTREAM_USER_ROLE
        contents.append({"role": role, "parts": [{"text": msg.content}]})
    return contents


def extract_reply(body: Any) -> str:
    """Concatenate the text parts of the first candidate, or the fallback reply."""
    if not isinstance(body, dict):
        return FALLBACK_REPLY
    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return FALLBACK_REPLY
    content = candidates[0].get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return FALLBACK_REPLY
    reply = "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))
    return reply or FALLBACK_REPLY


class ChatGateway:
    """One conversational turn against Gemini generateContent."""

    def __init__(self, config: ChatConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def chat(self, history: Iterable[Any], scan_context: Any = None) -> str:
        if not self.config.api_key:
            LOG.error("Missing GEMINI_API_KEY")
            raise ConfigurationError("Missing GEMINI_API_KEY")

        contents = build_contents(history, scan_context)
        LOG.info("Sending chat request with %d turn(s) (model=%s)", len(contents), self.config.model_name)
        resp = post_json(
            self.session,
            self.config.endpoint,
            {"contents": contents},
            headers={"Content-Type": "application/json"},
            params={"key": self.config.api_key},
            timeout=self.config.timeout_seconds,
            label="Gemini",
        )
        if not is_success(resp):
            body_text = resp.text or ""
            LOG.error("Gemini HTTP %s: %s", resp.status_code, body_text[:BODY_PREVIEW_CHARS])
            raise UpstreamError("Gemini API error", upstream_status=resp.status_code, details=body_text)

        reply = extract_reply(response_json(resp))
        if reply == FALLBACK_REPLY:
            LOG.warning("Gemini response had no text; using fallback reply")
        return reply


__all__ = [
    "ChatGateway",
    "FALLBACK_REPLY",
    "build_contents",
    "build_system_instruction",
    "extract_reply",
    "render_scan_context",
]
