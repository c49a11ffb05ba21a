from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from ..config import AnalysisConfig
from ..domain.models import HealthProfile, ScanResult
from ..domain.normalize import empty_result, normalize
from ..errors import (
    ConfigurationError,
    MalformedUpstreamResponse,
    QuotaExhausted,
    RateLimited,
    UpstreamError,
    ValidationError,
)
from ..logging import get_logger
from .transport import BODY_PREVIEW_CHARS, is_success, post_json, response_json

LOG = get_logger("analysis-gateway")

NONE_SPECIFIED = "None specified"

RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again in a moment."
QUOTA_EXHAUSTED_MESSAGE = "AI credits exhausted. Please add credits to continue."


def _joined(labels: List[str]) -> str:
    return ", ".join(labels) if labels else NONE_SPECIFIED


def build_profile_context(profile: Optional[HealthProfile]) -> str:
    profile = profile or HealthProfile()
    return (
        "User Health Profile:\n"
        f"- Allergies: {_joined(profile.allergies)}\n"
        f"- Health Conditions: {_joined(profile.conditions)}\n"
        f"- Dietary Preferences: {_joined(profile.preferences)}\n"
    )


def build_analysis_prompt(profile: Optional[HealthProfile]) -> str:
    return f"""You are a food ingredient analyzer. Analyze this food label image and extract the ingredients list using OCR.

{build_profile_context(profile)}
Based on the ingredients found and the user's health profile, provide:

1. A health score from 0-100 (where 100 is healthiest)
2. A list of all ingredients detected
3. Key highlights about the food (warnings, benefits, concerns based on user's profile)
4. A brief summary of the overall healthiness

IMPORTANT: Respond ONLY with valid JSON in this exact format:
{{
  "score": <number 0-100>,
  "ingredients": ["ingredient1", "ingredient2", ...],
  "highlights": ["highlight1", "highlight2", ...],
  "summary": "Brief summary of the food's healthiness"
}}

If you cannot read the ingredients clearly, still provide your best analysis with what you can see. If it's not a food label image, return a score of 0 with an appropriate message."""


def build_analysis_messages(image_data: str, profile: Optional[HealthProfile]) -> List[Dict[str, Any]]:
    """Single user turn carrying the instruction and the image."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": build_analysis_prompt(profile)},
                {"type": "image_url", "image_url": {"url": image_data}},
            ],
        }
    ]


def extract_reply_text(body: Any) -> str:
    """Text of the first choice; raises MalformedUpstreamResponse when there is none.

    Content may be a plain string or a list of typed parts.
    """
    if not isinstance(body, dict):
        raise MalformedUpstreamResponse("response body is not a JSON object")
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise MalformedUpstreamResponse("response has no choices")
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, list):
        content = "".join(
            part.get("text") or ""
            for part in content
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
    if not isinstance(content, str) or not content:
        raise MalformedUpstreamResponse("first choice has no text content")
    return content


class AnalysisGateway:
    """One image-analysis round trip against the OpenAI-compatible AI gateway."""

    def __init__(self, config: AnalysisConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def analyze_food(self, image_data: Optional[str], profile: Any = None) -> ScanResult:
        if not isinstance(image_data, str) or not image_data.strip():
            raise ValidationError("No image provided")
        if not self.config.api_key:
            LOG.error("Missing AI gateway API key")
            raise ConfigurationError("Missing AI gateway API key")

        if not isinstance(profile, HealthProfile):
            profile = HealthProfile.from_dict(profile)

        payload = {
            "model": self.config.model_name,
            "messages": build_analysis_messages(image_data, profile),
        }
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        LOG.info("Sending food analysis request to %s (model=%s)", self.config.endpoint, self.config.model_name)
        resp = post_json(
            self.session,
            self.config.endpoint,
            payload,
            headers=headers,
            timeout=self.config.timeout_seconds,
            label="AI gateway",
        )

        if not is_success(resp):
            body_text = resp.text or ""
            LOG.error("AI gateway HTTP %s: %s", resp.status_code, body_text[:BODY_PREVIEW_CHARS])
            if resp.status_code == 429:
                raise RateLimited(RATE_LIMITED_MESSAGE)
            if resp.status_code == 402:
                raise QuotaExhausted(QUOTA_EXHAUSTED_MESSAGE)
            raise UpstreamError("AI analysis error", upstream_status=resp.status_code, details=body_text)

        try:
            text = extract_reply_text(response_json(resp))
        except MalformedUpstreamResponse as exc:
            LOG.warning("No text content in AI response (%s); returning fallback result", exc.message)
            return empty_result()

        LOG.info("AI analysis response received (%d chars)", len(text))
        return normalize(text)


__all__ = [
    "AnalysisGateway",
    "build_analysis_prompt",
    "build_analysis_messages",
    "build_profile_context",
    "extract_reply_text",
]
