from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest
import requests

from labelscan.config import AnalysisConfig, ChatConfig


class FakeResponse:
    """Just enough of requests.Response for the gateways."""

    def __init__(self, status_code: int = 200, body: Any = None, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self._body = body
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.text = text

    def json(self) -> Any:
        if self._body is None:
            return json.loads(self.text)
        return self._body


class FakeSession:
    """Records every POST and replays scripted responses (or raises)."""

    def __init__(self, *responses: Any) -> None:
        self.responses: List[Any] = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def openai_reply(content: Any) -> Dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def gemini_reply(*texts: str) -> Dict[str, Any]:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": t} for t in texts]}}]}


@pytest.fixture
def analysis_config() -> AnalysisConfig:
    return AnalysisConfig(api_key="test-gateway-key", endpoint="https://gateway.test/v1/chat/completions")


@pytest.fixture
def chat_config() -> ChatConfig:
    return ChatConfig(api_key="test-gemini-key", base_url="https://gemini.test/v1beta")


@pytest.fixture
def connection_error() -> requests.ConnectionError:
    return requests.ConnectionError("connection refused")
