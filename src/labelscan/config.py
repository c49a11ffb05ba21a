import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values

from .logging import get_logger

log = get_logger("config")

DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_GATEWAY_MODEL = "google/gemini-2.5-flash"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_TIMEOUT_SECONDS = 120


@dataclass(frozen=True)
class AnalysisConfig:
    """Settings for the image-analysis round trip (OpenAI-compatible gateway)."""

    api_key: Optional[str]
    endpoint: str = DEFAULT_GATEWAY_URL
    model_name: str = DEFAULT_GATEWAY_MODEL
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class ChatConfig:
    """Settings for the chat round trip (Gemini generateContent)."""

    api_key: Optional[str]
    base_url: str = DEFAULT_GEMINI_BASE_URL
    model_name: str = DEFAULT_GEMINI_MODEL
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model_name}:generateContent"


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    Running the server or CLI from a subdirectory still finds the
    project-level `.env`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: Optional[str]) -> Dict[str, str]:
    """Read the nearest .env into a mapping; does not mutate the environment."""
    path = _find_upwards(dotenv_dir or os.getcwd(), ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir or os.getcwd())}")
        return {}
    try:
        values = {k: v.strip() for k, v in dotenv_values(path).items() if v is not None}
    except (OSError, UnicodeDecodeError) as e:
        log.warning(f"Failed reading .env: {e}")
        return {}
    log.debug(f"Loaded {len(values)} key(s) from .env at {path}")
    return values


def _lookup(env: Dict[str, str], *names: str) -> Optional[str]:
    """First non-empty value among names, process environment before .env."""
    for name in names:
        v = os.environ.get(name)
        if v and v.strip():
            return v.strip()
    for name in names:
        v = env.get(name)
        if v:
            return v
    return None


def _timeout(env: Dict[str, str]) -> int:
    raw = _lookup(env, "LABELSCAN_TIMEOUT")
    if raw is None:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = int(raw)
    except ValueError:
        log.warning(f"LABELSCAN_TIMEOUT={raw!r} is not an integer; using {DEFAULT_TIMEOUT_SECONDS}")
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def load_analysis_config(dotenv_dir: Optional[str] = None) -> AnalysisConfig:
    """Return the analysis gateway settings from env or .env.

    The API key is read from AI_GATEWAY_API_KEY, falling back to
    LOVABLE_API_KEY which older deployments provision.
    """
    env = _read_dotenv(dotenv_dir)
    api_key = _lookup(env, "AI_GATEWAY_API_KEY", "LOVABLE_API_KEY")
    if not api_key:
        log.debug("AI gateway key not found in env or .env")
    return AnalysisConfig(
        api_key=api_key,
        endpoint=_lookup(env, "AI_GATEWAY_URL") or DEFAULT_GATEWAY_URL,
        model_name=_lookup(env, "AI_GATEWAY_MODEL") or DEFAULT_GATEWAY_MODEL,
        timeout_seconds=_timeout(env),
    )


def load_chat_config(dotenv_dir: Optional[str] = None) -> ChatConfig:
    """Return the Gemini chat settings from env or .env."""
    env = _read_dotenv(dotenv_dir)
    api_key = _lookup(env, "GEMINI_API_KEY")
    if not api_key:
        log.debug("GEMINI_API_KEY not found in env or .env")
    return ChatConfig(
        api_key=api_key,
        base_url=_lookup(env, "GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL,
        model_name=_lookup(env, "GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        timeout_seconds=_timeout(env),
    )
