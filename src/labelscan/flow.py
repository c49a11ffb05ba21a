"""View flow and chat session state held for one user session."""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from .domain.models import ROLE_ASSISTANT, ROLE_USER, ChatMessage, HealthProfile, ScanResult
from .errors import ValidationError
from .gateway.chat import ChatGateway
from .logging import get_logger
from .profile.store import ProfileStore

LOG = get_logger("flow")

SCAN_GREETING = "I've loaded your scan. I'm Health Assistant, ask me anything about this product."
GENERAL_GREETING = "Hi! I'm your Health Assistant. Ask me about ingredients, nutrition, or healthier swaps."


class ViewState(str, Enum):
    LANDING = "landing"
    ONBOARDING = "onboarding"
    SCANNING = "scanning"
    RESULTS = "results"


class InvalidTransition(Exception):
    pass


class ViewController:
    """Which screen is active, plus the profile and result it depends on.

    Transitions: get_started (LANDING -> ONBOARDING), complete_profile
    (ONBOARDING -> SCANNING), complete_scan (SCANNING -> RESULTS),
    new_scan (RESULTS -> SCANNING).
    """

    def __init__(self, store: Optional[ProfileStore] = None) -> None:
        self.store = store
        self.state = ViewState.LANDING
        self.profile: Optional[HealthProfile] = store.load() if store else None
        self.result: Optional[ScanResult] = None

    def _move(self, expected: ViewState, target: ViewState) -> None:
        if self.state != expected:
            raise InvalidTransition(f"cannot go to {target.value} from {self.state.value}")
        LOG.debug(f"View {self.state.value} -> {target.value}")
        self.state = target

    def get_started(self) -> None:
        self._move(ViewState.LANDING, ViewState.ONBOARDING)

    def complete_profile(self, profile: HealthProfile) -> None:
        self._move(ViewState.ONBOARDING, ViewState.SCANNING)
        self.profile = profile
        if self.store:
            self.store.save(profile)

    def complete_scan(self, result: ScanResult) -> None:
        self._move(ViewState.SCANNING, ViewState.RESULTS)
        self.result = result

    def new_scan(self) -> None:
        self._move(ViewState.RESULTS, ViewState.SCANNING)
        self.result = None


class ChatSession:
    """Append-only conversation, optionally grounded in one scan.

    Lives as long as the chat surface is open; nothing is persisted.
    """

    def __init__(self, gateway: ChatGateway, scan_context: Optional[ScanResult] = None) -> None:
        self.gateway = gateway
        self.scan_context = scan_context
        greeting = SCAN_GREETING if scan_context is not None else GENERAL_GREETING
        self._messages: List[ChatMessage] = [ChatMessage(role=ROLE_ASSISTANT, content=greeting)]

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def send(self, text: Any) -> ChatMessage:
        """Append the user's message, ask for a reply, append and return it.

        Gateway errors propagate; the user message stays in the history.
        """
        content = text.strip() if isinstance(text, str) else ""
        if not content:
            raise ValidationError("Message must not be empty")
        self._messages.append(ChatMessage(role=ROLE_USER, content=content))
        reply_text = self.gateway.chat(self.messages, self.scan_context)
        reply = ChatMessage(role=ROLE_ASSISTANT, content=reply_text)
        self._messages.append(reply)
        return reply
