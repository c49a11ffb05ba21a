from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
CHAT_ROLES = (ROLE_USER, ROLE_ASSISTANT)


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return value.strip() if isinstance(value, str) else ""


def _labels(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if isinstance(v, str) and v.strip()]


@dataclass
class HealthProfile:
    """User health data used to personalize analysis and chat.

    Every field is optional. Label lists keep the order the user picked them.
    """

    name: str = ""
    age: str = ""
    weight: str = ""
    height: str = ""
    allergies: List[str] = field(default_factory=list)
    conditions: List[str] = field(default_factory=list)
    preferences: List[str] = field(default_factory=list)
    custom_allergies: str = ""
    custom_conditions: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "HealthProfile":
        """Build from a possibly partial mapping; missing lists become empty."""
        if not isinstance(data, dict):
            return cls()
        return cls(
            name=_text(data.get("name")),
            age=_text(data.get("age")),
            weight=_text(data.get("weight")),
            height=_text(data.get("height")),
            allergies=_labels(data.get("allergies")),
            conditions=_labels(data.get("conditions")),
            preferences=_labels(data.get("preferences")),
            custom_allergies=_text(data.get("customAllergies", data.get("custom_allergies"))),
            custom_conditions=_text(data.get("customConditions", data.get("custom_conditions"))),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "age": self.age,
            "weight": self.weight,
            "height": self.height,
            "allergies": list(self.allergies),
            "conditions": list(self.conditions),
            "preferences": list(self.preferences),
            "customAllergies": self.custom_allergies,
            "customConditions": self.custom_conditions,
        }


@dataclass(frozen=True)
class ScanResult:
    """Normalized outcome of one food-label analysis.

    Values parsed from the model are carried as returned; callers that
    display them should go through the presentation helpers.
    """

    score: Any
    ingredients: Any
    highlights: Any
    summary: Any

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanResult":
        return cls(
            score=data.get("score"),
            ingredients=data.get("ingredients"),
            highlights=data.get("highlights"),
            summary=data.get("summary"),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "ingredients": self.ingredients,
            "highlights": self.highlights,
            "summary": self.summary,
        }


def new_message_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str
    id: str = field(default_factory=new_message_id)

    def __post_init__(self) -> None:
        if self.role not in CHAT_ROLES:
            raise ValueError(f"role must be one of {CHAT_ROLES}, got {self.role!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        content = data.get("content")
        return cls(
            role=data.get("role"),
            content=content if isinstance(content, str) else "",
            id=data.get("id") or new_message_id(),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "role": self.role, "content": self.content}
