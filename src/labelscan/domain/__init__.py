from .models import ChatMessage, HealthProfile, ScanResult
from .normalize import normalize

__all__ = [
    "ChatMessage",
    "HealthProfile",
    "ScanResult",
    "normalize",
]
