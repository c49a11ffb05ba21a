"""Upstream AI round trips: image analysis and chat."""

from .analysis import AnalysisGateway
from .chat import ChatGateway

__all__ = [
    "AnalysisGateway",
    "ChatGateway",
]
