"""
labelscan: food-label scanning backend.

Forwards label photos to a hosted vision model, normalizes its free-text
reply into a structured result, and runs a nutrition chat assistant.
"""

__all__ = [
    "config",
    "errors",
    "logging",
    "paths",
]
