"""Health profile persistence and the onboarding wizard."""

from .onboarding import OnboardingWizard
from .store import ProfileStore

__all__ = [
    "OnboardingWizard",
    "ProfileStore",
]
