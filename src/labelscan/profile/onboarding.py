from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Tuple

from ..domain.models import HealthProfile
from ..errors import ValidationError
from ..logging import get_logger

LOG = get_logger("onboarding")

COMMON_ALLERGIES: Tuple[str, ...] = (
    "Dairy", "Eggs", "Fish", "Shellfish", "Tree nuts",
    "Peanuts", "Wheat", "Soy", "Sesame",
)
COMMON_CONDITIONS: Tuple[str, ...] = (
    "Diabetes", "High blood pressure", "Heart disease",
    "High cholesterol", "Celiac disease", "Food sensitivities",
)
DIETARY_PREFERENCES: Tuple[str, ...] = (
    "Vegetarian", "Vegan", "Gluten-free", "Keto",
    "Low-sodium", "Low-sugar", "Organic only",
)

STEP_BASICS = 1
STEP_HEALTH = 2
STEP_PREFERENCES = 3
STEP_TITLES = {
    STEP_BASICS: "Tell us about yourself",
    STEP_HEALTH: "Health information",
    STEP_PREFERENCES: "Dietary preferences",
}


def _toggled(labels: List[str], label: str) -> List[str]:
    if label in labels:
        return [x for x in labels if x != label]
    return [*labels, label]


class OnboardingWizard:
    """Three-step profile wizard.

    Step 1 collects name/age/weight/height and cannot be left without a name
    and an age; steps 2 and 3 are optional. Finishing step 3 yields the
    profile.
    """

    def __init__(self, initial: Optional[HealthProfile] = None) -> None:
        self.step = STEP_BASICS
        self.profile = replace(initial) if initial else HealthProfile()

    @property
    def title(self) -> str:
        return STEP_TITLES[self.step]

    def update(self, **fields: str) -> None:
        self.profile = replace(self.profile, **fields)

    def toggle_allergy(self, allergy: str) -> None:
        self.profile.allergies = _toggled(self.profile.allergies, allergy)

    def toggle_condition(self, condition: str) -> None:
        self.profile.conditions = _toggled(self.profile.conditions, condition)

    def toggle_preference(self, preference: str) -> None:
        self.profile.preferences = _toggled(self.profile.preferences, preference)

    def can_proceed(self) -> bool:
        if self.step == STEP_BASICS:
            return bool(self.profile.name.strip() and self.profile.age.strip())
        return self.step in (STEP_HEALTH, STEP_PREFERENCES)

    def next(self) -> Optional[HealthProfile]:
        """Advance one step; on the last step return the completed profile."""
        if not self.can_proceed():
            raise ValidationError("Name and age are required before continuing")
        if self.step < STEP_PREFERENCES:
            self.step += 1
            return None
        LOG.info("Onboarding completed")
        return replace(self.profile)

    def back(self) -> None:
        if self.step > STEP_BASICS:
            self.step -= 1
