"""Profile creation and local persistence."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel, Field, ValidationError, field_validator

from nutri_help.domain.profile import Gender, UserProfile

PROFILE_KEY = "nutrihelp_profile"
MIN_AGE = 50
MAX_AGE = 120

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Local persistent key-value storage."""

    def get(self, key: str) -> str | None:
        """Return the stored text for a key, if present."""

    def set(self, key: str, value: str) -> None:
        """Store text under a key, replacing any previous value."""

    def delete(self, key: str) -> None:
        """Remove a key if present."""


class ProfileValidationError(ValueError):
    """Raised when the setup form holds missing or out-of-range values."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages))
        self.messages = messages


class ProfileForm(BaseModel):
    """Raw input of the profile setup form."""

    name: str
    age: int = Field(default=65, ge=MIN_AGE, le=MAX_AGE)
    gender: Gender = Gender.FEMALE
    conditions: str = ""
    allergies: str = ""
    preferences: str = ""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value


def parse_tags(raw: str) -> list[str]:
    """Split comma-separated input into trimmed, non-empty tags."""
    return [token.strip() for token in raw.split(",") if token.strip()]


def create_profile(form: Mapping[str, object]) -> UserProfile:
    """Validate setup-form input and build a profile from it."""
    try:
        validated = ProfileForm.model_validate(form)
    except ValidationError as exc:
        messages = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise ProfileValidationError(messages) from exc
    return UserProfile(
        name=validated.name,
        age=validated.age,
        gender=validated.gender,
        health_conditions=parse_tags(validated.conditions),
        allergies=parse_tags(validated.allergies),
        dietary_preferences=parse_tags(validated.preferences),
    )


@dataclass
class ProfileStore:
    """Holds the single persisted profile under a fixed key."""

    store: KeyValueStore
    key: str = PROFILE_KEY

    def load(self) -> UserProfile | None:
        """Return the persisted profile, or None when absent or corrupt."""
        raw = self.store.get(self.key)
        if raw is None:
            return None
        try:
            return UserProfile.model_validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring unreadable stored profile: key=%s", self.key)
            return None

    def save(self, profile: UserProfile) -> None:
        """Persist the profile, overwriting any prior value."""
        self.store.set(self.key, profile.model_dump_json(by_alias=True))

    def clear(self) -> None:
        """Remove the persisted profile."""
        self.store.delete(self.key)
