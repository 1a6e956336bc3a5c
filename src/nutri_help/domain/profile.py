"""Models for the senior user's health profile."""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Gender(Enum):
    """Gender options offered by the setup form."""

    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class UserProfile(BaseModel):
    """Health and dietary attributes driving all personalization."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    name: str
    age: int
    gender: Gender
    health_conditions: list[str]
    allergies: list[str]
    dietary_preferences: list[str]
