"""Shared test fixtures."""

import json
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from nutri_help.config import Settings
from nutri_help.containers import AppContainer
from nutri_help.domain.profile import Gender, UserProfile
from nutri_help.services.gateway import (
    GenerativeClient,
    InlineImage,
    NutritionGateway,
    ResponseShape,
)
from nutri_help.services.profiles import KeyValueStore, ProfileStore
from nutri_help.services.shell import ApplicationShell


def meal_plan_payload() -> dict[str, object]:
    """Return a well-formed four-meal plan reply."""

    def recipe(name: str, meal_type: str) -> dict[str, object]:
        return {
            "name": name,
            "mealType": meal_type,
            "description": f"{name} for a relaxed day",
            "ingredients": [{"item": "Rolled oats", "amount": "50 g"}],
            "instructions": ["Prepare the ingredients", "Serve warm"],
            "nutritionalHighlights": ["High in Fiber"],
            "preparationTime": "15 min",
        }

    return {
        "date": "Monday",
        "meals": [
            recipe("Porridge with berries", "Breakfast"),
            recipe("Salmon salad", "Lunch"),
            recipe("Lamb and vegetable stew", "Dinner"),
            recipe("Greek yoghurt", "Snack"),
        ],
        "dailyTips": ["Drink plenty of water", "Take a short walk after lunch"],
    }


def scan_payload() -> dict[str, object]:
    """Return a well-formed scan reply."""
    return {
        "isSafe": False,
        "productName": "Choc-nut bar",
        "reasoning": "Contains peanuts, which you are allergic to.",
        "nutritionalAnalysis": "High in sugar and saturated fat.",
        "warningLevel": "Danger",
    }


@dataclass
class FakeGenerativeClient(GenerativeClient):
    """Fake generative client returning a fixed reply or raising."""

    reply: str | Exception = field(
        default_factory=lambda: json.dumps(meal_plan_payload())
    )
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        image: InlineImage | None = None,
        shape: ResponseShape | None = None,
        instructions: str | None = None,
    ) -> str:
        self.calls.append(
            {
                "model": model,
                "prompt": prompt,
                "image": image,
                "shape": shape,
                "instructions": instructions,
            }
        )
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests."""

    entries: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.entries.get(key)

    def set(self, key: str, value: str) -> None:
        self.entries[key] = value

    def delete(self, key: str) -> None:
        self.entries.pop(key, None)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        openai_api_key="openai-key",
        profile_path=tmp_path / "storage.json",
        environment="test",
    )


@pytest.fixture
def mary() -> UserProfile:
    return UserProfile(
        name="Mary",
        age=68,
        gender=Gender.FEMALE,
        health_conditions=["Diabetes"],
        allergies=["Peanuts"],
        dietary_preferences=[],
    )


@pytest.fixture
def generative_client() -> FakeGenerativeClient:
    return FakeGenerativeClient()


@pytest.fixture
def gateway(generative_client: FakeGenerativeClient) -> NutritionGateway:
    return NutritionGateway(
        client=generative_client,
        model="text-model",
        vision_model="vision-model",
        reasoning_effort="low",
        store=False,
    )


@pytest.fixture
def key_value_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def profile_store(key_value_store: InMemoryKeyValueStore) -> ProfileStore:
    return ProfileStore(key_value_store)


@pytest.fixture
def container(
    settings: Settings,
    profile_store: ProfileStore,
    gateway: NutritionGateway,
) -> AppContainer:
    shell = ApplicationShell(profile_store=profile_store, gateway=gateway)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        profile_store=profile_store,
        gateway=gateway,
        shell=shell,
        close_resources=close_resources,
    )
