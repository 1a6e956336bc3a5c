"""Gateway to the generative-AI service for plans, scans and chat."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from nutri_help.domain.meal_plan import MealPlan
from nutri_help.domain.profile import UserProfile
from nutri_help.domain.scan import ScanResult

CHAT_EMPTY_REPLY = "I'm sorry, I couldn't understand that. Could you try again?"
CHAT_FAILURE_REPLY = "I'm having trouble connecting right now. Please try again later."

_logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_STRING: dict[str, object] = {"type": "string"}
_STRING_LIST: dict[str, object] = {"type": "array", "items": _STRING}

INGREDIENT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"item": _STRING, "amount": _STRING},
    "required": ["item", "amount"],
    "additionalProperties": False,
}

RECIPE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": _STRING,
        "mealType": {
            "type": "string",
            "enum": ["Breakfast", "Lunch", "Dinner", "Snack"],
        },
        "description": _STRING,
        "ingredients": {"type": "array", "items": INGREDIENT_SCHEMA},
        "instructions": _STRING_LIST,
        "nutritionalHighlights": _STRING_LIST,
        "preparationTime": _STRING,
    },
    "required": [
        "name",
        "mealType",
        "description",
        "ingredients",
        "instructions",
        "nutritionalHighlights",
        "preparationTime",
    ],
    "additionalProperties": False,
}

MEAL_PLAN_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "date": _STRING,
        "meals": {"type": "array", "items": RECIPE_SCHEMA},
        "dailyTips": _STRING_LIST,
    },
    "required": ["date", "meals", "dailyTips"],
    "additionalProperties": False,
}

SCAN_RESULT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "isSafe": {"type": "boolean"},
        "productName": _STRING,
        "reasoning": _STRING,
        "nutritionalAnalysis": {"anyOf": [_STRING, {"type": "null"}]},
        "warningLevel": {"type": "string", "enum": ["Safe", "Caution", "Danger"]},
    },
    "required": [
        "isSafe",
        "productName",
        "reasoning",
        "nutritionalAnalysis",
        "warningLevel",
    ],
    "additionalProperties": False,
}


class GatewayError(RuntimeError):
    """Base error for failed meal-plan or scan requests."""


class ServiceError(GatewayError):
    """The AI service call itself failed (network, auth, quota)."""


class EmptyResponseError(GatewayError):
    """The AI service returned no text content."""


class MalformedResponseError(GatewayError):
    """The AI service reply did not match the declared shape."""


@dataclass(frozen=True)
class InlineImage:
    """Binary image content tagged with its media type."""

    data: bytes
    mime_type: str

    def to_data_url(self) -> str:
        """Encode the image as a base64 data URL."""
        encoded = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class ResponseShape:
    """Named JSON schema the reply must follow."""

    name: str
    schema: dict[str, object]


class GenerativeClient(Protocol):
    """Interface for the generative-AI completion service."""

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
        """Return the reply text, empty when the service produced none."""


def _join_or_none(values: list[str]) -> str:
    return ", ".join(values) or "None"


def build_meal_plan_prompt(profile: UserProfile) -> str:
    """Build the meal-plan request for a profile."""
    return (
        "Create a personalized 1-day meal plan for an Australian senior.\n"
        "Profile:\n"
        f"- Age: {profile.age}\n"
        f"- Gender: {profile.gender.value}\n"
        f"- Health Conditions: {_join_or_none(profile.health_conditions)}\n"
        f"- Allergies: {_join_or_none(profile.allergies)}\n"
        f"- Preferences: {_join_or_none(profile.dietary_preferences)}\n"
        "\n"
        "Focus on nutrient-dense foods available in Australian supermarkets. "
        "Ensure recipes are easy to prepare.\n"
        "Include Breakfast, Lunch, Dinner, and one Snack.\n"
        "Return strictly JSON."
    )


def build_scan_prompt(profile: UserProfile) -> str:
    """Build the product-label analysis request for a profile."""
    return (
        "Analyze this image of a food product label or meal.\n"
        "Evaluate if it is suitable for this user based on their profile:\n"
        f"- Health Conditions: {_join_or_none(profile.health_conditions)}\n"
        f"- Allergies: {_join_or_none(profile.allergies)}\n"
        "\n"
        "Identify the product name.\n"
        "Determine if it is 'Safe', 'Caution' (consume in moderation), "
        "or 'Danger' (avoid).\n"
        "Provide a clear reasoning for a senior citizen."
    )


def build_chat_instruction(profile: UserProfile) -> str:
    """Build the assistant persona instruction for a profile."""
    return (
        "You are NutriHelp, a compassionate and knowledgeable nutrition "
        "assistant for Australian seniors.\n"
        f"The user is {profile.age} years old.\n"
        f"Health Conditions: {_join_or_none(profile.health_conditions)}.\n"
        f"Allergies: {_join_or_none(profile.allergies)}.\n"
        "Keep answers concise, easy to read, and encouraging. Use metric units."
    )


def _parse_reply(text: str, model: type[ModelT]) -> ModelT:
    if not text or not text.strip():
        raise EmptyResponseError("No response from the AI service")
    try:
        return model.model_validate_json(text)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"Reply did not match the {model.__name__} shape: {exc}"
        ) from exc


@dataclass
class NutritionGateway:
    """Builds AI requests from a profile and validates the replies."""

    client: GenerativeClient
    model: str
    vision_model: str
    reasoning_effort: str | None
    store: bool

    async def generate_meal_plan(self, profile: UserProfile) -> MealPlan:
        """Request a one-day meal plan tailored to the profile."""
        text = await self.client.generate(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=build_meal_plan_prompt(profile),
            shape=ResponseShape(name="meal_plan", schema=MEAL_PLAN_SCHEMA),
        )
        plan = _parse_reply(text, MealPlan)
        missing = plan.missing_meal_types()
        if missing:
            _logger.warning(
                "Meal plan lacks meal types: %s",
                ", ".join(meal_type.value for meal_type in missing),
            )
        return plan

    async def analyze_image(
        self, image_bytes: bytes, mime_type: str, profile: UserProfile
    ) -> ScanResult:
        """Judge a photographed product against the profile."""
        text = await self.client.generate(
            model=self.vision_model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=build_scan_prompt(profile),
            image=InlineImage(data=image_bytes, mime_type=mime_type),
            shape=ResponseShape(name="scan_result", schema=SCAN_RESULT_SCHEMA),
        )
        return _parse_reply(text, ScanResult)

    async def chat(self, message: str, profile: UserProfile) -> str:
        """Answer a free-text question; failures become a fallback reply."""
        try:
            text = await self.client.generate(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=message,
                instructions=build_chat_instruction(profile),
            )
        except Exception:
            _logger.exception("Chat request failed")
            return CHAT_FAILURE_REPLY
        return text or CHAT_EMPTY_REPLY
