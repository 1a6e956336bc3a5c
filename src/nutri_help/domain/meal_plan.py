"""Models for generated daily meal plans."""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class MealType(Enum):
    """Slot a recipe fills in the day."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class Ingredient(_CamelModel):
    """Single ingredient line of a recipe."""

    item: str
    amount: str


class Recipe(_CamelModel):
    """Recipe suggested for one meal of the day."""

    name: str
    meal_type: MealType
    description: str
    ingredients: list[Ingredient]
    instructions: list[str]
    nutritional_highlights: list[str]
    preparation_time: str


class MealPlan(_CamelModel):
    """One day of recipes plus general tips."""

    date: str
    meals: list[Recipe]
    daily_tips: list[str]

    def missing_meal_types(self) -> list[MealType]:
        """Return the meal types no recipe in the plan covers."""
        present = {meal.meal_type for meal in self.meals}
        return [meal_type for meal_type in MealType if meal_type not in present]
