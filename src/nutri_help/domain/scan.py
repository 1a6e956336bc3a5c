"""Models for product label scans."""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WarningLevel(Enum):
    """Three-tier safety classification of a scanned product."""

    SAFE = "Safe"
    CAUTION = "Caution"
    DANGER = "Danger"


class ScanResult(BaseModel):
    """Suitability verdict for a photographed product.

    ``is_safe`` and ``warning_level`` are reported independently and are not
    reconciled with each other.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    is_safe: bool
    product_name: str
    reasoning: str
    nutritional_analysis: str | None = None
    warning_level: WarningLevel
