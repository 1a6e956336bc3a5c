"""Per-view request lifecycles for the plan, scan and chat tabs."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from nutri_help.domain.chat import ChatMessage, ChatRole
from nutri_help.domain.meal_plan import MealPlan
from nutri_help.domain.profile import UserProfile
from nutri_help.domain.scan import ScanResult
from nutri_help.services.gateway import InlineImage, NutritionGateway

PLAN_ERROR_MESSAGE = "Unable to generate meal plan. Please check your connection."
SCAN_ERROR_MESSAGE = (
    "Could not analyze the image. Please try again with a clearer photo."
)
WELCOME_MESSAGE_ID = "welcome"

_logger = logging.getLogger(__name__)


class RequestStatus(Enum):
    """Lifecycle of a view's outstanding request."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


class ViewBusyError(RuntimeError):
    """Raised when a view already has a request in flight."""


@dataclass
class PlanView:
    """Meal plan tab: generate, show, retry."""

    gateway: NutritionGateway
    profile: UserProfile
    status: RequestStatus = RequestStatus.IDLE
    plan: MealPlan | None = None
    error: str | None = None
    error_detail: str | None = None
    expanded_meal: str | None = None

    @property
    def in_flight(self) -> bool:
        return self.status is RequestStatus.LOADING

    async def open(self) -> None:
        """Generate a plan the first time the tab is shown."""
        if self.status is RequestStatus.IDLE:
            await self.generate()

    async def generate(self) -> None:
        """Request a fresh plan, replacing the current one on success."""
        if self.in_flight:
            raise ViewBusyError("A meal plan is already being generated")
        self.status = RequestStatus.LOADING
        self.error = None
        self.error_detail = None
        try:
            self.plan = await self.gateway.generate_meal_plan(self.profile)
        except Exception as exc:
            _logger.exception("Meal plan generation failed")
            self.error = PLAN_ERROR_MESSAGE
            self.error_detail = f"{type(exc).__name__}: {exc}"
            self.status = RequestStatus.FAILED
            return
        self.expanded_meal = None
        self.status = RequestStatus.SUCCESS

    async def retry(self) -> None:
        """Re-run generation after a failure."""
        if self.status is not RequestStatus.FAILED:
            return
        self.status = RequestStatus.IDLE
        await self.generate()

    def toggle_recipe(self, meal_name: str) -> str | None:
        """Expand a recipe by name, or collapse it if already expanded."""
        self.expanded_meal = None if self.expanded_meal == meal_name else meal_name
        return self.expanded_meal


@dataclass
class ScanView:
    """Scan tab: analyze a photographed product label."""

    gateway: NutritionGateway
    profile: UserProfile
    status: RequestStatus = RequestStatus.IDLE
    result: ScanResult | None = None
    error: str | None = None
    error_detail: str | None = None
    preview: str | None = None
    _last_image: InlineImage | None = field(default=None, repr=False)

    @property
    def in_flight(self) -> bool:
        return self.status is RequestStatus.LOADING

    async def scan(self, image_bytes: bytes, mime_type: str | None = None) -> None:
        """Analyze an image, clearing the previous result first."""
        if self.in_flight:
            raise ViewBusyError("An image is already being analyzed")
        image = InlineImage(
            data=image_bytes, mime_type=mime_type or detect_mime_type(image_bytes)
        )
        self._last_image = image
        self.preview = image.to_data_url()
        await self._analyze(image)

    async def retry(self) -> None:
        """Re-analyze the last image after a failure."""
        if self.status is not RequestStatus.FAILED or self._last_image is None:
            return
        self.status = RequestStatus.IDLE
        await self._analyze(self._last_image)

    async def _analyze(self, image: InlineImage) -> None:
        self.result = None
        self.error = None
        self.error_detail = None
        self.status = RequestStatus.LOADING
        try:
            self.result = await self.gateway.analyze_image(
                image.data, image.mime_type, self.profile
            )
        except Exception as exc:
            _logger.exception("Product analysis failed")
            self.error = SCAN_ERROR_MESSAGE
            self.error_detail = f"{type(exc).__name__}: {exc}"
            self.status = RequestStatus.FAILED
            return
        self.status = RequestStatus.SUCCESS


@dataclass
class ChatView:
    """Assistant tab: append-only conversation with the model."""

    gateway: NutritionGateway
    profile: UserProfile
    messages: list[ChatMessage] = field(default_factory=list)
    in_flight: bool = False

    def __post_init__(self) -> None:
        if not self.messages:
            self.messages.append(
                ChatMessage(
                    id=WELCOME_MESSAGE_ID,
                    role=ChatRole.MODEL,
                    text=(
                        f"Hello {self.profile.name}! I'm here to help with any "
                        "nutrition questions. How are you feeling today?"
                    ),
                    timestamp=datetime.now(tz=UTC),
                )
            )

    async def send(self, text: str) -> ChatMessage | None:
        """Send a user message and append the reply; blank input is ignored."""
        if not text.strip():
            return None
        if self.in_flight:
            raise ViewBusyError("Still waiting for the previous reply")
        self._append(ChatRole.USER, text)
        self.in_flight = True
        try:
            reply = await self.gateway.chat(text, self.profile)
        finally:
            self.in_flight = False
        return self._append(ChatRole.MODEL, reply)

    def _append(self, role: ChatRole, text: str) -> ChatMessage:
        # Timestamps never go backwards, even if the wall clock does.
        timestamp = datetime.now(tz=UTC)
        if self.messages:
            timestamp = max(timestamp, self.messages[-1].timestamp)
        message = ChatMessage(
            id=uuid4().hex, role=role, text=text, timestamp=timestamp
        )
        self.messages.append(message)
        return message


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
