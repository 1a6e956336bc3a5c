"""Application shell: active profile, selected tab and its views."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum

from nutri_help.domain.profile import UserProfile
from nutri_help.services.gateway import NutritionGateway
from nutri_help.services.profiles import ProfileStore, create_profile
from nutri_help.services.views import ChatView, PlanView, ScanView

_logger = logging.getLogger(__name__)


class ShellState(Enum):
    """Top-level screen the application shows."""

    NO_PROFILE = "no_profile"
    PLAN = "plan"
    SCAN = "scan"
    CHAT = "chat"


TABS = (ShellState.PLAN, ShellState.SCAN, ShellState.CHAT)


class NoActiveProfileError(RuntimeError):
    """Raised when a tab is used before a profile exists."""


class ProfileExistsError(RuntimeError):
    """Raised when setup is attempted while a profile is active."""


@dataclass
class _Views:
    plan: PlanView
    scan: ScanView
    chat: ChatView


class ApplicationShell:
    """Routes user actions to the profile store and the tab views."""

    def __init__(self, profile_store: ProfileStore, gateway: NutritionGateway) -> None:
        self.profile_store = profile_store
        self.gateway = gateway
        self.profile: UserProfile | None = None
        self.state = ShellState.NO_PROFILE
        self._views: _Views | None = None

    def start(self) -> ShellState:
        """Load a persisted profile and pick the initial state."""
        profile = self.profile_store.load()
        if profile is not None:
            self._activate(profile)
        return self.state

    def create_profile(self, form: Mapping[str, object]) -> UserProfile:
        """Validate the setup form, persist the profile and show the plan."""
        if self.state is not ShellState.NO_PROFILE:
            raise ProfileExistsError("Reset the current profile first")
        profile = create_profile(form)
        self.profile_store.save(profile)
        self._activate(profile)
        _logger.info("Profile created")
        return profile

    def reset(self, confirm: Callable[[], bool]) -> bool:
        """Forget the profile once the user confirms; return True if reset."""
        if self.profile is None:
            return False
        if not confirm():
            return False
        self.profile_store.clear()
        self.profile = None
        self._views = None
        self.state = ShellState.NO_PROFILE
        _logger.info("Profile reset")
        return True

    def select_tab(self, tab: ShellState) -> ShellState:
        """Switch the visible tab; in-flight requests keep running."""
        if tab not in TABS:
            raise ValueError(f"Not a selectable tab: {tab.value}")
        self._require_views()
        self.state = tab
        return self.state

    @property
    def plan_view(self) -> PlanView:
        return self._require_views().plan

    @property
    def scan_view(self) -> ScanView:
        return self._require_views().scan

    @property
    def chat_view(self) -> ChatView:
        return self._require_views().chat

    def _activate(self, profile: UserProfile) -> None:
        self.profile = profile
        self._views = _Views(
            plan=PlanView(gateway=self.gateway, profile=profile),
            scan=ScanView(gateway=self.gateway, profile=profile),
            chat=ChatView(gateway=self.gateway, profile=profile),
        )
        self.state = ShellState.PLAN

    def _require_views(self) -> _Views:
        if self._views is None:
            raise NoActiveProfileError("Create a profile first")
        return self._views
