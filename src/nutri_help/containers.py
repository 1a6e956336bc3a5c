"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from nutri_help.adapters.json_file_store import JsonFileStore
from nutri_help.adapters.openai_generative_client import OpenAIGenerativeClient
from nutri_help.config import Settings
from nutri_help.services.gateway import NutritionGateway
from nutri_help.services.profiles import ProfileStore
from nutri_help.services.shell import ApplicationShell


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    profile_store: ProfileStore
    gateway: NutritionGateway
    shell: ApplicationShell
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    profile_store = ProfileStore(JsonFileStore(resolved_settings.profile_path))
    openai_client = OpenAIGenerativeClient.create(
        api_key=resolved_settings.openai_api_key,
        base_url=resolved_settings.openai_base_url,
    )
    gateway = NutritionGateway(
        client=openai_client,
        model=resolved_settings.openai_model,
        vision_model=resolved_settings.openai_vision_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    shell = ApplicationShell(profile_store=profile_store, gateway=gateway)

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        profile_store=profile_store,
        gateway=gateway,
        shell=shell,
        close_resources=close_resources,
    )
