"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from nutri_help.api.models import ChatRequest, ResetRequest
from nutri_help.app_logging import configure_logging
from nutri_help.containers import AppContainer
from nutri_help.domain.chat import ChatMessage
from nutri_help.services.profiles import ProfileValidationError
from nutri_help.services.shell import (
    ApplicationShell,
    NoActiveProfileError,
    ProfileExistsError,
    ShellState,
)
from nutri_help.services.views import ChatView, PlanView, ScanView, ViewBusyError


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    debug_errors = container.settings.environment == "local"
    initial_state = container.shell.start()
    logger.info("Starting in state %s", initial_state.value)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ProfileValidationError)
    async def profile_invalid(
        request: Request, exc: ProfileValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": exc.messages},
        )

    @app.exception_handler(NoActiveProfileError)
    @app.exception_handler(ProfileExistsError)
    @app.exception_handler(ViewBusyError)
    async def conflict(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    def _shell(request: Request) -> ApplicationShell:
        state_container: AppContainer = request.app.state.container
        return state_container.shell

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/state")
    async def shell_state(request: Request) -> dict[str, object]:
        """Return the current screen and the active profile."""
        shell = _shell(request)
        return {
            "state": shell.state.value,
            "profile": (
                shell.profile.model_dump(mode="json", by_alias=True)
                if shell.profile
                else None
            ),
        }

    @app.post("/profile")
    async def create_profile(
        form: dict[str, Any], request: Request
    ) -> dict[str, object]:
        """Create the profile from the setup form and open the plan tab."""
        shell = _shell(request)
        profile = shell.create_profile(form)
        return {
            "state": shell.state.value,
            "profile": profile.model_dump(mode="json", by_alias=True),
        }

    @app.post("/profile/reset")
    async def reset_profile(body: ResetRequest, request: Request) -> dict[str, object]:
        """Forget the profile when the user confirmed the reset."""
        shell = _shell(request)
        was_reset = shell.reset(lambda: body.confirm)
        return {"reset": was_reset, "state": shell.state.value}

    @app.post("/tabs/{tab}")
    async def select_tab(tab: str, request: Request) -> dict[str, str]:
        """Switch the visible tab."""
        shell = _shell(request)
        try:
            shell.select_tab(ShellState(tab))
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown tab: {tab}"
            ) from exc
        return {"state": shell.state.value}

    @app.get("/plan")
    async def plan(request: Request) -> dict[str, object]:
        """Show the meal plan, generating it the first time."""
        view = _shell(request).plan_view
        await view.open()
        return _plan_payload(view, debug_errors)

    @app.post("/plan/generate")
    async def regenerate_plan(request: Request) -> dict[str, object]:
        """Request a new plan, or retry after a failure."""
        view = _shell(request).plan_view
        await view.generate()
        return _plan_payload(view, debug_errors)

    @app.post("/plan/expand/{meal_name}")
    async def toggle_recipe(meal_name: str, request: Request) -> dict[str, object]:
        """Expand or collapse a recipe card."""
        view = _shell(request).plan_view
        view.toggle_recipe(meal_name)
        return _plan_payload(view, debug_errors)

    @app.get("/scan")
    async def scan_state(request: Request) -> dict[str, object]:
        """Show the latest scan result or error."""
        return _scan_payload(_shell(request).scan_view, debug_errors)

    @app.post("/scan")
    async def scan(request: Request) -> dict[str, object]:
        """Analyze a product photo sent as the raw request body."""
        view = _shell(request).scan_view
        image_bytes = await request.body()
        content_type = request.headers.get("content-type", "")
        mime_type = content_type if content_type.startswith("image/") else None
        await view.scan(image_bytes, mime_type)
        return _scan_payload(view, debug_errors)

    @app.post("/scan/retry")
    async def retry_scan(request: Request) -> dict[str, object]:
        """Re-analyze the last photo after a failure."""
        view = _shell(request).scan_view
        await view.retry()
        return _scan_payload(view, debug_errors)

    @app.get("/chat")
    async def chat_history(request: Request) -> dict[str, object]:
        """Return the conversation so far."""
        return _chat_payload(_shell(request).chat_view)

    @app.post("/chat")
    async def chat(body: ChatRequest, request: Request) -> dict[str, object]:
        """Send a question to the assistant."""
        view = _shell(request).chat_view
        reply = await view.send(body.message)
        payload = _chat_payload(view)
        payload["reply"] = _message_payload(reply) if reply else None
        return payload

    return app


def _error_payload(
    message: str | None, detail: str | None, debug: bool
) -> dict[str, object] | None:
    """Return a user-facing error, with debug info when running locally."""
    if message is None:
        return None
    payload: dict[str, object] = {"message": message}
    if debug and detail:
        payload["debug"] = detail
    return payload


def _plan_payload(view: PlanView, debug: bool) -> dict[str, object]:
    return {
        "status": view.status.value,
        "plan": (
            view.plan.model_dump(mode="json", by_alias=True) if view.plan else None
        ),
        "expandedMeal": view.expanded_meal,
        "error": _error_payload(view.error, view.error_detail, debug),
    }


def _scan_payload(view: ScanView, debug: bool) -> dict[str, object]:
    return {
        "status": view.status.value,
        "result": (
            view.result.model_dump(mode="json", by_alias=True)
            if view.result
            else None
        ),
        "preview": view.preview,
        "error": _error_payload(view.error, view.error_detail, debug),
    }


def _message_payload(message: ChatMessage) -> dict[str, object]:
    return {
        "id": message.id,
        "role": message.role.value,
        "text": message.text,
        "timestamp": message.timestamp.isoformat(),
    }


def _chat_payload(view: ChatView) -> dict[str, object]:
    return {
        "inFlight": view.in_flight,
        "messages": [_message_payload(message) for message in view.messages],
    }
