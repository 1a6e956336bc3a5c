"""Tests for the local HTTP API."""

import json

from fastapi.testclient import TestClient

from nutri_help.api.app import create_app
from nutri_help.containers import AppContainer
from nutri_help.domain.profile import UserProfile
from nutri_help.services.gateway import CHAT_FAILURE_REPLY, ServiceError
from tests.conftest import FakeGenerativeClient, scan_payload

_FORM = {
    "name": "Mary",
    "age": 68,
    "gender": "Female",
    "conditions": "Diabetes, ",
    "allergies": "Peanuts",
    "preferences": "",
}


def test_health(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    assert client.get("/health").json() == {"status": "ok"}


def test_profile_setup_flow(container: AppContainer, mary: UserProfile) -> None:
    client = TestClient(create_app(container))

    assert client.get("/state").json() == {"state": "no_profile", "profile": None}

    response = client.post("/profile", json=_FORM)

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "plan"
    assert data["profile"]["healthConditions"] == ["Diabetes"]
    assert container.profile_store.load() == mary


def test_profile_validation_errors(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post("/profile", json={**_FORM, "name": " ", "age": 130})

    assert response.status_code == 422
    assert len(response.json()["detail"]) == 2
    assert container.profile_store.load() is None


def test_views_require_profile(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    assert client.get("/plan").status_code == 409
    assert client.post("/tabs/chat").status_code == 409


def test_app_starts_on_plan_with_saved_profile(
    container: AppContainer, mary: UserProfile
) -> None:
    container.profile_store.save(mary)
    client = TestClient(create_app(container))

    assert client.get("/state").json()["state"] == "plan"


def test_plan_view_and_expand(container: AppContainer, mary: UserProfile) -> None:
    container.profile_store.save(mary)
    client = TestClient(create_app(container))

    data = client.get("/plan").json()

    assert data["status"] == "success"
    assert len(data["plan"]["meals"]) == 4
    assert data["plan"]["meals"][0]["mealType"] == "Breakfast"
    assert data["plan"]["dailyTips"][0] == "Drink plenty of water"

    expanded = client.post("/plan/expand/Salmon salad").json()
    assert expanded["expandedMeal"] == "Salmon salad"


def test_plan_failure_shows_error_with_retry(
    container: AppContainer,
    generative_client: FakeGenerativeClient,
    mary: UserProfile,
) -> None:
    container.profile_store.save(mary)
    client = TestClient(create_app(container))
    original_reply = generative_client.reply
    generative_client.reply = ServiceError("offline")

    data = client.get("/plan").json()

    assert data["status"] == "failed"
    assert data["plan"] is None
    assert data["error"]["message"].startswith("Unable to generate meal plan")
    assert "debug" not in data["error"]

    generative_client.reply = original_reply
    retried = client.post("/plan/generate").json()
    assert retried["status"] == "success"
    assert retried["error"] is None


def test_scan_uses_body_and_content_type(
    container: AppContainer,
    generative_client: FakeGenerativeClient,
    mary: UserProfile,
) -> None:
    container.profile_store.save(mary)
    client = TestClient(create_app(container))
    generative_client.reply = json.dumps(scan_payload())

    response = client.post(
        "/scan", content=b"image-bytes", headers={"Content-Type": "image/png"}
    )

    data = response.json()
    assert data["status"] == "success"
    assert data["result"]["warningLevel"] == "Danger"
    assert data["result"]["isSafe"] is False
    assert data["preview"].startswith("data:image/png;base64,")
    assert generative_client.calls[-1]["image"].data == b"image-bytes"


def test_scan_failure_then_retry(
    container: AppContainer,
    generative_client: FakeGenerativeClient,
    mary: UserProfile,
) -> None:
    container.profile_store.save(mary)
    client = TestClient(create_app(container))
    generative_client.reply = ""

    failed = client.post(
        "/scan",
        content=b"\xff\xd8\xffjpeg",
        headers={"Content-Type": "application/octet-stream"},
    ).json()

    assert failed["status"] == "failed"
    assert failed["error"]["message"].startswith("Could not analyze the image")
    assert generative_client.calls[-1]["image"].mime_type == "image/jpeg"

    generative_client.reply = json.dumps(scan_payload())
    retried = client.post("/scan/retry").json()
    assert retried["status"] == "success"
    assert client.get("/scan").json()["result"]["productName"] == "Choc-nut bar"


def test_chat_flow_never_errors(
    container: AppContainer,
    generative_client: FakeGenerativeClient,
    mary: UserProfile,
) -> None:
    container.profile_store.save(mary)
    client = TestClient(create_app(container))
    generative_client.reply = ServiceError("offline")

    response = client.post("/chat", json={"message": "Is porridge good for me?"})

    assert response.status_code == 200
    data = response.json()
    assert data["reply"]["text"] == CHAT_FAILURE_REPLY
    assert [message["role"] for message in data["messages"]] == [
        "model",
        "user",
        "model",
    ]
    assert client.get("/chat").json()["messages"][1]["text"] == (
        "Is porridge good for me?"
    )


def test_tab_switch_and_reset(container: AppContainer, mary: UserProfile) -> None:
    container.profile_store.save(mary)
    client = TestClient(create_app(container))

    assert client.post("/tabs/scan").json() == {"state": "scan"}
    assert client.post("/tabs/settings").status_code == 404

    declined = client.post("/profile/reset", json={"confirm": False}).json()
    assert declined == {"reset": False, "state": "scan"}
    assert container.profile_store.load() == mary

    confirmed = client.post("/profile/reset", json={"confirm": True}).json()
    assert confirmed == {"reset": True, "state": "no_profile"}
    assert container.profile_store.load() is None


def test_profile_setup_rejected_while_profile_active(
    container: AppContainer, mary: UserProfile
) -> None:
    container.profile_store.save(mary)
    client = TestClient(create_app(container))
    client.post("/tabs/chat")

    response = client.post("/profile", json={"name": "Eve", "age": 90})

    assert response.status_code == 409
    assert client.get("/state").json()["state"] == "chat"
    assert container.profile_store.load() == mary
