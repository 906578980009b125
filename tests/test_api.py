"""API tests for the gateway."""

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.chat_client import ChatServiceClient
from app.core.execution_client import ExecutionServiceClient
from app.core.session_manager import session_manager
from app.main import app
from app.models.submission import WorkflowMode

SIGNAL_REPLY = 'Done! {"ready": true, "payload": {"order_id": 42}}'


@pytest.fixture
def client(monkeypatch, chat_service, execution_service):
    """A test client whose sessions talk to fake remote services."""
    monkeypatch.setattr(
        session_manager,
        "chat_client",
        ChatServiceClient(base_url="https://chat.test", transport=chat_service.transport),
    )
    monkeypatch.setattr(
        session_manager,
        "execution_client",
        ExecutionServiceClient(transport=execution_service.transport),
    )
    monkeypatch.setattr(session_manager, "mode", WorkflowMode.CONFIRM)
    session_manager._sessions.clear()
    yield TestClient(app)
    session_manager._sessions.clear()


def test_root_endpoint(client):
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Automation Chat Gateway"
    assert data["status"] == "running"


def test_health_endpoint(client):
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "active_sessions" in data


def test_session_id_is_handed_out(client):
    response = client.get("/health")
    assert response.headers["X-Session-ID"]
    assert "automation_session_id" in response.cookies


def test_invalid_endpoint(client):
    """Test calling an invalid endpoint."""
    response = client.get("/invalid")
    assert response.status_code == 404


def test_unknown_conversation(client):
    response = client.get("/chat/order-bot")
    assert response.status_code == 404


def test_blank_message_rejected(client):
    response = client.post("/chat/order-bot", json={"message": "  "})
    assert response.status_code == 422


def test_plain_chat_turn(client, chat_service):
    chat_service.reply_with(httpx.Response(200, json={"response": "Which size?"}))

    response = client.post(
        "/chat/order-bot",
        json={"message": "pizza", "workspace": {"slug": "order-bot", "name": "Pizza"}},
    )

    assert response.status_code == 200
    view = response.json()
    assert view["system_name"] == "Pizza"
    assert view["state"] == "idle"
    assert view["input_enabled"] is True
    assert view["messages"] == [
        {"role": "user", "content": "pizza"},
        {"role": "model", "content": "Which size?"},
    ]


def test_confirm_flow(client, chat_service, execution_service):
    chat_service.reply_with(httpx.Response(200, json={"response": SIGNAL_REPLY}))
    execution_service.reply_with(httpx.Response(200, json={"message": "Order placed"}))

    view = client.post("/chat/order-bot", json={"message": "go"}).json()
    assert view["state"] == "awaiting_confirmation"
    assert view["input_enabled"] is False
    assert view["pending_payload"] == {"order_id": 42}
    assert view["pending_payload_pretty"] == '{\n  "order_id": 42\n}'
    assert view["target_endpoint"] == "https://chat.test/systems/order-bot/execute"

    busy = client.post("/chat/order-bot", json={"message": "more"})
    assert busy.status_code == 409

    view = client.post("/chat/order-bot/confirm").json()
    assert view["state"] == "success"
    assert view["outcome"] == {"status": "success", "message": "Order placed"}

    again = client.post("/chat/order-bot/confirm")
    assert again.status_code == 409
    assert len(execution_service.requests) == 1

    view = client.post("/chat/order-bot/new").json()
    assert view["state"] == "idle"
    assert view["messages"] == []


def test_cancel_flow(client, chat_service, execution_service):
    chat_service.reply_with(httpx.Response(200, json={"response": SIGNAL_REPLY}))
    client.post("/chat/order-bot", json={"message": "go"})

    view = client.post("/chat/order-bot/cancel").json()

    assert view["state"] == "idle"
    assert view["pending_payload"] is None
    assert [m["content"] for m in view["messages"]] == ["go"]
    assert execution_service.requests == []


def test_error_and_retry_flow(client, chat_service, execution_service):
    chat_service.reply_with(httpx.Response(200, json={"response": SIGNAL_REPLY}))
    execution_service.reply_with(httpx.Response(500, text="quota exceeded"))
    client.post("/chat/order-bot", json={"message": "go"})

    view = client.post("/chat/order-bot/confirm").json()
    assert view["state"] == "error"
    assert view["outcome"]["message"] == "quota exceeded"

    view = client.post("/chat/order-bot/retry").json()
    assert view["state"] == "awaiting_confirmation"


def test_session_info_and_destroy(client, chat_service):
    chat_service.reply_with(httpx.Response(200, json={"response": "hi"}))
    client.post("/chat/order-bot", json={"message": "hello"})

    info = client.get("/session/info").json()
    assert [c["slug"] for c in info["conversations"]] == ["order-bot"]

    destroyed = client.delete("/session/").json()
    assert destroyed["conversations_removed"] == 1
    assert client.get("/chat/order-bot").status_code == 404
