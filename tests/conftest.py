"""Shared fixtures: fake remote services built on httpx.MockTransport."""

import asyncio
import json
import httpx
import pytest

from app.core.chat_client import ChatServiceClient
from app.core.chat_session import ChatSession
from app.core.execution_client import ExecutionServiceClient
from app.models.submission import WorkflowMode
from app.models.workspace import Workspace

CHAT_BASE = "https://chat.test"


class FakeService:
    """Records requests and answers them from a queue of responses."""

    def __init__(self):
        self.requests = []
        self.responses = []

    def reply_with(self, *responses):
        self.responses.extend(responses)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        # Yield like a real network call would
        await asyncio.sleep(0)
        response = self.responses.pop(0) if self.responses else httpx.Response(200, json={})
        if isinstance(response, Exception):
            raise response
        return response

    def bodies(self):
        return [json.loads(request.content) for request in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def chat_service():
    return FakeService()


@pytest.fixture
def execution_service():
    return FakeService()


@pytest.fixture
def chat_client(chat_service):
    return ChatServiceClient(
        base_url=CHAT_BASE,
        client_id="test-client-001",
        timeout=5,
        transport=chat_service.transport,
    )


@pytest.fixture
def execution_client(execution_service):
    return ExecutionServiceClient(timeout=5, transport=execution_service.transport)


@pytest.fixture
def workspace():
    return Workspace(slug="order-bot")


@pytest.fixture
def make_session(workspace, chat_client, execution_client):
    def _make(mode=WorkflowMode.CONFIRM, workspace=workspace):
        return ChatSession(workspace, chat_client, execution_client, mode=mode)

    return _make
