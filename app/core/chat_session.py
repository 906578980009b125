"""A conversation with one automation system."""

import logging
from datetime import datetime
from typing import Optional

from app.core.chat_client import ChatServiceClient
from app.core.exceptions import ChatUnavailable, InvalidTransition
from app.core.execution_client import ExecutionServiceClient
from app.core.message_log import MessageLog
from app.core.payload_extractor import detect_signal
from app.core.submission_controller import SubmissionController
from app.models.chat import Message, SessionView
from app.models.submission import SubmissionOutcome, SubmissionState, WorkflowMode
from app.models.workspace import Workspace

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Sorry, there was an error processing your request."
PROCESSING_MESSAGE = "Processing your request..."


class ChatSession:
    """Runs chat turns and hands detected actions to the submission workflow."""

    def __init__(
        self,
        workspace: Workspace,
        chat_client: ChatServiceClient,
        execution_client: ExecutionServiceClient,
        mode: WorkflowMode = WorkflowMode.CONFIRM,
    ):
        self.workspace = workspace
        self.chat_client = chat_client
        self.log = MessageLog()
        self.controller = SubmissionController(
            workspace, execution_client, mode=mode, chat_api_base=chat_client.base_url
        )
        self.is_loading = False
        self.created_at = datetime.now()
        self.last_accessed = datetime.now()

    def touch(self):
        """Update last accessed time"""
        self.last_accessed = datetime.now()

    @property
    def age_minutes(self) -> float:
        return (datetime.now() - self.created_at).total_seconds() / 60

    @property
    def idle_minutes(self) -> float:
        return (datetime.now() - self.last_accessed).total_seconds() / 60

    @property
    def state(self) -> SubmissionState:
        return self.controller.state

    @property
    def is_busy(self) -> bool:
        """True while a network call of this session is in flight."""
        return self.is_loading or self.state in (
            SubmissionState.AUTO_SUBMITTING,
            SubmissionState.SUBMITTING,
        )

    @property
    def input_enabled(self) -> bool:
        return not self.is_loading and self.state == SubmissionState.IDLE

    async def send_turn(self, text: str) -> SubmissionState:
        """
        Sends a user message and processes the reply.

        A reply without a signal is appended to the log. A reply with one hands
        control to the submission controller; in auto mode the submission runs
        before this returns.
        """
        text = text.strip()
        if not text:
            raise ValueError("Message must not be empty")
        if self.is_loading:
            raise InvalidTransition("send a message", "awaiting a reply")
        if self.state != SubmissionState.IDLE:
            raise InvalidTransition("send a message", self.state.value)

        history = self.log.snapshot()
        self.log.append(Message(role="user", content=text))
        self.is_loading = True
        logger.info(f"Chat turn for '{self.workspace.slug}' ({len(history)} prior messages)")

        try:
            reply = await self.chat_client.send_turn(self.workspace.slug, text, history)
        except ChatUnavailable as e:
            logger.warning(f"Chat service unavailable for '{self.workspace.slug}': {e}")
            self.log.append(Message(role="model", content=APOLOGY_MESSAGE))
            return self.state
        finally:
            self.is_loading = False

        signal = detect_signal(reply)
        if signal is None:
            self.log.append(Message(role="model", content=reply.response or ""))
            return self.state

        logger.info(f"Action signal detected for '{self.workspace.slug}' ({signal.source})")
        if signal.source == "structured" and reply.response:
            self.log.append(Message(role="model", content=reply.response))
        self.controller.on_signal(signal)

        if self.state == SubmissionState.AUTO_SUBMITTING:
            self.log.append(Message(role="model", content=PROCESSING_MESSAGE))
            await self.controller.submit_automatically()
        return self.state

    async def confirm(self) -> SubmissionOutcome:
        return await self.controller.confirm()

    def cancel(self):
        self.controller.cancel()

    def retry(self):
        self.controller.retry()

    def new_chat(self):
        """Resets the workflow and empties the conversation."""
        if self.is_loading:
            raise InvalidTransition("start a new chat", "awaiting a reply")
        self.controller.reset()
        self.log.clear()

    def view(self) -> SessionView:
        signal = self.controller.signal
        return SessionView(
            slug=self.workspace.slug,
            system_name=self.workspace.display_name,
            mode=self.controller.mode.value,
            state=self.state.value,
            messages=self.log.snapshot(),
            input_enabled=self.input_enabled,
            pending_payload=signal.payload if signal else None,
            pending_payload_pretty=self.controller.pretty_payload,
            target_endpoint=self.controller.resolve_endpoint(signal) if signal else None,
            outcome=self.controller.outcome,
        )
