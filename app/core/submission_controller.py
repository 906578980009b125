"""State machine that takes a detected action signal through to a result."""

import json
import logging
from typing import Optional
from urllib.parse import quote

from app.config import settings
from app.core.exceptions import InvalidTransition, SubmissionFailure
from app.core.execution_client import ExecutionServiceClient, GENERIC_FAILURE_MESSAGE
from app.models.submission import (
    ActionSignal,
    SubmissionOutcome,
    SubmissionState,
    WorkflowMode,
)
from app.models.workspace import Workspace

logger = logging.getLogger(__name__)

LIVE_STATES = {
    SubmissionState.DETECTED,
    SubmissionState.AWAITING_CONFIRMATION,
    SubmissionState.AUTO_SUBMITTING,
    SubmissionState.SUBMITTING,
}


class SubmissionController:
    """
    Owns the single live ActionSignal of a chat session.

    In the confirmation variant a signal waits in ``awaiting_confirmation`` for
    ``confirm()`` or ``cancel()``; in the auto-submit variant it goes straight
    to ``auto_submitting``. Either way exactly one execution call is made per
    submission attempt, and none is ever made automatically a second time.
    """

    def __init__(
        self,
        workspace: Workspace,
        execution_client: ExecutionServiceClient,
        mode: WorkflowMode = WorkflowMode.CONFIRM,
        chat_api_base: Optional[str] = None,
    ):
        self.workspace = workspace
        self.execution_client = execution_client
        self.mode = mode
        self.chat_api_base = (chat_api_base or settings.chat_api_base).rstrip("/")
        self.state = SubmissionState.IDLE
        self.signal: Optional[ActionSignal] = None
        self.outcome: Optional[SubmissionOutcome] = None

    @property
    def is_live(self) -> bool:
        """True while a signal is under confirmation or in flight."""
        return self.state in LIVE_STATES

    @property
    def pretty_payload(self) -> Optional[str]:
        if self.signal is None:
            return None
        return json.dumps(self.signal.payload, indent=2, ensure_ascii=False)

    def _require(self, operation: str, *allowed: SubmissionState):
        if self.state not in allowed:
            raise InvalidTransition(operation, self.state.value)

    def _move(self, state: SubmissionState):
        logger.info(
            f"Workflow for '{self.workspace.slug}': {self.state.value} -> {state.value}"
        )
        self.state = state

    def resolve_endpoint(self, signal: ActionSignal) -> str:
        """Signal target first, then the workspace endpoint, then the derived default."""
        if signal.target_endpoint:
            return signal.target_endpoint
        if self.workspace.modal_url:
            return self.workspace.modal_url
        return f"{self.chat_api_base}/systems/{quote(self.workspace.slug, safe='')}/execute"

    def on_signal(self, signal: ActionSignal) -> SubmissionState:
        """Takes over a freshly detected signal."""
        self._require("accept a new action", SubmissionState.IDLE)
        self.signal = signal
        self.outcome = None
        self._move(SubmissionState.DETECTED)

        if self.mode == WorkflowMode.AUTO:
            self._move(SubmissionState.AUTO_SUBMITTING)
        else:
            self._move(SubmissionState.AWAITING_CONFIRMATION)
        return self.state

    async def confirm(self) -> SubmissionOutcome:
        """Submits the signal the user approved."""
        self._require("confirm", SubmissionState.AWAITING_CONFIRMATION)
        return await self._submit()

    async def submit_automatically(self) -> SubmissionOutcome:
        """Submits the signal without asking the user."""
        self._require("submit", SubmissionState.AUTO_SUBMITTING)
        return await self._submit()

    async def _submit(self) -> SubmissionOutcome:
        # Flipped before the first await so a concurrent confirm is rejected
        self._move(SubmissionState.SUBMITTING)
        endpoint = self.resolve_endpoint(self.signal)

        try:
            outcome = await self.execution_client.submit(endpoint, self.signal.payload)
        except SubmissionFailure as e:
            outcome = SubmissionOutcome(status="error", message=str(e))
        except Exception as e:
            logger.error(f"Unexpected error while submitting: {e}", exc_info=True)
            outcome = SubmissionOutcome(status="error", message=GENERIC_FAILURE_MESSAGE)

        self.outcome = outcome
        if outcome.status == "success":
            self._move(SubmissionState.SUCCESS)
        else:
            self._move(SubmissionState.ERROR)
        return outcome

    def cancel(self):
        """Discards the pending signal without contacting anyone."""
        self._require(
            "cancel",
            SubmissionState.DETECTED,
            SubmissionState.AWAITING_CONFIRMATION,
        )
        self.signal = None
        self._move(SubmissionState.IDLE)

    def retry(self):
        """Puts a failed signal back in front of the user."""
        if self.mode != WorkflowMode.CONFIRM:
            raise InvalidTransition("retry", f"{self.state.value} in auto mode")
        self._require("retry", SubmissionState.ERROR)
        self.outcome = None
        self._move(SubmissionState.AWAITING_CONFIRMATION)

    def reset(self):
        """Forgets the workflow so a new conversation can start."""
        self._require(
            "start a new chat",
            SubmissionState.IDLE,
            SubmissionState.DETECTED,
            SubmissionState.AWAITING_CONFIRMATION,
            SubmissionState.SUCCESS,
            SubmissionState.ERROR,
        )
        self.signal = None
        self.outcome = None
        if self.state != SubmissionState.IDLE:
            self._move(SubmissionState.IDLE)
