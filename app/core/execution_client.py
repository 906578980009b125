"""Client for the execution endpoint that performs a detected action."""

import json
import httpx
import logging
from typing import Any, Dict, Optional

from app.config import settings
from app.core.exceptions import SubmissionFailure
from app.models.submission import SubmissionOutcome

logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_MESSAGE = "Your request has been submitted successfully!"
GENERIC_FAILURE_MESSAGE = "Failed to submit request"


class ExecutionServiceClient:
    """Posts an action payload to an execution endpoint, exactly once."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = (
            timeout if timeout is not None else settings.execution_timeout_seconds
        )
        self._transport = transport

    async def submit(self, endpoint: str, payload: Dict[str, Any]) -> SubmissionOutcome:
        """
        Sends the payload as the JSON body. Every HTTP or transport outcome is
        reported as a SubmissionOutcome; nothing is retried.
        """
        if not endpoint:
            raise SubmissionFailure("No endpoint configured for this system")

        logger.info(f"Submitting action payload to {endpoint}")
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.timeout
            ) as client:
                response = await client.post(endpoint, json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"Submission to {endpoint} failed: {e!r}")
            return SubmissionOutcome(status="error", message=GENERIC_FAILURE_MESSAGE)

        if response.is_success:
            return SubmissionOutcome(
                status="success",
                message=self._success_message(response) or DEFAULT_SUCCESS_MESSAGE,
            )

        logger.warning(f"Submission to {endpoint} returned HTTP {response.status_code}")
        return SubmissionOutcome(
            status="error", message=self._error_text(response) or GENERIC_FAILURE_MESSAGE
        )

    def _success_message(self, response: httpx.Response) -> Optional[str]:
        """Returns the ``message`` field of a JSON body, if there is one."""
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"] or None
        return None

    def _error_text(self, response: httpx.Response) -> str:
        """Returns the body text as sent, unwrapping a bare JSON string."""
        text = response.text.strip()
        try:
            decoded = json.loads(text)
        except ValueError:
            return text
        return decoded if isinstance(decoded, str) else text
