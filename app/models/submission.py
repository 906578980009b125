"""Pydantic models for detected action signals and submission results."""

from enum import Enum
from pydantic import BaseModel, ConfigDict
from typing import Optional, Dict, Any, Literal


class SubmissionState(str, Enum):
    """States of the submission workflow."""

    IDLE = "idle"
    DETECTED = "detected"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    AUTO_SUBMITTING = "auto_submitting"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class WorkflowMode(str, Enum):
    """Whether a detected signal waits for the user or is submitted at once."""

    CONFIRM = "confirm"
    AUTO = "auto"


class ActionSignal(BaseModel):
    """An executable action detected in (or alongside) a chat reply."""

    model_config = ConfigDict(frozen=True)

    ready: Literal[True] = True
    payload: Dict[str, Any]
    target_endpoint: Optional[str] = None
    source: Literal["text", "structured"] = "text"


class SubmissionOutcome(BaseModel):
    """Terminal result of submitting an action signal."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success", "error"]
    message: str
