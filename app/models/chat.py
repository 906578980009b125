"""Pydantic models for chat-related wire formats and gateway responses."""

from pydantic import BaseModel, ConfigDict, StringConstraints
from typing import Optional, Dict, Any, List, Literal, Annotated

from app.models.submission import SubmissionOutcome
from app.models.workspace import Workspace


class Message(BaseModel):
    """Data model for a single message in a chat history."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    content: str


class RemoteChatRequest(BaseModel):
    """Body sent to the remote chat service on every turn."""

    message: str
    conversation_history: List[Message]
    client_id: str


class ChatReply(BaseModel):
    """Response of the remote chat service.

    Either shape is accepted: a plain ``response`` text that may carry an
    embedded signal, or separate ``ready``/``payload``/``modal_endpoint`` fields.
    """

    response: Optional[str] = None
    # Kept loose so only a literal JSON true/object counts as a signal
    ready: Any = None
    payload: Any = None
    modal_endpoint: Optional[str] = None


class ChatTurnRequest(BaseModel):
    """Request model for sending a chat turn through the gateway."""

    message: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    workspace: Optional[Workspace] = None


class SessionView(BaseModel):
    """Snapshot of a chat session as exposed to the front end."""

    slug: str
    system_name: str
    mode: str
    state: str
    messages: List[Message]
    input_enabled: bool
    pending_payload: Optional[Dict[str, Any]] = None
    pending_payload_pretty: Optional[str] = None
    target_endpoint: Optional[str] = None
    outcome: Optional[SubmissionOutcome] = None
