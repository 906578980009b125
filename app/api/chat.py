"""Chat endpoints that drive the action submission workflow."""

import logging
from fastapi import APIRouter, Request, HTTPException

from app.core.chat_session import ChatSession
from app.core.exceptions import InvalidTransition
from app.core.session_manager import session_manager
from app.models.chat import ChatTurnRequest, SessionView

# --- Setup ---
router = APIRouter(prefix="/chat", tags=["chat"])
logger = logging.getLogger(__name__)


def _session_id(request: Request) -> str:
    session_id = getattr(request.state, "session_id", None)
    if not session_id:
        raise HTTPException(status_code=400, detail="Session ID is missing.")
    return session_id


async def get_chat_session(request: Request, slug: str) -> ChatSession:
    """Looks up an existing chat session or fails with 404."""
    session = await session_manager.get_session(_session_id(request), slug)
    if not session:
        raise HTTPException(status_code=404, detail=f"No conversation with '{slug}'.")
    return session


def _conflict(e: InvalidTransition) -> HTTPException:
    logger.info(f"Rejected request: {e}")
    return HTTPException(status_code=409, detail=str(e))


# --- Conversation ---


@router.post("/{slug}", response_model=SessionView)
async def send_message(request: Request, slug: str, turn: ChatTurnRequest):
    """Sends a user message to the automation system and returns the new state."""
    session = await session_manager.get_or_create_session(
        _session_id(request), slug, turn.workspace
    )
    try:
        await session.send_turn(turn.message)
    except InvalidTransition as e:
        raise _conflict(e)
    return session.view()


@router.get("/{slug}", response_model=SessionView)
async def get_conversation(request: Request, slug: str):
    """Returns the current conversation and workflow state."""
    session = await get_chat_session(request, slug)
    return session.view()


# --- Workflow actions ---


@router.post("/{slug}/confirm", response_model=SessionView)
async def confirm_action(request: Request, slug: str):
    """Submits the pending action and waits for the result."""
    session = await get_chat_session(request, slug)
    try:
        await session.confirm()
    except InvalidTransition as e:
        raise _conflict(e)
    return session.view()


@router.post("/{slug}/cancel", response_model=SessionView)
async def cancel_action(request: Request, slug: str):
    """Discards the pending action and returns to chatting."""
    session = await get_chat_session(request, slug)
    try:
        session.cancel()
    except InvalidTransition as e:
        raise _conflict(e)
    return session.view()


@router.post("/{slug}/retry", response_model=SessionView)
async def retry_action(request: Request, slug: str):
    """Puts a failed action back up for confirmation."""
    session = await get_chat_session(request, slug)
    try:
        session.retry()
    except InvalidTransition as e:
        raise _conflict(e)
    return session.view()


@router.post("/{slug}/new", response_model=SessionView)
async def new_chat(request: Request, slug: str):
    """Starts over with an empty conversation."""
    session = await get_chat_session(request, slug)
    try:
        session.new_chat()
    except InvalidTransition as e:
        raise _conflict(e)
    return session.view()
