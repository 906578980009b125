"""Session management endpoints"""

from fastapi import APIRouter, Request
from app.core.session_manager import session_manager
from typing import Dict, Any

router = APIRouter(prefix="/session", tags=["session"])


@router.get("/info")
async def get_session_info(request: Request) -> Dict[str, Any]:
    """Get the chat sessions of the current browser session"""
    session_id = getattr(request.state, "session_id", None)

    if not session_id:
        return {"error": "No session ID found", "session_id": None}

    info = session_manager.get_session_info(session_id)
    return {"session_id": session_id, "conversations": info["sessions"]}


@router.delete("/")
async def destroy_session(request: Request) -> Dict[str, Any]:
    """Destroy the chat sessions of the current browser session"""
    session_id = getattr(request.state, "session_id", None)

    if session_id:
        removed = await session_manager.destroy_session(session_id)
        return {
            "message": "Session destroyed",
            "session_id": session_id,
            "conversations_removed": removed,
        }
    else:
        return {"error": "No session to destroy"}
