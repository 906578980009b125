"""Session management for per-user chat sessions"""

import asyncio
from typing import Dict, Optional, Any, Tuple
from app.config import settings
from app.core.chat_client import ChatServiceClient
from app.core.chat_session import ChatSession
from app.core.execution_client import ExecutionServiceClient
from app.models.submission import WorkflowMode
from app.models.workspace import Workspace
import logging

logger = logging.getLogger(__name__)

SessionKey = Tuple[str, str]


class SessionManager:
    """Manages chat sessions keyed by browser session and workspace slug"""

    _instance: Optional["SessionManager"] = None

    def __new__(cls):
        """Implements the singleton pattern for the SessionManager."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initializes the session manager's state."""
        if not hasattr(self, "_initialized"):
            self._initialized = True
            self._sessions: Dict[SessionKey, ChatSession] = {}
            self._lock = asyncio.Lock()
            self._cleanup_task: Optional[asyncio.Task] = None
            self.session_timeout_minutes = settings.session_timeout_minutes
            self.idle_timeout_minutes = settings.idle_timeout_minutes
            self.chat_client = ChatServiceClient()
            self.execution_client = ExecutionServiceClient()
            self.mode = WorkflowMode(settings.workflow_mode)

    async def start(self):
        """Start the cleanup task"""
        if not self._cleanup_task:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("Session manager started")

    async def stop(self):
        """Stop the cleanup task and drop all sessions"""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

        async with self._lock:
            self._sessions.clear()

        logger.info("Session manager stopped")

    async def get_or_create_session(
        self, session_id: str, slug: str, workspace: Optional[Workspace] = None
    ) -> ChatSession:
        """Get the chat session for this workspace, creating it if needed"""
        async with self._lock:
            key = (session_id, slug)
            if key in self._sessions:
                session = self._sessions[key]
                session.touch()
                return session

            logger.info(f"Creating chat session for '{slug}' in {session_id}")
            if workspace is None or workspace.slug != slug:
                workspace = Workspace(slug=slug)

            session = ChatSession(
                workspace,
                chat_client=self.chat_client,
                execution_client=self.execution_client,
                mode=self.mode,
            )
            self._sessions[key] = session
            return session

    async def get_session(self, session_id: str, slug: str) -> Optional[ChatSession]:
        """Get an existing chat session"""
        async with self._lock:
            session = self._sessions.get((session_id, slug))
            if session:
                session.touch()
            return session

    async def destroy_session(self, session_id: str) -> int:
        """Destroy every chat session of a browser session, except in-flight ones"""
        async with self._lock:
            keys = [
                key
                for key, session in self._sessions.items()
                if key[0] == session_id and not session.is_busy
            ]
            for key in keys:
                del self._sessions[key]
            if keys:
                logger.info(f"Destroyed {len(keys)} chat session(s) for {session_id}")
            return len(keys)

    async def _cleanup_loop(self):
        """Background task to clean up expired sessions"""
        while True:
            try:
                await asyncio.sleep(60)  # Check every minute
                await self._cleanup_expired_sessions()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in cleanup loop: {e}")

    async def _cleanup_expired_sessions(self):
        """Remove expired or idle sessions"""
        async with self._lock:
            expired_sessions = [
                key
                for key, session in self._sessions.items()
                if not session.is_busy
                and (
                    session.age_minutes > self.session_timeout_minutes
                    or session.idle_minutes > self.idle_timeout_minutes
                )
            ]

            for key in expired_sessions:
                logger.info(f"Cleaning up expired chat session {key[1]} in {key[0]}")
                del self._sessions[key]

    @property
    def active_sessions(self) -> int:
        """Get count of active sessions"""
        return len(self._sessions)

    def get_session_info(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        """Get information about all sessions, or those of one browser session"""
        return {
            "active_sessions": self.active_sessions,
            "sessions": [
                {
                    "session_id": key[0],
                    "slug": key[1],
                    "state": session.state.value,
                    "messages": len(session.log),
                    "age_minutes": round(session.age_minutes, 2),
                    "idle_minutes": round(session.idle_minutes, 2),
                    "created_at": session.created_at.isoformat(),
                }
                for key, session in self._sessions.items()
                if session_id is None or key[0] == session_id
            ],
        }


# Global instance
session_manager = SessionManager()
