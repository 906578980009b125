"""FastAPI middleware that gives every caller a browser session id."""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Optional
import uuid

SESSION_HEADER = "X-Session-ID"


class SessionMiddleware(BaseHTTPMiddleware):
    """Attaches a session id to ``request.state`` and hands new ones back"""

    def __init__(self, app, session_cookie_name: str = "automation_session_id"):
        super().__init__(app)
        self.session_cookie_name = session_cookie_name

    async def dispatch(self, request: Request, call_next):
        """Resolves the session id, runs the request and persists new ids."""
        session_id = self._get_session_id(request)
        new_session = session_id is None
        if new_session:
            session_id = str(uuid.uuid4())

        request.state.session_id = session_id
        response = await call_next(request)

        # Header clients cannot read cookies, so the id is always echoed
        response.headers[SESSION_HEADER] = session_id
        if new_session and response.status_code < 400:
            response.set_cookie(
                key=self.session_cookie_name,
                value=session_id,
                max_age=3600 * 24,
                httponly=True,
                samesite="lax",
            )

        return response

    def _get_session_id(self, request: Request) -> Optional[str]:
        """Cookie first, then the header used by API clients"""
        return request.cookies.get(self.session_cookie_name) or request.headers.get(
            SESSION_HEADER
        )
