"""Client for the remote conversational agent of an automation system."""

import httpx
import logging
from typing import List, Optional
from urllib.parse import quote

from app.config import settings
from app.core.exceptions import ChatUnavailable
from app.models.chat import ChatReply, Message, RemoteChatRequest

logger = logging.getLogger(__name__)


class ChatServiceClient:
    """Sends chat turns to ``POST /systems/{slug}/chat``.

    The remote service keeps no state between calls, so every turn carries the
    full prior conversation.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client_id: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.chat_api_base).rstrip("/")
        self.client_id = client_id or settings.client_id
        self.timeout = timeout if timeout is not None else settings.chat_timeout_seconds
        self.retries = retries if retries is not None else settings.chat_connect_retries
        self._transport = transport

    def _make_client(self) -> httpx.AsyncClient:
        transport = self._transport or httpx.AsyncHTTPTransport(retries=self.retries)
        return httpx.AsyncClient(transport=transport, timeout=self.timeout)

    def chat_url(self, slug: str) -> str:
        return f"{self.base_url}/systems/{quote(slug, safe='')}/chat"

    async def send_turn(
        self, slug: str, user_text: str, history: List[Message]
    ) -> ChatReply:
        """
        Sends one user message with the conversation that preceded it.
        Raises ChatUnavailable on transport errors, non-2xx statuses and bad bodies.
        """
        body = RemoteChatRequest(
            message=user_text,
            conversation_history=history,
            client_id=self.client_id,
        )

        try:
            async with self._make_client() as client:
                response = await client.post(
                    self.chat_url(slug), json=body.model_dump(mode="json")
                )
                response.raise_for_status()
                return ChatReply.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            raise ChatUnavailable(
                f"Chat service returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ChatUnavailable(f"Chat service unreachable: {e!r}") from e
        except ValueError as e:
            raise ChatUnavailable("Chat service returned an unreadable body") from e
