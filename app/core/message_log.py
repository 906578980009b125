"""Ordered, append-only record of a conversation."""

from typing import Iterator, List
from app.models.chat import Message


class MessageLog:
    """Conversation history owned by a single chat session."""

    def __init__(self):
        self._messages: List[Message] = []

    def append(self, message: Message):
        """Add a message at the end of the conversation."""
        self._messages.append(message)

    def snapshot(self) -> List[Message]:
        """Return the conversation in order, ready for transmission."""
        return list(self._messages)

    def clear(self):
        """Forget the whole conversation."""
        self._messages = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())
