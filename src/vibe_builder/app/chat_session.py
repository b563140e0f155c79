"""In-memory chat session: user turns plus the streaming AI reply.

Persistence is the host's document store. This module only produces and
consumes plain documents (see core.messages), keeping the raw AI text as the
single stored field.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import Callable

from vibe_builder.core.messages import (
    AiMessage,
    ChatDocument,
    Message,
    UserMessage,
    message_from_document,
)

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ChatSession:
    def __init__(
        self,
        session_id: str,
        title: str = "",
        *,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self.session_id = session_id
        self.title = title
        self._clock_ms = clock_ms
        self._messages: list[Message] = []

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def is_streaming(self) -> bool:
        last = self._messages[-1] if self._messages else None
        return isinstance(last, AiMessage) and last.is_streaming

    def latest_ai_message(self) -> AiMessage | None:
        for msg in reversed(self._messages):
            if isinstance(msg, AiMessage):
                return msg
        return None

    def add_user_message(self, text: str) -> UserMessage:
        msg = UserMessage(text=text, timestamp=self._clock_ms(), session_id=self.session_id)
        self._messages.append(msg)
        return msg

    def update_streaming(self, raw_text: str) -> AiMessage | None:
        """Replace the in-flight AI message with the full text received so far.

        Blank text is ignored so an empty placeholder never flashes in.
        """
        if not raw_text or not raw_text.strip():
            logger.debug("skipping empty streaming update")
            return None
        last = self._messages[-1] if self._messages else None
        timestamp = last.timestamp if isinstance(last, AiMessage) and last.is_streaming else self._clock_ms()
        msg = AiMessage(
            text=raw_text,
            timestamp=timestamp,
            session_id=self.session_id,
            is_streaming=True,
        )
        if isinstance(last, AiMessage) and last.is_streaming:
            self._messages[-1] = msg
        else:
            self._messages.append(msg)
        logger.debug(
            "streaming update: %d chars, %d segment(s)", len(raw_text), len(msg.segments)
        )
        return msg

    def finish_streaming(self) -> AiMessage | None:
        """Mark the in-flight AI message complete. Returns it, or None if none."""
        last = self._messages[-1] if self._messages else None
        if not (isinstance(last, AiMessage) and last.is_streaming):
            return None
        done = AiMessage(
            text=last.text,
            timestamp=last.timestamp,
            session_id=self.session_id,
            is_streaming=False,
        )
        self._messages[-1] = done
        return done

    def current_code(self) -> str:
        """App code of the latest AI reply (its first code segment)."""
        msg = self.latest_ai_message()
        return msg.code if msg is not None else ""

    def documents(self) -> list[ChatDocument]:
        return [m.to_document() for m in self._messages]

    @classmethod
    def from_documents(
        cls,
        session_id: str,
        docs: Iterable[ChatDocument],
        title: str = "",
    ) -> "ChatSession":
        """Rebuild a session; derived parse fields are recomputed from raw text."""
        session = cls(session_id, title)
        loaded = [message_from_document(doc) for doc in docs]
        session._messages = sorted(loaded, key=lambda m: m.timestamp)
        return session
