"""Chat message documents.

The raw text is the only stored field of an AI message. Segments and the
dependency manifest are recomputed from it on every load, never persisted
alongside it, so a stored message can never carry a stale parse.

// [LAW:one-source-of-truth] AiMessage.text is canonical; parse fields are derived.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property

from vibe_builder.core.segmentation import (
    ParseResult,
    Segment,
    current_code,
    parse_content,
    parse_dependencies,
)


ChatDocument = dict[str, object]


@dataclass(frozen=True)
class UserMessage:
    text: str
    timestamp: int
    session_id: str = ""
    type: str = field(default="user", init=False)

    def to_document(self) -> ChatDocument:
        return {
            "type": self.type,
            "session_id": self.session_id,
            "text": self.text,
            "created_at": self.timestamp,
        }


@dataclass(frozen=True)
class AiMessage:
    text: str
    timestamp: int
    session_id: str = ""
    is_streaming: bool = False
    type: str = field(default="ai", init=False)

    # cached_property writes to the instance __dict__, which frozen
    # dataclasses still allow.
    @cached_property
    def parsed(self) -> ParseResult:
        return parse_content(self.text)

    @property
    def segments(self) -> tuple[Segment, ...]:
        return self.parsed.segments

    @property
    def dependencies_string(self) -> str | None:
        return self.parsed.dependencies_string

    @property
    def dependencies(self) -> dict[str, str]:
        return parse_dependencies(self.dependencies_string)

    @property
    def code(self) -> str:
        return current_code(self.parsed)

    def to_document(self) -> ChatDocument:
        # is_streaming is in-memory only
        return {
            "type": self.type,
            "session_id": self.session_id,
            "text": self.text,
            "created_at": self.timestamp,
        }


Message = UserMessage | AiMessage


def message_from_document(doc: ChatDocument) -> Message:
    """Rebuild a message from its stored document.

    Raises:
        ValueError: If the document type is not "user" or "ai"
    """
    doc_type = doc.get("type")
    text = str(doc.get("text", "") or "")
    created_at = doc.get("created_at", 0)
    timestamp = created_at if isinstance(created_at, int) else 0
    session_id = str(doc.get("session_id", "") or "")
    if doc_type == "user":
        return UserMessage(text=text, timestamp=timestamp, session_id=session_id)
    if doc_type == "ai":
        return AiMessage(text=text, timestamp=timestamp, session_id=session_id)
    raise ValueError(f"Unknown chat document type: {doc_type!r}")
