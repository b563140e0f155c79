"""Streaming response handling: SSE chunks -> text deltas -> ParseResult.

The network call itself belongs to the caller; this module only consumes an
iterable of already-received byte (or str) chunks in the OpenAI/OpenRouter
chat-completions SSE format:

    data: {"choices": [{"delta": {"content": "..."}}]}
    data: [DONE]

// [LAW:single-enforcer] iter_sse_content is the sole SSE line decoding boundary.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import Iterable, Iterator
from typing import Callable

from vibe_builder.core.segmentation import CachedParser, ParseResult

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_LINE = "data: [DONE]"
PROCESSING_COMMENT = ": OPENROUTER PROCESSING"


def _content_of(line: str) -> str | None:
    """Return the text delta carried by one SSE line, if any."""
    if not line.startswith(DATA_PREFIX) or line == DONE_LINE:
        return None
    try:
        data = json.loads(line[len(DATA_PREFIX):])
    except json.JSONDecodeError:
        logger.warning("skipping malformed SSE data line: %.80s", line)
        return None
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) and content else None


def iter_sse_content(chunks: Iterable[bytes | str]) -> Iterator[str]:
    """Yield text deltas from raw SSE chunks.

    Lines may be split across chunks, and multi-byte UTF-8 sequences may be
    split across byte chunks; both are reassembled before parsing.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    for chunk in chunks:
        pending += decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        *lines, pending = pending.split("\n")
        for line in lines:
            line = line.rstrip("\r")
            if line.startswith(PROCESSING_COMMENT):
                continue
            content = _content_of(line)
            if content is not None:
                yield content
    pending += decoder.decode(b"", final=True)
    content = _content_of(pending.rstrip("\r"))
    if content is not None:
        yield content


def process_stream(
    chunks: Iterable[bytes | str],
    on_chunk: Callable[[str], None],
    on_complete: Callable[[], None],
    on_error: Callable[[Exception], None],
) -> None:
    """Drive callbacks from a chunk source.

    Errors raised while reading the source or inside on_chunk are handed to
    on_error instead of propagating; on_complete only runs on success.
    """
    try:
        for content in iter_sse_content(chunks):
            on_chunk(content)
    except Exception as exc:
        logger.error("error processing stream: %s", exc)
        on_error(exc)
        return
    on_complete()


class StreamAccumulator:
    """Growing response buffer, re-parsed in full on every chunk."""

    def __init__(self) -> None:
        self._text = ""
        self._parser = CachedParser()
        self.chunk_count = 0

    @property
    def text(self) -> str:
        return self._text

    def feed(self, chunk: str) -> ParseResult:
        self._text += chunk
        self.chunk_count += 1
        result = self._parser.parse(self._text)
        logger.debug(
            "chunk %d: %d chars buffered, %d segment(s)",
            self.chunk_count,
            len(self._text),
            len(result.segments),
        )
        return result

    def result(self) -> ParseResult:
        return self._parser.parse(self._text)
