"""Segment raw LLM response text into typed markdown/code Segments.

Parses an assistant response (possibly still streaming) into:
- an optional dependency manifest prefix: `{...}}` at the very start
- MARKDOWN: prose between fences
- CODE: content of a triple-backtick fence (language tag stripped)

The whole accumulated buffer is re-parsed on every chunk. There is no
incremental parse state, so a truncated fence or manifest mid-stream is
simply a shorter, best-effort result.

// [LAW:dataflow-not-control-flow] parse_content() is a pure function: text in, ParseResult out.
// [LAW:one-source-of-truth] All response segmentation logic lives here.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


# ─── Data model ──────────────────────────────────────────────────────────────


class SegmentKind(Enum):
    MARKDOWN = "markdown"
    CODE = "code"


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    content: str


@dataclass(frozen=True)
class ParseResult:
    segments: tuple[Segment, ...]
    dependencies_string: str | None = None


# ─── Regex patterns ──────────────────────────────────────────────────────────

FENCE_RE = re.compile(r"```")

# Manifest: `{` at the top of the text through the FIRST `}}` (not a JSON parse)
MANIFEST_RE = re.compile(r"\A\s*\{.*?\}\}", re.DOTALL)

# Rest of an opening fence line: language tag, blanks, newline (or end of a
# still-streaming buffer)
OPEN_INFO_RE = re.compile(r"[A-Za-z0-9_+#.\-]*[ \t]*(?:\n|\Z)")

# Rest of a closing fence line
CLOSE_TAIL_RE = re.compile(r"[ \t]*(?:\n|\Z)")

# "key": "value" pairs inside a manifest
DEPENDENCY_PAIR_RE = re.compile(r'"([^"]+)"\s*:\s*"([^"]+)"')


# ─── Parsing ─────────────────────────────────────────────────────────────────


def split_manifest(text: str) -> tuple[str | None, str]:
    """Split a leading dependency manifest off the text.

    Returns (dependencies_string, remaining_text). A `}}` that only shows up
    after the first code fence is never a manifest terminator.
    """
    m = MANIFEST_RE.match(text)
    if m is None or "```" in m.group(0):
        return None, text
    return m.group(0), text[m.end():]


def _fence_parts(text: str) -> list[str]:
    """Split text on fence markers. Even indices are markdown, odd are code."""
    parts: list[str] = []
    pos = 0
    in_code = False
    while True:
        m = FENCE_RE.search(text, pos)
        if m is None:
            break
        parts.append(text[pos : m.start()])
        tail_re = CLOSE_TAIL_RE if in_code else OPEN_INFO_RE
        tail = tail_re.match(text, m.end())
        pos = tail.end() if tail else m.end()
        in_code = not in_code
    parts.append(text[pos:])
    # An open fence at end of text still yields a (possibly empty) code part;
    # a trailing markdown part is already last.
    return parts


def parse_content(text: str) -> ParseResult:
    """Parse raw response text into ordered Segments plus the manifest prefix.

    Never raises; partial fences and manifests resolve to a best-effort result.
    """
    dependencies_string, body = split_manifest(text)

    if not FENCE_RE.search(body):
        return ParseResult((Segment(SegmentKind.MARKDOWN, body),), dependencies_string)

    segments: list[Segment] = []
    for i, part in enumerate(_fence_parts(body)):
        if i % 2 == 1:
            # Empty code parts are kept: a just-opened fence mid-stream
            segments.append(Segment(SegmentKind.CODE, part))
        elif part.strip():
            segments.append(Segment(SegmentKind.MARKDOWN, part))

    logger.debug(
        "parsed %d segment(s) from %d chars (manifest=%s)",
        len(segments),
        len(text),
        dependencies_string is not None,
    )
    return ParseResult(tuple(segments), dependencies_string)


def parse_dependencies(dependencies_string: str | None = None) -> dict[str, str]:
    """Extract `"name": "version"` pairs from a manifest string.

    Lenient on purpose: the manifest may be malformed or half-streamed.
    Returns {} when nothing matches.
    """
    if not dependencies_string:
        return {}
    dependencies: dict[str, str] = {}
    for m in DEPENDENCY_PAIR_RE.finditer(dependencies_string):
        key = m.group(1).strip()
        value = m.group(2).strip()
        if key and value:
            dependencies[key] = value
    return dependencies


# ─── Accessors ───────────────────────────────────────────────────────────────


def _segments_of(result: ParseResult, kind: SegmentKind) -> list[Segment]:
    return [s for s in result.segments if s.kind == kind]


def first_code_segment(result: ParseResult) -> Segment | None:
    code = _segments_of(result, SegmentKind.CODE)
    return code[0] if code else None


def last_code_segment(result: ParseResult) -> Segment | None:
    code = _segments_of(result, SegmentKind.CODE)
    return code[-1] if code else None


def current_code(result: ParseResult) -> str:
    """Canonical app code: the first code segment, or "" if none yet."""
    seg = first_code_segment(result)
    return seg.content if seg is not None else ""


def title_inputs(result: ParseResult) -> tuple[str, str]:
    """Return (first markdown, first code) used to prompt for a session title."""
    markdown = _segments_of(result, SegmentKind.MARKDOWN)
    first_md = markdown[0].content.strip() if markdown else ""
    return first_md, current_code(result).strip()


# ─── Memoized parse ──────────────────────────────────────────────────────────


class CachedParser:
    """parse_content() behind a one-entry cache keyed by buffer length.

    Streaming re-renders often parse the same buffer several times; the
    cache never changes what parse_content() returns.
    """

    def __init__(self) -> None:
        self._key: tuple[int, str] | None = None
        self._result: ParseResult | None = None

    def parse(self, text: str) -> ParseResult:
        key = (len(text), text)
        if self._key != key or self._result is None:
            self._result = parse_content(text)
            self._key = key
        return self._result
