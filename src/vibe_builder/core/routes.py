"""Chat URL helpers shared by the view-state machine and session code.

Route shape: /chat/{session_id}/{encoded_title}[/app|/code|/data]

// [LAW:one-source-of-truth] View <-> URL suffix mapping lives here only.
"""

from __future__ import annotations

import re
from enum import Enum
from urllib.parse import quote


class ViewType(Enum):
    PREVIEW = "preview"
    CODE = "code"
    DATA = "data"


# [LAW:dataflow-not-control-flow] Suffix tables instead of per-view branches
VIEW_SUFFIXES: dict[ViewType, str] = {
    ViewType.PREVIEW: "app",
    ViewType.CODE: "code",
    ViewType.DATA: "data",
}
_SUFFIX_VIEWS: dict[str, ViewType] = {v: k for k, v in VIEW_SUFFIXES.items()}

_VIEW_SUFFIX_RE = re.compile(r"/(app|code|data)$")


def encode_title(title: str) -> str:
    """URL-encode a session title the way chat links are built."""
    return quote(title or "untitled-session", safe="-_.!~*'()").lower().replace("%20", "-")


def view_from_path(path: str) -> ViewType:
    """URL path suffix -> view. Anything unrecognized means preview."""
    m = _VIEW_SUFFIX_RE.search(path or "")
    if m is None:
        return ViewType.PREVIEW
    return _SUFFIX_VIEWS[m.group(1)]


def has_view_suffix(path: str) -> bool:
    return _VIEW_SUFFIX_RE.search(path or "") is not None


def has_explicit_view_suffix(path: str) -> bool:
    """True when the user pinned the URL to /code or /data."""
    path = path or ""
    return path.endswith("/code") or path.endswith("/data")


def base_path(path: str) -> str:
    """Strip a trailing view suffix."""
    return _VIEW_SUFFIX_RE.sub("", path or "")


def session_path(session_id: str, encoded_title: str) -> str:
    return f"/chat/{session_id}/{encoded_title}"


def view_path(session_id: str, encoded_title: str, view: ViewType) -> str:
    return f"{session_path(session_id, encoded_title)}/{VIEW_SUFFIXES[view]}"
