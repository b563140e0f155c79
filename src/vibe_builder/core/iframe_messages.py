"""Typed postMessage events posted by the sandboxed preview iframe.

// [LAW:one-source-of-truth] The class IS the message type; callers dispatch with isinstance.
// [LAW:single-enforcer] parse_iframe_message is the sole iframe payload validation boundary.

Raw payload shape: {"type": ..., "state"?: bool, "data"?: str, "error"?: object}
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class IframeMessageKind(Enum):
    """Discriminator for iframe messages."""

    PREVIEW_READY = "preview-ready"
    PREVIEW_LOADED = "preview-loaded"
    STREAMING = "streaming"
    SCREENSHOT = "screenshot"
    SCREENSHOT_ERROR = "screenshot-error"
    IFRAME_ERROR = "iframe-error"


# ─── Message hierarchy ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class IframeMessage:
    """Base class for all iframe messages."""


@dataclass(frozen=True)
class PreviewReadyMessage(IframeMessage):
    """preview-ready / preview-loaded: the generated app has mounted."""

    kind: IframeMessageKind = IframeMessageKind.PREVIEW_READY


@dataclass(frozen=True)
class IframeStreamingMessage(IframeMessage):
    """The generated app started or stopped fetching data."""

    state: bool


@dataclass(frozen=True)
class ScreenshotMessage(IframeMessage):
    data: str


@dataclass(frozen=True)
class ScreenshotErrorMessage(IframeMessage):
    error: str


@dataclass(frozen=True)
class IframeErrorMessage(IframeMessage):
    """Runtime error reported from inside the generated app."""

    error: object


# ─── Parse boundary ──────────────────────────────────────────────────────────


def _parse_preview(kind: IframeMessageKind, _raw: dict) -> IframeMessage | None:
    return PreviewReadyMessage(kind=kind)


def _parse_streaming(_kind: IframeMessageKind, raw: dict) -> IframeMessage | None:
    state = raw.get("state")
    if state is None:
        return None
    return IframeStreamingMessage(state=bool(state))


def _parse_screenshot(_kind: IframeMessageKind, raw: dict) -> IframeMessage | None:
    data = raw.get("data")
    if not isinstance(data, str) or not data:
        return None
    return ScreenshotMessage(data=data)


def _parse_screenshot_error(_kind: IframeMessageKind, raw: dict) -> IframeMessage | None:
    error = raw.get("error")
    if not error:
        return None
    return ScreenshotErrorMessage(error=str(error))


def _parse_iframe_error(_kind: IframeMessageKind, raw: dict) -> IframeMessage | None:
    return IframeErrorMessage(error=raw.get("error"))


# [LAW:dataflow-not-control-flow] Dispatch table for iframe message parsing
_PARSERS: dict[IframeMessageKind, Callable[[IframeMessageKind, dict], IframeMessage | None]] = {
    IframeMessageKind.PREVIEW_READY: _parse_preview,
    IframeMessageKind.PREVIEW_LOADED: _parse_preview,
    IframeMessageKind.STREAMING: _parse_streaming,
    IframeMessageKind.SCREENSHOT: _parse_screenshot,
    IframeMessageKind.SCREENSHOT_ERROR: _parse_screenshot_error,
    IframeMessageKind.IFRAME_ERROR: _parse_iframe_error,
}


def parse_iframe_message(raw: object) -> IframeMessage | None:
    """Parse a raw postMessage payload into a typed IframeMessage.

    Returns None for anything that is not a recognized, well-formed message:
    the iframe shares the window with unrelated senders.
    """
    if not isinstance(raw, dict):
        return None
    try:
        kind = IframeMessageKind(raw.get("type"))
    except ValueError:
        return None
    return _PARSERS[kind](kind, raw)
