"""View-state machine: which of preview/code/data to show, and when to navigate.

Inputs arrive as ViewInputs snapshots (streaming flag, preview readiness,
code, URL path, viewport) plus iframe messages and explicit user actions.
Outputs are a ViewState snapshot and calls to the host's navigate(path).

Transition rules are evaluated per update() in observation order, against
the previous snapshot. The result depends only on the latest values, not on
how many intermediate updates arrived in between.

// [LAW:single-enforcer] _navigate_to is the only caller of the navigate callback.
// [LAW:one-source-of-truth] once-only flags live on the machine instance, never at module level.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable

from vibe_builder.app.auto_navigation import DeferredNavigation
from vibe_builder.core.iframe_messages import (
    IframeErrorMessage,
    IframeMessage,
    IframeStreamingMessage,
    PreviewReadyMessage,
    ScreenshotErrorMessage,
    ScreenshotMessage,
    parse_iframe_message,
)
from vibe_builder.core.routes import (
    ViewType,
    encode_title,
    has_explicit_view_suffix,
    has_view_suffix,
    view_from_path,
    view_path,
)
from vibe_builder.io.settings import ViewStateConfig

logger = logging.getLogger(__name__)


# ─── Value types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ViewInputs:
    """One observation of everything the machine reacts to."""

    code: str = ""
    is_streaming: bool = False
    preview_ready: bool = False
    path: str = ""
    session_id: str | None = None
    title: str | None = None
    viewport_width: int = 1280
    initial_load: bool = True
    # None means "not driven by the host"; iframe messages own the flag then
    is_iframe_fetching: bool | None = None

    @property
    def has_code(self) -> bool:
        return bool(self.code)

    @property
    def encoded_title(self) -> str:
        return encode_title(self.title) if self.title else ""

    def with_changes(self, **changes) -> "ViewInputs":
        return replace(self, **changes)


@dataclass(frozen=True)
class ViewControl:
    enabled: bool
    label: str
    icon: str
    loading: bool = False


@dataclass(frozen=True)
class ViewControls:
    preview: ViewControl
    code: ViewControl
    data: ViewControl

    def get(self, view: ViewType) -> ViewControl:
        return getattr(self, view.value)


@dataclass(frozen=True)
class ViewState:
    current_view: ViewType
    display_view: ViewType
    view_controls: ViewControls
    show_view_controls: bool
    mobile_preview_shown: bool
    user_clicked_back: bool
    is_iframe_fetching: bool
    session_id: str | None
    encoded_title: str
    show_welcome: bool
    files_content: dict[str, dict[str, object]] = field(default_factory=dict)


# ─── Pure derivations ────────────────────────────────────────────────────────


def build_view_controls(inputs: ViewInputs, is_iframe_fetching: bool) -> ViewControls:
    """Per-view enabled/loading flags for the tab controls.

    Data stays disabled while streaming: the app's document store may be mid-write.
    """
    return ViewControls(
        preview=ViewControl(
            enabled=inputs.preview_ready,
            label="App",
            icon="preview-icon",
            loading=is_iframe_fetching,
        ),
        code=ViewControl(
            enabled=True,
            label="Code",
            icon="code-icon",
            loading=inputs.is_streaming and not inputs.preview_ready and inputs.has_code,
        ),
        data=ViewControl(
            enabled=not inputs.is_streaming,
            label="Data",
            icon="data-icon",
            loading=False,
        ),
    )


def derive_display_view(
    inputs: ViewInputs,
    *,
    is_mobile: bool,
    mobile_preview_shown: bool,
    initial_navigation_done: bool,
) -> ViewType:
    """Which panel to show right now. May differ from the URL-derived view."""
    if is_mobile:
        return ViewType.PREVIEW if mobile_preview_shown else ViewType.CODE
    if inputs.is_streaming and not initial_navigation_done:
        return ViewType.CODE
    if initial_navigation_done and not inputs.preview_ready and not has_view_suffix(inputs.path):
        # Watch the code being written until the preview can take over
        return ViewType.CODE
    return view_from_path(inputs.path)


# ─── State machine ───────────────────────────────────────────────────────────


class ViewStateMachine:
    """Per-session view state. Create one per mounted chat view."""

    def __init__(
        self,
        inputs: ViewInputs,
        navigate: Callable[[str], None],
        *,
        on_back_clicked: Callable[[], None] | None = None,
        on_preview_loaded: Callable[[], None] | None = None,
        on_screenshot_captured: Callable[[str | None], None] | None = None,
        on_iframe_error: Callable[[object], None] | None = None,
        config: ViewStateConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or ViewStateConfig()
        self._navigate = navigate
        self._on_back_clicked = on_back_clicked
        self._on_preview_loaded = on_preview_loaded
        self._on_screenshot_captured = on_screenshot_captured
        self._on_iframe_error = on_iframe_error
        self._deferred = DeferredNavigation(self._config.auto_navigate_delay, clock)

        self._inputs = inputs
        self.initial_navigation_done = False
        self.mobile_preview_shown = True
        self.user_clicked_back = False
        self.is_iframe_fetching = bool(inputs.is_iframe_fetching)
        # (path when issued, target) of the last navigate() call; cleared when the path moves
        self._last_navigation: tuple[str, str] | None = None
        # Set by user actions: the pending iframe timer still fires, minus the navigation
        self._auto_navigation_vetoed = False

        self._apply_initial_load(inputs)

    # ─── Derived properties ──────────────────────────────────────────────

    @property
    def inputs(self) -> ViewInputs:
        return self._inputs

    @property
    def is_mobile(self) -> bool:
        return self._inputs.viewport_width < self._config.mobile_breakpoint

    @property
    def current_view(self) -> ViewType:
        return view_from_path(self._inputs.path)

    @property
    def display_view(self) -> ViewType:
        return derive_display_view(
            self._inputs,
            is_mobile=self.is_mobile,
            mobile_preview_shown=self.mobile_preview_shown,
            initial_navigation_done=self.initial_navigation_done,
        )

    @property
    def view_controls(self) -> ViewControls:
        return build_view_controls(self._inputs, self.is_iframe_fetching)

    @property
    def navigation_pending(self) -> bool:
        return self._deferred.pending

    @property
    def state(self) -> ViewState:
        inputs = self._inputs
        show_welcome = not inputs.is_streaming and not inputs.has_code
        return ViewState(
            current_view=self.current_view,
            display_view=self.display_view,
            view_controls=self.view_controls,
            show_view_controls=inputs.has_code,
            mobile_preview_shown=self.mobile_preview_shown,
            user_clicked_back=self.user_clicked_back,
            is_iframe_fetching=self.is_iframe_fetching,
            session_id=inputs.session_id,
            encoded_title=inputs.encoded_title,
            show_welcome=show_welcome,
            files_content={
                "/App.jsx": {
                    "code": inputs.code if not show_welcome else "",
                    "active": True,
                }
            },
        )

    # ─── Observations ────────────────────────────────────────────────────

    def update(self, inputs: ViewInputs) -> ViewState:
        """Apply a new observation and return the resulting state."""
        previous = self._inputs
        self._inputs = inputs
        if inputs.path != previous.path:
            self._last_navigation = None
        if inputs.is_iframe_fetching is not None:
            self.is_iframe_fetching = inputs.is_iframe_fetching
        self._apply_initial_load(inputs)
        self._apply_transitions(previous, inputs)
        return self.state

    def _apply_initial_load(self, inputs: ViewInputs) -> None:
        # Reopening a chat that already has code skips the watch-the-code phase
        if inputs.initial_load and inputs.has_code:
            self.initial_navigation_done = True

    def _apply_transitions(self, previous: ViewInputs, current: ViewInputs) -> None:
        streaming_started = current.is_streaming and not previous.is_streaming
        streaming_ended = previous.is_streaming and not current.is_streaming
        became_ready = current.preview_ready and not previous.preview_ready

        # A back press only holds off the stream it happened during
        if streaming_started:
            self.user_clicked_back = False

        # First response: show code without touching the URL, so the base
        # path can still auto-navigate to /app once the preview is ready.
        if streaming_started and not previous.has_code:
            self.initial_navigation_done = True
        if current.is_streaming and not previous.has_code and current.has_code:
            self.initial_navigation_done = True

        if became_ready and current.is_streaming:
            logger.debug("preview ready while streaming; waiting for stream end")

        if (became_ready and not current.is_streaming) or (
            streaming_ended and current.preview_ready
        ):
            self._auto_show_preview("stream end" if streaming_ended else "preview ready")

    def _auto_show_preview(self, reason: str) -> None:
        if has_explicit_view_suffix(self._inputs.path):
            logger.debug("auto-navigation skipped (%s): explicit view %s", reason, self._inputs.path)
            return
        if self.user_clicked_back:
            logger.debug("auto-navigation skipped (%s): user went back", reason)
            return
        self.mobile_preview_shown = True
        if not self.is_mobile:
            self._navigate_to(ViewType.PREVIEW, reason)

    # ─── Navigation ──────────────────────────────────────────────────────

    def _navigate_to(self, view: ViewType, reason: str) -> bool:
        """Issue navigate() for view. Returns True when a call was made."""
        inputs = self._inputs
        if not inputs.session_id or not inputs.encoded_title:
            logger.debug("navigation to %s suppressed (%s): no session identity", view.value, reason)
            return False
        target = view_path(inputs.session_id, inputs.encoded_title, view)
        if target == inputs.path:
            return False
        # Debounce: same target from the same location already requested
        if self._last_navigation == (inputs.path, target):
            return False
        self._last_navigation = (inputs.path, target)
        logger.debug("navigate %s -> %s (%s)", inputs.path, target, reason)
        self._navigate(target)
        return True

    def navigate_to_view(self, view: ViewType) -> bool:
        """Explicit user tab selection. Returns True when the URL was changed."""
        inputs = self._inputs
        blocked = (view == ViewType.PREVIEW and not self.view_controls.preview.enabled) or (
            view == ViewType.DATA and inputs.is_streaming
        )
        if blocked:
            logger.debug("view %s not selectable right now", view.value)
            return False

        # An explicit choice supersedes any pending auto-navigation
        self._auto_navigation_vetoed = True
        self.mobile_preview_shown = True
        self.user_clicked_back = False
        return self._navigate_to(view, "user")

    def handle_back_action(self) -> None:
        if self._inputs.is_streaming:
            self.user_clicked_back = True
        self.mobile_preview_shown = False
        self._auto_navigation_vetoed = True
        if self._on_back_clicked is not None:
            self._on_back_clicked()

    # ─── Iframe messages ─────────────────────────────────────────────────

    def handle_iframe_message(self, message: IframeMessage | object) -> bool:
        """Apply one iframe postMessage. Returns False for unrecognized payloads."""
        msg = message if isinstance(message, IframeMessage) else parse_iframe_message(message)
        if msg is None:
            return False

        if isinstance(msg, PreviewReadyMessage):
            self.mobile_preview_shown = True
            self._auto_navigation_vetoed = False
            self._deferred.schedule(self._on_preview_settled)
        elif isinstance(msg, IframeStreamingMessage):
            self.is_iframe_fetching = msg.state
        elif isinstance(msg, ScreenshotMessage):
            if self._on_screenshot_captured is not None:
                self._on_screenshot_captured(msg.data)
        elif isinstance(msg, ScreenshotErrorMessage):
            logger.warning("screenshot capture error: %s", msg.error)
            # None still tells the caller the capture finished
            if self._on_screenshot_captured is not None:
                self._on_screenshot_captured(None)
        elif isinstance(msg, IframeErrorMessage):
            logger.warning("preview iframe reported an error: %r", msg.error)
            if self._on_iframe_error is not None:
                self._on_iframe_error(msg.error)
        return True

    def _on_preview_settled(self) -> None:
        # Conditions are read at fire time: the latest observation wins
        inputs = self._inputs
        vetoed, self._auto_navigation_vetoed = self._auto_navigation_vetoed, False
        if (
            not vetoed
            and not has_explicit_view_suffix(inputs.path)
            and not self.is_mobile
            and not inputs.is_streaming
            and not self.user_clicked_back
        ):
            self._navigate_to(ViewType.PREVIEW, "iframe ready")
        if self._on_preview_loaded is not None:
            self._on_preview_loaded()

    def poll(self) -> bool:
        """Fire deferred auto-navigation if due. Call from the host event loop."""
        return self._deferred.poll()
