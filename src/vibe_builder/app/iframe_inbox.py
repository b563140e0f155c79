"""Inbound queue for iframe postMessage payloads.

Producers (a websocket bridge, a test, another thread) post raw payloads at
any time; the owner of the ViewStateMachine drains them on its own thread, in
arrival order, so the machine is only ever touched from one place.
"""

from __future__ import annotations

import logging
import queue

from vibe_builder.app.view_state import ViewStateMachine
from vibe_builder.core.iframe_messages import parse_iframe_message

logger = logging.getLogger(__name__)


class IframeInbox:
    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[object] = queue.SimpleQueue()

    def post(self, raw: object) -> None:
        """Enqueue a raw payload. Safe from any thread."""
        self._queue.put(raw)

    def __len__(self) -> int:
        return self._queue.qsize()

    def drain(self, machine: ViewStateMachine) -> int:
        """Deliver every queued message to machine. Returns how many were applied."""
        applied = 0
        while True:
            try:
                raw = self._queue.get_nowait()
            except queue.Empty:
                break
            msg = parse_iframe_message(raw)
            if msg is None:
                logger.debug("ignoring unrecognized iframe payload: %r", raw)
                continue
            machine.handle_iframe_message(msg)
            applied += 1
        return applied
