"""
One-directional, fire-and-forget message channel.

Senders enqueue and return immediately; a dispatcher thread (or an explicit
``drain()``) hands each message to the registered handler. Wire-format
payloads are parsed into typed messages on send.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable

from kwork_monitor.domain.messages import ChannelMessage, parse_message
from kwork_monitor.errors import UnknownMessageError
from kwork_monitor.logging_utils import log_event

logger = logging.getLogger(__name__)

MessageHandler = Callable[[ChannelMessage], None]

_STOP = object()


class MessageChannel:
    """
    Queue-backed channel between visits, the API and the orchestrator.
    """

    def __init__(self, *, handler: MessageHandler | None = None) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._handler = handler
        self._thread: threading.Thread | None = None

    def set_handler(self, handler: MessageHandler) -> None:
        self._handler = handler

    def send(self, message: ChannelMessage) -> None:
        self._queue.put(message)

    def send_payload(self, payload: object) -> bool:
        """
        Parse a wire payload and enqueue it. Unknown payloads are dropped
        with a warning; returns whether the payload was accepted.
        """

        try:
            message = parse_message(payload)
        except UnknownMessageError as exc:
            log_event(logger, logging.WARNING, "channel_message_rejected", error=str(exc))
            return False
        self.send(message)
        return True

    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self) -> int:
        """
        Dispatch every queued message on the calling thread.
        """

        dispatched = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return dispatched
            if item is _STOP:
                continue
            self._dispatch(item)
            dispatched += 1

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._run,
            name="kwork-monitor-channel",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return
        self._queue.put(_STOP)
        thread.join(timeout)
        self._thread = None

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            self._dispatch(item)

    def _dispatch(self, message: object) -> None:
        if self._handler is None:
            log_event(
                logger,
                logging.WARNING,
                "channel_message_dropped",
                reason="no handler",
                message_type=type(message).__name__,
            )
            return
        try:
            self._handler(message)  # type: ignore[arg-type]
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.ERROR,
                "channel_handler_failed",
                message_type=type(message).__name__,
                error=str(exc),
            )
