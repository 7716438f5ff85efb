"""WebSocket display sink: forwards caption windows to a connected client.

Implements the DisplaySink protocol so a CaptionSession can call show_text
synchronously and have frames delivered to the client without blocking.
"""

import asyncio
import logging
from typing import Optional, Protocol

from livecaptions.network.codec import encode_display_message
from livecaptions.network.types import WsDisplayText

logger = logging.getLogger(__name__)

_SEND_QUEUE_MAXSIZE = 20


class _SupportsAsyncSend(Protocol):
    """Structural protocol for an object with an async send method."""

    async def send(self, message: str) -> None: ...


class WsDisplaySink:
    """Bridges synchronous show_text calls to an async WebSocket send channel.

    A bounded asyncio.Queue (maxsize=20) decouples the session from the
    sender task. When the queue is full the frame is dropped and logged;
    the next window supersedes it anyway.

    Args:
        session_id: Session identifier included in every outbound frame.
        websocket: Object with an ``async send(str)`` method.
    """

    def __init__(self, session_id: str, websocket: _SupportsAsyncSend) -> None:
        self._session_id = session_id
        self._websocket = websocket
        self._send_queue: Optional[asyncio.Queue[str]] = None
        self._sender_task: Optional[asyncio.Task[None]] = None
        self.dropped_frames: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background sender task.

        Must be called from within the asyncio event loop before any
        show_text calls are made.
        """
        self._send_queue = asyncio.Queue(maxsize=_SEND_QUEUE_MAXSIZE)
        self._sender_task = asyncio.get_running_loop().create_task(self._drain_loop())

    async def stop(self) -> None:
        """Cancel the sender task, waiting briefly for a clean exit."""
        if self._sender_task is None:
            return
        self._sender_task.cancel()
        try:
            await self._sender_task
        except asyncio.CancelledError:
            pass
        self._sender_task = None

    # ------------------------------------------------------------------
    # DisplaySink protocol
    # ------------------------------------------------------------------

    def show_text(self, text: str, duration_ms: Optional[int]) -> None:
        """Enqueue a caption window for async delivery.

        Args:
            text: Caption window.
            duration_ms: Display duration hint, None for open-ended.
        """
        if self._send_queue is None:
            logger.warning("WsDisplaySink[%s]: show_text before start, dropping frame", self._session_id)
            self.dropped_frames += 1
            return

        encoded = encode_display_message(
            WsDisplayText(session_id=self._session_id, text=text, duration_ms=duration_ms)
        )
        try:
            self._send_queue.put_nowait(encoded)
        except asyncio.QueueFull:
            self.dropped_frames += 1
            logger.warning("WsDisplaySink[%s]: send queue full, dropping frame", self._session_id)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _drain_loop(self) -> None:
        """Async task: drain the send queue and call websocket.send.

        Algorithm:
            1. await queue.get(): blocks until a frame is available.
            2. await websocket.send(frame): delivers to client.
            3. On any send error, log and continue.
        """
        while True:
            encoded = await self._send_queue.get()
            try:
                await self._websocket.send(encoded)
            except Exception:
                logger.exception("WsDisplaySink[%s]: error sending frame", self._session_id)
