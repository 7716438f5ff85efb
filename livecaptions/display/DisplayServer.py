"""WebSocket server for display clients (glasses companions, overlays).

A client connects, sends ``{"type": "subscribe", "user_id": "..."}`` and from
then on receives display_text frames for that speaker. Caption sessions write
to ``DisplayServer.sink_for(user_id)``; windows for users without a connected
client are dropped.
"""

import asyncio
import logging
from typing import Optional

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from livecaptions.display.WsDisplaySink import WsDisplaySink
from livecaptions.network.codec import decode_client_message

logger = logging.getLogger(__name__)

_POLICY_VIOLATION = 1008


class RoutedDisplaySink:
    """DisplaySink that forwards to whichever client is subscribed to user_id.

    Args:
        server: DisplayServer holding the client connections.
        user_id: Speaker whose captions this sink carries.
    """

    def __init__(self, server: "DisplayServer", user_id: str) -> None:
        self._server = server
        self.user_id = user_id

    def show_text(self, text: str, duration_ms: Optional[int]) -> None:
        self._server.show_text(self.user_id, text, duration_ms)


class DisplayServer:
    """WebSocket server that keeps one WsDisplaySink per subscribed user.

    Runs on the caller's asyncio event loop, the same loop that drives the
    caption sessions. The bound port is available via ``port`` after start().

    Args:
        host: Hostname or IP to bind to (default ``"127.0.0.1"``).
        port: Port to listen on; 0 means OS assigns an available port.
        subscribe_timeout: Seconds a new client has to send its subscribe frame.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 0, subscribe_timeout: float = 5.0) -> None:
        self._host = host
        self._port = port
        self._subscribe_timeout = subscribe_timeout
        self._server: Optional[Server] = None
        self._sinks: dict[str, WsDisplaySink] = {}

    @property
    def port(self) -> int:
        """Return the bound port.

        Returns:
            The port number after start() completes; the configured port before.
        """
        return self._port

    @property
    def connected_users(self) -> list[str]:
        return list(self._sinks)

    def sink_for(self, user_id: str) -> RoutedDisplaySink:
        return RoutedDisplaySink(self, user_id)

    def show_text(self, user_id: str, text: str, duration_ms: Optional[int]) -> None:
        """Forward a caption window to the client subscribed to user_id, if any."""
        sink = self._sinks.get(user_id)
        if sink is None:
            logger.debug("DisplayServer: no display client for user %s, dropping frame", user_id)
            return
        sink.show_text(text, duration_ms)

    async def start(self) -> None:
        """Bind the server and start accepting display clients."""
        self._server = await serve(self._handle_connection, self._host, self._port)
        self._port = self._server.sockets[0].getsockname()[1]
        logger.info("DisplayServer: listening on %s:%s", self._host, self._port)

    async def stop(self) -> None:
        """Stop accepting connections and stop all sinks."""
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

        sinks = list(self._sinks.values())
        self._sinks.clear()
        for sink in sinks:
            await sink.stop()
        logger.info("DisplayServer: stopped")

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        """Handle a single display client for its full lifetime.

        Algorithm:
            1. Wait for the subscribe frame (close with 1008 on timeout or garbage).
            2. Start a WsDisplaySink and register it for the user, replacing
               any previous client of that user.
            3. Ignore further client frames until the connection closes.
            4. Unregister and stop the sink.

        Args:
            websocket: Connected WebSocket client.
        """
        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=self._subscribe_timeout)
            subscribe = decode_client_message(raw)
        except (asyncio.TimeoutError, ValueError) as exc:
            logger.warning("DisplayServer: rejecting client: %s", exc)
            await websocket.close(code=_POLICY_VIOLATION, reason="subscribe required")
            return
        except ConnectionClosed:
            logger.info("DisplayServer: client left before subscribing")
            return

        user_id = subscribe.user_id
        sink = WsDisplaySink(session_id=user_id, websocket=websocket)
        await sink.start()

        previous = self._sinks.get(user_id)
        self._sinks[user_id] = sink
        if previous is not None:
            await previous.stop()
        logger.info("DisplayServer: display client subscribed for user %s", user_id)

        try:
            async for _ in websocket:
                pass
        except ConnectionClosed:
            logger.info("DisplayServer: connection closed unexpectedly for user %s", user_id)
        finally:
            if self._sinks.get(user_id) is sink:
                del self._sinks[user_id]
            await sink.stop()
            logger.info("DisplayServer: display client for user %s disconnected", user_id)
