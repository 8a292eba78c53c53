"""
pageprobe/cdp/async_cdp_session.py

Asyncio CDP session over a single websocket.

Commands are matched to replies by id through pending futures; events are
fanned out to listeners registered per method by a background receive loop.
"""

import asyncio
import contextlib
import json
from collections import defaultdict
from collections.abc import Callable
from types import TracebackType
from typing import Any

import websockets
from websockets.asyncio.client import ClientConnection, connect

from pageprobe.config import Config
from pageprobe.utils.exceptions import CDPCommandError, CDPConnectionError
from pageprobe.utils.logger import get_logger

logger = get_logger(name=__name__)

# receives the "params" of one CDP event
EventListener = Callable[[dict[str, Any]], None]

DEFAULT_COMMAND_TIMEOUT: float = Config.CDP_COMMAND_TIMEOUT


class AsyncCDPSession:
    """
    Manages one CDP websocket connection.
    """

    def __init__(self, ws_url: str) -> None:
        self.ws_url = ws_url
        self.seq = 0

        # Response tracking for send_and_wait
        self.pending_responses: dict[int, asyncio.Future] = {}

        self._event_listeners: defaultdict[str, list[EventListener]] = defaultdict(list)
        self._ws: ClientConnection | None = None
        self._receive_task: asyncio.Task | None = None
        self._connection_lost = False

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and not self._connection_lost

    async def connect(self) -> None:
        """Open the websocket and start the receive loop."""
        try:
            self._ws = await connect(self.ws_url, max_size=None, ping_interval=None, ping_timeout=None)
        except (OSError, websockets.InvalidHandshake, websockets.InvalidURI) as e:
            raise CDPConnectionError(f"Could not connect to {self.ws_url}: {e}") from e
        self._connection_lost = False
        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.debug("CDP session connected to %s", self.ws_url)

    async def close(self) -> None:
        """Stop the receive loop, close the websocket and fail outstanding commands."""
        self._connection_lost = True
        if self._receive_task is not None:
            self._receive_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._receive_task
            self._receive_task = None
        if self._ws is not None:
            try:
                await self._ws.close()
            except (websockets.ConnectionClosed, OSError) as e:
                logger.debug("Error while closing CDP websocket: %s", e)
            self._ws = None
        self._fail_pending(CDPConnectionError("CDP session closed"))

    async def __aenter__(self) -> "AsyncCDPSession":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def add_event_listener(self, method: str, listener: EventListener) -> None:
        """Call `listener` with the params of every `method` event."""
        self._event_listeners[method].append(listener)

    def remove_event_listener(self, method: str, listener: EventListener) -> None:
        """Stop delivering `method` events to `listener`; unknown listeners are ignored."""
        listeners = self._event_listeners.get(method)
        if listeners and listener in listeners:
            listeners.remove(listener)

    async def send_and_wait(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = DEFAULT_COMMAND_TIMEOUT,
    ) -> dict[str, Any]:
        """
        Send CDP command and wait for its reply.

        Args:
            method: CDP method, e.g. "Runtime.evaluate".
            params: Command parameters.
            timeout: Seconds to wait for the reply; None waits indefinitely.

        Returns:
            The reply's "result" object.

        Raises:
            TimeoutError: If no reply arrives within `timeout`.
            CDPCommandError: If the reply carries an error.
            CDPConnectionError: If the connection is or becomes closed.
        """
        cmd_id = self._next_id()
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self.pending_responses[cmd_id] = future
        try:
            await self._send_message(cmd_id, method, params)
            if timeout is None:
                reply = await future
            else:
                reply = await asyncio.wait_for(future, timeout)
        except TimeoutError:
            raise TimeoutError(f"CDP command {method} timed out after {timeout} seconds") from None
        finally:
            self.pending_responses.pop(cmd_id, None)

        if "error" in reply:
            raise CDPCommandError(method, reply["error"])
        return reply.get("result", {})

    def handle_message(self, msg: dict[str, Any]) -> None:
        """Route one incoming message to its pending command or event listeners."""
        if "id" in msg:
            future = self.pending_responses.get(msg["id"])
            if future is not None and not future.done():
                future.set_result(msg)
            return

        method = msg.get("method")
        if not method:
            return
        params = msg.get("params", {})
        for listener in list(self._event_listeners.get(method, ())):
            try:
                listener(params)
            except Exception as e:
                logger.error("CDP event listener for %s failed: %s", method, e)

    def _next_id(self) -> int:
        self.seq += 1
        return self.seq

    async def _send_message(self, cmd_id: int, method: str, params: dict[str, Any] | None) -> None:
        if self._ws is None or self._connection_lost:
            raise CDPConnectionError("WebSocket connection is closed")
        try:
            await self._ws.send(json.dumps({"id": cmd_id, "method": method, "params": params or {}}))
        except (websockets.ConnectionClosed, OSError) as e:
            self._connection_lost = True
            raise CDPConnectionError(f"WebSocket connection lost: {e}") from e

    async def _receive_loop(self) -> None:
        """Main message processing loop."""
        try:
            async for raw in self._ws:
                try:
                    msg = json.loads(raw)
                except json.JSONDecodeError as e:
                    logger.warning("Failed to parse CDP message: %s", e)
                    continue
                self.handle_message(msg)
        except websockets.ConnectionClosed as e:
            logger.info("CDP connection lost: %s", e)
        finally:
            self._connection_lost = True
            self._fail_pending(CDPConnectionError("WebSocket connection lost"))

    def _fail_pending(self, error: Exception) -> None:
        for future in self.pending_responses.values():
            if not future.done():
                future.set_exception(error)
