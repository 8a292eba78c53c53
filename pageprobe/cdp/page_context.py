"""
pageprobe/cdp/page_context.py

Remote context backed by a live page over the Chrome DevTools Protocol.
"""

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from pageprobe.cdp.async_cdp_session import AsyncCDPSession
from pageprobe.cdp.connection import get_page_ws_url
from pageprobe.config import Config
from pageprobe.evaluation.remote_context import AbstractRemoteContext, DiagnosticHandler, Unsubscribe
from pageprobe.utils.exceptions import CDPEvaluationError
from pageprobe.utils.js_utils import build_invocation_expression
from pageprobe.utils.logger import get_logger

logger = get_logger(name=__name__)

CONSOLE_EVENT: str = "Runtime.consoleAPICalled"


def _format_remote_object(remote_object: dict[str, Any]) -> str:
    """Render one console argument the way a DevTools console line shows it."""
    if "unserializableValue" in remote_object:
        return str(remote_object["unserializableValue"])

    object_type = remote_object.get("type")
    if object_type == "undefined":
        return "undefined"
    if object_type == "string":
        return str(remote_object.get("value", ""))

    if "value" in remote_object:
        value = remote_object["value"]
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return json.dumps(value, ensure_ascii=False)

    return str(remote_object.get("description", object_type or ""))


def format_console_message(params: dict[str, Any]) -> str:
    """
    Build the text of a Runtime.consoleAPICalled event.

    Args:
        params: Event params with an "args" list of RemoteObjects.

    Returns:
        Arguments rendered and joined with single spaces.
    """
    return " ".join(_format_remote_object(arg) for arg in params.get("args", []))


def _describe_exception(exception_details: dict[str, Any]) -> str:
    exception = exception_details.get("exception") or {}
    return str(exception.get("description") or exception_details.get("text") or "Uncaught exception")


class CDPPageContext(AbstractRemoteContext):
    """
    AbstractRemoteContext over a CDP page session.

    Functions are dispatched with Runtime.evaluate (by value, awaiting
    promises); console output comes from Runtime.consoleAPICalled.

    Runtime.evaluate is sent without a command timeout. An evaluation that
    times out and never settles in the page therefore keeps its pending reply
    and waiting task until the session closes.
    """

    def __init__(self, session: AsyncCDPSession) -> None:
        self.session = session
        self._runtime_enabled = False

    @classmethod
    @asynccontextmanager
    async def connect(
        cls,
        remote_debugging_address: str = Config.REMOTE_DEBUGGING_ADDRESS,
        target_id: str | None = None,
    ) -> AsyncIterator["CDPPageContext"]:
        """
        Attach to an open page and yield a ready context.

        Args:
            remote_debugging_address: DevTools address, e.g. "127.0.0.1:9222".
            target_id: Page to attach to; the first page when omitted.
        """
        ws_url = await asyncio.to_thread(get_page_ws_url, remote_debugging_address, target_id)
        async with AsyncCDPSession(ws_url) as session:
            context = cls(session)
            await context.enable()
            yield context

    async def enable(self) -> None:
        """
        Enable the Runtime domain once.

        The browser may replay console messages logged before this point;
        enabling before the first subscription keeps them out of any capture window.
        """
        if self._runtime_enabled:
            return
        await self.session.send_and_wait("Runtime.enable")
        self._runtime_enabled = True

    async def run_in_context(self, function_declaration: str, args: list[Any]) -> Any:
        await self.enable()
        result = await self.session.send_and_wait(
            "Runtime.evaluate",
            {
                "expression": build_invocation_expression(function_declaration, args),
                "returnByValue": True,
                "awaitPromise": True,
            },
            timeout=None,
        )
        exception_details = result.get("exceptionDetails")
        if exception_details:
            raise CDPEvaluationError(_describe_exception(exception_details))
        return (result.get("result") or {}).get("value")

    async def subscribe(self, handler: DiagnosticHandler) -> Unsubscribe:
        await self.enable()

        def on_console(params: dict[str, Any]) -> None:
            handler(format_console_message(params))

        self.session.add_event_listener(CONSOLE_EVENT, on_console)
        logger.debug("Subscribed to %s", CONSOLE_EVENT)

        async def unsubscribe() -> None:
            self.session.remove_event_listener(CONSOLE_EVENT, on_console)
            logger.debug("Unsubscribed from %s", CONSOLE_EVENT)

        return unsubscribe
