"""
tests/conftest.py

Configuration for pytest.
"""

import inspect
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from pageprobe.evaluation.remote_context import AbstractRemoteContext, DiagnosticHandler, Unsubscribe

# answers one dispatch: (function_declaration, args) -> runner reply (or awaitable of one)
Responder = Callable[[str, list[Any]], Any]


class FakeRemoteContext(AbstractRemoteContext):
    """
    Scriptable stand-in for a browser page.

    Each dispatch is answered by `responder`; console messages are pushed to
    subscribers with `emit_console`. Subscription calls are counted so tests
    can check the capture window is released exactly once.
    """

    def __init__(self, responder: Responder | None = None) -> None:
        self.responder: Responder = responder or (lambda declaration, args: {
            "success": True,
            "value": {"kind": "undefined"},
            "elapsedMs": 0,
        })
        self.dispatched: list[tuple[str, list[Any]]] = []
        self.handlers: list[DiagnosticHandler] = []
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0

    async def run_in_context(self, function_declaration: str, args: list[Any]) -> Any:
        self.dispatched.append((function_declaration, args))
        reply = self.responder(function_declaration, args)
        if inspect.isawaitable(reply):
            reply = await reply
        return reply

    async def subscribe(self, handler: DiagnosticHandler) -> Unsubscribe:
        self.subscribe_calls += 1
        self.handlers.append(handler)

        async def unsubscribe() -> None:
            self.unsubscribe_calls += 1
            self.handlers.remove(handler)

        return unsubscribe

    def emit_console(self, text: str) -> None:
        for handler in list(self.handlers):
            handler(text)

    @property
    def last_payload(self) -> dict[str, Any]:
        """Payload of the most recent dispatch."""
        _, args = self.dispatched[-1]
        return args[0]


@pytest.fixture
def fake_context() -> FakeRemoteContext:
    """Fresh scriptable remote context."""
    return FakeRemoteContext()


@pytest.fixture
def make_runner_reply() -> Callable[..., dict[str, Any]]:
    """
    Factory fixture for in-page runner replies.

    Usage:
        make_runner_reply(value={"kind": "value", "value": 4})
        make_runner_reply(error="boom")
    """
    def factory(
        value: dict[str, Any] | None = None,
        error: str | None = None,
        elapsed_ms: int = 1,
    ) -> dict[str, Any]:
        if error is not None:
            return {"success": False, "error": error, "elapsedMs": elapsed_ms}
        return {
            "success": True,
            "value": value if value is not None else {"kind": "undefined"},
            "elapsedMs": elapsed_ms,
        }
    return factory


@pytest.fixture
def mock_cdp_session() -> MagicMock:
    """Mock AsyncCDPSession for testing the page context."""
    session = MagicMock()
    session.send_and_wait = AsyncMock(return_value={})
    return session
