"""
pageprobe/evaluation/remote_context.py

Contract for the live execution context (a browser page) that scripts are dispatched into.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

# receives the text of one console message
DiagnosticHandler = Callable[[str], None]

# tears down a subscription made with AbstractRemoteContext.subscribe
Unsubscribe = Callable[[], Awaitable[None]]


class AbstractRemoteContext(ABC):
    """
    A remote execution context owned outside the engine.

    Implementations expose a single dispatch primitive and a console
    subscription; they own connection and page lifecycle themselves.
    """

    @abstractmethod
    async def run_in_context(self, function_declaration: str, args: list[Any]) -> Any:
        """
        Call a JavaScript function declaration inside the context.

        Args:
            function_declaration: Source of a JS function, e.g. "async (payload) => {...}".
            args: JSON-serializable positional arguments for the function.

        Returns:
            The function's (awaited) return value, marshalled by value.
        """

    @abstractmethod
    async def subscribe(self, handler: DiagnosticHandler) -> Unsubscribe:
        """
        Deliver every console message emitted by the context to `handler`.

        Args:
            handler: Called synchronously with each message text.

        Returns:
            Coroutine function that removes the subscription.
        """
