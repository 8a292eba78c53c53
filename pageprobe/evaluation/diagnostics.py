"""
pageprobe/evaluation/diagnostics.py

Diagnostic Capture: collects console output for the duration of one evaluation.
"""

from collections.abc import Iterator
from types import TracebackType

from pageprobe.evaluation.remote_context import AbstractRemoteContext, Unsubscribe
from pageprobe.utils.logger import get_logger

logger = get_logger(name=__name__)


class DiagnosticBuffer:
    """Ordered console messages for one request; append-only until sealed."""

    def __init__(self) -> None:
        self._messages: list[str] = []
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(self._messages)

    def append(self, message: str) -> None:
        # empty lines and anything arriving after the window closed are dropped
        if self._sealed or not message:
            return
        self._messages.append(message)

    def seal(self) -> None:
        self._sealed = True

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._messages))


class DiagnosticCapture:
    """
    Scoped console subscription.

    Use as `async with DiagnosticCapture(context) as buffer:`; the subscription
    is released exactly once however the block exits.
    """

    def __init__(self, context: AbstractRemoteContext) -> None:
        self._context = context
        self._buffer = DiagnosticBuffer()
        self._unsubscribe: Unsubscribe | None = None
        self._opened = False

    @property
    def buffer(self) -> DiagnosticBuffer:
        return self._buffer

    async def open(self) -> DiagnosticBuffer:
        """
        Subscribe to the context's console stream.

        Returns:
            The buffer messages are appended to.

        Raises:
            RuntimeError: If this capture was already opened.
        """
        if self._opened:
            raise RuntimeError("DiagnosticCapture can only be opened once")
        self._opened = True
        self._unsubscribe = await self._context.subscribe(self._buffer.append)
        logger.debug("Console capture opened")
        return self._buffer

    async def close(self) -> None:
        """Seal the buffer and release the subscription; later calls are no-ops."""
        self._buffer.seal()
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is None:
            return
        await unsubscribe()
        logger.debug("Console capture closed with %d message(s)", len(self._buffer))

    async def __aenter__(self) -> DiagnosticBuffer:
        return await self.open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
