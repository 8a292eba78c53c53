"""
pageprobe/evaluation/arbiter.py

Timeout Arbiter: races an invocation attempt against a deadline.

The losing attempt is never cancelled. A page cannot be preempted
mid-statement, so the deadline bounds how long the caller waits, not what the
script does; whatever it mutates after the deadline stays mutated.
"""

import asyncio
from collections.abc import Awaitable

from pageprobe.data_models.evaluation import AttemptResult
from pageprobe.utils.logger import get_logger

logger = get_logger(name=__name__)

TIMEOUT_MESSAGE_TEMPLATE: str = "Evaluation timed out after {timeout_ms}ms"


def _discard_abandoned_attempt(task: asyncio.Future) -> None:
    """Retrieve and drop the settlement of an attempt that lost the race."""
    if task.cancelled():
        logger.debug("Abandoned attempt was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned attempt failed after its deadline: %s", exc)
    else:
        logger.debug("Abandoned attempt settled after its deadline; result discarded")


async def race_against_deadline(attempt: Awaitable[AttemptResult], timeout_ms: int) -> AttemptResult:
    """
    Wait for `attempt` for at most `timeout_ms` milliseconds.

    Args:
        attempt: Awaitable producing the attempt's settlement.
        timeout_ms: Deadline in milliseconds.

    Returns:
        The attempt's settlement if it finished first, else a synthetic timeout failure.
    """
    task = asyncio.ensure_future(attempt)
    done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    if task in done:
        return task.result()

    task.add_done_callback(_discard_abandoned_attempt)
    logger.warning("Evaluation exceeded its %dms deadline; leaving the attempt running unobserved", timeout_ms)
    return AttemptResult.failure(TIMEOUT_MESSAGE_TEMPLATE.format(timeout_ms=timeout_ms))
