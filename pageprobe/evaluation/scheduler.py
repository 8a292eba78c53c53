"""
pageprobe/evaluation/scheduler.py

Execution Scheduler: drives one invocation attempt inside the remote context.
"""

from collections.abc import Sequence
from typing import Any

from pageprobe.data_models.evaluation import AttemptResult
from pageprobe.evaluation.compiler import CompiledScript
from pageprobe.evaluation.remote_context import AbstractRemoteContext
from pageprobe.evaluation.remote_values import hydrate_remote_value
from pageprobe.utils.js_utils import generate_in_context_runner_js
from pageprobe.utils.logger import get_logger

logger = get_logger(name=__name__)


def parse_attempt_result(raw: Any) -> AttemptResult:
    """
    Convert the runner's reply into an AttemptResult.

    Args:
        raw: Object returned by the in-page runner.

    Returns:
        AttemptResult; a malformed reply becomes a failed attempt.
    """
    if not isinstance(raw, dict) or "success" not in raw:
        return AttemptResult.failure(f"Malformed evaluation result: {raw!r}")

    try:
        elapsed_ms = max(0, int(raw.get("elapsedMs") or 0))
    except (TypeError, ValueError):
        elapsed_ms = 0

    if not raw["success"]:
        error = raw.get("error")
        return AttemptResult.failure(
            "Unknown evaluation error" if error is None else str(error),
            in_context_elapsed_ms=elapsed_ms,
        )

    try:
        value = hydrate_remote_value(raw.get("value"))
    except ValueError as e:
        return AttemptResult.failure(f"Malformed evaluation result: {e}", in_context_elapsed_ms=elapsed_ms)

    return AttemptResult(success=True, value=value, in_context_elapsed_ms=elapsed_ms)


class ExecutionScheduler:
    """
    Dispatches compiled scripts into a remote context.

    `run` never raises: compile, invocation, await and dispatch failures are
    all reported as a failed AttemptResult.
    """

    def __init__(self, context: AbstractRemoteContext) -> None:
        self._context = context
        self._runner_js = generate_in_context_runner_js()

    async def run(
        self,
        compiled: CompiledScript,
        bound_args: Sequence[Any],
        await_async: bool,
    ) -> AttemptResult:
        """
        Invoke a compiled script once.

        Args:
            compiled: Invocable unit from the Expression Compiler.
            bound_args: Positional arguments, in the order of `compiled.arg_names`.
            await_async: Await the produced value if it exposes a callable `then`.

        Returns:
            AttemptResult with the produced value or the error message, plus in-page elapsed time.
        """
        payload = {
            "body": compiled.body,
            "argNames": list(compiled.arg_names),
            "args": list(bound_args),
            "awaitAsync": await_async,
        }
        logger.debug("Dispatching script (%d chars, %d args)", len(compiled.body), len(payload["args"]))
        try:
            raw = await self._context.run_in_context(self._runner_js, [payload])
        except Exception as e:
            logger.debug("Dispatch into remote context failed: %s", e)
            return AttemptResult.failure(str(e) or type(e).__name__)
        return parse_attempt_result(raw)
