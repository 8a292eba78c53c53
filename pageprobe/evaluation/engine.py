"""
pageprobe/evaluation/engine.py

Script evaluation engine: the single entry point that turns an
EvaluationRequest into an OutcomeEnvelope.

Flow:
    console capture opens -> compile -> dispatch (raced against the deadline)
    -> console capture closes -> classify/serialize -> envelope
"""

import time
from typing import Any

from pageprobe.data_models.evaluation import AttemptResult, EvaluationRequest, OutcomeEnvelope
from pageprobe.evaluation.arbiter import race_against_deadline
from pageprobe.evaluation.compiler import (
    FunctionBodyPredicate,
    compile_script,
    looks_like_function_body,
    positional_arg_names,
)
from pageprobe.evaluation.diagnostics import DiagnosticCapture
from pageprobe.evaluation.envelope import build_outcome_envelope
from pageprobe.evaluation.remote_context import AbstractRemoteContext
from pageprobe.evaluation.scheduler import ExecutionScheduler
from pageprobe.utils.logger import get_logger

logger = get_logger(name=__name__)


def _elapsed_ms(started_at: float, finished_at: float) -> int:
    return max(0, round((finished_at - started_at) * 1000))


class ScriptEvaluationEngine:
    """
    Evaluates caller code inside a remote context.

    Every request is handled in isolation; the engine holds no per-request
    state between calls and does not serialize concurrent requests.
    """

    def __init__(
        self,
        context: AbstractRemoteContext,
        is_function_body: FunctionBodyPredicate = looks_like_function_body,
    ) -> None:
        self.context = context
        self._is_function_body = is_function_body
        self._scheduler = ExecutionScheduler(context)

    async def evaluate(self, request: EvaluationRequest) -> OutcomeEnvelope:
        """
        Evaluate one request.

        Evaluation failures (syntax errors, thrown exceptions, rejected
        promises, timeouts, dispatch errors) are reported inside the envelope;
        this method only raises on cancellation.

        Args:
            request: The code, arguments and limits to evaluate with.

        Returns:
            OutcomeEnvelope for the request.
        """
        compiled = compile_script(
            request.code,
            positional_arg_names(len(request.args)),
            self._is_function_body,
        )
        capture = DiagnosticCapture(self.context)
        started_at = time.perf_counter()
        settled_at: float | None = None

        try:
            async with capture:
                started_at = time.perf_counter()
                settlement = await race_against_deadline(
                    self._scheduler.run(compiled, request.args, request.await_async),
                    request.timeout_ms,
                )
                settled_at = time.perf_counter()
        except Exception as e:
            if settled_at is None:
                logger.exception("Evaluation failed outside the remote context: %s", e)
                settlement = AttemptResult.failure(str(e) or type(e).__name__)
            else:
                # the attempt already settled; only releasing the capture failed
                logger.exception("Releasing console capture failed: %s", e)

        execution_time_ms = _elapsed_ms(started_at, settled_at if settled_at is not None else time.perf_counter())
        logger.debug(
            "Evaluation settled (success=%s, in-context %dms, total %dms)",
            settlement.success,
            settlement.in_context_elapsed_ms,
            execution_time_ms,
        )
        return build_outcome_envelope(settlement, capture.buffer.messages, execution_time_ms)

    async def evaluate_code(
        self,
        code: str,
        args: list[Any] | None = None,
        await_async: bool = True,
        timeout_ms: int | None = None,
    ) -> OutcomeEnvelope:
        """Shorthand for `evaluate` that builds the request from keyword arguments."""
        fields: dict[str, Any] = {"code": code, "args": args or [], "await_async": await_async}
        if timeout_ms is not None:
            fields["timeout_ms"] = timeout_ms
        return await self.evaluate(EvaluationRequest(**fields))
