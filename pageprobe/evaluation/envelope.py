"""
pageprobe/evaluation/envelope.py

Outcome Envelope Builder.
"""

from collections.abc import Sequence

from pageprobe.data_models.evaluation import AttemptResult, OutcomeEnvelope, ResultType
from pageprobe.evaluation.classifier import classify_result


def build_outcome_envelope(
    settlement: AttemptResult,
    console: Sequence[str],
    execution_time_ms: int,
) -> OutcomeEnvelope:
    """
    Assemble the report for one evaluation.

    Args:
        settlement: What the Timeout Arbiter settled on.
        console: Messages captured during the run.
        execution_time_ms: Outer wall-clock duration from dispatch to settlement.

    Returns:
        OutcomeEnvelope; failures carry type "error", no result and the message.
    """
    execution_time_ms = max(0, execution_time_ms)

    if not settlement.success:
        return OutcomeEnvelope(
            result=None,
            type=ResultType.ERROR,
            console=list(console),
            error=settlement.error if settlement.error is not None else "Unknown evaluation error",
            execution_time_ms=execution_time_ms,
        )

    classified = classify_result(settlement.value)
    return OutcomeEnvelope(
        result=classified.serialized,
        type=classified.type,
        console=list(console),
        execution_time_ms=execution_time_ms,
    )
