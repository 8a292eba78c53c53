"""
pageprobe

Evaluate JavaScript inside a live browser page and get back one structured outcome.
"""

from pageprobe.data_models.evaluation import EvaluationRequest, OutcomeEnvelope, ResultType
from pageprobe.evaluation.engine import ScriptEvaluationEngine

__all__ = [
    "EvaluationRequest",
    "OutcomeEnvelope",
    "ResultType",
    "ScriptEvaluationEngine",
]
