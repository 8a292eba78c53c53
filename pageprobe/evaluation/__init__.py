"""
pageprobe/evaluation/__init__.py

Script evaluation engine: compiler, scheduler, timeout arbiter, console
capture, result classifier and outcome envelope builder.
"""

from pageprobe.evaluation.engine import ScriptEvaluationEngine
from pageprobe.evaluation.remote_context import AbstractRemoteContext
from pageprobe.evaluation.replay import generate_replay_code

__all__ = [
    "AbstractRemoteContext",
    "ScriptEvaluationEngine",
    "generate_replay_code",
]
