"""
pageprobe/evaluation/replay.py

Human-readable replay code for audit logs: the Playwright call that would
reproduce an evaluation request.
"""

import json

from pageprobe.data_models.evaluation import EvaluationRequest
from pageprobe.evaluation.compiler import positional_arg_names


def generate_replay_code(request: EvaluationRequest) -> list[str]:
    """
    Render a request as Playwright-style code lines.

    Args:
        request: The evaluation request to describe.

    Returns:
        Lines of JavaScript, without trailing newlines.
    """
    async_prefix = "async " if request.await_async else ""
    params = ", ".join(positional_arg_names(len(request.args)))
    body = "\n  ".join(request.code.split("\n"))

    lines = [
        "// Execute JavaScript in the browser context",
        f"await page.evaluate({async_prefix}({params}) => {{",
        f"  {body}",
    ]
    if request.args:
        encoded = ", ".join(json.dumps(arg, ensure_ascii=False, separators=(",", ":")) for arg in request.args)
        lines.append(f"}}, {encoded});")
    else:
        lines.append("});")
    return lines
