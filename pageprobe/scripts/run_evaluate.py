"""
pageprobe/scripts/run_evaluate.py

Evaluate JavaScript inside an open Chrome page and print the outcome envelope.

Usage:
    pageprobe-evaluate --code "return document.title"
    pageprobe-evaluate --code "return arg0 + arg1" --args "[5, 10]"
    pageprobe-evaluate --code-file ./probe.js --timeout-ms 5000 \
        --remote-debugging-address 127.0.0.1:9222 --target-id <TARGET_ID>
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from pageprobe.cdp.page_context import CDPPageContext
from pageprobe.config import Config
from pageprobe.data_models.evaluation import EvaluationRequest, OutcomeEnvelope
from pageprobe.evaluation.engine import ScriptEvaluationEngine
from pageprobe.evaluation.replay import generate_replay_code
from pageprobe.utils.exceptions import PageProbeError

EXIT_OK = 0
EXIT_EVALUATION_FAILED = 1
EXIT_BAD_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate JavaScript inside an open browser page.")
    code_group = parser.add_mutually_exclusive_group(required=True)
    code_group.add_argument("--code", type=str, help="JavaScript expression or function body")
    code_group.add_argument("--code-file", type=Path, help="Read the JavaScript from this file")
    parser.add_argument(
        "--args",
        type=str,
        default="[]",
        help="JSON array of positional arguments, exposed as arg0, arg1, ... (default: [])",
    )
    parser.add_argument("--no-await", action="store_true", help="Do not wait for a returned promise")
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=Config.DEFAULT_TIMEOUT_MS,
        help=f"Evaluation timeout in milliseconds (default: {Config.DEFAULT_TIMEOUT_MS})",
    )
    parser.add_argument(
        "--remote-debugging-address",
        type=str,
        default=Config.REMOTE_DEBUGGING_ADDRESS,
        help=f"Chrome remote debugging address (default: {Config.REMOTE_DEBUGGING_ADDRESS})",
    )
    parser.add_argument("--target-id", type=str, default=None, help="Page target id (default: first page)")
    parser.add_argument("--show-code", action="store_true", help="Print the equivalent Playwright code first")
    return parser


def build_request(args: argparse.Namespace) -> EvaluationRequest:
    """
    Build an EvaluationRequest from parsed CLI arguments.

    Raises:
        ValueError: If the code file cannot be read or --args is not a JSON array.
        ValidationError: If the request fails model validation.
    """
    if args.code_file is not None:
        try:
            code = args.code_file.read_text(encoding="utf-8")
        except OSError as e:
            raise ValueError(f"Could not read {args.code_file}: {e}") from e
    else:
        code = args.code

    try:
        positional: Any = json.loads(args.args)
    except json.JSONDecodeError as e:
        raise ValueError(f"--args is not valid JSON: {e}") from e
    if not isinstance(positional, list):
        raise ValueError("--args must be a JSON array")

    return EvaluationRequest(
        code=code,
        args=positional,
        await_async=not args.no_await,
        timeout_ms=args.timeout_ms,
    )


async def evaluate_on_page(
    request: EvaluationRequest,
    remote_debugging_address: str,
    target_id: str | None = None,
) -> OutcomeEnvelope:
    async with CDPPageContext.connect(remote_debugging_address, target_id) as context:
        return await ScriptEvaluationEngine(context).evaluate(request)


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    console = Console()

    try:
        request = build_request(args)
    except (ValueError, ValidationError) as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
        sys.exit(EXIT_BAD_INPUT)

    if args.show_code:
        console.print("\n".join(generate_replay_code(request)), markup=False, highlight=False)
        console.print()

    try:
        envelope = asyncio.run(evaluate_on_page(request, args.remote_debugging_address, args.target_id))
    except PageProbeError as e:
        console.print(f"[bold red]Browser connection failed: {escape(str(e))}[/bold red]")
        sys.exit(EXIT_EVALUATION_FAILED)

    console.print_json(json.dumps(envelope.to_response()))
    sys.exit(EXIT_EVALUATION_FAILED if envelope.failed else EXIT_OK)


if __name__ == "__main__":
    main()
