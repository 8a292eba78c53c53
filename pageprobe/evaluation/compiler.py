"""
pageprobe/evaluation/compiler.py

Turns caller-supplied source text into an invocable unit.

The decision between "bare expression" and "function body" is a textual
heuristic, not a parse: a marker token inside a string literal or comment
still counts. Callers that need something smarter pass their own predicate.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

# tokens that mark the text as a full function body rather than a bare expression;
# "throw" is included so a lone throw statement is not rewritten into `return throw ...`
FUNCTION_BODY_MARKERS: tuple[str, ...] = ("return", "=>", "function", "throw")

FunctionBodyPredicate = Callable[[str], bool]


@dataclass(frozen=True)
class CompiledScript:
    """
    Invocable unit: a function body plus the names of its positional parameters.

    Built into a real function inside the page with `new Function(...arg_names, body)`.
    """
    body: str
    arg_names: tuple[str, ...]
    is_function_body: bool


def looks_like_function_body(code: str) -> bool:
    """Default code-shape predicate: any marker token anywhere in the text."""
    return any(marker in code for marker in FUNCTION_BODY_MARKERS)


def positional_arg_names(count: int) -> tuple[str, ...]:
    """Parameter names for `count` positional arguments: arg0, arg1, ..."""
    return tuple(f"arg{index}" for index in range(count))


def compile_script(
    code: str,
    arg_names: Sequence[str],
    is_function_body: FunctionBodyPredicate = looks_like_function_body,
) -> CompiledScript:
    """
    Compile source text into an invocable unit.

    Syntax errors are not detected here; they surface when the page builds
    the function, through the same channel as runtime errors.

    Args:
        code: Raw JavaScript supplied by the caller.
        arg_names: Names to bind the positional arguments to.
        is_function_body: Predicate deciding whether `code` is already a function body.

    Returns:
        CompiledScript whose body either is `code` or returns its value.
    """
    function_body = is_function_body(code)
    body = code if function_body else f"return {code.strip()}"
    return CompiledScript(
        body=body,
        arg_names=tuple(arg_names),
        is_function_body=function_body,
    )
