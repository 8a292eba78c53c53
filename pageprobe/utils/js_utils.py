"""
pageprobe/utils/js_utils.py

JavaScript snippets executed inside the page.

Contains:
- generate_in_context_runner_js: function declaration that builds, invokes and times caller code
- build_invocation_expression: expression calling a function declaration with JSON arguments
"""

import json
from textwrap import dedent
from typing import Any

# Lowers one produced value into the tagged wire format decoded by
# pageprobe.evaluation.remote_values.hydrate_remote_value.
_LOWER_VALUE_JS: str = dedent("""\
    const lower = (value) => {
      if (value === undefined) return { kind: 'undefined' };
      if (value === null) return { kind: 'null' };
      if (typeof value === 'function') return { kind: 'function', source: String(value) };
      const tag = Object.prototype.toString.call(value);
      if (value instanceof Error || tag === '[object Error]') {
        return {
          kind: 'error',
          name: String(value.name),
          message: String(value.message),
          stack: value.stack === undefined ? null : String(value.stack),
        };
      }
      if (value instanceof Date || tag === '[object Date]') {
        const time = value.getTime();
        return { kind: 'date', iso: Number.isNaN(time) ? null : value.toISOString(), text: String(value) };
      }
      if (value instanceof RegExp || tag === '[object RegExp]') {
        return { kind: 'regexp', source: value.source, flags: value.flags };
      }
      if (typeof value === 'number' && !Number.isFinite(value)) {
        return { kind: 'number', text: String(value) };
      }
      try {
        const json = JSON.stringify(value);
        if (json !== undefined) return { kind: 'value', value: JSON.parse(json) };
      } catch (e) {
        // cyclic structures and BigInt fall through to the opaque form
      }
      let text;
      try {
        text = String(value);
      } catch (e) {
        text = tag;
      }
      return { kind: 'opaque', typeOf: typeof value, isArray: Array.isArray(value), text };
    };
""")


def generate_in_context_runner_js() -> str:
    """
    Build the function declaration dispatched for every evaluation.

    The function takes one payload `{body, argNames, args, awaitAsync}` and
    resolves to `{success: true, value, elapsedMs}` or
    `{success: false, error, elapsedMs}`. It never rejects: compile errors,
    thrown exceptions and rejected promises all land in the failure shape.
    Elapsed time is measured with the page's own clock.

    Returns:
        JavaScript source of an async arrow function.
    """
    lower_js = "\n".join(f"  {line}" if line else line for line in _LOWER_VALUE_JS.splitlines())
    return (
        "async ({ body, argNames, args, awaitAsync }) => {\n"
        "  const startedAt = Date.now();\n"
        f"{lower_js}\n"
        "  try {\n"
        "    const fn = new Function(...argNames, body);\n"
        "    let value = fn(...args);\n"
        "    if (awaitAsync && value && typeof value.then === 'function') {\n"
        "      value = await value;\n"
        "    }\n"
        "    return { success: true, value: lower(value), elapsedMs: Date.now() - startedAt };\n"
        "  } catch (error) {\n"
        "    return {\n"
        "      success: false,\n"
        "      error: error instanceof Error ? error.message : String(error),\n"
        "      elapsedMs: Date.now() - startedAt,\n"
        "    };\n"
        "  }\n"
        "}"
    )


def build_invocation_expression(function_declaration: str, args: list[Any]) -> str:
    """
    Build an expression that calls `function_declaration` with `args`.

    Args:
        function_declaration: JavaScript function source.
        args: JSON-serializable positional arguments.

    Returns:
        Expression suitable for Runtime.evaluate.
    """
    return f"({function_declaration}).apply(null, {json.dumps(args, ensure_ascii=False)})"
