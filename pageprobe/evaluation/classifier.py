"""
pageprobe/evaluation/classifier.py

Result classification and serialization.

Classification runs an ordered list of capability predicates; the first
match wins, and anything unmatched falls through to its primitive runtime
type. Serialization follows a fallback chain that ends in plain string
conversion, so `serialize` never raises.
"""

import datetime
import inspect
import json
import math
import re
import traceback
from collections.abc import Callable
from typing import Any

from pageprobe.data_models.evaluation import ClassifiedResult, ResultType
from pageprobe.evaluation.remote_values import (
    UNDEFINED,
    RemoteDate,
    RemoteError,
    RemoteFunction,
    RemoteOpaque,
    RemoteRegExp,
)
from pageprobe.utils.logger import get_logger

logger = get_logger(name=__name__)

# runtime types reported by the page for values it could not marshal
_OPAQUE_TYPE_TAGS: dict[str, ResultType] = {
    "bigint": ResultType.NUMBER,
    "number": ResultType.NUMBER,
    "string": ResultType.STRING,
    "symbol": ResultType.STRING,
    "boolean": ResultType.BOOLEAN,
    "function": ResultType.FUNCTION,
}


# Capability predicates ___________________________________________________________________________

def _is_undefined(value: Any) -> bool:
    return value is UNDEFINED


def _is_null(value: Any) -> bool:
    return value is None


def _is_array(value: Any) -> bool:
    if isinstance(value, RemoteOpaque):
        return value.is_array
    return isinstance(value, (list, tuple))


def _is_date_like(value: Any) -> bool:
    return isinstance(value, (RemoteDate, datetime.date))


def _is_regexp_like(value: Any) -> bool:
    return isinstance(value, (RemoteRegExp, re.Pattern))


def _is_error_like(value: Any) -> bool:
    return isinstance(value, (RemoteError, BaseException))


CAPABILITY_PREDICATES: tuple[tuple[Callable[[Any], bool], ResultType], ...] = (
    (_is_undefined, ResultType.UNDEFINED),
    (_is_null, ResultType.NULL),
    (_is_array, ResultType.ARRAY),
    (_is_date_like, ResultType.DATE),
    (_is_regexp_like, ResultType.REGEXP),
    (_is_error_like, ResultType.ERROR),
)


def _primitive_type(value: Any) -> ResultType:
    if isinstance(value, RemoteOpaque):
        return _OPAQUE_TYPE_TAGS.get(value.type_of, ResultType.OBJECT)
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return ResultType.BOOLEAN
    if isinstance(value, (int, float)):
        return ResultType.NUMBER
    if isinstance(value, str):
        return ResultType.STRING
    if isinstance(value, RemoteFunction) or callable(value):
        return ResultType.FUNCTION
    return ResultType.OBJECT


# Serialization helpers ___________________________________________________________________________

def _function_source(value: Any) -> str:
    if isinstance(value, RemoteFunction):
        return value.source
    try:
        return inspect.getsource(value)
    except (OSError, TypeError):
        return repr(value)


def _error_fields(value: Any) -> dict[str, str | None]:
    if isinstance(value, RemoteError):
        return {"name": value.name, "message": value.message, "stack": value.stack}
    stack = None
    if value.__traceback__ is not None:
        stack = "".join(traceback.format_exception(value))
    return {"name": type(value).__name__, "message": str(value), "stack": stack}


def _json_default(value: Any) -> Any:
    """Mirror JSON.stringify for nested values json cannot encode natively."""
    if isinstance(value, RemoteDate):
        return value.iso
    if isinstance(value, datetime.date):
        return value.isoformat()
    if isinstance(value, (RemoteRegExp, re.Pattern)):
        return {}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _null_non_finite(value: Any, seen: set[int] | None = None) -> Any:
    """Replace NaN and +/-Infinity with None, the way JSON.stringify writes them as null."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if not isinstance(value, (list, tuple, dict)):
        return value

    seen = set() if seen is None else seen
    if id(value) in seen:
        raise ValueError("Circular reference detected")
    seen.add(id(value))
    try:
        if isinstance(value, dict):
            return {key: _null_non_finite(item, seen) for key, item in value.items()}
        return [_null_non_finite(item, seen) for item in value]
    finally:
        seen.discard(id(value))


def _plain_string(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


# Exports _________________________________________________________________________________________

def classify(value: Any) -> ResultType:
    """
    Assign a semantic type tag to a produced value.

    Args:
        value: Value produced by an evaluation (Python or remote stand-in).

    Returns:
        The first matching capability tag, else the primitive runtime type.
    """
    for predicate, type_tag in CAPABILITY_PREDICATES:
        if predicate(value):
            return type_tag
    return _primitive_type(value)


def serialize(value: Any, type_tag: ResultType | None = None) -> str:
    """
    Produce the textual form of a produced value.

    Fallback chain: undefined -> "undefined"; null -> "null"; functions -> source;
    errors -> pretty JSON of name/message/stack; everything else -> pretty JSON
    (non-finite numbers written as null), degrading to plain string conversion
    when that fails (e.g. cyclic structures).

    Args:
        value: Value produced by an evaluation.
        type_tag: Tag from `classify`; computed when omitted.

    Returns:
        Serialized text. Never raises.
    """
    if type_tag is None:
        type_tag = classify(value)

    if type_tag == ResultType.UNDEFINED:
        return "undefined"
    if type_tag == ResultType.NULL:
        return "null"
    if type_tag == ResultType.FUNCTION:
        return _function_source(value)
    if type_tag == ResultType.ERROR:
        return json.dumps(_error_fields(value), indent=2, ensure_ascii=False)

    try:
        return json.dumps(_null_non_finite(value), indent=2, ensure_ascii=False, default=_json_default)
    except (TypeError, ValueError, OverflowError, RecursionError) as e:
        logger.debug("Structural serialization failed (%s); falling back to string conversion", e)
        return _plain_string(value)


def classify_result(value: Any) -> ClassifiedResult:
    """Classify and serialize a produced value in one step."""
    type_tag = classify(value)
    return ClassifiedResult(type=type_tag, serialized=serialize(value, type_tag))
