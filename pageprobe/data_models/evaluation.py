"""
pageprobe/data_models/evaluation.py

Data models for script evaluation requests and their outcomes.

Contains:
- ResultType: closed set of semantic type tags for produced values
- EvaluationRequest: caller-supplied code, arguments, and limits
- AttemptResult: what one in-page invocation reported back
- ClassifiedResult: type tag plus textual serialization of a value
- OutcomeEnvelope: the single report returned for every request
"""

import json
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pageprobe.config import Config


class ResultType(StrEnum):
    """Semantic type tag assigned to a produced value."""
    UNDEFINED = "undefined"
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    DATE = "date"
    REGEXP = "regexp"
    FUNCTION = "function"
    ERROR = "error"


class EvaluationRequest(BaseModel):
    """A request to evaluate a piece of JavaScript inside the page."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code: str = Field(description="JavaScript expression or function body to evaluate")
    args: list[Any] = Field(
        default_factory=list,
        description="Positional arguments exposed to the code as arg0, arg1, ... (must be JSON-serializable)",
    )
    await_async: bool = Field(
        default=True,
        alias="awaitAsync",
        description="Whether to wait for a returned promise to settle",
    )
    timeout_ms: int = Field(
        default=Config.DEFAULT_TIMEOUT_MS,
        alias="timeoutMs",
        gt=0,
        description="Maximum time to wait for the evaluation, in milliseconds",
    )

    @field_validator("args")
    @classmethod
    def _args_must_be_json(cls, value: list[Any]) -> list[Any]:
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"args must contain only JSON-serializable values: {e}") from e
        return value


class AttemptResult(BaseModel):
    """
    Settlement of one invocation attempt.

    On success `value` holds the produced value (already converted from the
    page's wire format); on failure `error` holds the message.
    """
    success: bool
    value: Any = None
    error: str | None = None
    in_context_elapsed_ms: int = 0

    @classmethod
    def failure(cls, error: str, in_context_elapsed_ms: int = 0) -> "AttemptResult":
        return cls(success=False, error=error, in_context_elapsed_ms=in_context_elapsed_ms)


class ClassifiedResult(BaseModel):
    """A produced value reduced to its type tag and text."""
    type: ResultType
    serialized: str | None = None


class OutcomeEnvelope(BaseModel):
    """The structured report returned for every evaluation request."""
    model_config = ConfigDict(populate_by_name=True)

    result: str | None = Field(description="Serialized value, or null when the evaluation failed")
    type: ResultType = Field(description="Semantic type tag of the value ('error' on failure)")
    console: list[str] = Field(default_factory=list, description="Console messages emitted during the run")
    error: str | None = Field(default=None, description="Failure message; absent on success")
    execution_time_ms: int = Field(
        alias="executionTimeMs",
        ge=0,
        description="Wall-clock duration from dispatch to settlement, in milliseconds",
    )

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_response(self) -> dict[str, Any]:
        """
        Render the envelope as the wire response.

        Returns:
            Dict with result, type, console, executionTimeMs and, only on failure, error.
        """
        response = self.model_dump(mode="json", by_alias=True)
        if self.error is None:
            response.pop("error")
        return response
