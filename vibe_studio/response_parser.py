"""
Provider Reply Parsing

Turns raw model text into validated assistant results. Models often wrap JSON
in markdown fences, so those are stripped before decoding.
"""

import json
import re
from typing import List, Union

from pydantic import TypeAdapter, ValidationError

from .models import EditResult, ExplanationEntry

EXPLANATIONS = "explanations"
EDIT = "edit"

_LEADING_FENCE = re.compile(r"^```[\w+-]*\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")

_explanations_adapter = TypeAdapter(List[ExplanationEntry])


class MalformedResponse(ValueError):
    """The provider reply could not be turned into the expected result."""


class DecodeFailure(MalformedResponse):
    """The reply is not valid JSON."""


class ShapeValidationFailure(MalformedResponse):
    """The reply is valid JSON but not the expected shape."""


def strip_fences(raw: str) -> str:
    """Remove a leading and a trailing code fence, if present, and trim."""
    text = raw.strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def parse_response(raw: str, shape: str) -> Union[List[ExplanationEntry], EditResult]:
    """
    Decode and validate a provider reply.

    Args:
        raw: Raw text returned by the provider
        shape: "explanations" or "edit"

    Returns:
        A list of ExplanationEntry for "explanations", an EditResult for "edit"

    Raises:
        DecodeFailure: If the cleaned text is not JSON
        ShapeValidationFailure: If the JSON does not match the shape
        ValueError: If the shape tag is unknown
    """
    if shape not in (EXPLANATIONS, EDIT):
        raise ValueError(f"Unknown response shape: {shape}")

    cleaned = strip_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise DecodeFailure(f"Reply is not valid JSON: {e}") from e

    try:
        if shape == EXPLANATIONS:
            return _explanations_adapter.validate_python(data)
        if not isinstance(data, dict):
            raise ShapeValidationFailure(f"Expected an object, got {type(data).__name__}")
        return EditResult.model_validate(data)
    except ValidationError as e:
        raise ShapeValidationFailure(f"Reply does not match '{shape}' shape: {e}") from e
