"""Helpers for parsing model output that arrives as text."""

import json
import re
from typing import TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


def strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_llm_json_list(raw_output: str, model: type[T]) -> list[T]:
    """
    Parse a JSON array from LLM output and validate each item.

    Args:
        raw_output: Raw string from the model
        model: Pydantic model for one array item

    Returns:
        Validated items in order

    Raises:
        json.JSONDecodeError: If JSON parsing fails after cleanup
        ValueError: If the payload is not a JSON array
        pydantic.ValidationError: If an item doesn't match the schema
    """
    parsed = json.loads(strip_llm_fences(raw_output))
    if not isinstance(parsed, list):
        raise ValueError(f"Expected a JSON array, got {type(parsed).__name__}")
    return [model.model_validate(item) for item in parsed]


def parse_llm_index_list(raw_output: str) -> list[int]:
    """Parse a ranking such as ``[2, 0, 1]``. Non-integers are rejected."""
    parsed = json.loads(strip_llm_fences(raw_output))
    if not isinstance(parsed, list) or not all(
        isinstance(i, int) and not isinstance(i, bool) for i in parsed
    ):
        raise ValueError("Expected a JSON array of integers")
    return parsed
