"""
Turn free-form vendor output into validated documents.

Vendors are asked for bare JSON but regularly wrap it in markdown fences or
add prose before/after it, so the object is cut out of the text before parsing.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from private_reader.errors import ResponseParseError
from private_reader.schemas import LearningIndex, TechnicalAnalysis

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

PARSE_FAILED = "Failed to parse LLM response as JSON"
INVALID_STRUCTURE = "Invalid response structure from LLM"


def clean_json_response(text: str) -> str:
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned)
    cleaned = _TRAILING_FENCE.sub("", cleaned)

    # Greedy: first "{" to last "}".
    match = _JSON_OBJECT.search(cleaned)
    if match:
        cleaned = match.group(0)
    return cleaned.strip()


def parse_json_object(raw: str) -> dict[str, Any]:
    cleaned = clean_json_response(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("JSON parse error: %s; response text: %s", e, raw)
        raise ResponseParseError(PARSE_FAILED, raw=raw) from e
    if not isinstance(data, dict):
        logger.error("Expected a JSON object, got %s; response text: %s", type(data).__name__, raw)
        raise ResponseParseError(INVALID_STRUCTURE, raw=raw)
    return data


def parse_learning_index(raw: str) -> LearningIndex:
    data = parse_json_object(raw)
    try:
        return LearningIndex.model_validate(data)
    except ValidationError as e:
        logger.error("Learning index failed validation: %s; response text: %s", e, raw)
        raise ResponseParseError(INVALID_STRUCTURE, raw=raw) from e


def parse_technical_analysis(raw: str) -> TechnicalAnalysis:
    data = parse_json_object(raw)
    try:
        return TechnicalAnalysis.model_validate(data)
    except ValidationError as e:
        logger.error("Technical analysis failed validation: %s; response text: %s", e, raw)
        raise ResponseParseError(INVALID_STRUCTURE, raw=raw) from e
