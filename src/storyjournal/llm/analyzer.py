"""Story analysis response parsing."""

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, Field

from storyjournal.errors import ParseError
from storyjournal.llm.prompts import UNCLEAR

logger = logging.getLogger(__name__)

SCALAR_FIELDS = (
    "hook",
    "beginning",
    "middle",
    "end",
    "outcome",
    "lesson_or_takeaway",
    "turning_point",
)

CONTENT_FIELDS = ("characters", *SCALAR_FIELDS)

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"\s*```$")


class AnalysisResult(BaseModel):
    """Structured story elements. Empty string means "not determined"."""

    characters: list[str] = Field(default_factory=list)
    hook: str = ""
    beginning: str = ""
    middle: str = ""
    end: str = ""
    outcome: str = ""
    lesson_or_takeaway: str = ""
    turning_point: str = ""


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    text = text.strip()
    text = _FENCE_OPEN_RE.sub("", text, count=1)
    text = _FENCE_CLOSE_RE.sub("", text, count=1)
    return text.strip()


def normalize_field(value: Any) -> str:
    """Collapse missing, blank and "Unclear" values to an empty string."""
    if not isinstance(value, str):
        return ""
    value = value.strip()
    if not value or value == UNCLEAR:
        return ""
    return value


def normalize_characters(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [name for name in (normalize_field(v) for v in value) if name]


def normalize_response(response: str) -> AnalysisResult:
    """Parse the model reply into an AnalysisResult.

    Raises ``ParseError`` unless the reply, once unfenced, is a JSON object.
    """
    cleaned = strip_code_fence(response)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Model reply is not valid JSON: {e}")
        raise ParseError() from e

    if not isinstance(data, dict):
        logger.warning(f"Model reply is a JSON {type(data).__name__}, not an object")
        raise ParseError()

    return AnalysisResult(
        characters=normalize_characters(data.get("characters")),
        **{name: normalize_field(data.get(name)) for name in SCALAR_FIELDS},
    )

