"""Coach advice value object and parsing of the coach's JSON reply."""

from __future__ import annotations

import json
import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

Evaluation = Literal["good", "neutral", "bad", "mistake"]

EVALUATIONS: tuple[str, ...] = ("good", "neutral", "bad", "mistake")


class CoachAdvice(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    explanation: str = Field(min_length=1)
    evaluation: Evaluation
    suggested_move: str | None = Field(default=None, alias="suggestedMove")
    fun_fact: str | None = Field(default=None, alias="funFact")

    @field_validator("explanation")
    @classmethod
    def _strip_explanation(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("explanation must not be blank")
        return v

    @field_validator("suggested_move", "fun_fact")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    def to_dict(self) -> dict:
        """Wire form used by the browser: camelCase, absent optionals omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


FALLBACK_ADVICE = CoachAdvice(
    explanation="I'm thinking hard about the board! Keep playing while I analyze.",
    evaluation="neutral",
)


# JSON schema handed to the provider as the structured-output contract.
ADVICE_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "explanation": {
            "type": "string",
            "description": (
                "A friendly explanation of the current situation and why the "
                "last move was made."
            ),
        },
        "suggestedMove": {
            "type": "string",
            "description": "The best next move in algebraic notation (e.g., 'e4', 'Nf3').",
        },
        "evaluation": {
            "type": "string",
            "enum": list(EVALUATIONS),
            "description": "How the current position looks for the player who just moved.",
        },
        "funFact": {
            "type": "string",
            "description": (
                "A fun fact about one of the pieces currently on the board or "
                "general chess history."
            ),
        },
    },
    "required": ["explanation", "evaluation"],
}


_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def parse_advice(text: str | None) -> CoachAdvice | None:
    """Parse the coach's reply.  Returns None for anything malformed.

    Some providers wrap JSON in a markdown code fence even when asked for a
    bare object, so a single surrounding fence is stripped first.
    """
    if not isinstance(text, str):
        return None
    cleaned = text.strip()
    m = _FENCE_RE.match(cleaned)
    if m:
        cleaned = m.group(1)
    try:
        data = json.loads(cleaned)
    except (ValueError, RecursionError):
        # JSONDecodeError, oversized integers and runaway nesting
        return None
    if not isinstance(data, dict):
        return None
    try:
        return CoachAdvice.model_validate(data)
    except ValidationError:
        return None
