"""Public API for coach prompt text and formatting."""

from academy.prompts.formatting import build_position_prompt
from academy.prompts.system import COACH_SYSTEM_PROMPT
