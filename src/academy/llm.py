"""LLM client for chess coaching.

Sends the current position to an OpenAI-compatible chat completions
endpoint with a structured-output schema and turns the reply into
:class:`CoachAdvice`.  Never raises: any failure yields the neutral
fallback so the board stays playable.
"""

from __future__ import annotations

import logging

import httpx

from academy.advice import ADVICE_SCHEMA, FALLBACK_ADVICE, CoachAdvice, parse_advice
from academy.prompts import COACH_SYSTEM_PROMPT, build_position_prompt

logger = logging.getLogger(__name__)


class ChessCoach:
    """Generates coaching advice via a hosted LLM."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str | None = None,
        timeout: float = 30.0,
    ):
        self._url = base_url.rstrip("/")
        self._model = model
        self._api_key = api_key
        self._timeout = timeout

    async def get_advice(
        self, fen: str, last_move: str | None, turn: str
    ) -> CoachAdvice:
        """Advice for ``fen`` after ``last_move`` with ``turn`` ("w"/"b") to move."""
        messages = [
            {"role": "system", "content": COACH_SYSTEM_PROMPT},
            {"role": "user", "content": build_position_prompt(fen, last_move, turn)},
        ]
        text = await self._chat(messages)
        if text is None:
            return FALLBACK_ADVICE
        advice = parse_advice(text)
        if advice is None:
            logger.warning("Coach returned unparseable advice (%d chars)", len(text))
            return FALLBACK_ADVICE
        return advice

    async def _chat(self, messages: list[dict]) -> str | None:
        """POST to /chat/completions and return the assistant content."""
        payload = {
            "model": self._model,
            "messages": messages,
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": "coach_advice", "schema": ADVICE_SCHEMA},
            },
        }
        headers = {}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    f"{self._url}/chat/completions", json=payload, headers=headers
                )
                resp.raise_for_status()
                data = resp.json()
                content = data["choices"][0]["message"]["content"]
        except (httpx.HTTPError, KeyError, IndexError, ValueError, TypeError) as e:
            logger.warning("Coach request failed: %s", type(e).__name__)
            return None
        if not isinstance(content, str):
            return None
        return content
