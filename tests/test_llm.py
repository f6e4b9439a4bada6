"""Tests for the coach LLM client."""

import json
import logging

import httpx

from academy.advice import FALLBACK_ADVICE
from academy.llm import ChessCoach
from academy.prompts import COACH_SYSTEM_PROMPT, build_position_prompt

AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"


def _completion(content) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _good_reply() -> str:
    return json.dumps({
        "explanation": "You opened the door for your bishop and queen!",
        "suggestedMove": "e5",
        "evaluation": "good",
        "funFact": "1. e4 is the most popular first move in history.",
    })


def _coach(**kwargs) -> ChessCoach:
    defaults = dict(base_url="http://llm.test/v1/", model="test-model")
    defaults.update(kwargs)
    return ChessCoach(**defaults)


class TestGetAdvice:
    async def test_success(self, monkeypatch):
        captured = {}

        async def mock_post(self, url, **kwargs):
            captured["url"] = url
            captured["json"] = kwargs["json"]
            return httpx.Response(
                200, json=_completion(_good_reply()),
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        advice = await _coach().get_advice(AFTER_E4, "e4", "b")
        assert advice.evaluation == "good"
        assert advice.suggested_move == "e5"
        assert captured["url"] == "http://llm.test/v1/chat/completions"

    async def test_request_carries_prompt_and_schema(self, monkeypatch):
        captured = {}

        async def mock_post(self, url, **kwargs):
            captured.update(kwargs["json"])
            return httpx.Response(
                200, json=_completion(_good_reply()),
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        await _coach().get_advice(AFTER_E4, "e4", "b")
        assert captured["model"] == "test-model"
        system, user = captured["messages"]
        assert system == {"role": "system", "content": COACH_SYSTEM_PROMPT}
        assert AFTER_E4 in user["content"]
        assert "Last move played: e4" in user["content"]
        assert "It is Black's turn." in user["content"]
        schema = captured["response_format"]["json_schema"]["schema"]
        assert schema["required"] == ["explanation", "evaluation"]

    async def test_timeout_returns_fallback(self, monkeypatch):
        async def mock_post(self, url, **kwargs):
            raise httpx.ReadTimeout("timed out")

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        assert await _coach().get_advice(AFTER_E4, "e4", "b") == FALLBACK_ADVICE

    async def test_connection_error_returns_fallback(self, monkeypatch):
        async def mock_post(self, url, **kwargs):
            raise httpx.ConnectError("connection refused")

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        advice = await _coach().get_advice(AFTER_E4, "e4", "b")
        assert advice.evaluation == "neutral"
        assert advice.explanation

    async def test_http_error_status_returns_fallback(self, monkeypatch):
        async def mock_post(self, url, **kwargs):
            return httpx.Response(
                401, json={"error": "bad key"},
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        assert await _coach().get_advice(AFTER_E4, "e4", "b") == FALLBACK_ADVICE

    async def test_malformed_content_returns_fallback(self, monkeypatch):
        async def mock_post(self, url, **kwargs):
            return httpx.Response(
                200, json=_completion("Great move, keep going!"),
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        assert await _coach().get_advice(AFTER_E4, "e4", "b") == FALLBACK_ADVICE

    async def test_unexpected_envelope_returns_fallback(self, monkeypatch):
        async def mock_post(self, url, **kwargs):
            return httpx.Response(
                200, json={"candidates": []},
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        assert await _coach().get_advice(AFTER_E4, "e4", "b") == FALLBACK_ADVICE

    async def test_oversized_integer_returns_fallback(self, monkeypatch):
        async def mock_post(self, url, **kwargs):
            return httpx.Response(
                200, json=_completion("9" * 5000),
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        assert await _coach().get_advice(AFTER_E4, "e4", "b") == FALLBACK_ADVICE

    async def test_deep_nesting_returns_fallback(self, monkeypatch):
        async def mock_post(self, url, **kwargs):
            return httpx.Response(
                200, json=_completion("[" * 100000),
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        assert await _coach().get_advice(AFTER_E4, "e4", "b") == FALLBACK_ADVICE

    async def test_null_content_returns_fallback(self, monkeypatch):
        async def mock_post(self, url, **kwargs):
            return httpx.Response(
                200, json=_completion(None),
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        assert await _coach().get_advice(AFTER_E4, "e4", "b") == FALLBACK_ADVICE

    async def test_non_json_body_returns_fallback(self, monkeypatch):
        async def mock_post(self, url, **kwargs):
            return httpx.Response(
                200, text="<html>oops</html>",
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        assert await _coach().get_advice(AFTER_E4, "e4", "b") == FALLBACK_ADVICE

    async def test_api_key_sent_in_header(self, monkeypatch):
        captured = {}

        async def mock_post(self, url, **kwargs):
            captured["headers"] = kwargs.get("headers", {})
            return httpx.Response(
                200, json=_completion(_good_reply()),
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        await _coach(api_key="sk-test").get_advice(AFTER_E4, "e4", "b")
        assert captured["headers"]["Authorization"] == "Bearer sk-test"

    async def test_no_api_key_no_header(self, monkeypatch):
        captured = {}

        async def mock_post(self, url, **kwargs):
            captured["headers"] = kwargs.get("headers", {})
            return httpx.Response(
                200, json=_completion(_good_reply()),
                request=httpx.Request("POST", url),
            )

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        await _coach().get_advice(AFTER_E4, "e4", "b")
        assert "Authorization" not in captured["headers"]

    async def test_failure_log_omits_api_key(self, monkeypatch, caplog):
        async def mock_post(self, url, **kwargs):
            raise httpx.ConnectError("connection refused")

        monkeypatch.setattr(httpx.AsyncClient, "post", mock_post)
        with caplog.at_level(logging.WARNING, logger="academy.llm"):
            await _coach(api_key="sk-secret-123").get_advice(AFTER_E4, "e4", "b")
        assert "Coach request failed" in caplog.text
        assert "sk-secret-123" not in caplog.text


class TestPositionPrompt:
    def test_initial_state_says_none(self):
        prompt = build_position_prompt(
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", None, "w",
        )
        assert "Last move played: None" in prompt
        assert "It is White's turn." in prompt

    def test_includes_fen(self):
        assert f"(FEN): {AFTER_E4}" in build_position_prompt(AFTER_E4, "e4", "b")
