"""Tests for POST /api/generate: the rate-limited provider proxy.

The provider factory is mocked at ``prodraft.routers.generate.get_llm_client``
and the limiter runs on a fake clock, so tests are offline and deterministic.
"""
from __future__ import annotations

import json
import pytest
from unittest.mock import patch

from fastapi.testclient import TestClient

from prodraft.main import create_app
from prodraft.rate_limit import FixedWindowRateLimiter
from tests.conftest import FakeClock

SUGGESTIONS = json.dumps({"suggestions": ["Variation one", "Variation two"]})


def _post(client, body=None, ip="1.2.3.4", **kwargs):
    headers = {"x-forwarded-for": ip} if ip else {}
    if body is None:
        body = {"text": "hey can we move the meeting", "format": "email"}
    return client.post("/api/generate", json=body, headers=headers, **kwargs)


# =====================================================================
# Happy path
# =====================================================================

class TestGenerateSuccess:

    @patch("prodraft.routers.generate.get_llm_client")
    def test_returns_output_list(self, mock_factory, client, gemini_key):
        mock_factory.return_value.generate.return_value = SUGGESTIONS
        resp = _post(client)
        assert resp.status_code == 200
        assert resp.json() == {"output": ["Variation one", "Variation two"]}
        assert resp.headers["X-RateLimit-Remaining"] == "19"

    @patch("prodraft.routers.generate.get_llm_client")
    def test_prompt_and_options_forwarded(self, mock_factory, client, gemini_key):
        mock_factory.return_value.generate.return_value = SUGGESTIONS
        _post(client, {"text": "draft text", "format": "social"})

        mock_factory.assert_called_once_with(provider="gemini")
        args, kwargs = mock_factory.return_value.generate.call_args
        assert args[0] == "draft text"
        assert "hashtags" in kwargs["system"]
        assert kwargs["json_output"] is True

    @patch("prodraft.routers.generate.get_llm_client")
    def test_format_defaults_to_email(self, mock_factory, client, gemini_key):
        mock_factory.return_value.generate.return_value = SUGGESTIONS
        _post(client, {"text": "draft"})
        _, kwargs = mock_factory.return_value.generate.call_args
        assert "professional emails" in kwargs["system"]

    @patch("prodraft.routers.generate.get_llm_client")
    def test_unknown_format_uses_generic_instruction(self, mock_factory, client, gemini_key):
        mock_factory.return_value.generate.return_value = SUGGESTIONS
        resp = _post(client, {"text": "draft", "format": "limerick"})
        assert resp.status_code == 200
        _, kwargs = mock_factory.return_value.generate.call_args
        assert "Polish and improve" in kwargs["system"]
        assert "Format them" not in kwargs["system"]

    @pytest.mark.parametrize("fmt", [5, None, ["email"], {"id": "email"}, True])
    @patch("prodraft.routers.generate.get_llm_client")
    def test_non_string_format_uses_generic_instruction(self, mock_factory, fmt, client, gemini_key):
        mock_factory.return_value.generate.return_value = SUGGESTIONS
        resp = _post(client, {"text": "draft", "format": fmt})
        assert resp.status_code == 200
        assert resp.json() == {"output": ["Variation one", "Variation two"]}
        _, kwargs = mock_factory.return_value.generate.call_args
        assert "Polish and improve" in kwargs["system"]
        assert "Format them" not in kwargs["system"]

    @patch("prodraft.routers.generate.get_llm_client")
    def test_non_json_output_is_degraded_success(self, mock_factory, client, gemini_key):
        raw = "Here is your polished text without any JSON."
        mock_factory.return_value.generate.return_value = raw
        resp = _post(client)
        assert resp.status_code == 200
        assert resp.json()["output"] == [raw]

    @patch("prodraft.routers.generate.get_llm_client")
    def test_single_string_suggestion_coerced(self, mock_factory, client, gemini_key):
        mock_factory.return_value.generate.return_value = '{"suggestions": "just one"}'
        assert _post(client).json()["output"] == ["just one"]

    @patch("prodraft.routers.generate.get_llm_client")
    def test_input_sanitised_before_provider(self, mock_factory, client, gemini_key):
        mock_factory.return_value.generate.return_value = SUGGESTIONS
        _post(client, {"text": "hi\x00 there"})
        args, _ = mock_factory.return_value.generate.call_args
        assert args[0] == "hi there"


# =====================================================================
# Admission
# =====================================================================

class TestGenerateRateLimit:

    @patch("prodraft.routers.generate.get_llm_client")
    def test_twenty_first_request_throttled(self, mock_factory, client, clock, gemini_key):
        mock_factory.return_value.generate.return_value = SUGGESTIONS

        remaining = []
        for _ in range(20):
            resp = _post(client)
            assert resp.status_code == 200
            remaining.append(int(resp.headers["X-RateLimit-Remaining"]))
            clock.advance(0.05)
        assert remaining == list(range(19, -1, -1))

        clock.now = 1001.0
        resp = _post(client)
        assert resp.status_code == 429
        assert resp.json() == {"error": "Rate limit exceeded. Try again in 59 seconds."}
        assert resp.headers["X-RateLimit-Remaining"] == "0"
        assert resp.headers["X-RateLimit-Reset"] == "59"
        assert mock_factory.return_value.generate.call_count == 20

    @patch("prodraft.routers.generate.get_llm_client")
    def test_throttle_lifts_after_window(self, mock_factory, client, clock, rate_limiter, gemini_key):
        mock_factory.return_value.generate.return_value = SUGGESTIONS
        for _ in range(21):
            _post(client)
        clock.advance(60)
        resp = _post(client)
        assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Remaining"] == "19"
        assert rate_limiter._entries["1.2.3.4"].count == 1

    @patch("prodraft.routers.generate.get_llm_client")
    def test_clients_counted_separately(self, mock_factory, gemini_key):
        mock_factory.return_value.generate.return_value = SUGGESTIONS
        app = create_app(
            rate_limiter=FixedWindowRateLimiter(limit=1, window_seconds=60, clock=FakeClock()),
            llm_provider="gemini",
        )
        client = TestClient(app)
        assert _post(client, ip="9.9.9.9, 10.0.0.1").status_code == 200
        assert _post(client, ip="9.9.9.9").status_code == 429
        assert _post(client, ip="8.8.8.8").status_code == 200
        assert _post(client, ip=None).status_code == 200
        assert _post(client, ip=None).status_code == 429

    @patch("prodraft.routers.generate.get_llm_client")
    def test_throttled_before_body_checks(self, mock_factory, gemini_key):
        app = create_app(
            rate_limiter=FixedWindowRateLimiter(limit=1, window_seconds=60, clock=FakeClock()),
            llm_provider="gemini",
        )
        client = TestClient(app)
        _post(client, {"text": ""})
        resp = _post(client, {"text": ""})
        assert resp.status_code == 429

    def test_each_app_has_its_own_store(self, gemini_key):
        first = create_app(llm_provider="gemini")
        second = create_app(llm_provider="gemini")
        assert first.state.rate_limiter is not second.state.rate_limiter

    def test_client_fixture_serves_injected_store(self, client, rate_limiter, clock):
        assert client.app.state.rate_limiter is rate_limiter
        assert rate_limiter._clock is clock

    def test_empty_injected_store_is_kept(self, gemini_key):
        store = FixedWindowRateLimiter(limit=1, window_seconds=5, clock=FakeClock())
        assert len(store) == 0
        app = create_app(rate_limiter=store, llm_provider="gemini")
        assert app.state.rate_limiter is store


# =====================================================================
# Validation & configuration errors
# =====================================================================

class TestGenerateValidation:

    @pytest.mark.parametrize(
        "body",
        [{"text": ""}, {"format": "email"}, {"text": "   "}, {"text": None}, {"text": 42}, {"text": ["a"]}],
    )
    def test_missing_text_returns_400(self, client, gemini_key, body):
        resp = _post(client, body)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Input text is required"}

    def test_invalid_json_returns_400(self, client, gemini_key):
        resp = client.post(
            "/api/generate",
            content=b"not json",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Input text is required"}

    def test_non_object_body_returns_400(self, client, gemini_key):
        resp = client.post("/api/generate", json=["text"])
        assert resp.status_code == 400

    def test_empty_text_still_counts_against_quota(self, client, gemini_key):
        resp = _post(client, {"text": ""})
        assert resp.status_code == 400
        assert client.app.state.rate_limiter.peek("1.2.3.4").remaining == 19

    @patch("prodraft.routers.generate.get_llm_client")
    def test_missing_api_key_returns_500(self, mock_factory, client, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        resp = _post(client)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Gemini API key not configured"}
        mock_factory.assert_not_called()

    @patch("prodraft.routers.generate.get_llm_client")
    def test_groq_key_message(self, mock_factory, monkeypatch):
        monkeypatch.delenv("GROQ_API_KEY", raising=False)
        client = TestClient(create_app(llm_provider="groq"))
        resp = _post(client)
        assert resp.json() == {"error": "Groq API key not configured"}

    @patch("prodraft.routers.generate.get_llm_client")
    def test_ollama_needs_no_key(self, mock_factory):
        mock_factory.return_value.generate.return_value = SUGGESTIONS
        client = TestClient(create_app(llm_provider="ollama"))
        resp = _post(client)
        assert resp.status_code == 200
        mock_factory.assert_called_once_with(provider="ollama")


# =====================================================================
# Provider failures
# =====================================================================

class TestGenerateProviderErrors:

    @patch("prodraft.routers.generate.get_llm_client")
    def test_quota_exceeded_message(self, mock_factory, client, gemini_key):
        mock_factory.return_value.generate.side_effect = RuntimeError(
            "Gemini API error: 429 QUOTA_EXCEEDED"
        )
        resp = _post(client)
        assert resp.status_code == 500
        assert resp.json() == {"error": "API quota exceeded. Please try again later."}

    @patch("prodraft.routers.generate.get_llm_client")
    def test_invalid_key_message(self, mock_factory, client, gemini_key):
        mock_factory.return_value.generate.side_effect = RuntimeError("API_KEY_INVALID")
        resp = _post(client)
        assert resp.json()["error"] == "Invalid API key. Please check your GEMINI_API_KEY."

    @patch("prodraft.routers.generate.get_llm_client")
    def test_permission_denied_message(self, mock_factory, client, gemini_key):
        mock_factory.return_value.generate.side_effect = RuntimeError("PERMISSION_DENIED")
        resp = _post(client)
        assert resp.json()["error"] == "Permission denied. Please check API key permissions."

    @patch("prodraft.routers.generate.get_llm_client")
    def test_unknown_failure_is_generic(self, mock_factory, client, gemini_key):
        mock_factory.return_value.generate.side_effect = RuntimeError("socket exploded")
        resp = _post(client)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to generate content"}

    @patch("prodraft.routers.generate.get_llm_client")
    def test_client_construction_failure_handled(self, mock_factory, client, gemini_key):
        mock_factory.side_effect = RuntimeError("Failed to initialize GenAI client")
        resp = _post(client)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to generate content"}
