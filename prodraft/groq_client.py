"""Groq client: OpenAI-compatible chat completions over HTTP.

Configuration (environment variables):
    GROQ_API_KEY   – required
    GROQ_BASE_URL  – default ``https://api.groq.com/openai/v1``
    GROQ_MODEL     – default ``llama-3.3-70b-versatile``
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
)

from prodraft.config import (
    GROQ_BASE_URL,
    GROQ_MODEL,
    LLM_BACKOFF_MAX,
    LLM_BACKOFF_MIN,
    LLM_MAX_RETRIES,
    LLM_REQUEST_TIMEOUT,
)
from prodraft.llm_base import LLMClient, UsageStats, is_transient_error

LOG = logging.getLogger(__name__)

GROQ_MAX_RETRIES = LLM_MAX_RETRIES
GROQ_BACKOFF_MIN = LLM_BACKOFF_MIN
GROQ_BACKOFF_MAX = LLM_BACKOFF_MAX


def _is_retryable(exc: BaseException) -> bool:
    return is_transient_error(exc)


class GroqClient(LLMClient):
    """LLM client for the Groq chat completions API."""

    provider_name = "Groq"
    api_key_env = "GROQ_API_KEY"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        default_model: Optional[str] = None,
    ):
        self.api_key = api_key or os.environ.get(self.api_key_env)
        if not self.api_key:
            raise RuntimeError("GROQ_API_KEY is not set")
        self.base_url = (base_url or GROQ_BASE_URL).rstrip("/")
        self.default_model = default_model or GROQ_MODEL

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 512,
        temperature: float = 0.0,
        json_output: bool = False,
    ) -> str:
        model_id = self._resolve_model(model)

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": model_id,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_output:
            payload["response_format"] = {"type": "json_object"}

        @retry(
            stop=stop_after_attempt(GROQ_MAX_RETRIES),
            wait=wait_exponential(min=GROQ_BACKOFF_MIN, max=GROQ_BACKOFF_MAX),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(LOG, logging.WARNING),
            reraise=True,
        )
        def _call() -> dict:
            resp = requests.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
                timeout=LLM_REQUEST_TIMEOUT,
            )
            if resp.status_code >= 400:
                # surface the provider's error body so callers can classify it
                raise RuntimeError(f"HTTP {resp.status_code}: {resp.text}")
            return resp.json()

        try:
            data = _call()
        except Exception as exc:
            raise RuntimeError(f"Groq API error: {exc}") from exc

        usage = data.get("usage") or {}
        self.last_usage = UsageStats(
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
            model=data.get("model", model_id),
        )

        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""


__all__ = ["GroqClient"]
