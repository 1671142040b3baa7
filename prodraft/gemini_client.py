"""Gemini (Google GenAI) client.

Expects ``GEMINI_API_KEY`` in the environment unless a key is passed to the
constructor. Transient failures (429, 5xx, connection errors) are retried
with exponential backoff before the error is surfaced.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from google import genai
from google.genai import types
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
)

from prodraft.config import GEMINI_MODEL, LLM_BACKOFF_MAX, LLM_BACKOFF_MIN, LLM_MAX_RETRIES
from prodraft.llm_base import LLMClient, UsageStats, is_transient_error

LOG = logging.getLogger(__name__)

GEMINI_MAX_RETRIES = LLM_MAX_RETRIES
GEMINI_BACKOFF_MIN = LLM_BACKOFF_MIN
GEMINI_BACKOFF_MAX = LLM_BACKOFF_MAX


def _is_retryable(exc: BaseException) -> bool:
    return is_transient_error(exc)


class GeminiClient(LLMClient):
    """LLM client backed by the ``google-genai`` SDK."""

    provider_name = "Gemini"
    api_key_env = "GEMINI_API_KEY"

    def __init__(self, api_key: Optional[str] = None, default_model: Optional[str] = GEMINI_MODEL):
        self.api_key = api_key or os.environ.get(self.api_key_env)
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY is not set")
        self.default_model = default_model

        try:
            self._client = genai.Client(api_key=self.api_key)
        except Exception as exc:
            raise RuntimeError(f"Failed to initialize GenAI client: {exc}") from exc

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

        config = types.GenerateContentConfig(
            max_output_tokens=max_tokens,
            temperature=temperature,
            system_instruction=system,
            response_mime_type="application/json" if json_output else None,
        )

        @retry(
            stop=stop_after_attempt(GEMINI_MAX_RETRIES),
            wait=wait_exponential(min=GEMINI_BACKOFF_MIN, max=GEMINI_BACKOFF_MAX),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(LOG, logging.WARNING),
            reraise=True,
        )
        def _call():
            return self._client.models.generate_content(
                model=model_id,
                contents=prompt,
                config=config,
            )

        try:
            response = _call()
        except Exception as exc:
            raise RuntimeError(f"Gemini API error: {exc}") from exc

        usage = getattr(response, "usage_metadata", None)
        if usage is not None:
            self.last_usage = UsageStats(
                input_tokens=getattr(usage, "prompt_token_count", None) or 0,
                output_tokens=getattr(usage, "candidates_token_count", None) or 0,
                total_tokens=getattr(usage, "total_token_count", None) or 0,
                model=model_id,
            )
        return response.text or ""


__all__ = ["GeminiClient"]
