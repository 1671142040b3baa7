"""Ollama client: talk to local LLMs via the Ollama HTTP API.

Ollama listens on ``http://localhost:11434`` by default and needs no API
key. This client calls the ``/api/generate`` endpoint with ``requests``,
retrying transient failures.

Configuration (environment variables):
    OLLAMA_BASE_URL   – default ``http://localhost:11434``
    OLLAMA_MODEL      – default model name, e.g. ``llama3``, ``mistral``
"""
from __future__ import annotations

import logging
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
    LLM_BACKOFF_MAX,
    LLM_BACKOFF_MIN,
    LLM_MAX_RETRIES,
    LLM_REQUEST_TIMEOUT,
    OLLAMA_BASE_URL,
    OLLAMA_MODEL,
)
from prodraft.llm_base import LLMClient, UsageStats, is_transient_error

LOG = logging.getLogger(__name__)

OLLAMA_MAX_RETRIES = LLM_MAX_RETRIES
OLLAMA_BACKOFF_MIN = LLM_BACKOFF_MIN
OLLAMA_BACKOFF_MAX = LLM_BACKOFF_MAX


def _is_retryable(exc: BaseException) -> bool:
    """Return True for transient Ollama errors safe to retry."""
    return is_transient_error(exc)


class OllamaClient(LLMClient):
    """LLM client that calls a local Ollama instance.

    Parameters
    ----------
    base_url : str | None
        Ollama API root (default ``OLLAMA_BASE_URL`` env var).
    default_model : str | None
        Model name to use when none is provided per-call.
    """

    provider_name = "Ollama"
    api_key_env = None

    def __init__(
        self,
        base_url: Optional[str] = None,
        default_model: Optional[str] = None,
    ):
        self.base_url = (base_url or OLLAMA_BASE_URL).rstrip("/")
        self.default_model = default_model or OLLAMA_MODEL

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

        payload = {
            "model": model_id,
            "prompt": prompt,
            "stream": False,
            "options": {
                "num_predict": max_tokens,
                "temperature": temperature,
            },
        }
        if system:
            payload["system"] = system
        if json_output:
            payload["format"] = "json"

        @retry(
            stop=stop_after_attempt(OLLAMA_MAX_RETRIES),
            wait=wait_exponential(min=OLLAMA_BACKOFF_MIN, max=OLLAMA_BACKOFF_MAX),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(LOG, logging.WARNING),
            reraise=True,
        )
        def _call() -> dict:
            resp = requests.post(
                f"{self.base_url}/api/generate",
                json=payload,
                timeout=LLM_REQUEST_TIMEOUT,
            )
            resp.raise_for_status()
            return resp.json()

        try:
            data = _call()
        except Exception as exc:
            raise RuntimeError(f"Ollama API error: {exc}") from exc

        prompt_tokens = data.get("prompt_eval_count", 0)
        output_tokens = data.get("eval_count", 0)
        self.last_usage = UsageStats(
            input_tokens=prompt_tokens,
            output_tokens=output_tokens,
            total_tokens=prompt_tokens + output_tokens,
            model=model_id,
            extra={"eval_duration_ns": data.get("eval_duration", 0)},
        )
        return data.get("response", "")


__all__ = ["OllamaClient"]
