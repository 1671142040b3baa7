"""Abstract base class for LLM clients.

Every generation provider (Gemini, Groq, Ollama) implements this thin
interface so the generate endpoint stays provider-agnostic.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import requests

# HTTP status codes worth retrying
_TRANSIENT_CODES = ("429", "500", "502", "503", "504")
_TRANSIENT_STATUS_RE = re.compile(
    r"(?:^\s*|\bHTTP\s+|\bstatus\s+)(?:" + "|".join(_TRANSIENT_CODES) + r")\b",
    re.IGNORECASE,
)


@dataclass
class UsageStats:
    """Token usage reported by the provider for the last call."""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    model: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
            "model": self.model,
            **self.extra,
        }


def is_transient_error(exc: BaseException) -> bool:
    """Return True for provider errors that are safe to retry.

    Status codes only count where the error text leads with them
    (``"503 Service Unavailable"``) or names them as ``HTTP 503`` /
    ``status 503``; numbers inside a response body are ignored.
    """
    if isinstance(exc, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        return True
    if isinstance(exc, requests.exceptions.HTTPError) and exc.response is not None:
        return str(exc.response.status_code) in _TRANSIENT_CODES
    if isinstance(exc, OSError) and not isinstance(exc, requests.exceptions.RequestException):
        return True
    exc_str = str(exc)
    if "RESOURCE_EXHAUSTED" in exc_str or "UNAVAILABLE" in exc_str:
        return True
    return _TRANSIENT_STATUS_RE.search(exc_str) is not None


class LLMClient(ABC):
    """Minimal contract that all LLM backends must satisfy."""

    # Human-readable provider name, used in error messages
    provider_name: str = "LLM"
    # Environment variable holding the credential; None when no key is needed
    api_key_env: Optional[str] = None

    default_model: Optional[str]

    # Populated after generate completes
    last_usage: Optional[UsageStats] = None

    def _resolve_model(self, model: Optional[str]) -> str:
        model_id = model or self.default_model
        if not model_id:
            raise ValueError("model must be provided either via constructor or argument")
        return model_id

    @abstractmethod
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
        """Return the full model response as a single string.

        ``system`` carries the instruction, ``prompt`` the user content.
        With ``json_output`` the provider is asked for a JSON object; the
        returned text is not guaranteed to parse.
        """


__all__ = ["LLMClient", "UsageStats", "is_transient_error"]
