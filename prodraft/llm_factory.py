"""LLM provider factory: returns the right client based on configuration.

The provider is selected by the ``LLM_PROVIDER`` environment variable:

- ``gemini``  (default) uses the Gemini (Google GenAI) SDK
- ``groq``              calls the Groq chat completions API
- ``ollama``            calls a local Ollama instance

Callers should use ``get_llm_client()`` instead of instantiating a client
class directly so the provider can be swapped by configuration alone.
"""
from __future__ import annotations

import logging
import os
from typing import NamedTuple, Optional

from prodraft.config import LLM_PROVIDER
from prodraft.llm_base import LLMClient

LOG = logging.getLogger(__name__)


class ProviderInfo(NamedTuple):
    name: str
    display_name: str
    api_key_env: Optional[str]


PROVIDERS = {
    "gemini": ProviderInfo("gemini", "Gemini", "GEMINI_API_KEY"),
    "groq": ProviderInfo("groq", "Groq", "GROQ_API_KEY"),
    "ollama": ProviderInfo("ollama", "Ollama", None),
}


def _normalise(provider: Optional[str]) -> str:
    return (provider or LLM_PROVIDER).lower().strip()


def provider_info(provider: Optional[str] = None) -> ProviderInfo:
    """Describe a provider without instantiating its client."""
    prov = _normalise(provider)
    try:
        return PROVIDERS[prov]
    except KeyError:
        raise ValueError(
            f"Unknown LLM_PROVIDER '{prov}'. "
            f"Supported values: {', '.join(PROVIDERS)}"
        ) from None


def provider_configured(provider: Optional[str] = None) -> bool:
    """True when the provider's credential (if it needs one) is present."""
    info = provider_info(provider)
    if info.api_key_env is None:
        return True
    return bool(os.environ.get(info.api_key_env))


def get_llm_client(
    *,
    provider: Optional[str] = None,
    default_model: Optional[str] = None,
) -> LLMClient:
    """Instantiate and return the configured LLM client.

    Parameters
    ----------
    provider : str | None
        Override ``LLM_PROVIDER`` env var for this call.
    default_model : str | None
        Override the provider's default model for this instance.
    """
    info = provider_info(provider)
    kwargs: dict = {}
    if default_model:
        kwargs["default_model"] = default_model

    if info.name == "gemini":
        from prodraft.gemini_client import GeminiClient
        return GeminiClient(**kwargs)

    if info.name == "groq":
        from prodraft.groq_client import GroqClient
        return GroqClient(**kwargs)

    from prodraft.ollama_client import OllamaClient
    return OllamaClient(**kwargs)


__all__ = ["PROVIDERS", "ProviderInfo", "get_llm_client", "provider_info", "provider_configured", "LLM_PROVIDER"]
