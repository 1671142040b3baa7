"""Router for the generate endpoint (rate-limited LLM proxy)."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from prodraft.client_identity import resolve_client_id
from prodraft.config import GENERATION_MAX_TOKENS, GENERATION_TEMPERATURE
from prodraft.errors import (
    BadRequestError,
    MisconfigurationError,
    ThrottledError,
    UpstreamError,
    classify_provider_error,
)
from prodraft.input_sanitizer import sanitize_input
from prodraft.llm_factory import get_llm_client, provider_configured, provider_info
from prodraft.models import GenerateRequest, GenerateResponse
from prodraft.output_parser import parse_variations
from prodraft.prompt_builder import build_system_prompt
from prodraft.rate_limit import FixedWindowRateLimiter

log = logging.getLogger(__name__)

router = APIRouter(tags=["generate"])

MISSING_TEXT_MESSAGE = "Input text is required"


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    """The limiter built by ``create_app`` for this application."""
    return request.app.state.rate_limiter


async def _read_generate_request(request: Request) -> GenerateRequest:
    try:
        payload = await request.json()
    except ValueError:
        raise BadRequestError(MISSING_TEXT_MESSAGE)
    if not isinstance(payload, dict):
        raise BadRequestError(MISSING_TEXT_MESSAGE)
    return GenerateRequest(**payload)


@router.post("/api/generate", response_model=GenerateResponse)
async def generate_endpoint(
    request: Request,
    rate_limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
):
    """Polish the submitted text into several variations.

    Order of checks: admission, provider credential, input text. Only an
    admitted request with text reaches the provider.
    """
    client_id = resolve_client_id(request.headers)
    decision = rate_limiter.admit(client_id)
    if not decision.admitted:
        log.info("generate: throttled client=%s reset_in=%ds", client_id, decision.reset_in)
        raise ThrottledError(decision.reset_in)

    provider = request.app.state.llm_provider
    info = provider_info(provider)
    if not provider_configured(provider):
        log.error("generate: %s is not set", info.api_key_env)
        raise MisconfigurationError(f"{info.display_name} API key not configured")

    req = await _read_generate_request(request)
    if not isinstance(req.text, str) or not req.text.strip():
        raise BadRequestError(MISSING_TEXT_MESSAGE)

    text = sanitize_input(req.text)
    system_prompt = build_system_prompt(req.format)
    log.info(
        "generate: client=%s provider=%s format=%r length=%d remaining=%d",
        client_id,
        info.name,
        req.format,
        len(text),
        decision.remaining,
    )

    try:
        client = get_llm_client(provider=provider)
        raw = await run_in_threadpool(
            client.generate,
            text,
            system=system_prompt,
            max_tokens=GENERATION_MAX_TOKENS,
            temperature=GENERATION_TEMPERATURE,
            json_output=True,
        )
    except Exception as exc:
        log.exception("generate: provider %s failed", info.name)
        raise UpstreamError(classify_provider_error(exc, info.api_key_env))

    output = parse_variations(raw)
    return JSONResponse(
        {"output": output},
        headers={"X-RateLimit-Remaining": str(decision.remaining)},
    )
