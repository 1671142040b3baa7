"""Derive the client identifier used to partition rate-limit accounting.

The identifier is taken from the forwarding headers set by the reverse proxy
in front of the service. Header values are trusted as-is; behind an
untrusted proxy they can be spoofed.
"""
from __future__ import annotations

from typing import Mapping

from starlette.requests import Request

ANONYMOUS = "anonymous"


def resolve_client_id(headers: Mapping[str, str]) -> str:
    """Return the client identifier for a set of request headers.

    ``x-forwarded-for`` wins (left-most entry of the chain, trimmed), then
    ``x-real-ip`` verbatim, then the ``"anonymous"`` sentinel.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return ANONYMOUS


def client_id_from_request(request: Request) -> str:
    """slowapi-compatible key function."""
    return resolve_client_id(request.headers)


__all__ = ["ANONYMOUS", "resolve_client_id", "client_id_from_request"]
