"""Turn raw provider output into an ordered list of text variations.

The model is asked for ``{"suggestions": [...]}``. Anything that fails to
parse is returned whole as a single variation rather than failing the
request.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, List

log = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```\s*$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    match = _FENCE_RE.match(text.strip())
    return match.group(1).strip() if match else text


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [item if isinstance(item, str) else json.dumps(item, ensure_ascii=False) for item in value]
    return [str(value)]


def parse_variations(raw: str) -> List[str]:
    """Parse the provider response into a list of strings.

    - empty output -> ``[]``
    - ``{"suggestions": [...]}`` -> the list
    - ``{"suggestions": "text"}`` -> ``["text"]``
    - a bare JSON list -> the list
    - unparseable text -> ``[raw]``
    """
    if not raw or not raw.strip():
        return []

    try:
        parsed = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError:
        log.warning("Provider returned non-JSON output; using raw text as a single variation")
        return [raw]

    if isinstance(parsed, dict):
        return _as_list(parsed.get("suggestions"))
    if isinstance(parsed, list):
        return _as_list(parsed)
    # A JSON scalar such as a quoted string
    return _as_list(parsed)


__all__ = ["parse_variations", "strip_code_fences"]
