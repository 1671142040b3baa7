"""Clean user-supplied text before it is sent to a provider.

The text is the content to be rewritten, so nothing is filtered out of it
beyond invisible characters:

1. **Control character removal** – strip invisible Unicode that could be
   used to hide payloads.
2. **Unicode normalisation** – NFC, to collapse look-alike sequences.
3. **Length limiting** – truncate inputs that would blow the context window
   and the provider bill.
"""
from __future__ import annotations

import logging
import re
import unicodedata

from prodraft.config import MAX_INPUT_LENGTH

log = logging.getLogger(__name__)

# Tab, newline and carriage return are kept
_CONTROL_CHAR_RE = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f"
    r"\u200b-\u200f"           # Zero-width chars
    r"\u202a-\u202e"           # Bidi overrides
    r"\u2060-\u2064"           # Invisible formatters
    r"\ufeff"                  # BOM
    r"\ufff9-\ufffb"           # Interlinear annotation
    r"]"
)


def _strip_control_chars(text: str) -> str:
    return _CONTROL_CHAR_RE.sub("", text)


def _normalise_unicode(text: str) -> str:
    return unicodedata.normalize("NFC", text)


def sanitize_input(text: str, max_length: int = MAX_INPUT_LENGTH) -> str:
    """Sanitise the text to be polished. Idempotent."""
    if not text:
        return text

    text = _strip_control_chars(text)
    text = _normalise_unicode(text)

    if len(text) > max_length:
        log.warning("input truncated from %d to %d characters", len(text), max_length)
        text = text[:max_length]

    return text


__all__ = ["sanitize_input", "MAX_INPUT_LENGTH"]
