"""System instructions for the polishing prompt.

Each output format appends one sentence to a shared base instruction that
asks for several distinct rewrites returned as ``{"suggestions": [...]}``.
"""
from __future__ import annotations

from collections import OrderedDict
from typing import Any

from prodraft.config import DEFAULT_FORMAT, VARIATION_COUNT

# id -> (label, description, instruction)
FORMATS = OrderedDict(
    [
        ("email", ("Email", "Professional emails", "Format them as professional emails.")),
        (
            "social",
            (
                "Social",
                "Engaging posts",
                "Format them as engaging social media posts with appropriate hashtags.",
            ),
        ),
        ("report", ("Report", "Structured docs", "Format them as structured report sections.")),
        ("summary", ("Summary", "Key points", "Create concise summaries.")),
    ]
)


def base_instruction(variations: int = VARIATION_COUNT) -> str:
    return (
        "You are a professional writing assistant. Polish and improve the user's text. "
        f"Provide {variations} distinct and improved variations of the text. "
        'Return strictly a JSON object with the format { "suggestions": ["variation 1", "variation 2", ...] }.'
    )


def build_system_prompt(fmt: Any = DEFAULT_FORMAT, variations: int = VARIATION_COUNT) -> str:
    """Return the system instruction for ``fmt``.

    Unknown formats, including non-string values, get the base polishing
    instruction only.
    """
    prompt = base_instruction(variations)
    entry = FORMATS.get(fmt) if isinstance(fmt, str) else None
    if entry is not None:
        prompt += " " + entry[2]
    return prompt


def format_catalogue() -> list:
    return [
        {"id": key, "label": label, "description": description}
        for key, (label, description, _) in FORMATS.items()
    ]


__all__ = ["FORMATS", "base_instruction", "build_system_prompt", "format_catalogue"]
