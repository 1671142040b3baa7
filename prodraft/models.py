"""Pydantic request/response models shared across routers."""
from __future__ import annotations

from typing import Any, List, Optional
from pydantic import BaseModel

from prodraft.config import DEFAULT_FORMAT, EXPORT_DEFAULT_FILENAME


class GenerateRequest(BaseModel):
    # Loosely typed so the router decides: a missing or non-string text is
    # a 400, an unrecognised format falls back to the generic instruction
    text: Any = None
    format: Any = DEFAULT_FORMAT


class GenerateResponse(BaseModel):
    output: List[str]


class ExportRequest(BaseModel):
    content: Optional[str] = None
    format: Optional[str] = "txt"
    filename: Optional[str] = EXPORT_DEFAULT_FILENAME
