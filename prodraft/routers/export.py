"""Router for exporting generated content as a text or PDF download.

PDFs are rendered from a small HTML document with ``xhtml2pdf``.
"""
import html
import io
import logging
import re
from datetime import date
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response
from xhtml2pdf import pisa

from prodraft.config import EXPORT_DEFAULT_FILENAME, EXPORT_TITLE
from prodraft.errors import ApiError, BadRequestError
from prodraft.models import ExportRequest
from prodraft.rate_limit import RATE_LIMIT_EXPORT, limiter

log = logging.getLogger(__name__)

router = APIRouter(tags=["export"])

EXPORT_FORMATS = ("txt", "pdf")

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")

_PDF_CSS = """
@page { size: a4 portrait; margin: 2cm; }
body { font-family: Helvetica; font-size: 11pt; color: #000000; }
h1 { font-size: 18pt; margin-bottom: 2pt; }
p.generated { font-size: 10pt; color: #808080; margin-bottom: 12pt; }
p { margin: 0 0 6pt 0; line-height: 1.4; }
"""


def _safe_filename(name: Optional[str]) -> str:
    cleaned = _UNSAFE_FILENAME_RE.sub("-", name or "").strip(".-")
    return cleaned or EXPORT_DEFAULT_FILENAME


def _content_to_html(content: str, generated_on: Optional[date] = None) -> str:
    """Wrap plain text in a printable HTML page, keeping its line breaks."""
    generated_on = generated_on or date.today()
    paragraphs = []
    for block in re.split(r"\n\s*\n", content.strip()):
        lines = [html.escape(line) for line in block.splitlines()]
        paragraphs.append(f"<p>{'<br/>'.join(lines)}</p>")
    body = "\n".join(paragraphs)
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8"/>
<title>{html.escape(EXPORT_TITLE)}</title>
<style>{_PDF_CSS}</style>
</head>
<body>
<h1>{html.escape(EXPORT_TITLE)}</h1>
<p class="generated">Generated on {generated_on.isoformat()}</p>
{body}
</body>
</html>"""


def _html_to_pdf(document: str) -> bytes:
    buffer = io.BytesIO()
    result = pisa.CreatePDF(document, dest=buffer, encoding="utf-8")
    if result.err:
        raise RuntimeError(f"xhtml2pdf reported {result.err} error(s)")
    return buffer.getvalue()


@router.post("/api/export")
@limiter.limit(RATE_LIMIT_EXPORT)
def export_endpoint(request: Request, req: ExportRequest):
    """Return ``content`` as a downloadable ``.txt`` or ``.pdf`` file."""
    if not req.content or not req.content.strip():
        raise BadRequestError("Content is required")

    fmt = (req.format or "txt").lower().strip()
    if fmt not in EXPORT_FORMATS:
        raise BadRequestError(f"Unsupported export format '{fmt}'. Use one of: {', '.join(EXPORT_FORMATS)}")

    filename = f"{_safe_filename(req.filename)}.{fmt}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    if fmt == "txt":
        return Response(content=req.content, media_type="text/plain; charset=utf-8", headers=headers)

    try:
        pdf_bytes = _html_to_pdf(_content_to_html(req.content))
    except Exception as exc:
        log.exception("export: PDF generation failed")
        raise ApiError(f"PDF generation failed: {exc}")

    log.info("export: %s (%d bytes)", filename, len(pdf_bytes))
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)
