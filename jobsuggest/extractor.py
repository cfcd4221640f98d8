"""Plain-text extraction from uploaded resume documents.

Supports PDF (via pypdf), DOCX (via stdlib zipfile) and plain text.
Extraction is best effort per page: a page that cannot be read contributes
no text, and only a document that cannot be opened at all is an error.
"""
from __future__ import annotations

import re
import zipfile
from io import BytesIO
from xml.etree import ElementTree

from pypdf import PdfReader

from jobsuggest.errors import ExtractionFailed
from jobsuggest.log import get_logger
from jobsuggest.models import DOCX, PDF, TEXT, RawDocument

log = get_logger(__name__)

_DOCX_NS = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"


def extract_text(doc: RawDocument) -> str:
    """Return the recoverable plain text of *doc*; never ``None``.

    Raises :class:`ExtractionFailed` when the media type is unsupported or the
    whole document is unreadable.
    """
    if not doc.content:
        log.info("Empty document payload (%s)", doc.media_type)
        return ""

    media_type = (doc.media_type or "").split(";")[0].strip().lower()
    if media_type == PDF:
        return _extract_pdf(doc.content)
    if media_type == DOCX:
        return _extract_docx(doc.content)
    if media_type.startswith("text/"):
        return doc.content.decode("utf-8", errors="ignore")
    raise ExtractionFailed(f"Unsupported document type: {doc.media_type or 'unknown'}")


def guess_media_type(filename: str) -> str:
    suffix = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return {"pdf": PDF, "docx": DOCX, "txt": TEXT}.get(suffix, "application/octet-stream")


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when PDF extraction merges words together.

    Detects the problem by checking if the space-to-character ratio is
    abnormally low, then applies heuristic space insertion.
    """
    if not text or len(text) < 50:
        return text
    space_ratio = text.count(" ") / len(text)
    if space_ratio > 0.08:
        return text

    log.debug("Low space ratio (%.2f%%) — applying spacing fix", space_ratio * 100)
    fixed = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    fixed = re.sub(r"([a-zA-Z])(\d)", r"\1 \2", fixed)
    fixed = re.sub(r"(\d)([a-zA-Z])", r"\1 \2", fixed)
    fixed = re.sub(r"([.!?,;:])([A-Za-z])", r"\1 \2", fixed)
    return fixed


def _extract_pdf(content: bytes) -> str:
    with BytesIO(content) as stream:
        try:
            reader = PdfReader(stream)
            if reader.is_encrypted and not reader.decrypt(""):
                raise ExtractionFailed("The PDF is password protected")
            pages = list(reader.pages)
        except ExtractionFailed:
            raise
        except Exception as exc:
            raise ExtractionFailed(f"Could not open PDF: {exc}") from exc

        texts: list[str] = []
        for number, page in enumerate(pages, start=1):
            try:
                raw = page.extract_text() or ""
            except Exception as exc:
                log.warning("PDF page %d unreadable, skipping: %s", number, exc)
                continue
            if not raw.strip():
                log.debug("PDF page %d has no text layer", number)
                continue
            texts.append(_fix_spacing(raw))

    log.info("Extracted %d chars from %d/%d PDF pages", sum(map(len, texts)), len(texts), len(pages))
    return "\n".join(texts)


def _extract_docx(content: bytes) -> str:
    texts: list[str] = []
    with BytesIO(content) as stream:
        try:
            with zipfile.ZipFile(stream) as zf, zf.open("word/document.xml") as f:
                tree = ElementTree.parse(f)
        except (zipfile.BadZipFile, KeyError, ElementTree.ParseError) as exc:
            raise ExtractionFailed(f"Could not open DOCX: {exc}") from exc
    for para in tree.iter(f"{_DOCX_NS}p"):
        parts = [node.text for node in para.iter(f"{_DOCX_NS}t") if node.text]
        if parts:
            texts.append("".join(parts))
    return "\n".join(texts)
