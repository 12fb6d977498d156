"""PDF parser (pypdf). One section per page with extractable text."""

from __future__ import annotations

import io
import logging
import zlib

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from contextingest.core.exceptions import ParseError, ParseErrorKind
from contextingest.core.registry import register_parser
from contextingest.core.types import DocumentFormat, RawInput, Section

from .base import Parser

logger = logging.getLogger(__name__)

# pypdf lets low-level errors escape on damaged or hostile files.
_READ_ERRORS = (
    PyPdfError,
    ValueError,
    KeyError,
    TypeError,
    AttributeError,
    IndexError,
    RecursionError,
    zlib.error,
)


@register_parser("pdf")
class PdfParser(Parser):
    name = "pdf"
    format = DocumentFormat.PDF

    def _parse_bytes(
        self, data: bytes, raw: RawInput
    ) -> tuple[str, list[Section], dict[str, str]]:
        if not data.strip():
            raise ParseError(ParseErrorKind.EMPTY, f"{raw.source_id}: empty file")
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = [page.extract_text() or "" for page in reader.pages]
        except _READ_ERRORS as e:
            raise ParseError(
                ParseErrorKind.MALFORMED, f"{raw.source_id}: unreadable PDF ({e})"
            ) from e

        sections = [
            Section(title=f"page {i}", text=text.strip())
            for i, text in enumerate(pages, start=1)
            if text.strip()
        ]
        metadata = {"pages": str(len(pages))}
        try:
            info = reader.metadata
            title = info.title if info is not None else None
        except _READ_ERRORS as e:
            logger.debug("pdf: no document info for %s: %s", raw.source_id, e)
            title = None
        if title:
            metadata["title"] = str(title)

        text = "\n\n".join(s.text for s in sections)
        return text, sections, metadata


__all__ = ["PdfParser"]
