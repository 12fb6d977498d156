"""Plain text parser."""

from __future__ import annotations

from contextingest.core.registry import register_parser
from contextingest.core.types import DocumentFormat, RawInput, Section

from .base import Parser, split_paragraphs


@register_parser("text")
class TextParser(Parser):
    """Blank-line separated paragraphs become sections."""

    name = "text"
    format = DocumentFormat.TEXT

    def _parse_bytes(
        self, data: bytes, raw: RawInput
    ) -> tuple[str, list[Section], dict[str, str]]:
        text = self._decode(data, raw).strip()
        sections = [Section(text=p) for p in split_paragraphs(text)]
        return text, sections, {}


__all__ = ["TextParser"]
