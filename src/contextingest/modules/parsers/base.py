"""Parser base utilities."""

from __future__ import annotations

import hashlib
import re
from abc import abstractmethod

from contextingest.core.config import ParserConfig
from contextingest.core.exceptions import ParseError, ParseErrorKind
from contextingest.core.interfaces import BaseParser
from contextingest.core.types import ParsedData, RawInput, Section

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def split_paragraphs(text: str) -> list[str]:
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


class Parser(BaseParser):
    """Convenience base class for parsers.

    Subclasses implement `_parse_bytes`; reading, checksumming and the
    emptiness check live here so every format behaves the same at the edges.
    """

    name: str = "parser"

    def __init__(self, config: ParserConfig | None = None) -> None:
        super().__init__()
        self.config = config if config is not None else ParserConfig()

    def parse(self, raw: RawInput) -> ParsedData:
        if raw.format is not self.format:
            raise ParseError(
                ParseErrorKind.MALFORMED,
                f"{self.name} parser cannot read '{raw.format.value}' input",
            )
        data = raw.read()
        text, sections, metadata = self._parse_bytes(data, raw)
        if not text.strip():
            raise ParseError(ParseErrorKind.EMPTY, f"{raw.source_id}: no content")
        return ParsedData(
            document_id=raw.document_id,
            source_id=raw.source_id,
            content_type=self.format,
            text=text,
            sections=tuple(sections),
            metadata=metadata,
            checksum=hashlib.sha256(data).hexdigest(),
        )

    def _decode(self, data: bytes, raw: RawInput) -> str:
        try:
            text = data.decode(self.config.encoding)
        except (UnicodeDecodeError, LookupError) as e:
            raise ParseError(
                ParseErrorKind.MALFORMED, f"{raw.source_id}: not valid {self.config.encoding}"
            ) from e
        return text.lstrip("\ufeff").replace("\r\n", "\n")

    @abstractmethod
    def _parse_bytes(
        self, data: bytes, raw: RawInput
    ) -> tuple[str, list[Section], dict[str, str]]: ...


__all__ = ["Parser", "split_paragraphs"]
