"""Normalizing transformer: ParsedData -> TransformedData.

Per section: case-fold, replace punctuation with spaces, collapse whitespace.
Empty sections are dropped and repeated sections are kept once (first wins).

Normalization is idempotent: feeding normalized text back in yields the same
content, which is what lets stored artifacts be re-processed safely.
"""

from __future__ import annotations

import logging
import re

from contextingest.core.exceptions import TransformError, TransformErrorKind
from contextingest.core.registry import register_transformer
from contextingest.core.types import ParsedData, TransformedData

from .base import Transformer

logger = logging.getLogger(__name__)

_PUNCT = re.compile(r"[^\w\s]+")
_UNDERSCORES = re.compile(r"_+")

SECTION_SEPARATOR = "\n\n"


def normalize_text(text: str) -> str:
    """Case-fold and strip punctuation; words are single-space separated."""
    folded = _PUNCT.sub(" ", text.casefold())
    folded = _UNDERSCORES.sub(" ", folded)
    return " ".join(folded.split())


@register_transformer("normalizer")
class NormalizingTransformer(Transformer):
    name = "normalizer"

    def _transform(self, parsed: ParsedData) -> TransformedData:
        if parsed.sections:
            raw_sections = [
                " ".join(part for part in (s.title, s.text) if part) for s in parsed.sections
            ]
        else:
            raw_sections = [parsed.text]

        sections: list[str] = []
        seen: set[str] = set()
        for raw in raw_sections:
            norm = normalize_text(raw)
            if not norm:
                continue
            if self.config.dedupe_sections:
                if norm in seen:
                    logger.debug("normalizer: %s dropped repeated section", parsed.document_id)
                    continue
                seen.add(norm)
            sections.append(norm)

        if not sections:
            raise TransformError(
                TransformErrorKind.EMPTY, f"{parsed.document_id}: nothing left after normalization"
            )

        content = SECTION_SEPARATOR.join(sections)
        return TransformedData(
            document_id=parsed.document_id,
            content_type=parsed.content_type,
            content=content,
            tokens=tuple(content.split()),
            sections=tuple(sections),
            metadata=dict(parsed.metadata),
            checksum=parsed.checksum,
        )


__all__ = ["NormalizingTransformer", "SECTION_SEPARATOR", "normalize_text"]
