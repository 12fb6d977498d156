"""Transformer base utilities."""

from __future__ import annotations

from abc import abstractmethod

from contextingest.core.config import TransformerConfig
from contextingest.core.exceptions import TransformError, TransformErrorKind
from contextingest.core.interfaces import BaseTransformer
from contextingest.core.types import DocumentFormat, ParsedData, TransformedData


class Transformer(BaseTransformer):
    """Convenience base class for transformers."""

    name: str = "transformer"

    def __init__(self, config: TransformerConfig | None = None) -> None:
        super().__init__()
        self.config = config if config is not None else TransformerConfig()
        self._supported = {DocumentFormat(f) for f in self.config.supported_formats}

    def supports(self, content_type: DocumentFormat) -> bool:
        return content_type in self._supported

    def transform(self, parsed: ParsedData) -> TransformedData:
        if not self.supports(parsed.content_type):
            raise TransformError(
                TransformErrorKind.UNSUPPORTED,
                f"{self.name} does not handle '{parsed.content_type.value}' content",
            )
        return self._transform(parsed)

    @abstractmethod
    def _transform(self, parsed: ParsedData) -> TransformedData: ...


__all__ = ["Transformer"]
