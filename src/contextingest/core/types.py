"""Pipeline data model.

Every entity is a frozen pydantic model. Stages never mutate their input; they
return a new entity. ``to_bytes``/``from_bytes`` is the storage wire format.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .exceptions import ParseError, ParseErrorKind

TArtifact = TypeVar("TArtifact", bound="Artifact")


class DocumentFormat(str, Enum):
    """Caller-declared input format. Never inferred from content."""

    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"
    PDF = "pdf"


class Stage(str, Enum):
    """States a document moves through. ``key`` is the storage key suffix."""

    PARSED = "parsed"
    TRANSFORMED = "transformed"
    CLASSIFIED = "classified"
    RELATED = "related"
    PREDICTED = "predicted"

    def key(self, document_id: str) -> str:
        return f"{document_id}:{self.value}"


class Artifact(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls: type[TArtifact], data: bytes) -> TArtifact:
        return cls.model_validate_json(data)


class RawInput(Artifact):
    """Raw document handed to the pipeline by an input source.

    Either ``payload`` or ``path`` must be set. With only ``path``, the bytes are
    read lazily by ``read()`` so IO failures surface per document.
    """

    source_id: str = Field(min_length=1)
    format: DocumentFormat
    payload: bytes | None = None
    path: Path | None = None
    document_id: str = ""

    @model_validator(mode="before")
    @classmethod
    def _default_document_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("document_id"):
            data = {**data, "document_id": data.get("source_id", "")}
        return data

    @model_validator(mode="after")
    def _check_source(self) -> "RawInput":
        if self.payload is None and self.path is None:
            raise ValueError("RawInput requires either payload or path")
        return self

    @classmethod
    def from_text(
        cls,
        text: str,
        *,
        source_id: str,
        format: DocumentFormat | str = DocumentFormat.TEXT,
        document_id: str = "",
    ) -> "RawInput":
        return cls(
            source_id=source_id,
            format=DocumentFormat(format),
            payload=text.encode("utf-8"),
            document_id=document_id,
        )

    def read(self) -> bytes:
        if self.payload is not None:
            return self.payload
        assert self.path is not None
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise ParseError(ParseErrorKind.IO, f"cannot read {self.path}: {e}") from e


class Section(Artifact):
    title: str | None = None
    text: str


class ParsedData(Artifact):
    document_id: str = Field(min_length=1)
    source_id: str
    content_type: DocumentFormat
    text: str
    sections: tuple[Section, ...] = ()
    metadata: dict[str, str] = Field(default_factory=dict)
    checksum: str = ""


class TransformedData(Artifact):
    document_id: str = Field(min_length=1)
    content_type: DocumentFormat
    content: str
    tokens: tuple[str, ...] = ()
    sections: tuple[str, ...] = ()
    metadata: dict[str, str] = Field(default_factory=dict)
    # Checksum of the raw payload this document was parsed from.
    checksum: str = ""


class ClassifiedData(Artifact):
    document: TransformedData
    category: str = Field(min_length=1)
    score: float = 0.0

    @property
    def document_id(self) -> str:
        return self.document.document_id


class Relation(Artifact):
    target_id: str = Field(min_length=1)
    kind: str = Field(min_length=1)
    score: float = 0.0
    reflexive: bool = False


class RelatedData(Artifact):
    classified: ClassifiedData
    relations: tuple[Relation, ...] = ()

    @model_validator(mode="after")
    def _no_self_relations(self) -> "RelatedData":
        own = self.classified.document_id
        for rel in self.relations:
            if rel.target_id == own and not rel.reflexive:
                raise ValueError(f"relation to own document '{own}' must be marked reflexive")
        return self

    @property
    def document_id(self) -> str:
        return self.classified.document_id

    @property
    def category(self) -> str:
        return self.classified.category


class PredictedData(Artifact):
    document: TransformedData
    prediction: dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(ge=0.0, le=1.0)

    @property
    def document_id(self) -> str:
        return self.document.document_id


class DocumentManifest(Artifact):
    """Per-document status record stored under the bare ``document_id`` key."""

    document_id: str
    source_id: str
    format: DocumentFormat
    checksum: str = ""
    stage: Stage


TerminalArtifact = RelatedData | PredictedData


__all__ = [
    "Artifact",
    "ClassifiedData",
    "DocumentFormat",
    "DocumentManifest",
    "ParsedData",
    "PredictedData",
    "RawInput",
    "RelatedData",
    "Relation",
    "Section",
    "Stage",
    "TerminalArtifact",
    "TransformedData",
]
