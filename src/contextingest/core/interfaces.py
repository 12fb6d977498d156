"""Stage interfaces.

One canonical interface per pipeline stage. Concrete strategies register
themselves by name (see `contextingest.core.registry`) and are picked through
configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Sequence

from .types import (
    Artifact,
    ClassifiedData,
    DocumentFormat,
    ParsedData,
    PredictedData,
    RawInput,
    RelatedData,
    Stage,
    TArtifact,
    TransformedData,
)


class BaseComponent(ABC):
    """Common configuration hook for stage strategies."""

    name: str = "component"

    def __init__(self) -> None:
        self.params: dict[str, Any] = {}

    def configure(self, params: dict[str, Any] | None) -> None:
        self.params = dict(params or {})


class BaseParser(BaseComponent):
    """Raw bytes/text -> ParsedData for one declared format."""

    format: DocumentFormat

    @abstractmethod
    def parse(self, raw: RawInput) -> ParsedData: ...


class BaseTransformer(BaseComponent):
    """ParsedData -> TransformedData. Must be deterministic."""

    @abstractmethod
    def transform(self, parsed: ParsedData) -> TransformedData: ...


class BaseOntology(BaseComponent):
    """Two-phase classify-then-relate contract."""

    @abstractmethod
    def classify(self, transformed: TransformedData) -> ClassifiedData: ...

    @abstractmethod
    def relate(self, classified: ClassifiedData) -> RelatedData: ...

    @abstractmethod
    def bind(self, corpus: Iterable[ClassifiedData]) -> "BaseOntology":
        """Return an ontology that relates against `corpus`."""


class BasePredictor(BaseComponent):
    """Trainable model. The only mutable component of the pipeline."""

    @abstractmethod
    def train(self, corpus: Sequence[TransformedData]) -> None: ...

    @abstractmethod
    def predict(self, transformed: TransformedData) -> PredictedData: ...

    @property
    @abstractmethod
    def is_trained(self) -> bool: ...


class BaseStorage(BaseComponent):
    """Key/value store for pipeline artifacts."""

    @abstractmethod
    def store(self, key: str, data: bytes) -> None: ...

    @abstractmethod
    def retrieve(self, key: str) -> bytes: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def keys(self) -> list[str]: ...

    def exists(self, key: str) -> bool:
        return key in self.keys()

    def store_artifact(self, document_id: str, stage: Stage, artifact: Artifact) -> str:
        key = stage.key(document_id)
        self.store(key, artifact.to_bytes())
        return key

    def retrieve_artifact(
        self, document_id: str, stage: Stage, model: type[TArtifact]
    ) -> TArtifact:
        return model.from_bytes(self.retrieve(stage.key(document_id)))


__all__ = [
    "BaseComponent",
    "BaseOntology",
    "BaseParser",
    "BasePredictor",
    "BaseStorage",
    "BaseTransformer",
]
