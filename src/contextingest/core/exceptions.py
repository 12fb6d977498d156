"""Exception hierarchy for contextingest.

Every pipeline stage owns a closed set of failure kinds. Stage errors carry the
kind as an enum so callers can branch on it without parsing messages:

    from contextingest.core.exceptions import ParseError, ParseErrorKind

    try:
        parser.parse(raw)
    except ParseError as e:
        if e.kind is ParseErrorKind.EMPTY:
            ...
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar


class ContextingestError(Exception):
    """Base exception for contextingest.

    ``code`` is a stable, machine-readable identifier. Subclasses override the
    class attribute; a single raise site may override it per instance.
    """

    code: ClassVar[str] = "INTERNAL_ERROR"

    def __init__(self, message: str = "", *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code  # type: ignore[misc]

    def __str__(self) -> str:
        return self.message or self.code


class ConfigurationError(ContextingestError):
    code = "CONFIGURATION_ERROR"


# ---- Stage errors ------------------------------------------------------------


class ParseErrorKind(str, Enum):
    MALFORMED = "malformed"
    EMPTY = "empty"
    IO = "io"


class TransformErrorKind(str, Enum):
    UNSUPPORTED = "unsupported"
    EMPTY = "empty"


class OntologyErrorKind(str, Enum):
    NO_MATCH = "no_match"
    INCONSISTENT = "inconsistent"


class MLErrorKind(str, Enum):
    NOT_TRAINED = "not_trained"
    EMPTY_CORPUS = "empty_corpus"


class StorageErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    IO = "io"


class PipelineErrorKind(str, Enum):
    DUPLICATE_DOCUMENT = "duplicate_document"


class StageError(ContextingestError):
    """Base for errors raised by a pipeline stage.

    The orchestrator records these per document and moves on.
    """

    code = "STAGE_ERROR"
    kind: Enum

    def __init__(self, kind: Enum, message: str = "", *, code: str | None = None) -> None:
        self.kind = kind
        super().__init__(message or kind.value, code=code)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.name}, {self.message!r})"


class ParseError(StageError):
    code = "PARSE_ERROR"
    kind: ParseErrorKind

    def __init__(self, kind: ParseErrorKind, message: str = "", **kw) -> None:
        super().__init__(kind, message, **kw)


class TransformError(StageError):
    code = "TRANSFORM_ERROR"
    kind: TransformErrorKind

    def __init__(self, kind: TransformErrorKind, message: str = "", **kw) -> None:
        super().__init__(kind, message, **kw)


class OntologyError(StageError):
    code = "ONTOLOGY_ERROR"
    kind: OntologyErrorKind

    def __init__(self, kind: OntologyErrorKind, message: str = "", **kw) -> None:
        super().__init__(kind, message, **kw)


class MLError(StageError):
    code = "ML_ERROR"
    kind: MLErrorKind

    def __init__(self, kind: MLErrorKind, message: str = "", **kw) -> None:
        super().__init__(kind, message, **kw)


class StorageError(StageError):
    """Storage failure.

    ``NOT_FOUND`` is per key and recoverable. ``IO`` means the backing medium
    is unusable and is treated as fatal by the orchestrator.
    """

    code = "STORAGE_ERROR"
    kind: StorageErrorKind

    def __init__(self, kind: StorageErrorKind, message: str = "", **kw) -> None:
        super().__init__(kind, message, **kw)

    @property
    def fatal(self) -> bool:
        return self.kind is StorageErrorKind.IO


class PipelineError(StageError):
    code = "PIPELINE_ERROR"
    kind: PipelineErrorKind

    def __init__(self, kind: PipelineErrorKind, message: str = "", **kw) -> None:
        super().__init__(kind, message, **kw)


__all__ = [
    "ConfigurationError",
    "ContextingestError",
    "MLError",
    "MLErrorKind",
    "OntologyError",
    "OntologyErrorKind",
    "ParseError",
    "ParseErrorKind",
    "PipelineError",
    "PipelineErrorKind",
    "StageError",
    "StorageError",
    "StorageErrorKind",
    "TransformError",
    "TransformErrorKind",
]
