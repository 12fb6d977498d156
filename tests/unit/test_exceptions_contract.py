"""Contract tests for the contextingest exception hierarchy.

Verifies that:
1. Every error derives from ContextingestError and carries a stable code
2. Stage errors expose a closed `kind` enum
3. Only storage IO failures are fatal
"""

from __future__ import annotations

import pytest

from contextingest.core.exceptions import (
    ConfigurationError,
    ContextingestError,
    MLError,
    MLErrorKind,
    OntologyError,
    OntologyErrorKind,
    ParseError,
    ParseErrorKind,
    PipelineError,
    PipelineErrorKind,
    StageError,
    StorageError,
    StorageErrorKind,
    TransformError,
    TransformErrorKind,
)

_STAGE_ERRORS = [
    (ParseError, ParseErrorKind.MALFORMED, "PARSE_ERROR"),
    (TransformError, TransformErrorKind.UNSUPPORTED, "TRANSFORM_ERROR"),
    (OntologyError, OntologyErrorKind.NO_MATCH, "ONTOLOGY_ERROR"),
    (MLError, MLErrorKind.NOT_TRAINED, "ML_ERROR"),
    (StorageError, StorageErrorKind.NOT_FOUND, "STORAGE_ERROR"),
    (PipelineError, PipelineErrorKind.DUPLICATE_DOCUMENT, "PIPELINE_ERROR"),
]


def test_base_error_has_code() -> None:
    code = getattr(ContextingestError, "code", None)
    assert isinstance(code, str) and code.strip()
    assert ContextingestError.code == "INTERNAL_ERROR"


def test_configuration_error_code() -> None:
    err = ConfigurationError("bad value")
    assert isinstance(err, ContextingestError)
    assert err.code == "CONFIGURATION_ERROR"
    assert str(err) == "bad value"


@pytest.mark.parametrize("cls, kind, code", _STAGE_ERRORS)
def test_stage_errors_carry_kind_and_code(cls, kind, code) -> None:
    err = cls(kind, "details")
    assert isinstance(err, StageError)
    assert isinstance(err, ContextingestError)
    assert err.kind is kind
    assert err.code == code
    assert str(err) == "details"


def test_message_defaults_to_kind() -> None:
    assert str(ParseError(ParseErrorKind.EMPTY)) == "empty"


def test_code_override_is_per_instance() -> None:
    err = ParseError(ParseErrorKind.IO, "x", code="CUSTOM")
    assert err.code == "CUSTOM"
    assert ParseError.code == "PARSE_ERROR"


def test_only_storage_io_is_fatal() -> None:
    assert StorageError(StorageErrorKind.IO).fatal is True
    assert StorageError(StorageErrorKind.NOT_FOUND).fatal is False


def test_repr_names_kind() -> None:
    assert repr(MLError(MLErrorKind.EMPTY_CORPUS, "no docs")) == "MLError(EMPTY_CORPUS, 'no docs')"
