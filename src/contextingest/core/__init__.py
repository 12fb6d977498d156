"""Core: config, data model, errors, interfaces and registries."""

from .config import Config, get_core_config, set_core_config
from .exceptions import (
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
from .interfaces import (
    BaseOntology,
    BaseParser,
    BasePredictor,
    BaseStorage,
    BaseTransformer,
)
from .types import (
    ClassifiedData,
    DocumentFormat,
    DocumentManifest,
    ParsedData,
    PredictedData,
    RawInput,
    RelatedData,
    Relation,
    Section,
    Stage,
    TerminalArtifact,
    TransformedData,
)

__all__ = [
    # Config
    "Config",
    "get_core_config",
    "set_core_config",
    # Errors
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
    # Interfaces
    "BaseOntology",
    "BaseParser",
    "BasePredictor",
    "BaseStorage",
    "BaseTransformer",
    # Data model
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
