"""contextingest: document ingestion pipeline.

Raw documents are parsed, normalized, classified against a taxonomy and
related to each other, or scored by a trained predictor. Every intermediate
artifact is persisted through a pluggable storage backend.
"""

from contextingest.core import (
    ClassifiedData,
    Config,
    ContextingestError,
    DocumentFormat,
    ParsedData,
    PredictedData,
    RawInput,
    RelatedData,
    TransformedData,
)
from contextingest.pipeline import BatchResult, PipelineOrchestrator, build_orchestrator

__version__ = "0.1.0"

__all__ = [
    "BatchResult",
    "ClassifiedData",
    "Config",
    "ContextingestError",
    "DocumentFormat",
    "ParsedData",
    "PipelineOrchestrator",
    "PredictedData",
    "RawInput",
    "RelatedData",
    "TransformedData",
    "__version__",
    "build_orchestrator",
]
