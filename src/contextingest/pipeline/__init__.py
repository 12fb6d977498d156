"""Pipeline orchestration."""

from .builder import (
    build_ontology,
    build_orchestrator,
    build_parser,
    build_predictor,
    build_storage,
    build_transformer,
)
from .orchestrator import BatchResult, DocumentFailure, PipelineOrchestrator, Step

__all__ = [
    "BatchResult",
    "DocumentFailure",
    "PipelineOrchestrator",
    "Step",
    "build_ontology",
    "build_orchestrator",
    "build_parser",
    "build_predictor",
    "build_storage",
    "build_transformer",
]
