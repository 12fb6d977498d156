"""Build pipeline components from configuration.

Strategies are looked up by name in the component registries, so plugins can
replace any stage by registering a class under the configured name.
"""

from __future__ import annotations

import logging
from functools import partial

from contextingest.core.config import Config, get_core_config
from contextingest.core.exceptions import ConfigurationError
from contextingest.core.interfaces import (
    BaseOntology,
    BaseParser,
    BasePredictor,
    BaseStorage,
    BaseTransformer,
)
from contextingest.core.registry import (
    Registry,
    ontology_registry,
    parser_registry,
    predictor_registry,
    storage_registry,
    transformer_registry,
)
from contextingest.core.types import DocumentFormat

from .orchestrator import PipelineOrchestrator

logger = logging.getLogger(__name__)


def _resolve(registry: Registry, key: str, section: str) -> type:
    try:
        return registry.get(key)
    except KeyError as e:
        raise ConfigurationError(
            f"{section}: unknown strategy '{key}' (available: {', '.join(registry.names())})"
        ) from e


def build_storage(config: Config | None = None) -> BaseStorage:
    cfg = config if config is not None else get_core_config()
    cls = _resolve(storage_registry, cfg.storage.backend, "storage.backend")
    return cls(cfg.storage)


def build_parser(fmt: DocumentFormat, config: Config | None = None) -> BaseParser:
    """Parser for one declared format. Raises KeyError when none is registered."""
    cfg = config if config is not None else get_core_config()
    cls = parser_registry.get(fmt.value)
    return cls(cfg.parser)


def build_transformer(config: Config | None = None) -> BaseTransformer:
    cfg = config if config is not None else get_core_config()
    cls = _resolve(transformer_registry, cfg.transformer.strategy, "transformer.strategy")
    return cls(cfg.transformer)


def build_ontology(config: Config | None = None) -> BaseOntology:
    cfg = config if config is not None else get_core_config()
    cls = _resolve(ontology_registry, cfg.ontology.strategy, "ontology.strategy")
    return cls(cfg.ontology)


def build_predictor(config: Config | None = None) -> BasePredictor:
    cfg = config if config is not None else get_core_config()
    cls = _resolve(predictor_registry, cfg.predictor.strategy, "predictor.strategy")
    return cls(cfg.predictor)


def build_orchestrator(
    config: Config | None = None,
    *,
    storage: BaseStorage | None = None,
    predictor: BasePredictor | None = None,
) -> PipelineOrchestrator:
    cfg = config if config is not None else get_core_config()
    if predictor is None and cfg.pipeline.mode == "predict":
        predictor = build_predictor(cfg)
    orchestrator = PipelineOrchestrator(
        parser_factory=partial(build_parser, config=cfg),
        transformer=build_transformer(cfg),
        ontology=build_ontology(cfg),
        storage=storage if storage is not None else build_storage(cfg),
        predictor=predictor,
        mode=cfg.pipeline.mode,
        workers=cfg.pipeline.workers,
        persist_intermediate=cfg.pipeline.persist_intermediate,
    )
    logger.debug(
        "pipeline: mode=%s workers=%d storage=%s",
        cfg.pipeline.mode,
        cfg.pipeline.workers,
        cfg.storage.backend,
    )
    return orchestrator


__all__ = [
    "build_ontology",
    "build_orchestrator",
    "build_parser",
    "build_predictor",
    "build_storage",
    "build_transformer",
]
