"""Modular configuration system for contextingest."""

from .base import (
    ENV_PREFIX,
    get_bool_env,
    get_env,
    get_int_env,
)
from .main import (
    DEFAULT_CONFIG_NAME,
    Config,
    get_core_config,
    load_taxonomy_file,
    set_core_config,
)
from .sections import (
    Category,
    OntologyConfig,
    ParserConfig,
    PipelineConfig,
    PluginsConfig,
    PredictorConfig,
    RelationRule,
    StorageConfig,
    TaxonomyConfig,
    TransformerConfig,
)

__all__ = [
    # Main classes
    "Config",
    "DEFAULT_CONFIG_NAME",
    # Main functions
    "get_core_config",
    "set_core_config",
    "load_taxonomy_file",
    # Base utilities
    "ENV_PREFIX",
    "get_env",
    "get_bool_env",
    "get_int_env",
    # Sections
    "StorageConfig",
    "ParserConfig",
    "TransformerConfig",
    "OntologyConfig",
    "TaxonomyConfig",
    "Category",
    "RelationRule",
    "PredictorConfig",
    "PipelineConfig",
    "PluginsConfig",
]
