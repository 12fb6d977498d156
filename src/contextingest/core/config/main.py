"""Main configuration class that combines all config sections."""

import logging
import tomllib
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import ConfigurationError
from .base import ENV_PREFIX, get_bool_env, get_env, get_int_env
from .sections import (
    OntologyConfig,
    ParserConfig,
    PipelineConfig,
    PluginsConfig,
    PredictorConfig,
    StorageConfig,
    TaxonomyConfig,
    TransformerConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "settings.toml"


class Config(BaseModel):
    """Main configuration for contextingest.

    Configuration is loaded from multiple sources in priority order:
    1. Environment variables (CONTEXTINGEST_*)
    2. TOML configuration file
    3. Default values
    """

    model_config = ConfigDict(extra="ignore")

    # Core settings
    debug: bool = False
    log_level: str = "INFO"

    # Sub-configurations
    storage: StorageConfig = Field(default_factory=StorageConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    transformer: TransformerConfig = Field(default_factory=TransformerConfig)
    ontology: OntologyConfig = Field(default_factory=OntologyConfig)
    predictor: PredictorConfig = Field(default_factory=PredictorConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    # Internal state
    loaded_from: list[Path] = Field(default_factory=list)

    @classmethod
    def load(cls, config_path: Path | str | None = None) -> "Config":
        """Load configuration from files and environment."""
        load_dotenv()

        env_path = get_env(f"{ENV_PREFIX}CONFIG_PATH")
        toml_path = (
            Path(config_path)
            if config_path
            else (Path(env_path) if env_path else Path.cwd() / DEFAULT_CONFIG_NAME)
        )

        config = cls()
        if toml_path.exists():
            try:
                with open(toml_path, "rb") as f:
                    toml_data = tomllib.load(f)

                config_dict = config.model_dump()
                config_dict.update(toml_data)
                config = cls.model_validate(config_dict)
                config.loaded_from.append(toml_path)
                # Relative storage paths in a TOML file are relative to that file.
                storage_path = Path(config.storage.path)
                if "storage" in toml_data and not storage_path.is_absolute():
                    config.storage.path = str(toml_path.parent / storage_path)
            except (tomllib.TOMLDecodeError, ValidationError) as e:
                logger.warning("Failed to load TOML config from %s: %s", toml_path, e)

        config._apply_env_overrides()

        if config.ontology.taxonomy_path:
            taxonomy_path = Path(config.ontology.taxonomy_path)
            if not taxonomy_path.is_absolute():
                taxonomy_path = toml_path.parent / taxonomy_path
            config.ontology.taxonomy = load_taxonomy_file(taxonomy_path)

        return config

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to config."""
        if backend := get_env(f"{ENV_PREFIX}STORAGE_BACKEND"):
            self.storage.backend = backend
        if path := get_env(f"{ENV_PREFIX}STORAGE_PATH"):
            self.storage.path = path

        if mode := get_env(f"{ENV_PREFIX}MODE"):
            if mode in ("relate", "predict"):
                self.pipeline.mode = mode  # type: ignore[assignment]
            else:
                logger.warning("Ignoring %sMODE=%r (expected relate|predict)", ENV_PREFIX, mode)
        if (workers := get_int_env(f"{ENV_PREFIX}WORKERS")) is not None and workers > 0:
            self.pipeline.workers = workers

        if taxonomy_path := get_env(f"{ENV_PREFIX}TAXONOMY_PATH"):
            self.ontology.taxonomy_path = taxonomy_path

        # Debug/Logging
        if (debug_val := get_bool_env(f"{ENV_PREFIX}DEBUG")) is not None:
            self.debug = debug_val
        if log_level := get_env(f"{ENV_PREFIX}LOG_LEVEL"):
            self.log_level = log_level


def load_taxonomy_file(path: Path) -> TaxonomyConfig:
    """Load a taxonomy from YAML.

    The file holds a mapping with `categories` (and optional `catch_all`), or a
    bare list of categories.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read taxonomy file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in taxonomy file {path}: {e}") from e

    if isinstance(data, list):
        data = {"categories": data}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid taxonomy file {path}: expected mapping or list")

    try:
        return TaxonomyConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid taxonomy in {path}: {e}") from e


# ---- Global config management ----

_GLOBAL_CONFIG: Config | None = None


def get_core_config() -> Config:
    """Return process-global core config."""
    global _GLOBAL_CONFIG
    if _GLOBAL_CONFIG is None:
        _GLOBAL_CONFIG = Config.load()
    return _GLOBAL_CONFIG


def set_core_config(config: Config | None) -> None:
    """Set (or reset with None) the global core config."""
    global _GLOBAL_CONFIG
    _GLOBAL_CONFIG = config
