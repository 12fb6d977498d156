"""Plugin manifest and context for the contextingest plugin system.

Plugins are directories containing:
- plugin.yaml: manifest with metadata, capabilities and requirements
- entry_point.py: Python module with an on_load(ctx: PluginContext) function

A plugin adds stage strategies (parsers, transformers, ontologies, predictors,
storage backends) which configuration can then select by name.
"""

from __future__ import annotations

import importlib.util
import logging
from enum import Enum
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Any

import yaml
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, Field, field_validator

from .registry import (
    ontology_registry,
    parser_registry,
    predictor_registry,
    storage_registry,
    transformer_registry,
)

logger = logging.getLogger(__name__)

PACKAGE_NAME = "contextingest"


# ============================================================================
# Plugin Manifest (parsed from plugin.yaml)
# ============================================================================


class PluginCapability(str, Enum):
    """Capabilities a plugin can request."""

    PARSERS = "parsers"
    TRANSFORMERS = "transformers"
    ONTOLOGIES = "ontologies"
    PREDICTORS = "predictors"
    STORAGE = "storage"


class PluginManifest(BaseModel):
    """Plugin manifest parsed from plugin.yaml.

    Example plugin.yaml:

        name: legal-taxonomy
        version: 1.0.0
        description: Clause-aware ontology for contracts
        requires:
          contextingest: ">=0.1.0"
        capabilities:
          - ontologies
        entry_point: plugin.py
    """

    name: str = Field(..., min_length=1, max_length=128, pattern=r"^[a-z0-9][a-z0-9._-]*$")
    version: str = Field(..., pattern=r"^\d+\.\d+\.\d+")
    description: str = Field(default="")
    author: str = Field(default="")
    capabilities: list[PluginCapability] = Field(default_factory=list)
    entry_point: str = Field(default="plugin.py")
    requires: dict[str, str] = Field(default_factory=dict)
    enabled: bool = Field(default=True)

    @field_validator("entry_point")
    @classmethod
    def validate_entry_point(cls, v: str) -> str:
        """Entry point must be a .py file without path traversal."""
        if not v.endswith(".py"):
            raise ValueError("entry_point must be a .py file")
        if ".." in v or "/" in v or "\\" in v:
            raise ValueError("entry_point must not contain path separators")
        return v


# ============================================================================
# Plugin Context (capability-mediated access)
# ============================================================================


_REGISTRIES = {
    PluginCapability.PARSERS: parser_registry,
    PluginCapability.TRANSFORMERS: transformer_registry,
    PluginCapability.ONTOLOGIES: ontology_registry,
    PluginCapability.PREDICTORS: predictor_registry,
    PluginCapability.STORAGE: storage_registry,
}


class PluginContext:
    """Mediated access to contextingest registries.

    Plugins receive a PluginContext that restricts registration to the
    capabilities declared in their manifest.

    Usage in plugin.py:

        from contextingest.modules.transformers import Transformer

        class Stemmer(Transformer):
            ...

        def on_load(ctx: PluginContext) -> None:
            ctx.register_transformer("stemmer", Stemmer)
    """

    def __init__(self, manifest: PluginManifest, *, plugin_dir: Path) -> None:
        self._manifest = manifest
        self._capabilities = set(manifest.capabilities)
        self._plugin_dir = plugin_dir
        self._registered: dict[PluginCapability, list[str]] = {c: [] for c in PluginCapability}

    # ---- Properties --------------------------------------------------------

    @property
    def name(self) -> str:
        """Plugin name."""
        return self._manifest.name

    @property
    def version(self) -> str:
        """Plugin version."""
        return self._manifest.version

    @property
    def capabilities(self) -> set[PluginCapability]:
        """Granted capabilities."""
        return self._capabilities.copy()

    @property
    def plugin_dir(self) -> Path:
        """Plugin directory path (read-only)."""
        return self._plugin_dir

    # ---- Capability-gated registration -------------------------------------

    def _check_capability(self, cap: PluginCapability) -> None:
        """Raise PermissionError if capability not granted."""
        if cap not in self._capabilities:
            raise PermissionError(
                f"Plugin '{self.name}' lacks '{cap.value}' capability. "
                f"Add '{cap.value}' to capabilities in plugin.yaml."
            )

    def _register(self, cap: PluginCapability, name: str, cls: Any) -> None:
        self._check_capability(cap)
        _REGISTRIES[cap].register(name, cls, overwrite=True)
        self._registered[cap].append(name)
        logger.info("[Plugin:%s] Registered %s: %s", self.name, cap.value, name)

    def register_parser(self, name: str, cls: Any) -> None:
        """Register a parser for a format tag (requires 'parsers')."""
        self._register(PluginCapability.PARSERS, name, cls)

    def register_transformer(self, name: str, cls: Any) -> None:
        """Register a transformer strategy (requires 'transformers')."""
        self._register(PluginCapability.TRANSFORMERS, name, cls)

    def register_ontology(self, name: str, cls: Any) -> None:
        """Register an ontology strategy (requires 'ontologies')."""
        self._register(PluginCapability.ONTOLOGIES, name, cls)

    def register_predictor(self, name: str, cls: Any) -> None:
        """Register a predictor strategy (requires 'predictors')."""
        self._register(PluginCapability.PREDICTORS, name, cls)

    def register_storage(self, name: str, cls: Any) -> None:
        """Register a storage backend (requires 'storage')."""
        self._register(PluginCapability.STORAGE, name, cls)

    # ---- Introspection -----------------------------------------------------

    def summary(self) -> dict[str, Any]:
        """Return a summary of what this plugin registered."""
        out: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "capabilities": sorted(c.value for c in self._capabilities),
        }
        for cap, names in self._registered.items():
            out[cap.value] = list(names)
        return out


# ============================================================================
# Plugin loading
# ============================================================================

# Global registry of loaded plugins
_loaded_plugins: dict[str, PluginContext] = {}


def load_manifest(plugin_dir: Path) -> PluginManifest | None:
    """Load and validate plugin.yaml from a directory.

    Returns None if no manifest found.
    Raises ValueError if manifest is invalid.
    """
    manifest_path = plugin_dir / "plugin.yaml"
    if not manifest_path.exists():
        manifest_path = plugin_dir / "plugin.yml"
    if not manifest_path.exists():
        return None

    with open(manifest_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Invalid plugin manifest in {manifest_path}: expected mapping")

    return PluginManifest(**data)


def _check_version_compatibility(manifest: PluginManifest) -> None:
    """Check if the installed contextingest satisfies plugin requirements."""
    required = manifest.requires.get(PACKAGE_NAME)
    if not required:
        return

    try:
        current = Version(get_version(PACKAGE_NAME))
    except (PackageNotFoundError, InvalidVersion):
        # If we can't determine version, skip check
        logger.debug("Could not determine %s version for plugin %s", PACKAGE_NAME, manifest.name)
        return

    try:
        spec = SpecifierSet(required)
    except InvalidSpecifier as e:
        raise ValueError(
            f"Plugin '{manifest.name}' has an invalid requirement '{required}'"
        ) from e
    if current not in spec:
        raise ValueError(
            f"Plugin '{manifest.name}' requires {PACKAGE_NAME}{required}, "
            f"but {current} is installed"
        )


def load_plugin(plugin_dir: Path) -> PluginContext | None:
    """Load a plugin from a directory with manifest.

    Steps:
    1. Parse plugin.yaml
    2. Validate manifest
    3. Check version compatibility
    4. Import entry point module
    5. Call on_load(ctx) if present

    Returns:
        PluginContext if loaded successfully, None if no manifest found.
    """
    manifest = load_manifest(plugin_dir)
    if manifest is None:
        return None

    if not manifest.enabled:
        logger.info("Plugin '%s' is disabled, skipping", manifest.name)
        return None

    if manifest.name in _loaded_plugins:
        logger.warning("Plugin '%s' already loaded, skipping duplicate", manifest.name)
        return _loaded_plugins[manifest.name]

    _check_version_compatibility(manifest)

    ctx = PluginContext(manifest, plugin_dir=plugin_dir)

    entry_path = plugin_dir / manifest.entry_point
    if not entry_path.exists():
        raise FileNotFoundError(f"Plugin '{manifest.name}' entry point not found: {entry_path}")

    spec = importlib.util.spec_from_file_location(f"_plugin_{manifest.name}", entry_path)
    if not spec or not spec.loader:
        raise ImportError(f"Could not load plugin '{manifest.name}' from {entry_path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    on_load = getattr(module, "on_load", None)
    if callable(on_load):
        on_load(ctx)
    else:
        logger.debug("Plugin '%s' has no on_load() function, loaded module only", manifest.name)

    _loaded_plugins[manifest.name] = ctx
    logger.info(
        "Loaded plugin '%s' v%s (capabilities: %s)",
        manifest.name,
        manifest.version,
        sorted(c.value for c in ctx.capabilities),
    )
    return ctx


def scan(root: Path) -> list[PluginContext]:
    """Load every plugin directory directly under `root` (or `root` itself)."""
    if not root.is_dir():
        logger.warning("Plugin directory not found: %s", root)
        return []
    candidates = [root] if load_manifest(root) is not None else sorted(
        p for p in root.iterdir() if p.is_dir()
    )
    loaded: list[PluginContext] = []
    for plugin_dir in candidates:
        ctx = load_plugin(plugin_dir)
        if ctx is not None:
            loaded.append(ctx)
    return loaded


def reset_plugins() -> None:
    """Reset the plugin registry (for testing)."""
    _loaded_plugins.clear()


__all__ = [
    "PluginCapability",
    "PluginContext",
    "PluginManifest",
    "load_manifest",
    "load_plugin",
    "reset_plugins",
    "scan",
]
