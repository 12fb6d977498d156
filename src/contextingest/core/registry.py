"""Component registries for stage strategies.

Builtins are registered lazily by import path so optional heavy dependencies
(pypdf, scikit-learn) are only imported when their strategy is used.

    @register_transformer("my_normalizer")
    class MyNormalizer(BaseTransformer):
        ...
"""

from __future__ import annotations

import importlib
import logging
from typing import Callable, Generic, TypeVar, cast

from .interfaces import BaseOntology, BaseParser, BasePredictor, BaseStorage, BaseTransformer

logger = logging.getLogger(__name__)

TItem = TypeVar("TItem")

BUILTIN_PARSERS: dict[str, str] = {
    "text": "contextingest.modules.parsers.text.TextParser",
    "markdown": "contextingest.modules.parsers.markdown.MarkdownParser",
    "json": "contextingest.modules.parsers.json.JsonParser",
    "pdf": "contextingest.modules.parsers.pdf.PdfParser",
}

BUILTIN_TRANSFORMERS: dict[str, str] = {
    "normalizer": "contextingest.modules.transformers.normalizer.NormalizingTransformer",
}

BUILTIN_ONTOLOGIES: dict[str, str] = {
    "taxonomy": "contextingest.modules.ontology.taxonomy.TaxonomyOntology",
}

BUILTIN_PREDICTORS: dict[str, str] = {
    "tfidf": "contextingest.modules.predictors.tfidf.TfidfPredictor",
}

BUILTIN_STORAGE: dict[str, str] = {
    "memory": "contextingest.modules.storage.memory.InMemoryStorage",
    "filesystem": "contextingest.modules.storage.filesystem.FileStorage",
}


class Registry(Generic[TItem]):
    """Minimal name -> class registry with lazy builtins."""

    def __init__(self, *, name: str, builtin_map: dict[str, str] | None = None) -> None:
        self._name = name
        self._items: dict[str, TItem] = {}
        self._builtin_map: dict[str, str] = builtin_map or {}

    def get(self, key: str) -> TItem:
        k = key.strip()
        if k not in self._items and k in self._builtin_map:
            raw = self._builtin_map[k]
            if ":" in raw:
                mod_name, attr = raw.split(":", 1)
            else:
                mod_name, attr = raw.rsplit(".", 1)
            mod = importlib.import_module(mod_name)
            self._items[k] = cast(TItem, getattr(mod, attr))

        if k not in self._items:
            raise KeyError(f"{self._name}: unknown key '{k}'")
        return self._items[k]

    def register(self, key: str, value: TItem, *, overwrite: bool = False) -> None:
        k = key.strip()
        if not k:
            raise ValueError(f"{self._name}: registry key must be non-empty")
        if not overwrite and k in self._items:
            raise KeyError(f"{self._name}: '{k}' already registered")
        self._items[k] = value
        logger.debug("%s: registered '%s'", self._name, k)

    def unregister(self, key: str) -> None:
        self._items.pop(key.strip(), None)

    def names(self) -> list[str]:
        return sorted(set(self._items) | set(self._builtin_map))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.strip() in (set(self._items) | set(self._builtin_map))


parser_registry: Registry[type[BaseParser]] = Registry(name="parsers", builtin_map=BUILTIN_PARSERS)
transformer_registry: Registry[type[BaseTransformer]] = Registry(
    name="transformers", builtin_map=BUILTIN_TRANSFORMERS
)
ontology_registry: Registry[type[BaseOntology]] = Registry(
    name="ontologies", builtin_map=BUILTIN_ONTOLOGIES
)
predictor_registry: Registry[type[BasePredictor]] = Registry(
    name="predictors", builtin_map=BUILTIN_PREDICTORS
)
storage_registry: Registry[type[BaseStorage]] = Registry(
    name="storage", builtin_map=BUILTIN_STORAGE
)


def _decorator(registry: Registry[TItem], name: str) -> Callable[[TItem], TItem]:
    def decorator(cls: TItem) -> TItem:
        registry.register(name, cls, overwrite=True)
        return cls

    return decorator


def register_parser(name: str) -> Callable[[type[BaseParser]], type[BaseParser]]:
    return _decorator(parser_registry, name)


def register_transformer(name: str) -> Callable[[type[BaseTransformer]], type[BaseTransformer]]:
    return _decorator(transformer_registry, name)


def register_ontology(name: str) -> Callable[[type[BaseOntology]], type[BaseOntology]]:
    return _decorator(ontology_registry, name)


def register_predictor(name: str) -> Callable[[type[BasePredictor]], type[BasePredictor]]:
    return _decorator(predictor_registry, name)


def register_storage(name: str) -> Callable[[type[BaseStorage]], type[BaseStorage]]:
    return _decorator(storage_registry, name)


__all__ = [
    "Registry",
    "ontology_registry",
    "parser_registry",
    "predictor_registry",
    "register_ontology",
    "register_parser",
    "register_predictor",
    "register_storage",
    "register_transformer",
    "storage_registry",
    "transformer_registry",
]
