"""Configuration sections for the pipeline components."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # "memory" keeps artifacts for the process lifetime; "filesystem" writes
    # one file per key under `path`.
    backend: str = "memory"
    path: str = "store"


class ParserConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # JSON documents: first present field wins.
    json_text_fields: list[str] = Field(default_factory=lambda: ["text", "content", "body"])
    json_title_field: str = "title"
    encoding: str = "utf-8"


class TransformerConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    strategy: str = "normalizer"
    supported_formats: list[str] = Field(
        default_factory=lambda: ["text", "markdown", "json", "pdf"]
    )
    dedupe_sections: bool = True


class Category(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(min_length=1)
    keywords: list[str] = Field(default_factory=list)
    # Lower wins ties. Unset means taxonomy order.
    priority: int | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        vv = v.strip()
        if not vv:
            raise ValueError("category name must be non-empty")
        return vv


def _default_categories() -> list[Category]:
    return [
        Category(
            name="greeting",
            keywords=["hello", "hi", "hey", "greetings", "welcome", "good morning"],
        ),
        Category(name="farewell", keywords=["goodbye", "bye", "farewell", "see you"]),
        Category(
            name="finance",
            keywords=["invoice", "payment", "revenue", "budget", "tax", "bank", "price"],
        ),
        Category(
            name="technology",
            keywords=["software", "computer", "code", "python", "network", "server", "data"],
        ),
        Category(
            name="science",
            keywords=["research", "experiment", "hypothesis", "theory", "biology", "physics"],
        ),
        Category(
            name="legal",
            keywords=["contract", "agreement", "law", "court", "liability", "clause"],
        ),
    ]


class TaxonomyConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    categories: list[Category] = Field(default_factory=_default_categories)
    # Name of the category used when nothing matches. Must be one of `categories`.
    catch_all: str | None = None

    @model_validator(mode="after")
    def _check_names(self) -> "TaxonomyConfig":
        names = [c.name for c in self.categories]
        if len(set(names)) != len(names):
            raise ValueError("taxonomy category names must be unique")
        if self.catch_all is not None and self.catch_all not in names:
            raise ValueError(f"catch_all category '{self.catch_all}' is not in the taxonomy")
        return self

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.categories]


class RelationRule(BaseModel):
    """Edge rule between two categories.

    `target` may be "*" to match any category.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    source: str
    target: str
    kind: str = "related_to"
    min_similarity: float = Field(default=0.0, ge=0.0, le=1.0)


class OntologyConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    strategy: str = "taxonomy"
    taxonomy: TaxonomyConfig = Field(default_factory=TaxonomyConfig)
    # YAML file replacing `taxonomy` when set.
    taxonomy_path: str = ""
    relations: list[RelationRule] = Field(default_factory=list)
    same_category: bool = True
    same_category_min_similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    reflexive: bool = False


class PredictorConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    strategy: str = "tfidf"
    # Training documents are labelled by this metadata field, else by id.
    label_key: str = "label"
    max_features: int | None = None
    top_k: int = Field(default=3, ge=1)


class PipelineConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mode: Literal["relate", "predict"] = "relate"
    workers: int = Field(default=4, ge=1)
    persist_intermediate: bool = True


class PluginsConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    paths: list[Path] = Field(default_factory=list)


__all__ = [
    "Category",
    "OntologyConfig",
    "ParserConfig",
    "PipelineConfig",
    "PluginsConfig",
    "PredictorConfig",
    "RelationRule",
    "StorageConfig",
    "TaxonomyConfig",
    "TransformerConfig",
]
