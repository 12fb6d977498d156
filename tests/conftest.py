"""Shared fixtures for contextingest tests."""

from __future__ import annotations

import os

import pytest

from contextingest.core.config import Config, set_core_config
from contextingest.core.types import DocumentFormat, RawInput
from contextingest.modules.storage import InMemoryStorage
from contextingest.pipeline import PipelineOrchestrator, build_orchestrator


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Every test starts from defaults: no CONTEXTINGEST_* env, no global config."""
    for name in list(os.environ):
        if name.startswith("CONTEXTINGEST_"):
            monkeypatch.delenv(name, raising=False)
    set_core_config(None)
    yield
    set_core_config(None)


def text_doc(text: str, doc_id: str, fmt: DocumentFormat = DocumentFormat.TEXT) -> RawInput:
    return RawInput.from_text(text, source_id=f"{doc_id}.src", format=fmt, document_id=doc_id)


@pytest.fixture()
def config() -> Config:
    return Config()


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def orchestrator(config: Config, storage: InMemoryStorage) -> PipelineOrchestrator:
    return build_orchestrator(config, storage=storage)


@pytest.fixture()
def make_doc():
    return text_doc
