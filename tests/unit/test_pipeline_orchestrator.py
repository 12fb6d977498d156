"""Pipeline orchestrator: per-document state machine and batch semantics."""

from __future__ import annotations

import asyncio

import pytest

from contextingest.core.config import Config, PipelineConfig
from contextingest.core.exceptions import (
    ConfigurationError,
    MLErrorKind,
    OntologyError,
    OntologyErrorKind,
    ParseError,
    ParseErrorKind,
    PipelineErrorKind,
    StorageError,
    StorageErrorKind,
)
from contextingest.core.types import (
    ClassifiedData,
    DocumentFormat,
    DocumentManifest,
    PredictedData,
    RawInput,
    RelatedData,
    Stage,
)
from contextingest.modules.ontology import TaxonomyOntology
from contextingest.modules.predictors.tfidf import TfidfPredictor
from contextingest.modules.storage import InMemoryStorage
from contextingest.modules.transformers import NormalizingTransformer
from contextingest.pipeline import PipelineOrchestrator, Step, build_orchestrator, build_parser

# ============================================================================
# Helpers
# ============================================================================


class _BrokenStorage(InMemoryStorage):
    """Storage whose medium fails after `ok_writes` writes."""

    def __init__(self, ok_writes: int = 0) -> None:
        super().__init__()
        self._ok_writes = ok_writes

    def store(self, key: str, data: bytes) -> None:
        if self._ok_writes <= 0:
            raise StorageError(StorageErrorKind.IO, "disk full")
        self._ok_writes -= 1
        super().store(key, data)


class _CancellingTransformer(NormalizingTransformer):
    """Cancels the batch while transforming the first document."""

    def __init__(self) -> None:
        super().__init__()
        self.orchestrator: PipelineOrchestrator | None = None

    def _transform(self, parsed):
        assert self.orchestrator is not None
        self.orchestrator.cancel()
        return super()._transform(parsed)


def _orchestrator(storage=None, **kw) -> PipelineOrchestrator:
    return PipelineOrchestrator(
        parser_factory=lambda fmt: build_parser(fmt, Config()),
        transformer=kw.pop("transformer", NormalizingTransformer()),
        ontology=kw.pop("ontology", TaxonomyOntology()),
        storage=storage if storage is not None else InMemoryStorage(),
        **kw,
    )


# ============================================================================
# Single document
# ============================================================================


class TestProcess:
    def test_hello_world_end_to_end(self, orchestrator, storage, make_doc):
        result = orchestrator.process(make_doc("Hello, World! Hello.", "hello"))
        assert isinstance(result, RelatedData)
        assert result.category == "greeting"
        assert result.relations == ()
        assert result.classified.document.content == "hello world hello"

        parsed = storage.retrieve(Stage.PARSED.key("hello"))
        assert b"Hello, World! Hello." in parsed
        manifest = DocumentManifest.from_bytes(storage.retrieve("hello"))
        assert manifest.stage is Stage.RELATED
        assert manifest.source_id == "hello.src"
        assert manifest.checksum

    def test_persisted_keys(self, orchestrator, storage, make_doc):
        orchestrator.process(make_doc("Hello there", "h"))
        assert storage.keys() == [
            "h",
            "h:classified",
            "h:parsed",
            "h:related",
            "h:transformed",
        ]

    def test_stored_artifact_roundtrip(self, orchestrator, storage, make_doc):
        related = orchestrator.process(make_doc("Hello again", "h"))
        assert storage.retrieve_artifact("h", Stage.RELATED, RelatedData) == related

    def test_typed_error_propagates(self, orchestrator, make_doc):
        with pytest.raises(ParseError) as exc:
            orchestrator.process(make_doc("   ", "blank"))
        assert exc.value.kind is ParseErrorKind.EMPTY

    def test_failed_document_stores_last_reached_stage(self, orchestrator, storage, make_doc):
        with pytest.raises(OntologyError):
            orchestrator.process(make_doc("zzz qqq", "nomatch"))
        manifest = DocumentManifest.from_bytes(storage.retrieve("nomatch"))
        assert manifest.stage is Stage.TRANSFORMED

    def test_intermediate_persistence_off(self, storage, make_doc):
        orchestrator = _orchestrator(storage, persist_intermediate=False)
        orchestrator.process(make_doc("Hello", "h"))
        assert storage.keys() == ["h", "h:related"]

    def test_invalid_mode(self):
        with pytest.raises(ConfigurationError):
            _orchestrator(mode="summarize")


# ============================================================================
# Batches
# ============================================================================


class TestBatch:
    def test_one_failure_does_not_stop_batch(self, orchestrator, make_doc):
        raws = [
            make_doc("Hello friend", "a"),
            make_doc("", "broken"),
            make_doc("Invoice and payment", "b"),
            make_doc("python code", "c"),
        ]
        result = orchestrator.run_batch(raws)
        assert [r.document_id for r in result.successes] == ["a", "b", "c"]
        assert len(result.failures) == 1
        failure = result.failure_for("broken")
        assert failure is not None
        assert failure.step is Step.PARSE
        assert failure.error.kind is ParseErrorKind.EMPTY
        assert failure.code == "PARSE_ERROR"
        assert result.ok is False

    def test_deeply_nested_json_fails_alone(self, orchestrator, make_doc):
        nested = "[" * 100_000 + "]" * 100_000
        raws = [
            make_doc(nested, "deep", DocumentFormat.JSON),
            make_doc("Hello, World! Hello.", "hello"),
        ]
        result = orchestrator.run_batch(raws)
        assert [r.document_id for r in result.successes] == ["hello"]
        (failure,) = result.failures
        assert failure.document_id == "deep"
        assert failure.step is Step.PARSE
        assert failure.error.kind is ParseErrorKind.MALFORMED

    def test_classification_failure_recorded(self, orchestrator, make_doc):
        result = orchestrator.run_batch([make_doc("zzz qqq", "x")])
        (failure,) = result.failures
        assert failure.step is Step.CLASSIFY
        assert failure.error.kind is OntologyErrorKind.NO_MATCH

    def test_relations_within_batch(self, orchestrator, make_doc):
        raws = [
            make_doc("python code server", "t1"),
            make_doc("python network data", "t2"),
            make_doc("invoice", "f1"),
        ]
        result = orchestrator.run_batch(raws)
        by_id = {r.document_id: r for r in result.successes}
        assert [r.target_id for r in by_id["t1"].relations] == ["t2"]
        assert [r.target_id for r in by_id["t2"].relations] == ["t1"]
        assert by_id["f1"].relations == ()

    def test_relations_independent_of_worker_count(self, config, make_doc):
        raws = [make_doc(f"python code sample {i}", f"d{i}") for i in range(8)]
        results = []
        for workers in (1, 8):
            config.pipeline.workers = workers
            results.append(build_orchestrator(config, storage=InMemoryStorage()).run_batch(raws))
        assert results[0].successes == results[1].successes

    def test_known_corpus(self, orchestrator, make_doc):
        earlier = orchestrator.process(make_doc("python code", "old"))
        result = orchestrator.run_batch(
            [make_doc("python server", "new")], known=[earlier.classified]
        )
        assert [r.target_id for r in result.successes[0].relations] == ["old"]

    def test_duplicate_document_ids(self, orchestrator, storage, make_doc):
        raws = [make_doc("Hello", "dup"), make_doc("python code", "dup")]
        result = orchestrator.run_batch(raws)
        assert [r.category for r in result.successes] == ["greeting"]
        (failure,) = result.failures
        assert failure.step is Step.ADMIT
        assert failure.error.kind is PipelineErrorKind.DUPLICATE_DOCUMENT

    def test_document_id_defaults_to_source(self, orchestrator):
        raw = RawInput(source_id="notes/hello.txt", format=DocumentFormat.TEXT, payload=b"hi")
        result = orchestrator.run_batch([raw])
        assert result.successes[0].document_id == "notes/hello.txt"

    def test_empty_batch(self, orchestrator):
        result = orchestrator.run_batch([])
        assert result.successes == () and result.failures == ()
        assert result.ok

    def test_async_api(self, orchestrator, make_doc):
        result = asyncio.run(orchestrator.arun_batch([make_doc("hello", "a")]))
        assert result.ok

    def test_fatal_storage_error_aborts(self, make_doc):
        orchestrator = _orchestrator(_BrokenStorage())
        with pytest.raises(StorageError) as exc:
            orchestrator.run_batch([make_doc("hello", "a"), make_doc("python", "b")])
        assert exc.value.fatal

    def test_cancel_stops_unstarted_documents(self, make_doc):
        transformer = _CancellingTransformer()
        orchestrator = _orchestrator(transformer=transformer, workers=1)
        transformer.orchestrator = orchestrator
        result = orchestrator.run_batch(
            [make_doc("hello", "a"), make_doc("python", "b"), make_doc("invoice", "c")]
        )
        assert [r.document_id for r in result.successes] == ["a"]
        assert result.cancelled == ("b", "c")
        assert result.ok is False
        assert orchestrator.cancelled

    def test_new_batch_clears_cancel(self, orchestrator, make_doc):
        orchestrator.cancel()
        assert orchestrator.run_batch([make_doc("hello", "a")]).ok


# ============================================================================
# Predict mode
# ============================================================================


class TestPredictMode:
    @pytest.fixture()
    def predict_orchestrator(self, storage) -> PipelineOrchestrator:
        config = Config(pipeline=PipelineConfig(mode="predict"))
        return build_orchestrator(config, storage=storage)

    def test_requires_predictor(self, make_doc):
        orchestrator = _orchestrator(mode="predict")
        with pytest.raises(ConfigurationError):
            orchestrator.run_batch([make_doc("hello", "a")])

    def test_untrained_predictor_fails_documents(self, predict_orchestrator, make_doc):
        result = predict_orchestrator.run_batch([make_doc("hello", "a")])
        (failure,) = result.failures
        assert failure.step is Step.PREDICT
        assert failure.error.kind is MLErrorKind.NOT_TRAINED

    def test_train_then_predict(self, predict_orchestrator, storage, make_doc):
        training = [
            RawInput.from_text(
                '{"text": "invoice payment bank", "label": "finance"}',
                source_id="t1.json",
                format=DocumentFormat.JSON,
            ),
            RawInput.from_text(
                '{"text": "python code server", "label": "technology"}',
                source_id="t2.json",
                format=DocumentFormat.JSON,
            ),
            make_doc("", "bad-training-doc"),
        ]
        trained = predict_orchestrator.train_from(training)
        assert [d.document_id for d in trained.successes] == ["t1.json", "t2.json"]
        assert len(trained.failures) == 1

        result = predict_orchestrator.run_batch([make_doc("late bank payment", "q")])
        (predicted,) = result.successes
        assert isinstance(predicted, PredictedData)
        assert predicted.prediction["label"] == "finance"
        assert 0.0 <= predicted.confidence <= 1.0
        assert storage.exists("q:predicted")
        assert not storage.exists("q:classified")

    def test_train_requires_predictor(self, make_doc):
        with pytest.raises(ConfigurationError):
            _orchestrator().train_from([make_doc("hello", "a")])

    def test_explicit_predictor_is_used(self, make_doc):
        predictor = TfidfPredictor()
        orchestrator = _orchestrator(predictor=predictor, mode="predict")
        orchestrator.train_from([make_doc("alpha", "a")])
        assert predictor.is_trained


def test_classified_is_not_terminal(orchestrator, make_doc):
    result = orchestrator.run_batch([make_doc("hello", "a")])
    assert not any(isinstance(r, ClassifiedData) for r in result.successes)
