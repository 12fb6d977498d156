"""Pipeline orchestrator.

Drives documents through Parser -> Transformer -> Ontology (classify, relate)
or Parser -> Transformer -> Predictor. A stage failure stops that document
only: it is recorded as a `DocumentFailure` and the batch moves on. The one
exception is a fatal storage error (`StorageError.fatal`), which stops the
batch and propagates, since no later document could be stored either.

Batches run one task per document on asyncio, bounded by `workers`; each
document's synchronous pipeline runs in a worker thread. In relate mode the
batch has two phases so relations do not depend on scheduling order:

1. every document is taken to `Classified`;
2. the ontology is bound to the classified corpus and each document related.

`cancel()` is checked before a document starts. Started documents run to
completion, relate phase included; the rest are reported in
`BatchResult.cancelled`.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Iterable, Literal, Sequence, TypeVar

from contextingest.core.exceptions import (
    ConfigurationError,
    ParseError,
    ParseErrorKind,
    PipelineError,
    PipelineErrorKind,
    StageError,
    StorageError,
)
from contextingest.core.interfaces import (
    BaseOntology,
    BaseParser,
    BasePredictor,
    BaseStorage,
    BaseTransformer,
)
from contextingest.core.types import (
    Artifact,
    ClassifiedData,
    DocumentFormat,
    DocumentManifest,
    ParsedData,
    RawInput,
    Stage,
    TerminalArtifact,
    TransformedData,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
PipelineMode = Literal["relate", "predict"]


class Step(str, Enum):
    """Transition being attempted when a document failed."""

    ADMIT = "admit"
    PARSE = "parse"
    TRANSFORM = "transform"
    CLASSIFY = "classify"
    RELATE = "relate"
    PREDICT = "predict"


@dataclass(frozen=True)
class DocumentFailure:
    document_id: str
    source_id: str
    step: Step
    error: StageError

    @property
    def code(self) -> str:
        return self.error.code


@dataclass(frozen=True)
class BatchResult(Generic[T]):
    """Per-batch outcome. Successes keep input order."""

    successes: tuple[T, ...] = ()
    failures: tuple[DocumentFailure, ...] = ()
    cancelled: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures and not self.cancelled

    def failure_for(self, document_id: str) -> DocumentFailure | None:
        for f in self.failures:
            if f.document_id == document_id:
                return f
        return None


class _StepFailed(Exception):
    def __init__(self, step: Step, error: StageError) -> None:
        super().__init__(str(error))
        self.step = step
        self.error = error


@dataclass
class _Outcome:
    raw: RawInput
    artifact: Artifact | None = None
    failure: DocumentFailure | None = None
    cancelled: bool = False


ParserFactory = Callable[[DocumentFormat], BaseParser]


class PipelineOrchestrator:
    def __init__(
        self,
        *,
        parser_factory: ParserFactory,
        transformer: BaseTransformer,
        ontology: BaseOntology,
        storage: BaseStorage,
        predictor: BasePredictor | None = None,
        mode: PipelineMode = "relate",
        workers: int = 4,
        persist_intermediate: bool = True,
    ) -> None:
        if mode not in ("relate", "predict"):
            raise ConfigurationError(f"unknown pipeline mode '{mode}'")
        self._parser_factory = parser_factory
        self._parsers: dict[DocumentFormat, BaseParser] = {}
        self._parsers_lock = threading.Lock()
        self.transformer = transformer
        self.ontology = ontology
        self.storage = storage
        self.predictor = predictor
        self.mode: PipelineMode = mode
        self.workers = max(1, int(workers))
        self.persist_intermediate = persist_intermediate
        self._cancel = threading.Event()

    # ---- public API --------------------------------------------------------

    def cancel(self) -> None:
        """Stop the running batch at the next document boundary."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def process(self, raw: RawInput) -> TerminalArtifact:
        """Run one document to its terminal state, raising its stage error."""
        try:
            first = self._first_phase(raw)
            if isinstance(first, ClassifiedData):
                return self._relate(first, self.ontology, raw)
            return first
        except _StepFailed as e:
            raise e.error from e

    def run_batch(
        self, raws: Iterable[RawInput], *, known: Iterable[ClassifiedData] = ()
    ) -> BatchResult[TerminalArtifact]:
        return asyncio.run(self.arun_batch(raws, known=known))

    async def arun_batch(
        self, raws: Iterable[RawInput], *, known: Iterable[ClassifiedData] = ()
    ) -> BatchResult[TerminalArtifact]:
        self._cancel.clear()
        if self.mode == "predict" and self.predictor is None:
            raise ConfigurationError("predict mode requires a predictor")

        outcomes = [_Outcome(raw=r) for r in raws]
        self._admit(outcomes)

        await self._run_phase(outcomes, lambda o: self._first_phase(o.raw))

        if self.mode == "relate":
            classified = [o.artifact for o in outcomes if isinstance(o.artifact, ClassifiedData)]
            bound = self.ontology.bind([*known, *classified])
            pending = [o for o in outcomes if isinstance(o.artifact, ClassifiedData)]
            await self._run_phase(
                pending,
                lambda o: self._relate(o.artifact, bound, o.raw),  # type: ignore[arg-type]
                admit_new=False,
            )

        result: BatchResult[TerminalArtifact] = BatchResult(
            successes=tuple(
                o.artifact  # type: ignore[misc]
                for o in outcomes
                if o.failure is None and not o.cancelled and o.artifact is not None
            ),
            failures=tuple(o.failure for o in outcomes if o.failure is not None),
            cancelled=tuple(o.raw.document_id for o in outcomes if o.cancelled),
        )
        logger.info(
            "batch: %d succeeded, %d failed, %d cancelled",
            len(result.successes),
            len(result.failures),
            len(result.cancelled),
        )
        return result

    def train_from(self, raws: Iterable[RawInput]) -> BatchResult[TransformedData]:
        """Parse and transform `raws`, then train the predictor on the successes.

        Documents failing to parse or transform are reported and left out of
        the training corpus. An empty resulting corpus raises `MLError`.
        """
        if self.predictor is None:
            raise ConfigurationError("training requires a predictor")
        return asyncio.run(self.atrain_from(raws))

    async def atrain_from(self, raws: Iterable[RawInput]) -> BatchResult[TransformedData]:
        if self.predictor is None:
            raise ConfigurationError("training requires a predictor")
        self._cancel.clear()
        outcomes = [_Outcome(raw=r) for r in raws]
        self._admit(outcomes)
        await self._run_phase(outcomes, lambda o: self._transform_phase(o.raw))

        corpus = [
            o.artifact
            for o in outcomes
            if o.failure is None and isinstance(o.artifact, TransformedData)
        ]
        await asyncio.to_thread(self.predictor.train, corpus)
        return BatchResult(
            successes=tuple(corpus),
            failures=tuple(o.failure for o in outcomes if o.failure is not None),
            cancelled=tuple(o.raw.document_id for o in outcomes if o.cancelled),
        )

    # ---- scheduling --------------------------------------------------------

    def _admit(self, outcomes: Sequence[_Outcome]) -> None:
        seen: set[str] = set()
        for o in outcomes:
            doc_id = o.raw.document_id
            if doc_id in seen:
                o.failure = DocumentFailure(
                    document_id=doc_id,
                    source_id=o.raw.source_id,
                    step=Step.ADMIT,
                    error=PipelineError(
                        PipelineErrorKind.DUPLICATE_DOCUMENT,
                        f"document id '{doc_id}' already seen in this batch",
                    ),
                )
                logger.warning("batch: duplicate document id %s (%s)", doc_id, o.raw.source_id)
            seen.add(doc_id)

    async def _run_phase(
        self,
        outcomes: Sequence[_Outcome],
        fn: Callable[[_Outcome], Artifact],
        *,
        admit_new: bool = True,
    ) -> None:
        sem = asyncio.Semaphore(self.workers)
        abort = threading.Event()

        async def run_one(o: _Outcome) -> None:
            if o.failure is not None or o.cancelled:
                return
            async with sem:
                if abort.is_set() or (admit_new and self._cancel.is_set()):
                    o.cancelled = True
                    return
                try:
                    o.artifact = await asyncio.to_thread(fn, o)
                except _StepFailed as e:
                    o.failure = DocumentFailure(
                        document_id=o.raw.document_id,
                        source_id=o.raw.source_id,
                        step=e.step,
                        error=e.error,
                    )
                    logger.warning(
                        "document %s failed at %s: [%s] %s",
                        o.raw.document_id,
                        e.step.value,
                        e.error.code,
                        e.error,
                    )
                except StorageError:
                    abort.set()
                    raise

        await asyncio.gather(*(run_one(o) for o in outcomes))

    # ---- per-document stages -----------------------------------------------

    def _parser_for(self, fmt: DocumentFormat) -> BaseParser:
        with self._parsers_lock:
            parser = self._parsers.get(fmt)
            if parser is None:
                try:
                    parser = self._parser_factory(fmt)
                except KeyError as e:
                    raise _StepFailed(
                        Step.PARSE,
                        ParseError(ParseErrorKind.MALFORMED, f"no parser for '{fmt.value}'"),
                    ) from e
                self._parsers[fmt] = parser
            return parser

    def _call(self, step: Step, fn: Callable[..., T], *args: object) -> T:
        try:
            return fn(*args)
        except StorageError as e:
            if e.fatal:
                raise
            raise _StepFailed(step, e) from e
        except StageError as e:
            raise _StepFailed(step, e) from e

    def _save(
        self, raw: RawInput, stage: Stage, artifact: Artifact, *, checksum: str, terminal: bool
    ) -> None:
        doc_id = raw.document_id
        if self.persist_intermediate or terminal:
            self.storage.store_artifact(doc_id, stage, artifact)
        manifest = DocumentManifest(
            document_id=doc_id,
            source_id=raw.source_id,
            format=raw.format,
            checksum=checksum,
            stage=stage,
        )
        self.storage.store(doc_id, manifest.to_bytes())
        logger.debug("document %s -> %s", doc_id, stage.value)

    def _transform_phase(self, raw: RawInput) -> TransformedData:
        parser = self._parser_for(raw.format)
        parsed: ParsedData = self._call(Step.PARSE, parser.parse, raw)
        self._save(raw, Stage.PARSED, parsed, checksum=parsed.checksum, terminal=False)

        transformed = self._call(Step.TRANSFORM, self.transformer.transform, parsed)
        self._save(raw, Stage.TRANSFORMED, transformed, checksum=parsed.checksum, terminal=False)
        return transformed

    def _first_phase(self, raw: RawInput) -> ClassifiedData | TerminalArtifact:
        transformed = self._transform_phase(raw)
        checksum = transformed.checksum

        if self.mode == "predict":
            if self.predictor is None:
                raise ConfigurationError("predict mode requires a predictor")
            predicted = self._call(Step.PREDICT, self.predictor.predict, transformed)
            self._save(raw, Stage.PREDICTED, predicted, checksum=checksum, terminal=True)
            return predicted

        classified = self._call(Step.CLASSIFY, self.ontology.classify, transformed)
        self._save(raw, Stage.CLASSIFIED, classified, checksum=checksum, terminal=False)
        return classified

    def _relate(
        self, classified: ClassifiedData, ontology: BaseOntology, raw: RawInput
    ) -> TerminalArtifact:
        related = self._call(Step.RELATE, ontology.relate, classified)
        self._save(
            raw, Stage.RELATED, related, checksum=classified.document.checksum, terminal=True
        )
        return related


__all__ = ["BatchResult", "DocumentFailure", "PipelineOrchestrator", "PipelineMode", "Step"]
