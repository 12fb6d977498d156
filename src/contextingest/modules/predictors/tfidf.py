"""TF-IDF nearest-neighbour predictor (scikit-learn).

`train` fits a TfidfVectorizer on the corpus and keeps the document matrix
with one label per document (`metadata[label_key]`, else the document id).
`predict` returns the label of the most similar training document; the
confidence is that cosine similarity, clipped to [0, 1].

Training fully replaces the model. The fitted model is an immutable snapshot:
it is built without holding the model lock and swapped in under it, so a
concurrent `predict` uses either the old or the new snapshot.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Sequence

from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from contextingest.core.config import PredictorConfig
from contextingest.core.exceptions import MLError, MLErrorKind
from contextingest.core.interfaces import BasePredictor
from contextingest.core.registry import register_predictor
from contextingest.core.types import PredictedData, TransformedData

logger = logging.getLogger(__name__)

# Keep one-character tokens; normalized content is already lower-case.
_TOKEN_PATTERN = r"(?u)\b\w+\b"


@dataclass(frozen=True)
class _Model:
    vectorizer: TfidfVectorizer
    matrix: Any
    document_ids: tuple[str, ...]
    labels: tuple[str, ...]


@register_predictor("tfidf")
class TfidfPredictor(BasePredictor):
    name = "tfidf"

    def __init__(self, config: PredictorConfig | None = None) -> None:
        super().__init__()
        self.config = config if config is not None else PredictorConfig()
        self._model: _Model | None = None
        self._model_lock = threading.Lock()
        self._train_lock = threading.Lock()

    @property
    def is_trained(self) -> bool:
        with self._model_lock:
            return self._model is not None

    def _snapshot(self) -> _Model | None:
        with self._model_lock:
            return self._model

    def _label(self, doc: TransformedData) -> str:
        label = doc.metadata.get(self.config.label_key, "").strip()
        return label or doc.document_id

    def train(self, corpus: Sequence[TransformedData]) -> None:
        docs = list(corpus)
        if not docs:
            raise MLError(MLErrorKind.EMPTY_CORPUS, "cannot train on an empty corpus")

        with self._train_lock:
            vectorizer = TfidfVectorizer(
                lowercase=False,
                token_pattern=_TOKEN_PATTERN,
                max_features=self.config.max_features,
            )
            try:
                matrix = vectorizer.fit_transform([d.content for d in docs])
            except ValueError as e:
                # Raised by scikit-learn when the corpus has no usable terms.
                raise MLError(MLErrorKind.EMPTY_CORPUS, f"corpus has no vocabulary: {e}") from e

            model = _Model(
                vectorizer=vectorizer,
                matrix=matrix,
                document_ids=tuple(d.document_id for d in docs),
                labels=tuple(self._label(d) for d in docs),
            )
            with self._model_lock:
                self._model = model
        logger.info(
            "tfidf: trained on %d document(s), %d term(s)",
            len(docs),
            len(vectorizer.vocabulary_),
        )

    def predict(self, transformed: TransformedData) -> PredictedData:
        model = self._snapshot()
        if model is None:
            raise MLError(MLErrorKind.NOT_TRAINED, "predict called before train")

        vector = model.vectorizer.transform([transformed.content])
        scores = cosine_similarity(vector, model.matrix)[0]

        # Stable ordering: highest score first, then training order.
        ranked = sorted(range(len(scores)), key=lambda i: (-float(scores[i]), i))
        best = ranked[0]
        confidence = min(1.0, max(0.0, float(scores[best])))

        top = [
            {
                "document_id": model.document_ids[i],
                "label": model.labels[i],
                "score": round(min(1.0, max(0.0, float(scores[i]))), 6),
            }
            for i in ranked[: self.config.top_k]
        ]
        return PredictedData(
            document=transformed,
            prediction={
                "label": model.labels[best],
                "neighbour_id": model.document_ids[best],
                "similarities": top,
            },
            confidence=confidence,
        )


__all__ = ["TfidfPredictor"]
