"""TF-IDF nearest-neighbour predictor."""

from __future__ import annotations

import threading

import pytest

from contextingest.core.config import PredictorConfig
from contextingest.core.exceptions import MLError, MLErrorKind
from contextingest.core.types import DocumentFormat, TransformedData
from contextingest.modules.predictors.tfidf import TfidfPredictor
from contextingest.modules.transformers import normalize_text


def _doc(text: str, doc_id: str, label: str | None = None) -> TransformedData:
    content = normalize_text(text)
    return TransformedData(
        document_id=doc_id,
        content_type=DocumentFormat.TEXT,
        content=content,
        tokens=tuple(content.split()),
        sections=(content,),
        metadata={"label": label} if label else {},
    )


CORPUS = [
    _doc("invoice payment due to the bank", "bill", "finance"),
    _doc("python code running on a server", "deploy", "technology"),
    _doc("the court reviewed the contract clause", "case", "legal"),
]


class TestTraining:
    def test_untrained_predict_fails(self):
        predictor = TfidfPredictor()
        assert predictor.is_trained is False
        with pytest.raises(MLError) as exc:
            predictor.predict(_doc("anything", "q"))
        assert exc.value.kind is MLErrorKind.NOT_TRAINED

    def test_empty_corpus(self):
        with pytest.raises(MLError) as exc:
            TfidfPredictor().train([])
        assert exc.value.kind is MLErrorKind.EMPTY_CORPUS

    def test_corpus_without_vocabulary(self):
        with pytest.raises(MLError) as exc:
            TfidfPredictor().train([_doc("", "blank")])
        assert exc.value.kind is MLErrorKind.EMPTY_CORPUS

    def test_failed_training_keeps_previous_model(self):
        predictor = TfidfPredictor()
        predictor.train(CORPUS)
        with pytest.raises(MLError):
            predictor.train([])
        assert predictor.is_trained


class TestPredict:
    @pytest.fixture()
    def predictor(self) -> TfidfPredictor:
        p = TfidfPredictor()
        p.train(CORPUS)
        return p

    def test_nearest_label(self, predictor):
        result = predictor.predict(_doc("late payment to the bank", "q"))
        assert result.prediction["label"] == "finance"
        assert result.prediction["neighbour_id"] == "bill"
        assert 0.0 < result.confidence <= 1.0

    def test_confidence_in_range(self, predictor):
        for text in ["python server", "unrelated words entirely", "court"]:
            result = predictor.predict(_doc(text, "q"))
            assert 0.0 <= result.confidence <= 1.0

    def test_no_overlap_has_zero_confidence(self, predictor):
        result = predictor.predict(_doc("zebra", "q"))
        assert result.confidence == 0.0
        # Ties resolve to training order.
        assert result.prediction["neighbour_id"] == "bill"

    def test_top_k(self):
        predictor = TfidfPredictor(PredictorConfig(top_k=2))
        predictor.train(CORPUS)
        sims = predictor.predict(_doc("contract", "q")).prediction["similarities"]
        assert len(sims) == 2
        assert sims[0]["document_id"] == "case"

    def test_label_falls_back_to_document_id(self):
        predictor = TfidfPredictor()
        predictor.train([_doc("alpha beta", "a"), _doc("gamma delta", "g")])
        assert predictor.predict(_doc("gamma", "q")).prediction["label"] == "g"

    def test_deterministic(self, predictor):
        doc = _doc("server code", "q")
        assert predictor.predict(doc) == predictor.predict(doc)

    def test_retrain_on_same_corpus_is_deterministic(self, predictor):
        doc = _doc("contract court", "q")
        before = predictor.predict(doc)
        predictor.train(CORPUS)
        assert predictor.predict(doc) == before

    def test_retrain_replaces_model(self, predictor):
        predictor.train([_doc("only weather here", "w", "weather")])
        assert predictor.predict(_doc("payment", "q")).prediction["label"] == "weather"

    def test_concurrent_predict_during_training(self, predictor):
        errors: list[BaseException] = []
        doc = _doc("python code", "q")

        def predict_many() -> None:
            try:
                for _ in range(50):
                    predictor.predict(doc)
            except BaseException as e:  # noqa: BLE001
                errors.append(e)

        readers = [threading.Thread(target=predict_many) for _ in range(4)]
        for t in readers:
            t.start()
        for _ in range(5):
            predictor.train(CORPUS)
        for t in readers:
            t.join()
        assert errors == []
