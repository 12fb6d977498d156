"""Taxonomy ontology: keyword classification and rule-based relations.

classify
    Each category scores one point per keyword occurrence. Single-word
    keywords are matched against tokens, multi-word keywords as phrases in
    the normalized content. The highest score wins; ties go to the lower
    `priority`, then to the category listed first. With no hit the taxonomy's
    `catch_all` is used when configured, otherwise `NO_MATCH` is raised.

relate
    Edges point to documents of the bound corpus. A `same_category` edge links
    documents sharing a category; each `RelationRule` links a source category
    to a target category (or "*"). Edge score is the Jaccard overlap of the
    two token sets and must reach the rule's `min_similarity`. A document
    never relates to itself unless `reflexive` is enabled.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from contextingest.core.config import OntologyConfig, RelationRule, TaxonomyConfig
from contextingest.core.exceptions import OntologyError, OntologyErrorKind
from contextingest.core.interfaces import BaseOntology
from contextingest.core.registry import register_ontology
from contextingest.core.types import ClassifiedData, RelatedData, Relation, TransformedData
from contextingest.modules.transformers.normalizer import normalize_text

logger = logging.getLogger(__name__)

SAME_CATEGORY = "same_category"
REFLEXIVE = "self"
ANY_CATEGORY = "*"


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    sa, sb = set(a), set(b)
    if not sa and not sb:
        return 0.0
    return len(sa & sb) / len(sa | sb)


class _CompiledCategory:
    __slots__ = ("name", "rank", "words", "phrases")

    def __init__(self, name: str, rank: tuple[int, int], keywords: list[str]) -> None:
        self.name = name
        self.rank = rank
        self.words: set[str] = set()
        self.phrases: list[re.Pattern[str]] = []
        for kw in keywords:
            norm = normalize_text(kw)
            if not norm:
                continue
            if " " in norm:
                self.phrases.append(re.compile(rf"(?<!\S){re.escape(norm)}(?!\S)"))
            else:
                self.words.add(norm)

    def score(self, doc: TransformedData) -> int:
        hits = sum(1 for t in doc.tokens if t in self.words)
        for pattern in self.phrases:
            hits += len(pattern.findall(doc.content))
        return hits


@register_ontology("taxonomy")
class TaxonomyOntology(BaseOntology):
    name = "taxonomy"

    def __init__(
        self,
        config: OntologyConfig | None = None,
        *,
        corpus: Iterable[ClassifiedData] = (),
    ) -> None:
        super().__init__()
        self.config = config if config is not None else OntologyConfig()
        self._corpus: tuple[ClassifiedData, ...] = tuple(
            sorted(corpus, key=lambda c: c.document_id)
        )
        taxonomy = self.config.taxonomy
        self._categories = [
            _CompiledCategory(
                c.name,
                (c.priority if c.priority is not None else index, index),
                c.keywords,
            )
            for index, c in enumerate(taxonomy.categories)
        ]
        self._names = set(taxonomy.names)

    @property
    def taxonomy(self) -> TaxonomyConfig:
        return self.config.taxonomy

    @property
    def corpus(self) -> tuple[ClassifiedData, ...]:
        return self._corpus

    def bind(self, corpus: Iterable[ClassifiedData]) -> "TaxonomyOntology":
        return type(self)(self.config, corpus=corpus)

    # ---- classify ----------------------------------------------------------

    def classify(self, transformed: TransformedData) -> ClassifiedData:
        best: _CompiledCategory | None = None
        best_score = 0
        for cat in self._categories:
            score = cat.score(transformed)
            if score == 0:
                continue
            if best is None or score > best_score or (score == best_score and cat.rank < best.rank):
                best, best_score = cat, score

        if best is None:
            catch_all = self.taxonomy.catch_all
            if catch_all is None:
                raise OntologyError(
                    OntologyErrorKind.NO_MATCH,
                    f"{transformed.document_id}: no taxonomy category applies",
                )
            logger.debug("taxonomy: %s -> catch-all %s", transformed.document_id, catch_all)
            return ClassifiedData(document=transformed, category=catch_all, score=0.0)

        total = max(1, len(transformed.tokens))
        logger.debug(
            "taxonomy: %s -> %s (hits=%d)", transformed.document_id, best.name, best_score
        )
        return ClassifiedData(
            document=transformed, category=best.name, score=min(1.0, best_score / total)
        )

    # ---- relate ------------------------------------------------------------

    def _check_consistency(self, classified: ClassifiedData) -> None:
        if classified.category not in self._names:
            raise OntologyError(
                OntologyErrorKind.INCONSISTENT,
                f"{classified.document_id}: category '{classified.category}' is not in the taxonomy",
            )
        for rule in self.config.relations:
            for side in (rule.source, rule.target):
                if side != ANY_CATEGORY and side not in self._names:
                    raise OntologyError(
                        OntologyErrorKind.INCONSISTENT,
                        f"relation rule '{rule.kind}' references unknown category '{side}'",
                    )

    def _rules_for(self, source: str, target: str) -> list[RelationRule]:
        return [
            r
            for r in self.config.relations
            if r.source in (source, ANY_CATEGORY) and r.target in (target, ANY_CATEGORY)
        ]

    def relate(self, classified: ClassifiedData) -> RelatedData:
        self._check_consistency(classified)
        own_id = classified.document_id
        own_tokens = classified.document.tokens

        edges: dict[tuple[str, str], Relation] = {}
        for other in self._corpus:
            if other.document_id == own_id:
                continue
            similarity = round(jaccard(own_tokens, other.document.tokens), 6)

            if (
                self.config.same_category
                and other.category == classified.category
                and similarity >= self.config.same_category_min_similarity
            ):
                edges[(other.document_id, SAME_CATEGORY)] = Relation(
                    target_id=other.document_id, kind=SAME_CATEGORY, score=similarity
                )
            for rule in self._rules_for(classified.category, other.category):
                if similarity >= rule.min_similarity:
                    edges[(other.document_id, rule.kind)] = Relation(
                        target_id=other.document_id, kind=rule.kind, score=similarity
                    )

        if self.config.reflexive:
            edges[(own_id, REFLEXIVE)] = Relation(
                target_id=own_id, kind=REFLEXIVE, score=1.0, reflexive=True
            )

        relations = tuple(edges[k] for k in sorted(edges))
        logger.debug("taxonomy: %s related to %d document(s)", own_id, len(relations))
        return RelatedData(classified=classified, relations=relations)


__all__ = ["TaxonomyOntology", "jaccard"]
