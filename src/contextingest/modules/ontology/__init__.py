from __future__ import annotations

from .taxonomy import TaxonomyOntology, jaccard

__all__ = ["TaxonomyOntology", "jaccard"]
