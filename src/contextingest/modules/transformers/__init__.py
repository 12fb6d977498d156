from __future__ import annotations

from .base import Transformer
from .normalizer import NormalizingTransformer, normalize_text

__all__ = ["NormalizingTransformer", "Transformer", "normalize_text"]
