"""Format parsers.

The PDF parser is not imported here; it is resolved lazily through
`parser_registry` so pypdf is only loaded when PDF input is seen.
"""

from __future__ import annotations

from .base import Parser, split_paragraphs
from .json import JsonParser
from .markdown import MarkdownParser
from .text import TextParser

__all__ = [
    "JsonParser",
    "MarkdownParser",
    "Parser",
    "TextParser",
    "split_paragraphs",
]
