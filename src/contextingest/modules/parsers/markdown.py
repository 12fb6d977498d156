"""Markdown parser.

Reduces Markdown to plain text sections. ATX headings (`#` .. `######`) open a
new titled section; inline markup is unwrapped to its visible text.
"""

from __future__ import annotations

import re

from contextingest.core.registry import register_parser
from contextingest.core.types import DocumentFormat, RawInput, Section

from .base import Parser

_HEADING = re.compile(r"^\s{0,3}(#{1,6})\s+(.*?)\s*#*\s*$")
_FENCE = re.compile(r"^\s{0,3}(```|~~~)")
_RULE = re.compile(r"^\s{0,3}([-*_])(\s*\1){2,}\s*$")
_LIST_MARKER = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")
_QUOTE = re.compile(r"^\s*(?:>\s?)+")
_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_CODE = re.compile(r"`([^`]*)`")
_EMPHASIS = re.compile(r"(?<!\w)(\*\*|__|\*|_|~~)(?=\S)(.+?)(?<=\S)\1(?!\w)")
_HTML_TAG = re.compile(r"<[^>\n]+>")


def strip_inline(text: str) -> str:
    text = _IMAGE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _CODE.sub(r"\1", text)
    # Nested emphasis (***x***) needs a second pass.
    for _ in range(2):
        text = _EMPHASIS.sub(r"\2", text)
    return _HTML_TAG.sub("", text).strip()


@register_parser("markdown")
class MarkdownParser(Parser):
    name = "markdown"
    format = DocumentFormat.MARKDOWN

    def _parse_bytes(
        self, data: bytes, raw: RawInput
    ) -> tuple[str, list[Section], dict[str, str]]:
        source = self._decode(data, raw)

        sections: list[Section] = []
        metadata: dict[str, str] = {}
        lines_out: list[str] = []
        title: str | None = None
        body: list[str] = []
        in_code = False

        def flush() -> None:
            text = "\n".join(body).strip()
            text = re.sub(r"\n{3,}", "\n\n", text)
            if title or text:
                sections.append(Section(title=title, text=text))

        for line in source.split("\n"):
            if _FENCE.match(line):
                in_code = not in_code
                continue
            if in_code:
                body.append(line)
                lines_out.append(line)
                continue

            heading = _HEADING.match(line)
            if heading:
                flush()
                title = strip_inline(heading.group(2)) or None
                body = []
                if title:
                    metadata.setdefault("title", title)
                    lines_out.append(title)
                continue
            if _RULE.match(line):
                body.append("")
                lines_out.append("")
                continue

            cleaned = strip_inline(_LIST_MARKER.sub("", _QUOTE.sub("", line)))
            body.append(cleaned)
            lines_out.append(cleaned)
        flush()

        text = re.sub(r"\n{3,}", "\n\n", "\n".join(lines_out)).strip()
        return text, sections, metadata


__all__ = ["MarkdownParser", "strip_inline"]
