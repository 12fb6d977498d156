"""JSON document parser.

Accepted shapes:
- object: text comes from the first configured text field present
  (`text`, `content`, `body` by default); remaining scalar fields become
  metadata.
- array: one section per string element, or per object element's text field.
"""

from __future__ import annotations

import json
from typing import Any

from contextingest.core.exceptions import ParseError, ParseErrorKind
from contextingest.core.registry import register_parser
from contextingest.core.types import DocumentFormat, RawInput, Section

from .base import Parser, split_paragraphs


def _scalar(v: Any) -> str | None:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (str, int, float)):
        return str(v)
    return None


@register_parser("json")
class JsonParser(Parser):
    name = "json"
    format = DocumentFormat.JSON

    def _parse_bytes(
        self, data: bytes, raw: RawInput
    ) -> tuple[str, list[Section], dict[str, str]]:
        source = self._decode(data, raw)
        try:
            doc = json.loads(source)
        except json.JSONDecodeError as e:
            raise ParseError(
                ParseErrorKind.MALFORMED, f"{raw.source_id}: invalid JSON ({e.msg})"
            ) from e
        except RecursionError as e:
            raise ParseError(
                ParseErrorKind.MALFORMED, f"{raw.source_id}: JSON nested too deeply"
            ) from e

        if isinstance(doc, dict):
            return self._from_object(doc)
        if isinstance(doc, list):
            return self._from_array(doc, raw)
        raise ParseError(
            ParseErrorKind.MALFORMED,
            f"{raw.source_id}: JSON root must be an object or array, got {type(doc).__name__}",
        )

    def _text_of(self, obj: dict[str, Any]) -> tuple[str | None, str]:
        for field in self.config.json_text_fields:
            value = obj.get(field)
            if isinstance(value, str) and value.strip():
                return field, value.strip()
        return None, ""

    def _from_object(self, obj: dict[str, Any]) -> tuple[str, list[Section], dict[str, str]]:
        text_field, text = self._text_of(obj)
        title_value = obj.get(self.config.json_title_field)
        title = title_value.strip() if isinstance(title_value, str) else None

        metadata: dict[str, str] = {}
        for k, v in obj.items():
            if k == text_field:
                continue
            s = _scalar(v)
            if s is not None:
                metadata[str(k)] = s

        sections = [Section(title=title, text=p) for p in split_paragraphs(text)]
        return text, sections, metadata

    def _from_array(
        self, items: list[Any], raw: RawInput
    ) -> tuple[str, list[Section], dict[str, str]]:
        sections: list[Section] = []
        for item in items:
            if isinstance(item, str):
                if item.strip():
                    sections.append(Section(text=item.strip()))
            elif isinstance(item, dict):
                _field, text = self._text_of(item)
                if text:
                    title_value = item.get(self.config.json_title_field)
                    title = title_value.strip() if isinstance(title_value, str) else None
                    sections.append(Section(title=title, text=text))
            else:
                raise ParseError(
                    ParseErrorKind.MALFORMED,
                    f"{raw.source_id}: unsupported array element {type(item).__name__}",
                )
        text = "\n\n".join(s.text for s in sections)
        return text, sections, {"items": str(len(sections))}


__all__ = ["JsonParser"]
