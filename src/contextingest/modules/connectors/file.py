"""File connector (source)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from contextingest.core.types import DocumentFormat, RawInput

logger = logging.getLogger(__name__)

EXTENSION_FORMATS: dict[str, DocumentFormat] = {
    ".txt": DocumentFormat.TEXT,
    ".text": DocumentFormat.TEXT,
    ".md": DocumentFormat.MARKDOWN,
    ".markdown": DocumentFormat.MARKDOWN,
    ".json": DocumentFormat.JSON,
    ".pdf": DocumentFormat.PDF,
}


def format_for_path(path: Path) -> DocumentFormat | None:
    return EXTENSION_FORMATS.get(path.suffix.lower())


class FileConnector:
    """Yields a RawInput per file under `root`, recursively.

    The format tag comes from `format` when given, otherwise from the file
    extension; files with an unknown extension are skipped. Bytes are not read
    here: `RawInput.read()` loads them when the parser runs.
    """

    def __init__(
        self,
        *,
        root: str | Path = ".",
        format: DocumentFormat | None = None,
    ) -> None:
        self._root = Path(root)
        self._format = format

    def _candidates(self) -> list[Path]:
        if self._root.is_file():
            return [self._root]
        return sorted(p for p in self._root.rglob("*") if p.is_file())

    def connect(self) -> Iterator[RawInput]:
        for p in self._candidates():
            fmt = self._format or format_for_path(p)
            if fmt is None:
                logger.debug("file: skipping %s (unknown extension)", p)
                continue
            yield RawInput(source_id=str(p), format=fmt, path=p)


__all__ = ["EXTENSION_FORMATS", "FileConnector", "format_for_path"]
