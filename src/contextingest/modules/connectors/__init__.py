from __future__ import annotations

from .file import EXTENSION_FORMATS, FileConnector, format_for_path

__all__ = ["EXTENSION_FORMATS", "FileConnector", "format_for_path"]
