"""Storage providers.

Active providers:
- InMemoryStorage: process-lifetime dict (default)
- FileStorage: one file per key under a root directory
"""

from __future__ import annotations

from .filesystem import FileStorage
from .memory import InMemoryStorage

__all__ = [
    "FileStorage",
    "InMemoryStorage",
]
