"""Builtin CLI commands (imported for their registration side effect)."""

from . import ingest, init, show  # noqa: F401
