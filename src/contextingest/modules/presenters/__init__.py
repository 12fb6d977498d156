from __future__ import annotations

from .console import ConsolePresenter, artifact_summary, failure_summary

__all__ = ["ConsolePresenter", "artifact_summary", "failure_summary"]
