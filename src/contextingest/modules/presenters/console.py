"""Console presenter: renders terminal artifacts and failures."""

from __future__ import annotations

import json
from typing import Any, Callable, Iterable, Literal

import click

from contextingest.core.types import PredictedData, RelatedData, TerminalArtifact
from contextingest.pipeline.orchestrator import BatchResult, DocumentFailure

OutputFormat = Literal["text", "json"]


def artifact_summary(artifact: TerminalArtifact) -> dict[str, Any]:
    """JSON-serializable view of a terminal artifact."""
    if isinstance(artifact, RelatedData):
        return {
            "document_id": artifact.document_id,
            "stage": "related",
            "category": artifact.category,
            "relations": [r.model_dump() for r in artifact.relations],
        }
    if isinstance(artifact, PredictedData):
        return {
            "document_id": artifact.document_id,
            "stage": "predicted",
            "prediction": artifact.prediction,
            "confidence": artifact.confidence,
        }
    raise TypeError(f"not a terminal artifact: {type(artifact).__name__}")


def failure_summary(failure: DocumentFailure) -> dict[str, Any]:
    return {
        "document_id": failure.document_id,
        "source_id": failure.source_id,
        "step": failure.step.value,
        "code": failure.code,
        "kind": failure.error.kind.value,
        "message": str(failure.error),
    }


class ConsolePresenter:
    """Writes results to stdout, failures to stderr.

    `json` output is one JSON object per line, for piping into other tools.
    """

    def __init__(
        self,
        *,
        output: OutputFormat = "text",
        echo: Callable[..., None] = click.echo,
    ) -> None:
        self._output = output
        self._echo = echo

    def display(self, artifacts: Iterable[TerminalArtifact]) -> None:
        for artifact in artifacts:
            summary = artifact_summary(artifact)
            if self._output == "json":
                self._echo(json.dumps(summary, ensure_ascii=False, sort_keys=True))
            else:
                self._echo(self._format_text(summary))

    def display_failures(self, failures: Iterable[DocumentFailure]) -> None:
        for failure in failures:
            summary = failure_summary(failure)
            if self._output == "json":
                self._echo(json.dumps(summary, ensure_ascii=False, sort_keys=True), err=True)
            else:
                self._echo(
                    f"FAILED {summary['document_id']} at {summary['step']}: "
                    f"[{summary['code']}:{summary['kind']}] {summary['message']}",
                    err=True,
                )

    def display_batch(self, result: BatchResult[TerminalArtifact]) -> None:
        self.display(result.successes)
        self.display_failures(result.failures)
        for doc_id in result.cancelled:
            self._echo(f"CANCELLED {doc_id}", err=True)

    @staticmethod
    def _format_text(summary: dict[str, Any]) -> str:
        if summary["stage"] == "related":
            head = f"{summary['document_id']}  [{summary['category']}]"
            edges = [
                f"  -> {r['target_id']} ({r['kind']}, {r['score']:.2f})"
                for r in summary["relations"]
            ]
            return "\n".join([head, *edges])
        prediction = summary["prediction"]
        return (
            f"{summary['document_id']}  => {prediction.get('label')} "
            f"(confidence {summary['confidence']:.2f})"
        )


__all__ = ["ConsolePresenter", "artifact_summary", "failure_summary"]
