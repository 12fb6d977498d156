"""`contextingest ingest`: run documents through the pipeline.

Exit codes: 0 when every document succeeds, 1 when any document fails or is
cancelled, 2 on a fatal storage or configuration error.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from contextingest.cli.registry import register_command
from contextingest.core.config import get_core_config
from contextingest.core.exceptions import ConfigurationError, MLError, StorageError
from contextingest.core.types import DocumentFormat, RawInput
from contextingest.modules.connectors import FileConnector
from contextingest.modules.presenters import ConsolePresenter
from contextingest.pipeline import build_orchestrator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_FATAL = 2


def collect_inputs(paths: tuple[Path, ...], fmt: DocumentFormat | None) -> list[RawInput]:
    raws: list[RawInput] = []
    for path in paths:
        raws.extend(FileConnector(root=path, format=fmt).connect())
    return raws


@register_command("ingest")
@click.command("ingest")
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice([f.value for f in DocumentFormat]),
    help="Declared format for every input (default: from file extension)",
)
@click.option(
    "--mode",
    type=click.Choice(["relate", "predict"]),
    help="Classify and relate, or predict with a trained model",
)
@click.option(
    "--train",
    "train_path",
    type=click.Path(exists=True, path_type=Path),
    help="Training documents for predict mode",
)
@click.option("--workers", type=click.IntRange(min=1), help="Documents processed concurrently")
@click.option(
    "--output",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
)
@click.pass_context
def ingest_cmd(
    ctx: click.Context,
    paths: tuple[Path, ...],
    fmt: str | None,
    mode: str | None,
    train_path: Path | None,
    workers: int | None,
    output: str,
) -> None:
    """Ingest documents found under PATHS."""
    cfg = get_core_config().model_copy(deep=True)
    if mode is None and train_path is not None:
        mode = "predict"
    if mode is not None:
        cfg.pipeline.mode = mode  # type: ignore[assignment]
    if workers is not None:
        cfg.pipeline.workers = workers
    if cfg.pipeline.mode == "predict" and train_path is None:
        raise click.UsageError("predict mode needs training documents (--train PATH)")

    declared = DocumentFormat(fmt) if fmt else None
    raws = collect_inputs(paths, declared)
    if not raws:
        click.echo("No documents found.", err=True)
        ctx.exit(EXIT_OK)

    presenter = ConsolePresenter(output=output)  # type: ignore[arg-type]
    try:
        orchestrator = build_orchestrator(cfg)
        if train_path is not None:
            trained = orchestrator.train_from(collect_inputs((train_path,), None))
            presenter.display_failures(trained.failures)
            logger.info("trained on %d documents", len(trained.successes))
        result = orchestrator.run_batch(raws)
    except (ConfigurationError, MLError, StorageError) as e:
        click.echo(f"Error: [{e.code}] {e}", err=True)
        ctx.exit(EXIT_FATAL)

    presenter.display_batch(result)
    ctx.exit(EXIT_OK if result.ok else EXIT_FAILURES)
