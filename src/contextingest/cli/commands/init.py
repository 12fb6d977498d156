"""`contextingest init`: create a knowledge base directory."""

from __future__ import annotations

import logging
from pathlib import Path

import click
import yaml

from contextingest.cli.registry import register_command
from contextingest.core.config import DEFAULT_CONFIG_NAME, TaxonomyConfig

logger = logging.getLogger(__name__)

TAXONOMY_NAME = "taxonomy.yaml"
STORE_NAME = "store"

SETTINGS_TEMPLATE = """\
# contextingest knowledge base settings

[storage]
backend = "filesystem"
path = "{store}"

[ontology]
strategy = "taxonomy"
taxonomy_path = "{taxonomy}"
same_category = true
reflexive = false

[pipeline]
mode = "relate"
workers = 4
persist_intermediate = true

[predictor]
strategy = "tfidf"
label_key = "label"
top_k = 3
"""


def write_knowledge_base(directory: Path, *, force: bool = False) -> list[Path]:
    """Write settings, taxonomy and the store directory. Returns created paths."""
    directory.mkdir(parents=True, exist_ok=True)
    settings = directory / DEFAULT_CONFIG_NAME
    taxonomy = directory / TAXONOMY_NAME
    store = directory / STORE_NAME

    created: list[Path] = []
    if force or not settings.exists():
        settings.write_text(
            SETTINGS_TEMPLATE.format(store=STORE_NAME, taxonomy=TAXONOMY_NAME), encoding="utf-8"
        )
        created.append(settings)
    if force or not taxonomy.exists():
        data = TaxonomyConfig().model_dump(exclude_none=True)
        taxonomy.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        created.append(taxonomy)
    if not store.exists():
        store.mkdir()
        created.append(store)
    return created


@register_command("init")
@click.command("init")
@click.argument(
    "directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
)
@click.option("--force", is_flag=True, help="Overwrite existing settings and taxonomy")
def init_cmd(directory: Path, force: bool) -> None:
    """Initialize a knowledge base in DIRECTORY."""
    try:
        created = write_knowledge_base(directory, force=force)
    except OSError as e:
        raise click.ClickException(f"cannot initialize {directory}: {e}") from e

    for path in created:
        logger.debug("init: wrote %s", path)
    if created:
        click.echo(f"Initialized knowledge base in {directory.resolve()}")
    else:
        click.echo(f"Knowledge base already initialized in {directory.resolve()}")
