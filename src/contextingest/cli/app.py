"""Main Click application root."""

from __future__ import annotations

import logging
from pathlib import Path

import click
import yaml

# Trigger builtin command discovery (side-effect imports that call register_command).
from contextingest.cli import commands as _commands  # noqa: F401
from contextingest.cli.registry import iter_commands
from contextingest.core.config import Config, get_core_config, set_core_config
from contextingest.core.exceptions import ConfigurationError
from contextingest.core.plugins import scan

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--quiet", "-q", is_flag=True, help="Only log warnings and errors")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to settings.toml",
)
@click.pass_context
def cli(ctx, verbose, quiet, config_path):
    """Contextingest CLI - parse, classify, relate and predict over documents."""
    ctx.ensure_object(dict)
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(message)s")

    # Scikit-learn and pypdf are chatty at DEBUG.
    logging.getLogger("pypdf").setLevel(logging.WARNING)
    logging.getLogger("sklearn").setLevel(logging.WARNING)

    # Load layered config for the CLI session.
    # - Defaults < TOML < env
    # - `.env` is optional and auto-detected in the working directory.
    try:
        set_core_config(Config.load(config_path))
    except ConfigurationError as e:
        click.echo(f"Error: [{e.code}] {e}", err=True)
        ctx.exit(2)

    cfg = get_core_config()
    if not verbose and not quiet:
        level_name = "DEBUG" if cfg.debug else cfg.log_level.upper()
        try:
            logging.getLogger().setLevel(level_name)
        except ValueError:
            logger.warning("Unknown log level %r, keeping INFO", cfg.log_level)

    # Plugin scanning - load user extensions
    for plugin_path in cfg.plugins.paths or []:
        try:
            scan(Path(plugin_path))
        except (OSError, ImportError, ValueError, yaml.YAMLError) as e:
            logger.warning("Failed to scan plugin directory %s: %s", plugin_path, e)


for name, cmd in iter_commands():
    cli.add_command(cmd, name=name)
