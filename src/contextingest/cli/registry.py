"""CLI command registry.

Commands register themselves on import; `cli.app` attaches every registered
command to the root group.
"""

from __future__ import annotations

from typing import Callable, Iterator

import click

_COMMANDS: dict[str, click.Command] = {}


def register_command(name: str) -> Callable[[click.Command], click.Command]:
    def decorator(cmd: click.Command) -> click.Command:
        _COMMANDS[name] = cmd
        return cmd

    return decorator


def iter_commands() -> Iterator[tuple[str, click.Command]]:
    yield from sorted(_COMMANDS.items())


__all__ = ["iter_commands", "register_command"]
