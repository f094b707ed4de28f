"""envbridge subcommands."""

from __future__ import annotations

import click


def register_commands(cli: click.Group) -> None:
    """Register source, eval and config with the main CLI."""
    from envbridge.commands.config_cmd import config_command
    from envbridge.commands.source import eval_command, source

    cli.add_command(source)
    cli.add_command(eval_command)
    cli.add_command(config_command)


__all__ = ["register_commands"]
