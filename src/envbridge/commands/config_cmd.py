"""envbridge config command - print the default configuration file."""

from __future__ import annotations

import click


@click.command("config")
def config_command() -> None:
    """Print a commented default .envbridgerc.toml to stdout."""
    from envbridge.config import get_default_config_toml

    click.echo(get_default_config_toml(), nl=False)


__all__ = ["config_command"]
