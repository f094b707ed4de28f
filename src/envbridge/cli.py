"""envbridge CLI - source a bash script, print the fish equivalent."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal

import click

from envbridge import __version__
from envbridge.commands import register_commands

if TYPE_CHECKING:
    from envbridge.config import EnvBridgeConfig

VerbosityLevel = Literal["quiet", "normal", "verbose"]


class EnvBridgeContext:
    """Shared context for CLI commands."""

    def __init__(self) -> None:
        self.config: EnvBridgeConfig | None = None
        self.verbosity: VerbosityLevel = "normal"
        self.debug: bool = False


pass_context = click.make_pass_decorator(EnvBridgeContext, ensure=True)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-q", "--quiet", is_flag=True, help="Suppress warnings, show errors only")
@click.option("--debug", is_flag=True, help="Show full tracebacks on errors")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.version_option(version=__version__, prog_name="envbridge")
@pass_context
def cli(
    ctx: EnvBridgeContext,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config: Path | None,
) -> None:
    """envbridge - use bash environment scripts from fish.

    Runs a bash script in a throwaway session and prints the fish commands
    that reproduce its effect on the environment. Only fish statements go
    to stdout; diagnostics go to stderr.

    \b
    Examples:
      envbridge source ~/.nvm/nvm.sh | source
      envbridge eval 'export GOPATH=$HOME/go' | source
      envbridge config > .envbridgerc.toml
    """
    import sys

    # Lazy import for faster startup
    from envbridge.config import EnvBridgeConfig
    from envbridge.errors import ExitCode
    from envbridge.logging import print_error, setup_logging

    ctx.debug = debug

    if quiet:
        ctx.verbosity = "quiet"
    elif verbose:
        ctx.verbosity = "verbose"
    else:
        ctx.verbosity = "normal"

    setup_logging(ctx.verbosity)

    try:
        ctx.config = EnvBridgeConfig.load(config)
    except Exception as e:
        print_error(f"Failed to load configuration: {e}")
        sys.exit(ExitCode.CONFIG_ERROR)


register_commands(cli)


def main() -> None:
    """Entry point for the CLI."""
    import sys

    # Check if --debug flag is present anywhere in args
    debug_mode = "--debug" in sys.argv

    try:
        cli()
    except click.ClickException:
        # Let Click handle its own exceptions
        raise
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as e:
        from envbridge.errors import ExitCode
        from envbridge.logging import print_error, print_info

        print_error(f"Internal error: {e}")

        if debug_mode:
            print_info("")
            print_info("Full traceback (--debug mode):")
            import traceback

            traceback.print_exc()
        else:
            print_info("Run with --debug for full traceback.")

        sys.exit(ExitCode.FATAL_ERROR)


if __name__ == "__main__":
    main()
