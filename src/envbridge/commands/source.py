"""envbridge source/eval commands - print fish statements for a bash script."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from envbridge.cli import EnvBridgeContext
    from envbridge.config import EnvBridgeConfig
    from envbridge.runner import ScriptRunner
    from envbridge.snapshot.models import RunResult


def _resolve_config(ctx: EnvBridgeContext, annotate: bool, show_stderr: bool) -> EnvBridgeConfig:
    """Apply command-line flags on top of the loaded configuration."""
    from envbridge.config import EnvBridgeConfig

    config = (ctx.config or EnvBridgeConfig()).model_copy(deep=True)
    if annotate:
        config.output.annotate = True
    if show_stderr:
        config.interpreter.show_script_stderr = True
    return config


def _run_and_emit(
    ctx: EnvBridgeContext,
    config: EnvBridgeConfig,
    run: Callable[[ScriptRunner], RunResult],
) -> None:
    """Run the pipeline and write fish statements to stdout.

    Fatal errors print nothing on stdout. A failing script still gets its
    statements printed; its status becomes the exit code.
    """
    from envbridge.errors import EnvBridgeError, ScriptExecutionError
    from envbridge.logging import print_error, print_info, print_warning
    from envbridge.pipeline import translate
    from envbridge.runner import ScriptRunner

    try:
        result = run(ScriptRunner(config))
    except EnvBridgeError as e:
        print_error(e.message)
        stderr = e.context.get("stderr")
        if stderr and ctx.verbosity != "quiet":
            print_info(stderr)
        sys.exit(e.exit_code)

    _, serialized = translate(result, config)
    click.echo(serialized.render(), nl=False)

    if not serialized.success:
        print_warning(f"{len(serialized.errors)} change(s) could not be translated and were skipped")

    if not result.succeeded:
        error = ScriptExecutionError(result.exit_status)
        if ctx.verbosity != "quiet":
            print_warning(error.message)
        sys.exit(error.exit_code)


@click.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.argument("script", type=click.Path(path_type=Path))
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option("--annotate", "-a", is_flag=True, help="Comment each statement with the change it makes")
@click.option("--show-stderr", is_flag=True, help="Show the script's stderr instead of discarding it")
@click.pass_obj
def source(
    ctx: EnvBridgeContext,
    script: Path,
    args: tuple[str, ...],
    annotate: bool,
    show_stderr: bool,
) -> None:
    """Source SCRIPT in bash and print the fish commands that replay it.

    Extra ARGS are passed to the script as positional parameters. envbridge
    options go before SCRIPT; everything after it belongs to the script.

    \b
    Examples:
        envbridge source ~/.cargo/env | source
        envbridge source venv/bin/activate | source
        envbridge source -a setup.sh --prefix /opt   # Annotated, with args
    """
    config = _resolve_config(ctx, annotate, show_stderr)
    _run_and_emit(ctx, config, lambda runner: runner.run_script(script, args))


@click.command("eval", context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--annotate", "-a", is_flag=True, help="Comment each statement with the change it makes")
@click.option("--show-stderr", is_flag=True, help="Show the command's stderr instead of discarding it")
@click.pass_obj
def eval_command(
    ctx: EnvBridgeContext,
    command: tuple[str, ...],
    annotate: bool,
    show_stderr: bool,
) -> None:
    """Evaluate a bash COMMAND and print the fish commands that replay it.

    Words of COMMAND are joined with spaces before evaluation. envbridge
    options go before COMMAND.

    \b
    Examples:
        envbridge eval 'export EDITOR=vim' | source
        envbridge eval 'eval "$(ssh-agent -s)"' | source
    """
    config = _resolve_config(ctx, annotate, show_stderr)
    joined = " ".join(command)
    _run_and_emit(ctx, config, lambda runner: runner.run_command(joined))


__all__ = ["eval_command", "source"]
