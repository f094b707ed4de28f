"""Script runner - sources a script in a disposable bash session.

One session, two capture points: the baseline is captured, the target is
sourced, and the result is captured, all inside the same ``bash -c``
process. Ambient state (inherited environment, shell builtins) is identical
at both points, so only the script's own effect shows up in the diff.

Records are appended to a temporary capture file opened as fd 3. The result
capture runs from an EXIT trap as well as after the target, so a script that
calls ``exit`` or trips ``set -e`` still gets its final state recorded.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from collections.abc import Sequence
from pathlib import Path

from envbridge.config import EnvBridgeConfig
from envbridge.errors import CaptureError, InterpreterSpawnError, ScriptNotFound
from envbridge.logging import get_logger
from envbridge.snapshot.capture import capture_functions, parse_capture
from envbridge.snapshot.models import RunResult

logger = get_logger("runner")

BEFORE = "before"
AFTER = "after"

_SOURCE_TARGET = (
    "__envbridge_target=$1\nshift",
    'builtin source "$__envbridge_target" "$@"',
)

_EVAL_TARGET = (
    "__envbridge_command=$1\nshift",
    'builtin eval "$__envbridge_command"',
)

# Runs once, either after the target returns or when the session exits.
# fd 3 is reopened since exit may happen while the target has it closed.
_FINISH = f"""
__envbridge_finish() {{
    __envbridge_status=$?
    builtin set +e
    builtin trap - EXIT
    exec 3>>"$__envbridge_out"
    __envbridge_capture {AFTER}
    builtin printf 'R' >&3
    __envbridge_field "$__envbridge_status"
}}
"""


def _protocol(
    target: tuple[str, str],
    ignore: Sequence[str],
    ignore_prefixes: Sequence[str],
    show_stderr: bool,
) -> str:
    """Build the program run by the child session.

    ``$1`` is the capture file. ``target`` is (setup, command); only the
    command gets the redirections.
    """
    setup, command = target
    stderr_redirect = "" if show_stderr else " 2>/dev/null"
    return "\n".join(
        [
            "__envbridge_out=$1",
            "shift",
            # Records go to fd 3; the script never sees it
            'exec 3>>"$__envbridge_out" >/dev/null </dev/null',
            capture_functions(ignore, ignore_prefixes),
            _FINISH,
            setup,
            f"__envbridge_capture {BEFORE}",
            "builtin trap __envbridge_finish EXIT",
            f"{command} 3>&-{stderr_redirect}",
            "__envbridge_finish",
            "",
        ]
    )


class ScriptRunner:
    """Runs a target in a fresh interpreter session and captures both snapshots."""

    def __init__(self, config: EnvBridgeConfig | None = None):
        """Initialize runner.

        Args:
            config: envbridge configuration; defaults are used when omitted.
        """
        self.config = config or EnvBridgeConfig()

    def run_script(self, path: Path | str, args: Sequence[str] = ()) -> RunResult:
        """Source a script file and capture the environment around it.

        Args:
            path: Script to source.
            args: Positional parameters visible to the script as ``$1``...

        Returns:
            RunResult with the baseline, the result and the script's status.

        Raises:
            ScriptNotFound: If the path is not a readable file.
            InterpreterSpawnError: If the interpreter cannot be started.
            CaptureError: If either snapshot is missing or malformed.
        """
        script = Path(path).expanduser()
        if not script.is_file() or not os.access(script, os.R_OK):
            raise ScriptNotFound(str(path))

        # Absolute path so source never searches PATH
        return self._run(_SOURCE_TARGET, [str(script.resolve()), *args])

    def run_command(self, command: str) -> RunResult:
        """Evaluate an inline bash command and capture the environment around it."""
        return self._run(_EVAL_TARGET, [command])

    def _run(self, target: tuple[str, str], params: list[str]) -> RunResult:
        interpreter = self.config.interpreter
        show_stderr = interpreter.show_script_stderr
        program = _protocol(
            target,
            self.config.capture.ignore,
            self.config.capture.ignore_prefixes,
            show_stderr,
        )
        logger.debug(f"Starting {interpreter.path} session for {params[0]!r}")

        with tempfile.TemporaryDirectory(prefix="envbridge-") as temp_dir:
            capture_file = Path(temp_dir) / "capture"
            argv = [
                interpreter.path,
                *interpreter.args,
                "-c",
                program,
                "envbridge",
                str(capture_file),
                *params,
            ]
            completed = self._spawn(argv, show_stderr)
            data = capture_file.read_bytes() if capture_file.exists() else b""

        stderr = (completed.stderr or b"").decode("utf-8", errors="replace").strip()
        if stderr:
            logger.debug(f"Session stderr:\n{stderr}")

        try:
            stream = parse_capture(data)
        except CaptureError as e:
            e.context["stderr"] = stderr
            raise
        before = stream.get(BEFORE)
        if before is None:
            raise CaptureError(
                "Baseline capture failed; is the interpreter bash?",
                returncode=completed.returncode,
                stderr=stderr,
            )
        after = stream.get(AFTER)
        if after is None:
            raise CaptureError(
                "Session ended before the result capture (was it killed or replaced by exec?)",
                returncode=completed.returncode,
                stderr=stderr,
            )

        exit_status = stream.exit_status
        if exit_status is None:
            exit_status = completed.returncode
        logger.debug(
            f"Captured {len(before.variables)} -> {len(after.variables)} variables, "
            f"script status {exit_status}"
        )
        return RunResult(before=before, after=after, exit_status=exit_status)

    def _spawn(self, argv: list[str], show_stderr: bool) -> subprocess.CompletedProcess[bytes]:
        interpreter = self.config.interpreter
        try:
            return subprocess.run(
                argv,
                stdout=subprocess.DEVNULL,
                # Shown script stderr goes straight to ours
                stderr=None if show_stderr else subprocess.PIPE,
                timeout=interpreter.timeout_seconds,
                check=False,
            )
        except FileNotFoundError:
            raise InterpreterSpawnError(
                f"Interpreter not found: {interpreter.path}",
                interpreter=interpreter.path,
            ) from None
        except subprocess.TimeoutExpired:
            raise InterpreterSpawnError(
                f"Session timed out after {interpreter.timeout_seconds}s",
                interpreter=interpreter.path,
            ) from None
        except OSError as e:
            raise InterpreterSpawnError(
                f"Could not start {interpreter.path}: {e}",
                interpreter=interpreter.path,
            ) from e


__all__ = ["AFTER", "BEFORE", "ScriptRunner"]
