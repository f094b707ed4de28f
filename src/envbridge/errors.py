"""Error handling framework for envbridge."""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class ExitCode(IntEnum):
    """envbridge exit codes."""

    SUCCESS = 0
    CONFIG_ERROR = 1  # Bad path or configuration (user fixable)
    PARTIAL_SUCCESS = 2  # Some entries skipped
    FATAL_ERROR = 3  # Capture failed or unexpected crash
    INTERPRETER_ERROR = 4  # Child interpreter could not run


class EnvBridgeError(Exception):
    """Base exception for envbridge errors."""

    exit_code: int = ExitCode.FATAL_ERROR

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON output."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "exit_code": int(self.exit_code),
            **self.context,
        }


class ConfigError(EnvBridgeError):
    """Configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ScriptNotFound(EnvBridgeError):
    """The target script does not resolve to a readable file."""

    exit_code = ExitCode.CONFIG_ERROR

    def __init__(self, path: str) -> None:
        super().__init__(f"Script not found: {path}", path=path)
        self.path = path


class InterpreterSpawnError(EnvBridgeError):
    """The child interpreter session could not be started."""

    exit_code = ExitCode.INTERPRETER_ERROR

    def __init__(self, message: str, interpreter: str, **context: Any) -> None:
        super().__init__(message, interpreter=interpreter, **context)
        self.interpreter = interpreter


class CaptureError(EnvBridgeError):
    """Snapshot capture failed or produced a malformed stream."""

    exit_code = ExitCode.FATAL_ERROR


class ScriptExecutionError(EnvBridgeError):
    """The target script ran but exited with a non-zero status.

    Not fatal: the diff is still computed and emitted, and the status
    becomes the program's exit code.
    """

    def __init__(self, status: int) -> None:
        super().__init__(f"Script exited with status {status}", status=status)
        self.status = status
        self.exit_code = status


class SerializationError(EnvBridgeError):
    """A single change could not be rendered as destination-shell text."""

    exit_code = ExitCode.PARTIAL_SUCCESS

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Cannot serialize {name!r}: {reason}", name=name, reason=reason)
        self.name = name
        self.reason = reason
