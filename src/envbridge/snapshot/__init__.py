"""Environment snapshots and the capture protocol that produces them."""

from __future__ import annotations

from envbridge.snapshot.capture import (
    CaptureReader,
    CaptureStream,
    capture_functions,
    parse_capture,
)
from envbridge.snapshot.models import (
    EnvironmentSnapshot,
    RunResult,
    Variable,
    VariableKind,
    VariableValue,
)

__all__ = [
    "CaptureReader",
    "CaptureStream",
    "EnvironmentSnapshot",
    "RunResult",
    "Variable",
    "VariableKind",
    "VariableValue",
    "capture_functions",
    "parse_capture",
]
