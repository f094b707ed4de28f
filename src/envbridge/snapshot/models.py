"""Data models for environment snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

# Scalar text, indexed array elements, or associative (key, value) pairs
VariableValue = Union[str, tuple[str, ...], tuple[tuple[str, str], ...]]


class VariableKind(Enum):
    """Shape of a captured variable."""

    SCALAR = "scalar"
    ARRAY = "array"
    ASSOCIATIVE = "associative"


@dataclass(frozen=True)
class Variable:
    """One variable as seen by the interpreter session.

    Text is decoded from the session's bytes with ``surrogateescape``, so
    undecodable bytes survive as lone surrogates and compare exactly.
    """

    name: str
    value: VariableValue
    kind: VariableKind = VariableKind.SCALAR
    exported: bool = False

    @property
    def is_scalar(self) -> bool:
        return self.kind == VariableKind.SCALAR

    def display(self) -> str:
        """Human-readable rendering of the value."""
        if self.kind == VariableKind.SCALAR:
            return str(self.value)
        if self.kind == VariableKind.ARRAY:
            return "(" + " ".join(repr(v) for v in self.value) + ")"
        return "(" + " ".join(f"[{k!r}]={v!r}" for k, v in self.value) + ")"

    def to_dict(self) -> dict[str, Any]:
        value: Any = self.value
        if self.kind == VariableKind.ARRAY:
            value = list(self.value)
        elif self.kind == VariableKind.ASSOCIATIVE:
            value = dict(self.value)  # type: ignore[arg-type]
        return {
            "name": self.name,
            "kind": self.kind.value,
            "exported": self.exported,
            "value": value,
        }


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """Point-in-time record of a session's variables, functions and aliases.

    ``variables`` and ``aliases`` keep capture order; that order drives the
    order of the generated output.
    """

    label: str
    variables: dict[str, Variable] = field(default_factory=dict)
    functions: tuple[str, ...] = ()
    aliases: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RunResult:
    """Both snapshots of one session plus the target script's exit status."""

    before: EnvironmentSnapshot
    after: EnvironmentSnapshot
    exit_status: int = 0

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0
