"""Data models for serialized output."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from envbridge.errors import SerializationError


class StatementKind(Enum):
    """Which change set collection a statement came from."""

    SET_VARIABLE = "set_variable"
    UNSET_VARIABLE = "unset_variable"
    CHANGE_DIRECTORY = "change_directory"
    FUNCTION_ADDED = "function_added"
    FUNCTION_REMOVED = "function_removed"
    SET_ALIAS = "set_alias"
    UNSET_ALIAS = "unset_alias"


@dataclass(frozen=True)
class Statement:
    """One destination-shell command for one change set entry.

    ``text`` may start with comment lines when annotation is on.
    """

    name: str
    kind: StatementKind
    text: str


@dataclass
class SerializationResult:
    """Statements produced from a change set, plus the entries that were skipped."""

    statements: list[Statement] = field(default_factory=list)
    errors: list[SerializationError] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if every entry was either emitted or deliberately skipped."""
        return not self.errors

    def add_statement(self, statement: Statement) -> None:
        self.statements.append(statement)

    def add_error(self, error: SerializationError) -> None:
        self.errors.append(error)

    def add_skipped(self, name: str) -> None:
        """Record a change the destination shell manages by itself."""
        self.skipped.append(name)

    def render(self) -> str:
        """Join statements into a script, one per line, with a trailing newline."""
        if not self.statements:
            return ""
        return "\n".join(s.text for s in self.statements) + "\n"
