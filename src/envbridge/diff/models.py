"""Data models for environment diff results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from envbridge.snapshot.models import Variable


class ChangeType(Enum):
    """Type of change detected."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass(frozen=True)
class VariableChange:
    """A variable added by the script, or one whose value changed."""

    name: str
    change_type: ChangeType
    value: Variable
    previous: Variable | None = None

    @property
    def export_dropped(self) -> bool:
        """True if the script un-exported a variable that stays defined."""
        return self.previous is not None and self.previous.exported and not self.value.exported

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "change_type": self.change_type.value,
            "value": self.value.to_dict(),
            "previous": self.previous.to_dict() if self.previous else None,
        }


@dataclass(frozen=True)
class AliasChange:
    """An alias added by the script, or one whose expansion changed."""

    name: str
    change_type: ChangeType
    expansion: str
    previous: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "change_type": self.change_type.value,
            "expansion": self.expansion,
            "previous": self.previous,
        }


@dataclass
class ChangeStats:
    """Summary statistics for a change set."""

    variables_added: int = 0
    variables_modified: int = 0
    variables_removed: int = 0
    functions_added: int = 0
    functions_removed: int = 0
    aliases_changed: int = 0
    aliases_removed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "variables_added": self.variables_added,
            "variables_modified": self.variables_modified,
            "variables_removed": self.variables_removed,
            "functions_added": self.functions_added,
            "functions_removed": self.functions_removed,
            "aliases_changed": self.aliases_changed,
            "aliases_removed": self.aliases_removed,
        }


@dataclass(frozen=True)
class ChangeSet:
    """Minimal set of edits turning the baseline session into the result.

    Variables, functions and aliases are separate namespaces, as in bash.
    Within one namespace a name appears in at most one collection; the same
    name may show up once per namespace.
    Additions and changes keep result capture order, removals keep
    baseline capture order.
    """

    variable_changes: tuple[VariableChange, ...] = ()
    variable_removals: tuple[str, ...] = ()
    function_additions: tuple[str, ...] = ()
    function_removals: tuple[str, ...] = ()
    alias_changes: tuple[AliasChange, ...] = ()
    alias_removals: tuple[str, ...] = ()
    stats: ChangeStats = field(default_factory=ChangeStats, compare=False)

    @property
    def is_empty(self) -> bool:
        return not (
            self.variable_changes
            or self.variable_removals
            or self.function_additions
            or self.function_removals
            or self.alias_changes
            or self.alias_removals
        )

    def get_change(self, name: str) -> VariableChange | None:
        for change in self.variable_changes:
            if change.name == name:
                return change
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stats": self.stats.to_dict(),
            "variable_changes": [c.to_dict() for c in self.variable_changes],
            "variable_removals": list(self.variable_removals),
            "function_additions": list(self.function_additions),
            "function_removals": list(self.function_removals),
            "alias_changes": [c.to_dict() for c in self.alias_changes],
            "alias_removals": list(self.alias_removals),
        }
