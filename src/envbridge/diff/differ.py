"""Environment differ - compares two snapshots of one session."""

from __future__ import annotations

from collections.abc import Iterable

from envbridge.diff.models import (
    AliasChange,
    ChangeSet,
    ChangeStats,
    ChangeType,
    VariableChange,
)
from envbridge.snapshot.models import EnvironmentSnapshot


class EnvironmentDiffer:
    """Compares a baseline snapshot with the snapshot taken after the script."""

    def __init__(self, baseline: EnvironmentSnapshot, result: EnvironmentSnapshot):
        """Initialize differ with two snapshots.

        Args:
            baseline: Captured before the target script was sourced.
            result: Captured once sourcing completed.
        """
        self.baseline = baseline
        self.result = result

    def diff(self) -> ChangeSet:
        """Compute the change set between baseline and result.

        Comparison is exact: value, kind and export flag must all match for
        a variable to count as unchanged.
        """
        stats = ChangeStats()

        variable_changes: list[VariableChange] = []
        for name, variable in self.result.variables.items():
            previous = self.baseline.variables.get(name)
            if previous is None:
                variable_changes.append(VariableChange(name, ChangeType.ADDED, variable))
                stats.variables_added += 1
            elif previous != variable:
                variable_changes.append(
                    VariableChange(name, ChangeType.MODIFIED, variable, previous)
                )
                stats.variables_modified += 1

        variable_removals = [
            name for name in self.baseline.variables if name not in self.result.variables
        ]
        stats.variables_removed = len(variable_removals)

        # Only names are compared; a redefined body is invisible
        baseline_functions = set(self.baseline.functions)
        result_functions = set(self.result.functions)
        function_additions = _unique(n for n in self.result.functions if n not in baseline_functions)
        function_removals = _unique(n for n in self.baseline.functions if n not in result_functions)
        stats.functions_added = len(function_additions)
        stats.functions_removed = len(function_removals)

        alias_changes: list[AliasChange] = []
        for name, expansion in self.result.aliases.items():
            old = self.baseline.aliases.get(name)
            if old is None:
                alias_changes.append(AliasChange(name, ChangeType.ADDED, expansion))
            elif old != expansion:
                alias_changes.append(AliasChange(name, ChangeType.MODIFIED, expansion, old))
        alias_removals = [name for name in self.baseline.aliases if name not in self.result.aliases]
        stats.aliases_changed = len(alias_changes)
        stats.aliases_removed = len(alias_removals)

        return ChangeSet(
            variable_changes=tuple(variable_changes),
            variable_removals=tuple(variable_removals),
            function_additions=function_additions,
            function_removals=function_removals,
            alias_changes=tuple(alias_changes),
            alias_removals=tuple(alias_removals),
            stats=stats,
        )


def _unique(names: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


def diff(baseline: EnvironmentSnapshot, result: EnvironmentSnapshot) -> ChangeSet:
    """Compute the change set between two snapshots."""
    return EnvironmentDiffer(baseline, result).diff()
