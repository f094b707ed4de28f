"""envbridge diff - minimal change set between two environment snapshots.

Compares the baseline and result snapshots of one session to find:
- Added/modified/removed variables
- Added/removed function names (bodies are never compared)
- Added/modified/removed aliases
"""

from __future__ import annotations

from envbridge.diff.differ import EnvironmentDiffer, diff
from envbridge.diff.models import (
    AliasChange,
    ChangeSet,
    ChangeStats,
    ChangeType,
    VariableChange,
)

__all__ = [
    "AliasChange",
    "ChangeSet",
    "ChangeStats",
    "ChangeType",
    "EnvironmentDiffer",
    "VariableChange",
    "diff",
]
