"""Shared fixtures for envbridge tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from envbridge.snapshot.models import EnvironmentSnapshot, Variable, VariableKind


def make_snapshot(
    label: str,
    variables: dict[str, str | Variable] | None = None,
    functions: tuple[str, ...] = (),
    aliases: dict[str, str] | None = None,
) -> EnvironmentSnapshot:
    """Build a snapshot; plain strings become exported scalars."""
    built: dict[str, Variable] = {}
    for name, value in (variables or {}).items():
        if not isinstance(value, Variable):
            value = Variable(name, value, VariableKind.SCALAR, exported=True)
        built[name] = value
    return EnvironmentSnapshot(
        label=label,
        variables=built,
        functions=functions,
        aliases=dict(aliases or {}),
    )


@pytest.fixture
def snapshot() -> Callable[..., EnvironmentSnapshot]:
    """Factory fixture for snapshots."""
    return make_snapshot
