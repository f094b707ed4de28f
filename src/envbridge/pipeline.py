"""The capture-diff-translate pipeline, end to end."""

from __future__ import annotations

from envbridge.config import EnvBridgeConfig
from envbridge.diff import ChangeSet, diff
from envbridge.logging import get_logger
from envbridge.serializer import SerializationResult, serialize
from envbridge.snapshot.models import RunResult

logger = get_logger("pipeline")


def translate(run: RunResult, config: EnvBridgeConfig | None = None) -> tuple[ChangeSet, SerializationResult]:
    """Diff both snapshots of a run and render the changes as fish.

    Args:
        run: Snapshots captured around the target script.
        config: envbridge configuration; defaults are used when omitted.

    Returns:
        The change set and its serialized statements.
    """
    config = config or EnvBridgeConfig()
    change_set = diff(run.before, run.after)
    stats = change_set.stats
    logger.debug(
        f"Variables +{stats.variables_added} ~{stats.variables_modified} "
        f"-{stats.variables_removed}, functions +{stats.functions_added} "
        f"-{stats.functions_removed}, aliases ~{stats.aliases_changed} -{stats.aliases_removed}"
    )
    return change_set, serialize(change_set, config)


__all__ = ["translate"]
