"""Centralized path definitions for envbridge files.

envbridge keeps no state between runs. The only file it reads on its own
is the optional user configuration:

    ./.envbridgerc.toml     # project-local, checked first
    ~/.envbridgerc.toml     # per-user fallback
"""

from __future__ import annotations

from pathlib import Path

# Config file name, looked up in the working directory then the home directory
CONFIG_FILE = ".envbridgerc.toml"


def get_config_locations(config_path: Path | None = None) -> list[Path]:
    """Get candidate configuration files in resolution order.

    Args:
        config_path: Explicit config file, checked before the defaults

    Returns:
        Paths to try, highest priority first
    """
    locations: list[Path] = []
    if config_path:
        locations.append(config_path)
    locations.extend(
        [
            Path.cwd() / CONFIG_FILE,
            Path.home() / CONFIG_FILE,
        ]
    )
    return locations
