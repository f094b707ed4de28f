"""Configuration models for envbridge."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from envbridge.paths import get_config_locations

# Variables bash rewrites on its own between two statements. They would show
# up as changes after every script, so they are never captured.
DEFAULT_CAPTURE_IGNORE = [
    "_",
    "BASHOPTS",
    "BASHPID",
    "BASH_ALIASES",
    "BASH_ARGC",
    "BASH_ARGV",
    "BASH_ARGV0",
    "BASH_CMDS",
    "BASH_COMMAND",
    "BASH_EXECUTION_STRING",
    "BASH_LINENO",
    "BASH_REMATCH",
    "BASH_SOURCE",
    "BASH_SUBSHELL",
    "COMP_WORDBREAKS",
    "DIRSTACK",
    "EPOCHREALTIME",
    "EPOCHSECONDS",
    "FUNCNAME",
    "HISTCMD",
    "LINENO",
    "OLDPWD",
    "OPTIND",
    "PIPESTATUS",
    "PPID",
    "RANDOM",
    "SECONDS",
    "SHELLOPTS",
    "SRANDOM",
]

# Names fish owns or refuses to let scripts set
DEFAULT_FISH_READONLY = [
    "SHLVL",
    "history",
    "pipestatus",
    "status",
    "version",
    "FISH_VERSION",
    "fish_pid",
    "hostname",
    "_",
    "fish_private_mode",
    "PS1",
    "XPC_SERVICE_NAME",
]


class InterpreterConfig(BaseModel):
    """Child interpreter configuration."""

    path: str = Field(
        default="bash",
        description="Interpreter used to source the target script",
    )
    args: list[str] = Field(
        default_factory=list,
        description="Extra arguments passed before -c",
    )
    show_script_stderr: bool = Field(
        default=False,
        description="Forward the target script's stderr instead of discarding it",
    )
    timeout_seconds: float | None = Field(
        default=None,
        description="Kill the session after this many seconds (no limit by default)",
    )


class CaptureConfig(BaseModel):
    """Snapshot capture configuration."""

    ignore: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CAPTURE_IGNORE),
        description="Interpreter-dynamic variables never captured",
    )
    ignore_prefixes: list[str] = Field(
        default_factory=list,
        description="Variables whose names start with one of these are never captured",
    )


class OutputConfig(BaseModel):
    """fish output configuration."""

    annotate: bool = Field(
        default=False,
        description="Precede each statement with a comment describing the change",
    )
    removals_first: bool = Field(
        default=True,
        description="Emit removals before additions within each group",
    )
    change_directory: bool = Field(
        default=True,
        description="Translate a changed PWD into cd",
    )
    path_variables: list[str] = Field(
        default_factory=list,
        description="Extra colon-separated search lists (names ending in PATH are implied)",
    )
    readonly: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FISH_READONLY),
        description="Variables fish will not let a script set",
    )
    readonly_prefixes: list[str] = Field(
        default_factory=lambda: ["BASH_FUNC", "%"],
        description="Variable name prefixes never emitted",
    )


class EnvBridgeConfig(BaseSettings):
    """Main envbridge configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ENVBRIDGE_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    version: str = Field(default="1.0", description="Config version")
    interpreter: InterpreterConfig = Field(default_factory=InterpreterConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats values read from the TOML file
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @classmethod
    def load(cls, config_path: Path | None = None) -> EnvBridgeConfig:
        """Load configuration from file and environment.

        Resolution order (highest to lowest priority):
        1. Environment variables (ENVBRIDGE_OUTPUT__ANNOTATE=true, ...)
        2. Provided config file path
        3. .envbridgerc.toml in current directory
        4. .envbridgerc.toml in home directory
        5. Built-in defaults
        """
        config_data: dict[str, Any] = {}

        for loc in get_config_locations(config_path):
            if loc.exists():
                with open(loc, "rb") as f:
                    config_data = tomllib.load(f)
                break

        # [envbridge] holds top-level keys
        config_data.update(config_data.pop("envbridge", {}))
        return cls(**config_data)


def get_default_config_toml() -> str:
    """Generate default .envbridgerc.toml content."""
    ignore = ",\n".join(f'    "{name}"' for name in DEFAULT_CAPTURE_IGNORE)
    readonly = ",\n".join(f'    "{name}"' for name in DEFAULT_FISH_READONLY)
    return f"""# envbridge configuration

[envbridge]
version = "1.0"

[interpreter]
path = "bash"
args = []
show_script_stderr = false  # Script stdout is always discarded
# timeout_seconds = 30

[capture]
# Variables bash changes by itself; never reported
ignore = [
{ignore},
]
ignore_prefixes = []

[output]
annotate = false  # Comment before each statement
removals_first = true  # set -e before set
change_directory = true  # PWD change becomes cd
path_variables = []  # Names ending in PATH are always split on ':'
readonly = [
{readonly},
]
readonly_prefixes = ["BASH_FUNC", "%"]
"""
