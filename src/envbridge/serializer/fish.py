"""fish serializer - renders a change set as fish statements.

Values are single-quoted. Inside fish single quotes only ``\\\\`` and
``\\'`` are escapes; newlines, ``$``, ``"`` and control characters are
literal, so evaluating the statement rebuilds the exact original value.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from functools import partial

from envbridge.config import EnvBridgeConfig, OutputConfig
from envbridge.diff.models import AliasChange, ChangeSet, ChangeType, VariableChange
from envbridge.errors import SerializationError
from envbridge.logging import get_logger
from envbridge.serializer.models import SerializationResult, Statement, StatementKind
from envbridge.snapshot.models import VariableKind

logger = get_logger("serializer")

_VARIABLE_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
# fish function names: no whitespace or slash, not an option
_FUNCTION_NAME_RE = re.compile(r"^[^\s/-][^\s/]*$")

_Entry = tuple[str, Callable[[], "Statement | None"]]


def quote(value: str) -> str:
    """Quote a value for fish.

    Raises:
        UnicodeEncodeError: If the value holds bytes that are not valid UTF-8.
    """
    value.encode("utf-8")
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _comment(text: str) -> str:
    # Every line needs its own marker; undecodable bytes are shown escaped
    safe = text.encode("utf-8", errors="backslashreplace").decode("utf-8")
    lines = safe.split("\n")
    return "\n".join(f"# {line}".rstrip() for line in lines)


class FishSerializer:
    """Turns a ChangeSet into ordered fish statements."""

    def __init__(self, config: EnvBridgeConfig | OutputConfig | None = None):
        """Initialize serializer.

        Args:
            config: Full configuration or just its ``output`` section.
        """
        if isinstance(config, EnvBridgeConfig):
            config = config.output
        self.config = config or OutputConfig()
        self._readonly = set(self.config.readonly)
        self._path_variables = set(self.config.path_variables)

    def serialize(self, change_set: ChangeSet) -> SerializationResult:
        """Serialize every entry of the change set.

        Order: variable removals, variable additions/modifications, function
        removals, function additions, alias removals, alias additions. With
        ``removals_first`` off, additions come first inside each group.
        Entries that cannot be rendered are recorded and skipped.
        """
        result = SerializationResult()

        groups: list[tuple[list[_Entry], list[_Entry]]] = [
            (
                [(n, partial(self._unset_variable, n)) for n in change_set.variable_removals],
                [(c.name, partial(self._set_variable, c)) for c in change_set.variable_changes],
            ),
            (
                [(n, partial(self._function_notice, n, False)) for n in change_set.function_removals],
                [(n, partial(self._function_notice, n, True)) for n in change_set.function_additions],
            ),
            (
                [(n, partial(self._unset_alias, n)) for n in change_set.alias_removals],
                [(c.name, partial(self._set_alias, c)) for c in change_set.alias_changes],
            ),
        ]

        for removals, additions in groups:
            ordered = removals + additions if self.config.removals_first else additions + removals
            for name, render in ordered:
                self._emit(name, render, result)

        return result

    def _emit(self, name: str, render: Callable[[], Statement | None], result: SerializationResult) -> None:
        try:
            statement = render()
        except SerializationError as e:
            logger.warning(e.message)
            result.add_error(e)
            return
        if statement is None:
            logger.debug(f"Skipping {name}: managed by fish")
            result.add_skipped(name)
            return
        result.add_statement(statement)

    def is_readonly(self, name: str) -> bool:
        """True for variables fish owns and a script must not set."""
        return name in self._readonly or any(
            name.startswith(prefix) for prefix in self.config.readonly_prefixes
        )

    def is_path_variable(self, name: str) -> bool:
        """True for colon-separated search lists, stored as fish path lists."""
        return name.endswith("PATH") or name in self._path_variables

    def _check_name(self, name: str) -> None:
        if not _VARIABLE_NAME_RE.match(name):
            raise SerializationError(name, "not a valid fish variable name")

    def _quote_all(self, name: str, values: Iterable[str]) -> list[str]:
        try:
            return [quote(v) for v in values]
        except UnicodeEncodeError:
            raise SerializationError(name, "value is not valid UTF-8") from None

    def _annotate(self, text: str, note: str) -> str:
        if not self.config.annotate:
            return text
        return f"{_comment(note)}\n{text}"

    def _set_variable(self, change: VariableChange) -> Statement | None:
        name = change.name
        variable = change.value

        if name == "PWD":
            if not self.config.change_directory or not variable.is_scalar:
                return None
            text = f"cd {self._quote_all(name, [str(variable.value)])[0]}"
            return Statement(name, StatementKind.CHANGE_DIRECTORY, self._annotate(text, _describe(change)))
        if self.is_readonly(name):
            return None
        self._check_name(name)

        args = ["set"]
        if variable.exported:
            args.append("-gx")
        elif change.export_dropped:
            args.append("-gu")
        else:
            args.append("-g")

        if variable.kind == VariableKind.ASSOCIATIVE:
            raise SerializationError(name, "associative arrays have no fish equivalent")
        if variable.kind == VariableKind.ARRAY:
            values = list(variable.value)
        elif self.is_path_variable(name):
            args.append("--path")
            values = str(variable.value).split(":")
        else:
            values = [str(variable.value)]

        args.append(name)
        args.extend(self._quote_all(name, values))  # type: ignore[arg-type]
        text = " ".join(args)
        return Statement(name, StatementKind.SET_VARIABLE, self._annotate(text, _describe(change)))

    def _unset_variable(self, name: str) -> Statement | None:
        if name == "PWD" or self.is_readonly(name):
            return None
        self._check_name(name)
        return Statement(name, StatementKind.UNSET_VARIABLE, self._annotate(f"set -e {name}", f"Removing {name}"))

    def _function_notice(self, name: str, added: bool) -> Statement:
        if "\n" in name or "\r" in name:
            raise SerializationError(name, "function name spans several lines")
        verb = "added" if added else "removed"
        kind = StatementKind.FUNCTION_ADDED if added else StatementKind.FUNCTION_REMOVED
        # Bodies are never translated, the notice only names the function
        return Statement(name, kind, _comment(f"function {verb}: {name} (not translated)"))

    def _check_alias_name(self, name: str) -> None:
        if not _FUNCTION_NAME_RE.match(name):
            raise SerializationError(name, "not a valid fish function name")

    def _set_alias(self, change: AliasChange) -> Statement:
        self._check_alias_name(change.name)
        expansion = self._quote_all(change.name, [change.expansion])[0]
        if change.change_type == ChangeType.ADDED:
            note = f"Adding alias {change.name}"
        else:
            note = f"Updating alias {change.name}: '{change.previous}' -> '{change.expansion}'"
        text = f"alias {change.name} {expansion}"
        return Statement(change.name, StatementKind.SET_ALIAS, self._annotate(text, note))

    def _unset_alias(self, name: str) -> Statement:
        self._check_alias_name(name)
        text = f"functions --erase {name}"
        return Statement(name, StatementKind.UNSET_ALIAS, self._annotate(text, f"Removing alias {name}"))


def _describe(change: VariableChange) -> str:
    if change.change_type == ChangeType.ADDED or change.previous is None:
        return f"Adding {change.name}"
    return f"Updating {change.name}: '{change.previous.display()}' -> '{change.value.display()}'"


def serialize(change_set: ChangeSet, config: EnvBridgeConfig | OutputConfig | None = None) -> SerializationResult:
    """Serialize a change set to fish statements."""
    return FishSerializer(config).serialize(change_set)


__all__ = ["FishSerializer", "quote", "serialize"]
