"""Snapshot capture protocol.

The capture routine is bash source that runs inside the target session.
It forks a subshell, which sees every variable (exported or not), every
function and every alias of the session, and writes them to file
descriptor 3 as length-prefixed records. Temporaries live and die in the
subshell, so nothing leaks back into the session.

Wire format, every field is ``<byte length>:<bytes>``::

    B label                          start of a snapshot
    S name flags value               scalar variable
    A name flags count elem...       indexed array
    H name flags count (key value)...  associative array
    F name                           function
    L name expansion                 alias
    E label                          end of a snapshot
    R status                         exit status of the target script

``flags`` contains ``x`` for exported variables.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from envbridge.errors import CaptureError, ConfigError
from envbridge.snapshot.models import EnvironmentSnapshot, Variable, VariableKind

# Every name the capture routine defines starts with this
SELF_PREFIX = "__envbridge_"

_PATTERN_RE = re.compile(r"^[A-Za-z0-9_%]+$")

_CAPTURE_TEMPLATE = r"""
__envbridge_field() {
    builtin printf '%d:%s' "${#1}" "$1" >&3
}

__envbridge_array() {
    __envbridge_decl=$(builtin declare -p "$1" 2>/dev/null)
    __envbridge_decl=${__envbridge_decl#declare -}
    __envbridge_decl=${__envbridge_decl%% *}
    case $__envbridge_decl in
        *A*)
            builtin eval "__envbridge_keys=(\"\${!$1[@]}\")"
            builtin printf 'H' >&3
            __envbridge_field "$1"
            __envbridge_field "$__envbridge_flags"
            __envbridge_field "${#__envbridge_keys[@]}"
            for __envbridge_key in "${__envbridge_keys[@]}"; do
                builtin eval "__envbridge_value=\${$1[\$__envbridge_key]}"
                __envbridge_field "$__envbridge_key"
                __envbridge_field "$__envbridge_value"
            done
            ;;
        *)
            builtin eval "__envbridge_items=(\"\${$1[@]}\")"
            builtin printf 'A' >&3
            __envbridge_field "$1"
            __envbridge_field "$__envbridge_flags"
            __envbridge_field "${#__envbridge_items[@]}"
            for __envbridge_value in "${__envbridge_items[@]}"; do
                __envbridge_field "$__envbridge_value"
            done
            ;;
    esac
}

__envbridge_capture() (
    builtin set +eu +o pipefail
    builtin set -f
    __envbridge_lc_all_set=${LC_ALL+x}
    __envbridge_lc_all=${LC_ALL-}
    __envbridge_ifs_set=${IFS+x}
    __envbridge_ifs=${IFS-}
    __envbridge_names=$(builtin compgen -v)
    __envbridge_exported=$'\n'$(builtin compgen -e)$'\n'
    __envbridge_arrays=$'\n'$(builtin compgen -A arrayvar)$'\n'
    __envbridge_functions=$(builtin compgen -A function)
    IFS=$' \t\n'
    LC_ALL=C
    builtin printf 'B' >&3
    __envbridge_field "$1"
    for __envbridge_name in $__envbridge_names; do
        case $__envbridge_name in
            @IGNORE@) continue ;;
        esac
        __envbridge_flags=
        case $__envbridge_exported in
            *$'\n'"$__envbridge_name"$'\n'*) __envbridge_flags=x ;;
        esac
        case $__envbridge_arrays in
            *$'\n'"$__envbridge_name"$'\n'*)
                __envbridge_array "$__envbridge_name"
                continue
                ;;
        esac
        case $__envbridge_name in
            LC_ALL)
                [ -n "$__envbridge_lc_all_set" ] || continue
                __envbridge_value=$__envbridge_lc_all
                ;;
            IFS)
                [ -n "$__envbridge_ifs_set" ] || continue
                __envbridge_value=$__envbridge_ifs
                ;;
            *)
                [ -n "${!__envbridge_name+x}" ] || continue
                __envbridge_value=${!__envbridge_name}
                ;;
        esac
        builtin printf 'S' >&3
        __envbridge_field "$__envbridge_name"
        __envbridge_field "$__envbridge_flags"
        __envbridge_field "$__envbridge_value"
    done
    for __envbridge_name in $__envbridge_functions; do
        case $__envbridge_name in
            __envbridge_*) continue ;;
        esac
        builtin printf 'F' >&3
        __envbridge_field "$__envbridge_name"
    done
    for __envbridge_name in "${!BASH_ALIASES[@]}"; do
        builtin printf 'L' >&3
        __envbridge_field "$__envbridge_name"
        __envbridge_field "${BASH_ALIASES[$__envbridge_name]}"
    done
    builtin printf 'E' >&3
    __envbridge_field "$1"
)
"""


def capture_functions(
    ignore: Iterable[str] = (),
    ignore_prefixes: Iterable[str] = (),
) -> str:
    """Render the bash definitions of the capture routine.

    Args:
        ignore: Variable names never captured.
        ignore_prefixes: Variable name prefixes never captured.

    Returns:
        Bash source defining ``__envbridge_capture LABEL``.
    """
    patterns = [f"{SELF_PREFIX}*"]
    for name in ignore:
        if not _PATTERN_RE.match(name):
            raise ConfigError(f"Invalid variable name in capture ignore list: {name!r}")
        patterns.append(name)
    for prefix in ignore_prefixes:
        if not _PATTERN_RE.match(prefix):
            raise ConfigError(f"Invalid prefix in capture ignore list: {prefix!r}")
        patterns.append(f"{prefix}*")
    return _CAPTURE_TEMPLATE.replace("@IGNORE@", "|".join(patterns))


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="surrogateescape")


class CaptureReader:
    """Cursor over a length-prefixed capture stream."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    @property
    def position(self) -> int:
        return self._pos

    def read_tag(self) -> str:
        if self.at_end:
            raise CaptureError("Capture stream ended while expecting a record", offset=self._pos)
        tag = chr(self._data[self._pos])
        self._pos += 1
        return tag

    def read_bytes(self) -> bytes:
        colon = self._data.find(b":", self._pos)
        if colon < 0:
            raise CaptureError("Capture stream ended inside a length prefix", offset=self._pos)
        digits = self._data[self._pos : colon]
        if not digits.isdigit():
            raise CaptureError(
                f"Malformed length prefix {digits[:20]!r} in capture stream",
                offset=self._pos,
            )
        length = int(digits)
        start = colon + 1
        end = start + length
        if end > len(self._data):
            raise CaptureError(
                f"Capture stream truncated: field needs {length} bytes",
                offset=self._pos,
            )
        self._pos = end
        return self._data[start:end]

    def read_field(self) -> str:
        return _decode(self.read_bytes())

    def read_count(self) -> int:
        raw = self.read_bytes()
        if not raw.isdigit():
            raise CaptureError(f"Malformed element count {raw[:20]!r}", offset=self._pos)
        return int(raw)


@dataclass
class _SnapshotBuilder:
    label: str
    variables: dict[str, Variable] = field(default_factory=dict)
    functions: list[str] = field(default_factory=list)
    aliases: dict[str, str] = field(default_factory=dict)

    def build(self) -> EnvironmentSnapshot:
        return EnvironmentSnapshot(
            label=self.label,
            variables=dict(self.variables),
            functions=tuple(self.functions),
            aliases=dict(self.aliases),
        )


@dataclass
class CaptureStream:
    """Decoded capture stream: snapshots in order plus the script status."""

    snapshots: list[EnvironmentSnapshot] = field(default_factory=list)
    exit_status: int | None = None

    def get(self, label: str) -> EnvironmentSnapshot | None:
        for snapshot in self.snapshots:
            if snapshot.label == label:
                return snapshot
        return None


def _read_variable(reader: CaptureReader, tag: str) -> Variable:
    name = reader.read_field()
    exported = "x" in reader.read_field()
    if tag == "S":
        return Variable(name, reader.read_field(), VariableKind.SCALAR, exported)
    count = reader.read_count()
    if tag == "A":
        items = tuple(reader.read_field() for _ in range(count))
        return Variable(name, items, VariableKind.ARRAY, exported)
    pairs = tuple((reader.read_field(), reader.read_field()) for _ in range(count))
    return Variable(name, pairs, VariableKind.ASSOCIATIVE, exported)


def parse_capture(data: bytes) -> CaptureStream:
    """Decode a capture stream produced by the capture routine.

    Raises:
        CaptureError: If the stream is truncated, has an unknown record,
            or a snapshot is not properly closed.
    """
    reader = CaptureReader(data)
    stream = CaptureStream()
    current: _SnapshotBuilder | None = None

    while not reader.at_end:
        tag = reader.read_tag()
        if tag == "B":
            if current is not None:
                raise CaptureError(f"Snapshot {current.label!r} was never closed")
            current = _SnapshotBuilder(label=reader.read_field())
        elif tag == "E":
            label = reader.read_field()
            if current is None or current.label != label:
                raise CaptureError(f"Unexpected end of snapshot {label!r}")
            stream.snapshots.append(current.build())
            current = None
        elif tag == "R":
            raw = reader.read_field()
            try:
                stream.exit_status = int(raw)
            except ValueError:
                raise CaptureError(f"Malformed exit status {raw!r}") from None
        elif tag in ("S", "A", "H", "F", "L"):
            if current is None:
                raise CaptureError(f"Record {tag!r} outside of a snapshot", offset=reader.position)
            if tag == "F":
                current.functions.append(reader.read_field())
            elif tag == "L":
                name = reader.read_field()
                current.aliases[name] = reader.read_field()
            else:
                variable = _read_variable(reader, tag)
                current.variables[variable.name] = variable
        else:
            raise CaptureError(f"Unknown record {tag!r} in capture stream", offset=reader.position)

    if current is not None:
        raise CaptureError(f"Snapshot {current.label!r} was never closed")
    return stream


__all__ = [
    "SELF_PREFIX",
    "CaptureReader",
    "CaptureStream",
    "capture_functions",
    "parse_capture",
]
