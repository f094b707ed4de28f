"""Tests for the capture protocol: bash routine rendering and stream decoding."""

from __future__ import annotations

import pytest

from envbridge.errors import CaptureError, ConfigError
from envbridge.snapshot.capture import CaptureReader, capture_functions, parse_capture
from envbridge.snapshot.models import VariableKind


def field(value: str | bytes) -> bytes:
    """Frame one field the way the bash routine does."""
    raw = value.encode("utf-8") if isinstance(value, str) else value
    return str(len(raw)).encode() + b":" + raw


def record(tag: str, *fields: str | bytes) -> bytes:
    return tag.encode() + b"".join(field(f) for f in fields)


def two_snapshots(before: bytes = b"", after: bytes = b"", status: str = "0") -> bytes:
    return (
        record("B", "before")
        + before
        + record("E", "before")
        + record("B", "after")
        + after
        + record("E", "after")
        + record("R", status)
    )


class TestCaptureFunctions:
    """Test rendering of the bash capture routine."""

    def test_defines_capture_routine(self):
        """Test the routine and its helpers are defined."""
        source = capture_functions()
        assert "__envbridge_capture()" in source
        assert "__envbridge_field()" in source
        assert "@IGNORE@" not in source

    def test_self_prefix_always_ignored(self):
        """Test the routine's own temporaries are excluded."""
        source = capture_functions()
        assert "__envbridge_*) continue" in source

    def test_ignore_list_rendered(self):
        """Test ignore names and prefixes become case patterns."""
        source = capture_functions(["RANDOM", "LINENO"], ["MY_"])
        assert "__envbridge_*|RANDOM|LINENO|MY_*) continue" in source

    @pytest.mark.parametrize("bad", ["A B", "X)", "$(rm)", "a*", ""])
    def test_rejects_unsafe_ignore_names(self, bad: str):
        """Test names that could break the case pattern are refused."""
        with pytest.raises(ConfigError):
            capture_functions([bad])

    def test_rejects_unsafe_prefix(self):
        """Test prefixes are validated too."""
        with pytest.raises(ConfigError):
            capture_functions([], ["BAD|"])


class TestCaptureReader:
    """Test the length-prefixed field reader."""

    def test_reads_fields_in_sequence(self):
        """Test consecutive fields are split by their length prefix."""
        reader = CaptureReader(field("abc") + field("") + field("x:y"))
        assert reader.read_field() == "abc"
        assert reader.read_field() == ""
        assert reader.read_field() == "x:y"
        assert reader.at_end

    def test_length_counts_bytes(self):
        """Test multi-byte characters are framed by byte length."""
        reader = CaptureReader(field("héllo ✓") + field("next"))
        assert reader.read_field() == "héllo ✓"
        assert reader.read_field() == "next"

    def test_invalid_utf8_survives(self):
        """Test undecodable bytes round-trip through surrogateescape."""
        reader = CaptureReader(field(b"\xff\xfe"))
        value = reader.read_field()
        assert value.encode("utf-8", errors="surrogateescape") == b"\xff\xfe"

    def test_truncated_field(self):
        """Test a field shorter than its prefix is an error."""
        reader = CaptureReader(b"10:short")
        with pytest.raises(CaptureError, match="truncated"):
            reader.read_field()

    def test_missing_colon(self):
        """Test a prefix without terminator is an error."""
        with pytest.raises(CaptureError):
            CaptureReader(b"123").read_field()

    def test_non_numeric_prefix(self):
        """Test garbage before the colon is an error."""
        with pytest.raises(CaptureError, match="Malformed length"):
            CaptureReader(b"ab:c").read_field()


class TestParseCapture:
    """Test decoding of complete capture streams."""

    def test_two_snapshots_and_status(self):
        """Test a well-formed stream yields both snapshots and the status."""
        stream = parse_capture(
            two_snapshots(
                before=record("S", "HOME", "x", "/home/u"),
                after=record("S", "HOME", "x", "/home/u") + record("S", "NEW", "", "1"),
                status="3",
            )
        )
        assert [s.label for s in stream.snapshots] == ["before", "after"]
        assert stream.exit_status == 3
        after = stream.get("after")
        assert after is not None
        assert list(after.variables) == ["HOME", "NEW"]
        assert after.variables["HOME"].exported is True
        assert after.variables["NEW"].exported is False

    def test_multiline_value(self):
        """Test newlines and framing characters inside values are preserved."""
        value = "line1\nline2\n7:S5:fake\n"
        stream = parse_capture(two_snapshots(after=record("S", "MULTI", "x", value)))
        after = stream.get("after")
        assert after is not None
        assert after.variables["MULTI"].value == value

    def test_indexed_array(self):
        """Test array records carry their elements in order."""
        stream = parse_capture(two_snapshots(after=record("A", "arr", "", "3", "a", "b c", "d\ne")))
        variable = stream.get("after").variables["arr"]  # type: ignore[union-attr]
        assert variable.kind == VariableKind.ARRAY
        assert variable.value == ("a", "b c", "d\ne")

    def test_associative_array(self):
        """Test associative records carry key/value pairs."""
        stream = parse_capture(two_snapshots(after=record("H", "map", "", "2", "k1", "v1", "k2", "v2")))
        variable = stream.get("after").variables["map"]  # type: ignore[union-attr]
        assert variable.kind == VariableKind.ASSOCIATIVE
        assert variable.value == (("k1", "v1"), ("k2", "v2"))

    def test_functions_and_aliases(self):
        """Test function names and alias expansions are collected."""
        stream = parse_capture(
            two_snapshots(after=record("F", "greet") + record("F", "nvm") + record("L", "ll", "ls -l"))
        )
        after = stream.get("after")
        assert after is not None
        assert after.functions == ("greet", "nvm")
        assert after.aliases == {"ll": "ls -l"}

    def test_missing_after_snapshot(self):
        """Test a stream that stops after the baseline has no result snapshot."""
        stream = parse_capture(record("B", "before") + record("E", "before"))
        assert stream.get("before") is not None
        assert stream.get("after") is None
        assert stream.exit_status is None

    def test_unclosed_snapshot(self):
        """Test a snapshot cut off mid-way is an error."""
        with pytest.raises(CaptureError, match="never closed"):
            parse_capture(record("B", "after") + record("S", "A", "", "1"))

    def test_mismatched_end(self):
        """Test an end marker for the wrong snapshot is an error."""
        with pytest.raises(CaptureError):
            parse_capture(record("B", "before") + record("E", "after"))

    def test_record_outside_snapshot(self):
        """Test variables must sit inside a snapshot."""
        with pytest.raises(CaptureError, match="outside"):
            parse_capture(record("S", "A", "", "1"))

    def test_unknown_tag(self):
        """Test unknown record tags are rejected."""
        with pytest.raises(CaptureError, match="Unknown record"):
            parse_capture(record("B", "before") + b"Z")

    def test_bad_status(self):
        """Test a non-numeric exit status is rejected."""
        with pytest.raises(CaptureError, match="exit status"):
            parse_capture(record("R", "abc"))

    def test_empty_stream(self):
        """Test an empty stream decodes to nothing."""
        stream = parse_capture(b"")
        assert stream.snapshots == []
        assert stream.exit_status is None
