"""Tests for the environment diff engine."""

from __future__ import annotations

import pytest

from envbridge.diff import ChangeSet, ChangeType, EnvironmentDiffer, diff
from envbridge.snapshot.models import Variable, VariableKind


def variable_names(change_set: ChangeSet) -> list[str]:
    """Every variable name across the variable collections."""
    return [c.name for c in change_set.variable_changes] + list(change_set.variable_removals)


def function_names(change_set: ChangeSet) -> list[str]:
    """Every function name across the function collections."""
    return list(change_set.function_additions) + list(change_set.function_removals)


class TestVariableDiff:
    """Test variable additions, modifications and removals."""

    def test_identical_snapshots_are_empty(self, snapshot):
        """Test a no-op script yields an empty change set."""
        state = {"PATH": "/usr/bin", "HOME": "/home/u"}
        result = diff(
            snapshot("before", state, functions=("f",), aliases={"ll": "ls -l"}),
            snapshot("after", state, functions=("f",), aliases={"ll": "ls -l"}),
        )
        assert result.is_empty
        assert result.variable_changes == ()
        assert result.variable_removals == ()
        assert result.function_additions == ()
        assert result.function_removals == ()

    def test_gopath_scenario(self, snapshot):
        """Test exporting GOPATH and prepending to PATH."""
        before = snapshot("before", {"PATH": "/usr/bin"})
        after = snapshot("after", {"GOPATH": "/home/u/go", "PATH": "/home/u/go/bin:/usr/bin"})

        result = diff(before, after)

        assert [c.name for c in result.variable_changes] == ["GOPATH", "PATH"]
        gopath, path = result.variable_changes
        assert gopath.change_type == ChangeType.ADDED
        assert gopath.value.value == "/home/u/go"
        assert gopath.previous is None
        assert path.change_type == ChangeType.MODIFIED
        assert path.value.value == "/home/u/go/bin:/usr/bin"
        assert path.previous is not None and path.previous.value == "/usr/bin"
        assert result.variable_removals == ()
        assert result.function_additions == ()
        assert result.function_removals == ()

    def test_removal_detection(self, snapshot):
        """Test a variable missing from the result is a removal only."""
        result = diff(snapshot("before", {"FOO": "bar"}), snapshot("after", {}))
        assert result.variable_removals == ("FOO",)
        assert result.get_change("FOO") is None

    def test_unchanged_variable_has_no_entry(self, snapshot):
        """Test minimality: untouched variables produce nothing."""
        result = diff(
            snapshot("before", {"A": "1", "B": "2"}),
            snapshot("after", {"A": "1", "B": "3"}),
        )
        assert [c.name for c in result.variable_changes] == ["B"]

    def test_exact_comparison(self, snapshot):
        """Test values are compared without normalization."""
        result = diff(
            snapshot("before", {"A": "1", "B": "x", "C": "a\n"}),
            snapshot("after", {"A": "01", "B": "x ", "C": "a"}),
        )
        assert [c.name for c in result.variable_changes] == ["A", "B", "C"]

    def test_export_flag_change_is_modification(self, snapshot):
        """Test un-exporting a variable counts as a change."""
        before = snapshot("before", {"A": Variable("A", "1", exported=True)})
        after = snapshot("after", {"A": Variable("A", "1", exported=False)})
        result = diff(before, after)
        (change,) = result.variable_changes
        assert change.change_type == ChangeType.MODIFIED
        assert change.export_dropped is True

    def test_kind_change_is_modification(self, snapshot):
        """Test a scalar turned into an array is a change."""
        before = snapshot("before", {"A": Variable("A", "x")})
        after = snapshot("after", {"A": Variable("A", ("x",), VariableKind.ARRAY)})
        assert [c.name for c in diff(before, after).variable_changes] == ["A"]

    def test_array_element_change(self, snapshot):
        """Test arrays compare element by element."""
        before = snapshot("before", {"arr": Variable("arr", ("a", "b"), VariableKind.ARRAY)})
        after = snapshot("after", {"arr": Variable("arr", ("a", "b", "c"), VariableKind.ARRAY)})
        (change,) = diff(before, after).variable_changes
        assert change.value.value == ("a", "b", "c")

    def test_order_follows_result_and_baseline(self, snapshot):
        """Test additions follow result order and removals follow baseline order."""
        before = snapshot("before", {"Z_OLD": "1", "A_OLD": "1", "KEEP": "1"})
        after = snapshot("after", {"KEEP": "2", "Y_NEW": "1", "B_NEW": "1"})
        result = diff(before, after)
        assert [c.name for c in result.variable_changes] == ["KEEP", "Y_NEW", "B_NEW"]
        assert result.variable_removals == ("Z_OLD", "A_OLD")


class TestFunctionDiff:
    """Test function name tracking."""

    def test_added_function(self, snapshot):
        """Test a new function appears once in additions only."""
        result = diff(snapshot("before", functions=("old",)), snapshot("after", functions=("old", "greet")))
        assert result.function_additions == ("greet",)
        assert "greet" not in result.function_removals

    def test_removed_function(self, snapshot):
        """Test a removed function appears once in removals only."""
        result = diff(snapshot("before", functions=("old", "keep")), snapshot("after", functions=("keep",)))
        assert result.function_removals == ("old",)
        assert "old" not in result.function_additions

    def test_duplicate_names_reported_once(self, snapshot):
        """Test a name captured twice is still reported once."""
        result = diff(snapshot("before"), snapshot("after", functions=("f", "f")))
        assert result.function_additions == ("f",)


class TestAliasDiff:
    """Test alias tracking."""

    def test_alias_added_changed_removed(self, snapshot):
        """Test alias additions, modifications and removals."""
        before = snapshot("before", aliases={"ll": "ls -l", "gone": "true"})
        after = snapshot("after", aliases={"ll": "ls -la", "gs": "git status"})
        result = diff(before, after)
        assert [(c.name, c.change_type) for c in result.alias_changes] == [
            ("ll", ChangeType.MODIFIED),
            ("gs", ChangeType.ADDED),
        ]
        assert result.alias_changes[0].previous == "ls -l"
        assert result.alias_removals == ("gone",)


class TestChangeSetProperties:
    """Test invariants across arbitrary snapshot pairs."""

    @pytest.mark.parametrize(
        "before_vars,after_vars",
        [
            ({}, {"A": "1"}),
            ({"A": "1"}, {}),
            ({"A": "1", "B": "2"}, {"B": "3", "C": "4"}),
            ({"A": "x\ny"}, {"A": "x\ny"}),
        ],
    )
    def test_name_in_at_most_one_collection(self, snapshot, before_vars, after_vars):
        """Test no name is reported twice within one namespace."""
        result = diff(
            snapshot("before", before_vars, functions=("f", "g")),
            snapshot("after", after_vars, functions=("g", "h")),
        )
        variables = variable_names(result)
        functions = function_names(result)
        assert len(variables) == len(set(variables))
        assert len(functions) == len(set(functions))

    def test_variable_and_function_share_a_name(self, snapshot):
        """Test a variable and a function named foo are reported separately."""
        result = diff(
            snapshot("before", {}),
            snapshot("after", {"foo": "1"}, functions=("foo",)),
        )
        assert variable_names(result) == ["foo"]
        assert function_names(result) == ["foo"]
        assert result.get_change("foo").change_type == ChangeType.ADDED
        assert result.function_additions == ("foo",)

    def test_deterministic(self, snapshot):
        """Test diffing the same inputs twice gives equal results."""
        before = snapshot("before", {"A": "1", "B": "2"}, functions=("f",))
        after = snapshot("after", {"B": "3", "C": "4"}, functions=("g",))
        assert diff(before, after) == diff(before, after)

    def test_stats(self, snapshot):
        """Test summary counts match the collections."""
        result = EnvironmentDiffer(
            snapshot("before", {"A": "1", "B": "2"}, functions=("f",)),
            snapshot("after", {"B": "3", "C": "4"}, functions=("g",)),
        ).diff()
        assert result.stats.to_dict() == {
            "variables_added": 1,
            "variables_modified": 1,
            "variables_removed": 1,
            "functions_added": 1,
            "functions_removed": 1,
            "aliases_changed": 0,
            "aliases_removed": 0,
        }

    def test_to_dict(self, snapshot):
        """Test the change set serializes to plain data."""
        result = diff(snapshot("before", {"A": "1"}), snapshot("after", {"B": "2"}))
        data = result.to_dict()
        assert data["variable_removals"] == ["A"]
        assert data["variable_changes"][0]["name"] == "B"
        assert data["variable_changes"][0]["change_type"] == "added"
