"""
Unit tests for the schema-agnostic deep comparator.

These tests verify that:
1. Null, primitive and shape-mismatch cases are classified correctly
2. Arrays are reconciled by identity when possible, by index otherwise
3. Excluded fields are never reported or recursed into
4. Depth overflow truncates a branch without failing the comparison
"""

import pytest

from bomcompare.diff.deep_compare import (
    ComparisonSummary,
    DeepComparator,
    compare_data,
    detect_data_type,
    get_data_type,
)
from bomcompare.diff.field_diff import ChangeType


def by_path(summary: ComparisonSummary):
    return {e.path: e for e in summary.changes}


class TestScalars:
    """Tests for null and primitive comparisons."""

    def test_both_null(self):
        entry = compare_data(None, None).changes[0]

        assert entry.change_type is ChangeType.UNCHANGED
        assert entry.data_type == "null"

    def test_left_null_is_added(self):
        entry = compare_data(None, {"a": 1}).changes[0]

        assert entry.change_type is ChangeType.ADDED
        assert entry.right_value == {"a": 1}
        assert entry.data_type == "object"
        assert entry.is_nested is True

    def test_right_null_is_removed(self):
        entry = compare_data("x", None).changes[0]

        assert entry.change_type is ChangeType.REMOVED
        assert entry.left_value == "x"
        assert entry.data_type == "string"

    @pytest.mark.parametrize("left,right,expected", [
        (1, 1, ChangeType.UNCHANGED),
        (1, 1.0, ChangeType.UNCHANGED),
        (1, 2, ChangeType.MODIFIED),
        ("a", "a", ChangeType.UNCHANGED),
        ("a", "b", ChangeType.MODIFIED),
        (True, 1, ChangeType.MODIFIED),
        (False, False, ChangeType.UNCHANGED),
    ])
    def test_primitives(self, left, right, expected):
        assert compare_data(left, right).changes[0].change_type is expected

    def test_primitive_vs_container(self):
        entry = compare_data({"a": 5}, {"a": [5]}).changes[0]

        assert entry.path == "a"
        assert entry.change_type is ChangeType.MODIFIED
        assert entry.data_type == "mixed"

    def test_array_vs_object(self):
        summary = compare_data({"a": [1]}, {"a": {"0": 1}})

        assert len(summary.changes) == 1
        assert summary.changes[0].change_type is ChangeType.MODIFIED
        assert summary.changes[0].data_type == "type-change"

    @pytest.mark.parametrize("value,expected", [
        (None, "null"), (True, "boolean"), (3, "number"), (2.5, "number"),
        ("s", "string"), ([1], "array"), ((1,), "array"), ({"a": 1}, "object"),
    ])
    def test_get_data_type(self, value, expected):
        assert get_data_type(value) == expected


class TestObjects:
    """Tests for key-by-key object comparison."""

    def test_key_union(self):
        summary = compare_data({"a": 1, "b": 2}, {"b": 3, "c": 4})
        entries = by_path(summary)

        assert entries["a"].change_type is ChangeType.REMOVED
        assert entries["a"].left_value == 1
        assert entries["b"].change_type is ChangeType.MODIFIED
        assert entries["c"].change_type is ChangeType.ADDED
        assert entries["c"].right_value == 4

    def test_nested_paths(self):
        summary = compare_data({"bom": {"header": {"rev": "A"}}}, {"bom": {"header": {"rev": "B"}}})

        assert [e.path for e in summary.changes] == ["bom.header.rev"]

    def test_base_path_prefix(self):
        summary = DeepComparator().compare({"a": 1}, {"a": 2}, base_path="root")

        assert summary.changes[0].path == "root.a"

    def test_explicit_null_value_vs_missing_key(self):
        """A key holding None is present; its absence on the other side is a removal."""
        entry = compare_data({"a": None}, {}).changes[0]

        assert entry.change_type is ChangeType.REMOVED
        assert entry.data_type == "null"


class TestArrays:
    """Tests for identity-based and positional array reconciliation."""

    def test_identity_match_reports_field_not_position(self):
        """[{id: x, v: 1}] vs [{id: x, v: 2}] is one modified field under identity x."""
        summary = compare_data([{"id": "x", "v": 1}], [{"id": "x", "v": 2}])

        changed = summary.changed_entries()
        assert len(changed) == 1
        assert changed[0].path == "[x].v"
        assert changed[0].change_type is ChangeType.MODIFIED
        assert (changed[0].left_value, changed[0].right_value) == (1, 2)

    def test_identity_survives_reordering(self):
        left = [{"entry_id": "a", "q": 1}, {"entry_id": "b", "q": 2}]
        right = [{"entry_id": "b", "q": 2}, {"entry_id": "a", "q": 1}]

        assert compare_data(left, right).changed_fields == 0

    def test_identity_added_and_removed(self):
        summary = compare_data(
            {"items": [{"entry_id": "a"}, {"entry_id": "b"}]},
            {"items": [{"entry_id": "b"}, {"entry_id": "c"}]},
        )
        entries = by_path(summary)

        assert entries["items[a]"].change_type is ChangeType.REMOVED
        assert entries["items[a]"].data_type == "object"
        assert entries["items[c]"].change_type is ChangeType.ADDED
        assert entries["items[b].entry_id"].change_type is ChangeType.UNCHANGED

    def test_identity_priority(self):
        """entry_id outranks bom_item_id when both are present."""
        comparator = DeepComparator()

        assert comparator.identity_of({"bom_item_id": "b1", "entry_id": "e1"}) == "e1"
        assert comparator.identity_of({"bom_item_id": "b1", "entry_id": None}) == "b1"
        assert comparator.identity_of({"bom_item_id": "", "name": "x"}) is None
        assert comparator.identity_of("scalar") is None

    def test_injected_identity_keys(self):
        comparator = DeepComparator(identity_keys=["sku"])
        summary = comparator.compare([{"sku": "A1", "n": 1}], [{"sku": "A1", "n": 2}])

        assert [e.path for e in summary.changed_entries()] == ["[A1].n"]

    def test_positional_fallback(self):
        summary = compare_data({"tags": ["a", "b"]}, {"tags": ["a", "c", "d"]})
        entries = by_path(summary)

        assert entries["tags[0]"].change_type is ChangeType.UNCHANGED
        assert entries["tags[1]"].change_type is ChangeType.MODIFIED
        assert entries["tags[2]"].change_type is ChangeType.ADDED
        assert entries["tags[2]"].right_value == "d"

    def test_positional_removed(self):
        entries = by_path(compare_data([1, 2, 3], [1]))

        assert entries["[1]"].change_type is ChangeType.REMOVED
        assert entries["[2]"].change_type is ChangeType.REMOVED

    def test_anonymous_elements_in_identity_array(self):
        """Elements without identity are still compared, by position."""
        summary = compare_data(
            [{"entry_id": "a", "v": 1}, {"note": "x"}],
            [{"entry_id": "a", "v": 1}, {"note": "y"}],
        )

        assert [e.path for e in summary.changed_entries()] == ["[#1].note"]

    def test_anonymous_index_does_not_collide_with_identity(self):
        """An element identified as "0" and an anonymous element at index 0 get distinct paths."""
        summary = compare_data(
            [{"v": 2}, {"id": "0", "v": 1}],
            [{"v": 3}, {"id": "0", "v": 1}],
        )
        paths = [e.path for e in summary.changes]

        assert len(paths) == len(set(paths))
        assert by_path(summary)["[0].v"].change_type is ChangeType.UNCHANGED
        assert by_path(summary)["[#0].v"].change_type is ChangeType.MODIFIED

    def test_identity_type_is_significant(self):
        """Numeric id 1 and string id "1" are different elements."""
        summary = compare_data(
            [{"id": 1, "v": "a"}, {"id": "1", "v": "b"}],
            [{"id": "1", "v": "b"}],
        )

        removed = [e for e in summary.changes if e.change_type is ChangeType.REMOVED]
        assert len(removed) == 1
        assert removed[0].path == "[1]"
        assert removed[0].left_value == {"id": 1, "v": "a"}
        assert summary.changed_fields == 1

    @pytest.mark.parametrize("empty", [None, "", 0, False])
    def test_empty_identity_falls_through(self, empty):
        """Empty candidate values skip to the next identity key."""
        comparator = DeepComparator(identity_keys=["entry_id", "bom_item_id"])

        assert comparator.identity_of({"entry_id": empty, "bom_item_id": "b1"}) == "b1"
        assert comparator.identity_of({"entry_id": empty}) is None

    def test_numeric_identity_kept_raw(self):
        comparator = DeepComparator()

        assert comparator.identity_of({"id": 7}) == 7
        assert [e.path for e in comparator.compare([{"id": 7, "q": 1}], [{"id": 7, "q": 2}]).changed_entries()] == ["[7].q"]


class TestExclusions:
    """Tests for caller-supplied field exclusions."""

    def test_exact_match(self):
        summary = compare_data({"modified_datetime": "t1", "q": 1}, {"modified_datetime": "t2", "q": 1},
                               exclude_fields=["modified_datetime"])

        assert summary.changed_fields == 0
        assert "modified_datetime" not in by_path(summary)

    def test_dotted_suffix_match(self):
        summary = compare_data(
            {"items": [{"entry_id": "a", "selected": True}]},
            {"items": [{"entry_id": "a", "selected": False}]},
            exclude_fields=["selected"],
        )

        assert summary.changed_fields == 0

    def test_mid_path_containment(self):
        """An excluded container is never recursed into."""
        summary = compare_data(
            {"a": {"audit": {"who": "x", "when": 1}}},
            {"a": {"audit": {"who": "y", "when": 2}}},
            exclude_fields=["a.audit"],
        )

        assert summary.total_fields == 0

    def test_should_exclude_field(self):
        comparator = DeepComparator(exclude_fields=["custom_field_id", "x.y"])

        assert comparator.should_exclude_field("custom_field_id")
        assert comparator.should_exclude_field("custom_sections[s1].custom_fields[f1].custom_field_id")
        assert comparator.should_exclude_field("root.x.y.z")
        assert not comparator.should_exclude_field("custom_field_ids")


class TestDepthGuard:
    """Recursion deeper than max_depth is truncated, not fatal."""

    def test_truncated_branch_reports_error(self):
        deep = {"a": {"b": {"c": {"d": 1}}}}
        changed = {"a": {"b": {"c": {"d": 2}}}}

        summary = compare_data(deep, changed, max_depth=3)

        assert summary.changes == []
        assert summary.errors == ["Maximum depth reached at path: a.b.c"]

    def test_siblings_still_compared(self):
        left = {"deep": {"x": {"y": {"z": 1}}}, "flat": 1}
        right = {"deep": {"x": {"y": {"z": 2}}}, "flat": 2}

        summary = compare_data(left, right, max_depth=2)
        entries = by_path(summary)

        assert entries["flat"].change_type is ChangeType.MODIFIED
        assert len(summary.errors) == 1
        assert summary.errors[0].endswith("deep.x")

    @pytest.mark.parametrize("max_depth", [None, 0])
    def test_unset_max_depth_uses_default(self, max_depth):
        nested = {"a": {"b": {"c": 1}}}

        summary = compare_data(nested, {"a": {"b": {"c": 2}}}, max_depth=max_depth)

        assert summary.errors == []
        assert [e.path for e in summary.changed_entries()] == ["a.b.c"]

    @pytest.mark.parametrize("max_depth", [0, -3, True, "5"])
    def test_invalid_max_depth(self, max_depth):
        with pytest.raises(ValueError, match="max_depth must be a positive integer"):
            DeepComparator(max_depth=max_depth)

    def test_comparator_reusable(self):
        """Each compare() call starts with fresh results, errors and depth."""
        comparator = DeepComparator(max_depth=2)
        first = comparator.compare({"a": {"b": {"c": 1}}}, {"a": {"b": {"c": 2}}})
        second = comparator.compare({"a": 1}, {"a": 2})

        assert first.errors
        assert second.errors == []
        assert second.modified_fields == 1


class TestSummary:
    """Tests for rollup counts."""

    def test_rollup_counts(self):
        summary = compare_data(
            {"same": 1, "changed": 1, "gone": 1},
            {"same": 1, "changed": 2, "new": 1},
        )

        assert summary.total_fields == 4
        assert summary.unchanged_fields == 1
        assert summary.modified_fields == 1
        assert summary.removed_fields == 1
        assert summary.added_fields == 1
        assert summary.changed_fields == 3

    def test_to_dict(self):
        data = compare_data({"a": 1}, {"a": 2}).to_dict()

        assert data["changed_fields"] == 1
        assert data["changes"][0] == {
            "path": "a",
            "left_value": 1,
            "right_value": 2,
            "change_type": "modified",
            "data_type": "number",
            "is_nested": False,
        }
        assert data["errors"] == []


class TestDetectDataType:
    """Tests for BOM document detection."""

    def test_bom_document(self, bom):
        assert detect_data_type(bom.document("A", [bom.raw("R1")])) == "bom"

    def test_bom_document_without_items(self, bom):
        assert detect_data_type(bom.document("A", [])) == "unknown"

    @pytest.mark.parametrize("data", [None, [], "bom", {}, {"enterprise_bom": {}}])
    def test_unknown(self, data):
        assert detect_data_type(data) == "unknown"
