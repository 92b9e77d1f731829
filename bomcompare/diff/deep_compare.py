"""
Schema-agnostic deep comparison of nested JSON-like values.

Unlike the BOM tree diff, this comparator assumes nothing about the data:
- Objects are compared key by key (union of both sides)
- Arrays are reconciled by element identity when elements carry a known
  identity key (entry_id, bom_item_id, ...), otherwise by position
- Primitive values are compared by value; shape mismatches are MODIFIED

Every compared location yields one path-tagged entry, e.g.
"bom_items[e-1].quantity" or "slabs[0]". Elements without identity inside an
identity-keyed array are paired by position and tagged "items[#2]". Recursion is bounded: a branch
deeper than max_depth is truncated and reported in `errors`, while sibling
branches are still compared.
"""

import logging
from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..schema import (
    DEFAULT_MAX_DEPTH,
    DOCUMENT_BOM_KEY,
    DOCUMENT_ITEMS_KEY,
    DOCUMENT_LINKAGE_KEY,
    IDENTITY_KEY_CANDIDATES,
)
from .field_diff import ChangeType

logger = logging.getLogger(__name__)

# Data type tags carried by comparison entries
NESTED_DATA_TYPES = {"object", "array"}


@dataclass
class ComparisonEntry:
    """One compared location in the two structures."""
    path: str
    left_value: Any
    right_value: Any
    change_type: ChangeType
    data_type: str
    is_nested: bool

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "path": self.path,
            "left_value": self.left_value,
            "right_value": self.right_value,
            "change_type": self.change_type.value,
            "data_type": self.data_type,
            "is_nested": self.is_nested,
        }


@dataclass
class ComparisonSummary:
    """Flat change list, rollup counts and non-fatal errors of one comparison."""
    total_fields: int = 0
    changed_fields: int = 0
    added_fields: int = 0
    removed_fields: int = 0
    modified_fields: int = 0
    unchanged_fields: int = 0
    changes: List[ComparisonEntry] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def changed_entries(self) -> List[ComparisonEntry]:
        """Entries that are not UNCHANGED."""
        return [e for e in self.changes if e.change_type is not ChangeType.UNCHANGED]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "total_fields": self.total_fields,
            "changed_fields": self.changed_fields,
            "added_fields": self.added_fields,
            "removed_fields": self.removed_fields,
            "modified_fields": self.modified_fields,
            "unchanged_fields": self.unchanged_fields,
            "changes": [e.to_dict() for e in self.changes],
            "errors": list(self.errors),
        }


def _is_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def get_data_type(value: Any) -> str:
    """Tag a value with a JSON data type name."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if _is_array(value):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _primitives_equal(left: Any, right: Any) -> bool:
    # True == 1 in Python; a boolean only ever equals another boolean
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


class _ComparisonRun:
    """Per-call accumulator, so one DeepComparator can be reused concurrently."""

    def __init__(self):
        self.results: List[ComparisonEntry] = []
        self.errors: List[str] = []

    def add(self, path: str, left: Any, right: Any, change_type: ChangeType, data_type: str) -> None:
        self.results.append(ComparisonEntry(
            path=path,
            left_value=left,
            right_value=right,
            change_type=change_type,
            data_type=data_type,
            is_nested=data_type in NESTED_DATA_TYPES,
        ))


class DeepComparator:
    """
    Recursive structural comparator for arbitrary nested values.

    Args:
        exclude_fields: Field names or dotted paths to skip entirely. A key
            path is skipped when it equals an entry, ends with ".<entry>"
            or contains ".<entry>."
        max_depth: Maximum recursion depth before a branch is truncated
        identity_keys: Candidate identity key names for array elements, in
            priority order

    Raises:
        ValueError: If max_depth is not a positive integer
    """

    def __init__(
        self,
        exclude_fields: Optional[Iterable[str]] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        identity_keys: Optional[Iterable[str]] = None
    ):
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
            raise ValueError(f"max_depth must be a positive integer, got {max_depth!r}")

        self.exclude_fields = list(exclude_fields or [])
        self.max_depth = max_depth
        self.identity_keys = list(identity_keys) if identity_keys is not None else list(IDENTITY_KEY_CANDIDATES)

    def compare(self, left: Any, right: Any, base_path: str = "") -> ComparisonSummary:
        """
        Compare two values and summarize every difference.

        Args:
            left: Older value
            right: Newer value
            base_path: Prefix for all reported paths

        Returns:
            ComparisonSummary with entries, rollup counts and errors
        """
        run = _ComparisonRun()
        self._deep_compare(left, right, base_path, 0, run)
        return self._summarize(run)

    def _deep_compare(self, left: Any, right: Any, path: str, depth: int, run: _ComparisonRun) -> None:
        if depth >= self.max_depth:
            run.errors.append(f"Maximum depth reached at path: {path}")
            logger.debug(f"Deep compare truncated at '{path}' (max_depth={self.max_depth})")
            return

        if left is None and right is None:
            run.add(path, left, right, ChangeType.UNCHANGED, "null")
            return

        if left is None:
            run.add(path, left, right, ChangeType.ADDED, get_data_type(right))
            return

        if right is None:
            run.add(path, left, right, ChangeType.REMOVED, get_data_type(left))
            return

        left_primitive = _is_primitive(left)
        right_primitive = _is_primitive(right)

        if left_primitive and right_primitive:
            change_type = ChangeType.UNCHANGED if _primitives_equal(left, right) else ChangeType.MODIFIED
            run.add(path, left, right, change_type, get_data_type(left))
            return

        if left_primitive != right_primitive:
            run.add(path, left, right, ChangeType.MODIFIED, "mixed")
            return

        if _is_array(left) and _is_array(right):
            self._compare_arrays(left, right, path, depth + 1, run)
            return

        if _is_array(left) != _is_array(right):
            run.add(path, left, right, ChangeType.MODIFIED, "type-change")
            return

        if isinstance(left, Mapping) and isinstance(right, Mapping):
            self._compare_objects(left, right, path, depth + 1, run)
            return

        # Anything else (sets, custom objects) is compared by value
        change_type = ChangeType.UNCHANGED if left == right else ChangeType.MODIFIED
        run.add(path, left, right, change_type, get_data_type(left))

    def _compare_objects(self, left: Mapping, right: Mapping, path: str, depth: int, run: _ComparisonRun) -> None:
        for key in dict.fromkeys(list(left.keys()) + list(right.keys())):
            field_path = f"{path}.{key}" if path else str(key)

            if self.should_exclude_field(field_path):
                continue

            has_left = key in left
            has_right = key in right

            if has_left and has_right:
                self._deep_compare(left[key], right[key], field_path, depth, run)
            elif has_left:
                run.add(field_path, left[key], None, ChangeType.REMOVED, get_data_type(left[key]))
            else:
                run.add(field_path, None, right[key], ChangeType.ADDED, get_data_type(right[key]))

    def _compare_arrays(self, left: List[Any], right: List[Any], path: str, depth: int, run: _ComparisonRun) -> None:
        left_by_id, left_anonymous = self._index_by_identity(left)
        right_by_id, right_anonymous = self._index_by_identity(right)

        if left_by_id or right_by_id:
            self._compare_arrays_by_identity(left_by_id, right_by_id, path, depth, run)
            # Leftovers without identity are paired by position as path[#i], never as path[i]
            self._compare_positional(left_anonymous, right_anonymous, path, depth, run, index_prefix="#")
        else:
            self._compare_positional(list(enumerate(left)), list(enumerate(right)), path, depth, run)

    def identity_of(self, item: Any) -> Optional[Any]:
        """
        Return the identity value of an array element, or None if it has none.

        Candidate keys are tried in priority order; empty values (None, "",
        0, False, empty containers) fall through to the next candidate.
        """
        if not isinstance(item, Mapping):
            return None
        for key in self.identity_keys:
            value = item.get(key)
            if value:
                return value
        return None

    @staticmethod
    def _identity_key(identity: Any) -> Hashable:
        # 1 and "1" are different elements even though both render as [1]
        if isinstance(identity, Hashable):
            return (type(identity).__name__, identity)
        return (type(identity).__name__, repr(identity))

    def _index_by_identity(
        self,
        items: List[Any]
    ) -> Tuple[Dict[Hashable, Tuple[Any, Any]], List[Tuple[int, Any]]]:
        """Split elements into key -> (identity, element) (last wins) and (index, element) leftovers."""
        by_id: Dict[Hashable, Tuple[Any, Any]] = {}
        anonymous: List[Tuple[int, Any]] = []
        for index, item in enumerate(items):
            identity = self.identity_of(item)
            if identity is None:
                anonymous.append((index, item))
            else:
                by_id[self._identity_key(identity)] = (identity, item)
        return by_id, anonymous

    def _compare_arrays_by_identity(
        self,
        left_by_id: Dict[Hashable, Tuple[Any, Any]],
        right_by_id: Dict[Hashable, Tuple[Any, Any]],
        path: str,
        depth: int,
        run: _ComparisonRun
    ) -> None:
        for key in dict.fromkeys(list(left_by_id) + list(right_by_id)):
            if key in left_by_id and key in right_by_id:
                identity, left_item = left_by_id[key]
                self._deep_compare(left_item, right_by_id[key][1], f"{path}[{identity}]", depth, run)
            elif key in left_by_id:
                identity, left_item = left_by_id[key]
                run.add(f"{path}[{identity}]", left_item, None, ChangeType.REMOVED, "object")
            else:
                identity, right_item = right_by_id[key]
                run.add(f"{path}[{identity}]", None, right_item, ChangeType.ADDED, "object")

    def _compare_positional(
        self,
        left: List[Tuple[int, Any]],
        right: List[Tuple[int, Any]],
        path: str,
        depth: int,
        run: _ComparisonRun,
        index_prefix: str = ""
    ) -> None:
        for position in range(max(len(left), len(right))):
            if position < len(left) and position < len(right):
                index, left_item = left[position]
                item_path = f"{path}[{index_prefix}{index}]"
                self._deep_compare(left_item, right[position][1], item_path, depth, run)
            elif position < len(left):
                index, left_item = left[position]
                item_path = f"{path}[{index_prefix}{index}]"
                run.add(item_path, left_item, None, ChangeType.REMOVED, get_data_type(left_item))
            else:
                index, right_item = right[position]
                item_path = f"{path}[{index_prefix}{index}]"
                run.add(item_path, None, right_item, ChangeType.ADDED, get_data_type(right_item))
    def should_exclude_field(self, path: str) -> bool:
        """Check whether a key path matches any excluded field."""
        return any(
            path == excluded
            or path.endswith(f".{excluded}")
            or f".{excluded}." in path
            for excluded in self.exclude_fields
        )

    @staticmethod
    def _summarize(run: _ComparisonRun) -> ComparisonSummary:
        summary = ComparisonSummary(
            total_fields=len(run.results),
            changes=run.results,
            errors=run.errors,
        )

        for entry in run.results:
            if entry.change_type is ChangeType.ADDED:
                summary.added_fields += 1
            elif entry.change_type is ChangeType.REMOVED:
                summary.removed_fields += 1
            elif entry.change_type is ChangeType.MODIFIED:
                summary.modified_fields += 1
            else:
                summary.unchanged_fields += 1

        summary.changed_fields = summary.added_fields + summary.removed_fields + summary.modified_fields
        return summary


def compare_data(
    left: Any,
    right: Any,
    exclude_fields: Optional[Iterable[str]] = None,
    max_depth: Optional[int] = None,
    identity_keys: Optional[Iterable[str]] = None
) -> ComparisonSummary:
    """
    Compare two arbitrary nested values.

    Args:
        left: Older value
        right: Newer value
        exclude_fields: Field names or dotted paths to skip
        max_depth: Recursion limit; None or 0 means DEFAULT_MAX_DEPTH
        identity_keys: Candidate identity keys (default: IDENTITY_KEY_CANDIDATES)

    Example:
        >>> summary = compare_data([{"id": "x", "v": 1}], [{"id": "x", "v": 2}], identity_keys=["id"])
        >>> [e.path for e in summary.changed_entries()]
        ['[x].v']
    """
    comparator = DeepComparator(
        exclude_fields=exclude_fields,
        max_depth=max_depth or DEFAULT_MAX_DEPTH,
        identity_keys=identity_keys,
    )
    return comparator.compare(left, right)


def detect_data_type(data: Any) -> str:
    """Return "bom" for a BOM document, "unknown" for anything else."""
    if not isinstance(data, Mapping) or not data:
        return "unknown"
    if data.get(DOCUMENT_BOM_KEY) and data.get(DOCUMENT_ITEMS_KEY) and data.get(DOCUMENT_LINKAGE_KEY):
        return "bom"
    return "unknown"
