"""
Change aggregation for BOM tree diffs.

This module turns the path-keyed change map into presentation-ready buckets:
- added / removed / modified lists, unchanged nodes dropped
- scoped to raw-material items, to BOM nodes (root + sub-assemblies), or to
  everything
- each entry denormalized with node kind and a readable ancestor path

Aggregation is a read-only projection: it never mutates the change map or
the trees. Output order is the insertion order of the change map.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..hierarchy import BomTreeNode, NodeKind, index_tree_by_path
from ..schema import PARENT_PATH_SEPARATOR, PATH_SEPARATOR
from .field_diff import ChangeType, FieldChange
from .tree_diff import NodeChange


class ChangeScope(Enum):
    """Which nodes an aggregation covers."""
    ITEM = "item"        # Raw-material leaves only
    BOM = "bom"          # Root and sub-assemblies only
    OVERALL = "overall"  # Everything


@dataclass
class AggregatedChange:
    """A change record enriched for listing and summary display."""
    id: Optional[str]
    path: str                  # Full path, e.g. "A.S1.R3"
    code: str                  # Node code, e.g. "R3"
    name: str
    parent_path: str           # Ancestors for display, e.g. "A > S1"
    change_type: ChangeType    # ADDED, REMOVED or MODIFIED
    change_count: int          # Number of field changes
    changes: List[FieldChange]
    node_kind: NodeKind

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "id": self.id,
            "path": self.path,
            "code": self.code,
            "name": self.name,
            "parent_path": self.parent_path,
            "change_type": self.change_type.value,
            "change_count": self.change_count,
            "changes": [c.to_dict() for c in self.changes],
            "node_kind": self.node_kind.value,
        }


@dataclass
class ChangeStats:
    """Aggregated changes split by classification."""
    added: List[AggregatedChange] = field(default_factory=list)
    removed: List[AggregatedChange] = field(default_factory=list)
    modified: List[AggregatedChange] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified)

    def counts(self) -> Dict[str, int]:
        """Summary counts per classification."""
        return {
            "added": len(self.added),
            "removed": len(self.removed),
            "modified": len(self.modified),
            "total": self.total,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "counts": self.counts(),
            "added": [c.to_dict() for c in self.added],
            "removed": [c.to_dict() for c in self.removed],
            "modified": [c.to_dict() for c in self.modified],
        }


def _kind_from_path_depth(path: str) -> NodeKind:
    """Best-effort node kind when no tree is available."""
    depth = len(path.split(PATH_SEPARATOR))
    if depth == 1:
        return NodeKind.ROOT
    if depth <= 3:
        return NodeKind.ASSEMBLY
    return NodeKind.LEAF


class _KindResolver:
    """Looks up node kinds in whichever tree actually holds a path."""

    def __init__(self, left_tree: Optional[BomTreeNode], right_tree: Optional[BomTreeNode]):
        self._left = index_tree_by_path(left_tree) if left_tree is not None else None
        self._right = index_tree_by_path(right_tree) if right_tree is not None else None

    @staticmethod
    def _lookup(index: Optional[Dict[str, BomTreeNode]], path: str) -> NodeKind:
        if index is None:
            return _kind_from_path_depth(path)
        node = index.get(path)
        return node.kind if node is not None else NodeKind.LEAF

    def resolve(self, change: NodeChange) -> NodeKind:
        if change.change_type is ChangeType.ADDED:
            return self._lookup(self._right, change.path)
        if change.change_type is ChangeType.REMOVED:
            return self._lookup(self._left, change.path)
        # Matched nodes have the same kind on both sides
        return self._lookup(self._left if self._left is not None else self._right, change.path)


def build_parent_path(path: str, separator: str = PARENT_PATH_SEPARATOR) -> str:
    """Render all path segments but the last, e.g. "A.S1.R3" -> "A > S1"."""
    parts = path.split(PATH_SEPARATOR)
    if len(parts) <= 1:
        return ""
    return separator.join(parts[:-1])


def _in_scope(kind: NodeKind, scope: ChangeScope) -> bool:
    if scope is ChangeScope.ITEM:
        return kind is NodeKind.LEAF
    if scope is ChangeScope.BOM:
        return kind.is_bom
    return True


def aggregate_changes(
    change_map: Dict[str, NodeChange],
    left_tree: Optional[BomTreeNode],
    right_tree: Optional[BomTreeNode],
    scope: ChangeScope = ChangeScope.OVERALL,
    parent_path_separator: str = PARENT_PATH_SEPARATOR
) -> ChangeStats:
    """
    Split a change map into added / removed / modified buckets for one scope.

    Args:
        change_map: Result of detect_tree_changes()
        left_tree: Older tree (kind lookup for removed nodes)
        right_tree: Newer tree (kind lookup for added nodes)
        scope: ITEM, BOM or OVERALL
        parent_path_separator: Separator for the rendered ancestor path

    Returns:
        ChangeStats in change-map order
    """
    resolver = _KindResolver(left_tree, right_tree)
    stats = ChangeStats()

    for change in change_map.values():
        if change.change_type is ChangeType.UNCHANGED:
            continue

        kind = resolver.resolve(change)
        if not _in_scope(kind, scope):
            continue

        aggregated = AggregatedChange(
            id=change.node_id,
            path=change.path,
            code=change.code,
            name=change.name,
            parent_path=build_parent_path(change.path, parent_path_separator),
            change_type=change.change_type,
            change_count=len(change.changes),
            changes=change.changes,
            node_kind=kind,
        )

        if change.change_type is ChangeType.ADDED:
            stats.added.append(aggregated)
        elif change.change_type is ChangeType.REMOVED:
            stats.removed.append(aggregated)
        else:
            stats.modified.append(aggregated)

    return stats


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def aggregate_item_changes(
    change_map: Dict[str, NodeChange],
    left_tree: Optional[BomTreeNode],
    right_tree: Optional[BomTreeNode]
) -> ChangeStats:
    """Changes to raw-material items only."""
    return aggregate_changes(change_map, left_tree, right_tree, ChangeScope.ITEM)


def aggregate_bom_changes(
    change_map: Dict[str, NodeChange],
    left_tree: Optional[BomTreeNode],
    right_tree: Optional[BomTreeNode]
) -> ChangeStats:
    """Changes to the root BOM and its sub-assemblies only."""
    return aggregate_changes(change_map, left_tree, right_tree, ChangeScope.BOM)


def aggregate_overall_changes(
    change_map: Dict[str, NodeChange],
    left_tree: Optional[BomTreeNode],
    right_tree: Optional[BomTreeNode]
) -> ChangeStats:
    """All changes, BOM nodes and items combined."""
    return aggregate_changes(change_map, left_tree, right_tree, ChangeScope.OVERALL)
