"""
Structural diff engine for two versions of a hierarchical BOM.

This module pairs the nodes of two BOM trees and classifies every path:
- Nodes are matched by CODE among siblings (sibling order is irrelevant)
- Matched nodes are MODIFIED or UNCHANGED depending on their field diff
- Unmatched nodes are ADDED or REMOVED

An added or removed node swallows its subtree: none of its descendants get
their own entry. Consumers must treat such an ancestor as covering every path
below it. This is enforced by returning early while matching, so no path
with prefix "P." can appear once P itself is added or removed.

The change map is keyed by path and preserves insertion order, which is the
pre-order traversal of the matched trees.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..hierarchy import BomTreeNode
from ..schema import PATH_SEPARATOR
from .field_diff import ChangeType, FieldChange, diff_node_fields

logger = logging.getLogger(__name__)


@dataclass
class NodeChange:
    """Classification of one path across two BOM trees."""
    node_id: Optional[str]
    path: str
    code: str
    name: str
    change_type: ChangeType
    changes: List[FieldChange] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "node_id": self.node_id,
            "path": self.path,
            "code": self.code,
            "name": self.name,
            "change_type": self.change_type.value,
            "changes": [c.to_dict() for c in self.changes],
        }


def _node_change(node: BomTreeNode, change_type: ChangeType, changes: List[FieldChange] = None) -> NodeChange:
    return NodeChange(
        node_id=node.id,
        path=node.path,
        code=node.code,
        name=node.name,
        change_type=change_type,
        changes=changes or [],
    )


def _children_by_code(node: BomTreeNode) -> Dict[str, BomTreeNode]:
    """Index children by code; on duplicate codes the last sibling wins."""
    children: Dict[str, BomTreeNode] = {}
    for child in node.children:
        if child.code in children:
            logger.warning(
                f"Duplicate sibling code '{child.code}' under '{node.path}'; "
                f"only the last occurrence is compared"
            )
        children[child.code] = child
    return children


def _compare_nodes(
    left: Optional[BomTreeNode],
    right: Optional[BomTreeNode],
    change_map: Dict[str, NodeChange]
) -> None:
    """Recursively classify a node pair and its matched descendants."""
    if left is not None and right is None:
        change_map[left.path] = _node_change(left, ChangeType.REMOVED)
        return

    if left is None and right is not None:
        change_map[right.path] = _node_change(right, ChangeType.ADDED)
        return

    if left is None or right is None:
        return

    changes = diff_node_fields(left, right)
    change_type = ChangeType.MODIFIED if changes else ChangeType.UNCHANGED
    change_map[left.path] = _node_change(left, change_type, changes)

    left_children = _children_by_code(left)
    right_children = _children_by_code(right)

    # Left order first, then codes only found on the right
    for code in dict.fromkeys(list(left_children) + list(right_children)):
        _compare_nodes(left_children.get(code), right_children.get(code), change_map)


def detect_tree_changes(
    left_tree: Optional[BomTreeNode],
    right_tree: Optional[BomTreeNode]
) -> Dict[str, NodeChange]:
    """
    Compare two BOM trees and classify every node.

    The two roots are always paired with each other; the entry of a matched
    pair is keyed by the left node's path.

    Args:
        left_tree: Root of the older version
        right_tree: Root of the newer version

    Returns:
        Dictionary mapping path -> NodeChange, covering every path present
        in either tree except descendants of added/removed nodes

    Example:
        >>> from bomcompare.hierarchy import build_bom_tree
        >>> change_map = detect_tree_changes(build_bom_tree(v1), build_bom_tree(v2))
        >>> change_map["A.R1"].change_type
        <ChangeType.MODIFIED: 'modified'>
    """
    change_map: Dict[str, NodeChange] = {}
    _compare_nodes(left_tree, right_tree, change_map)

    changed = sum(1 for c in change_map.values() if c.change_type is not ChangeType.UNCHANGED)
    logger.debug(f"Tree diff complete: {len(change_map)} paths, {changed} changed")

    return change_map


def _is_within(path: str, ancestor_path: str) -> bool:
    return path == ancestor_path or path.startswith(ancestor_path + PATH_SEPARATOR)


def has_changes_in_subtree(node_path: str, change_map: Dict[str, NodeChange]) -> bool:
    """
    Check whether a node or any of its descendants changed.

    Args:
        node_path: Path of the subtree root
        change_map: Result of detect_tree_changes()
    """
    return any(
        _is_within(path, node_path) and info.change_type is not ChangeType.UNCHANGED
        for path, info in change_map.items()
    )


def get_node_change_status(node_path: str, change_map: Dict[str, NodeChange]) -> ChangeType:
    """Get the classification of a single node (UNCHANGED if not in the map)."""
    info = change_map.get(node_path)
    return info.change_type if info is not None else ChangeType.UNCHANGED
