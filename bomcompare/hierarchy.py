"""
Hierarchical BOM tree construction.

Turns one BOM document into a canonical node tree:
- The document itself is the root node
- Items carrying a sub-assembly descriptor become assembly nodes
- Items carrying a raw-material descriptor become leaf nodes
- Every node gets a dot-delimited hierarchy path built from ancestor codes
  (e.g. "A.S1.R3"), which is the join key used to match nodes across versions

The builder is a pure function: it never mutates the input document, and the
tree only references the source dicts for later field extraction.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .schema import (
    ALTERNATES_KEY,
    BOM_CODE_KEY,
    BOM_NAME_KEY,
    CUSTOM_SECTIONS_KEY,
    DOCUMENT_BOM_KEY,
    DOCUMENT_ID_KEY,
    DOCUMENT_ITEMS_KEY,
    ITEM_ID_KEY,
    PATH_SEPARATOR,
    RAW_MATERIAL_CODE_KEY,
    RAW_MATERIAL_KEY,
    RAW_MATERIAL_NAME_KEY,
    SUB_BOM_ITEMS_KEY,
    SUB_BOM_KEY,
    UNKNOWN_ITEM_CODE,
    UNKNOWN_ITEM_NAME,
)

logger = logging.getLogger(__name__)


class NodeKind(Enum):
    """Position of a node in the BOM hierarchy."""
    ROOT = "root"          # The BOM document itself
    ASSEMBLY = "assembly"  # Sub-assembly (sub-BOM) at any depth
    LEAF = "leaf"          # Raw material, or a malformed item

    @property
    def is_bom(self) -> bool:
        """True for nodes that are BOMs (root or sub-assembly)."""
        return self in (NodeKind.ROOT, NodeKind.ASSEMBLY)


@dataclass
class BomTreeNode:
    """
    One node of a canonical BOM tree.

    Nodes exclusively own their children (tree, not graph). `source` points
    at the document (root) or the item dict the node was built from.
    """
    id: Optional[str]
    code: str
    name: str
    level: int
    kind: NodeKind
    path: str
    parent_id: Optional[str]
    source: Dict[str, Any]
    children: List["BomTreeNode"] = field(default_factory=list)
    malformed: bool = False  # Sentinel node for an item without a descriptor

    @property
    def is_root(self) -> bool:
        return self.kind is NodeKind.ROOT

    @property
    def is_leaf(self) -> bool:
        return self.kind is NodeKind.LEAF


def child_path(parent_path: str, code: str) -> str:
    """Build the hierarchy path of a child node."""
    return f"{parent_path}{PATH_SEPARATOR}{code}"


def build_bom_tree(document: Dict[str, Any]) -> BomTreeNode:
    """
    Build a hierarchical tree from one BOM document.

    Args:
        document: BOM document dict (enterprise_bom, bom_items, ...)

    Returns:
        Root BomTreeNode with the full descendant tree
    """
    descriptor = document.get(DOCUMENT_BOM_KEY) or {}
    code = descriptor.get(BOM_CODE_KEY) or ""
    name = descriptor.get(BOM_NAME_KEY) or ""

    root = BomTreeNode(
        id=document.get(DOCUMENT_ID_KEY),
        code=code,
        name=name,
        level=0,
        kind=NodeKind.ROOT,
        path=code,
        parent_id=None,
        source=document,
    )

    for item in document.get(DOCUMENT_ITEMS_KEY) or []:
        root.children.append(_build_item_node(item, root, level=1))

    return root


def _build_item_node(item: Dict[str, Any], parent: BomTreeNode, level: int) -> BomTreeNode:
    """Recursively build the node for one BOM item and its sub-items."""
    sub_bom = item.get(SUB_BOM_KEY)
    raw_material = item.get(RAW_MATERIAL_KEY)
    malformed = False

    if sub_bom:
        kind = NodeKind.ASSEMBLY
        code = sub_bom.get(BOM_CODE_KEY) or ""
        name = sub_bom.get(BOM_NAME_KEY) or ""
    elif raw_material:
        kind = NodeKind.LEAF
        code = raw_material.get(RAW_MATERIAL_CODE_KEY) or ""
        name = raw_material.get(RAW_MATERIAL_NAME_KEY) or ""
    else:
        # One bad item must not abort the whole comparison
        kind = NodeKind.LEAF
        code = UNKNOWN_ITEM_CODE
        name = UNKNOWN_ITEM_NAME
        malformed = True
        logger.warning(
            f"BOM item {item.get(ITEM_ID_KEY)!r} under '{parent.path}' has neither "
            f"'{SUB_BOM_KEY}' nor '{RAW_MATERIAL_KEY}'; using placeholder '{UNKNOWN_ITEM_CODE}'"
        )

    node = BomTreeNode(
        id=item.get(ITEM_ID_KEY),
        code=code,
        name=name,
        level=level,
        kind=kind,
        path=child_path(parent.path, code),
        parent_id=parent.id,
        source=item,
        malformed=malformed,
    )

    for sub_item in item.get(SUB_BOM_ITEMS_KEY) or []:
        node.children.append(_build_item_node(sub_item, node, level + 1))

    return node


def flatten_bom_tree(node: BomTreeNode) -> List[BomTreeNode]:
    """Flatten a tree into a pre-order list of nodes."""
    result = [node]
    for child in node.children:
        result.extend(flatten_bom_tree(child))
    return result


def index_tree_by_path(tree: BomTreeNode) -> Dict[str, BomTreeNode]:
    """Map every path in the tree to its node (first occurrence wins)."""
    index: Dict[str, BomTreeNode] = {}
    for node in flatten_bom_tree(tree):
        index.setdefault(node.path, node)
    return index


def find_node_by_path(tree: BomTreeNode, path: str) -> Optional[BomTreeNode]:
    """Find a node by its hierarchy path."""
    if tree.path == path:
        return tree
    for child in tree.children:
        found = find_node_by_path(child, path)
        if found is not None:
            return found
    return None


def find_node_by_code(tree: BomTreeNode, code: str) -> Optional[BomTreeNode]:
    """Find the first node (pre-order) with the given code anywhere in the tree."""
    if tree.code == code:
        return tree
    for child in tree.children:
        found = find_node_by_code(child, code)
        if found is not None:
            return found
    return None


def get_items_for_comparison(node: BomTreeNode) -> List[Dict[str, Any]]:
    """
    Get the raw child items shown when a node is selected for comparison.

    Root -> top-level bom_items, assembly -> its sub_bom_items, leaf -> nothing.
    """
    if node.kind is NodeKind.ROOT:
        return list(node.source.get(DOCUMENT_ITEMS_KEY) or [])
    if node.kind is NodeKind.ASSEMBLY:
        return list(node.source.get(SUB_BOM_ITEMS_KEY) or [])
    return []


def extract_item_fields(item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Extract the comparable, display-ready fields of a BOM item.

    Returns:
        Dict of fields, or None if the item is neither an assembly nor a
        raw material
    """
    sub_bom = item.get(SUB_BOM_KEY)
    raw_material = item.get(RAW_MATERIAL_KEY)

    if sub_bom:
        return {
            "kind": NodeKind.ASSEMBLY.value,
            "code": sub_bom.get(BOM_CODE_KEY),
            "name": sub_bom.get(BOM_NAME_KEY),
            "quantity": item.get("quantity"),
            "cost_per_unit": item.get("cost_per_unit"),
            "measurement_unit": item.get("measurement_unit"),
            "custom_sections": item.get(CUSTOM_SECTIONS_KEY),
            "selected": item.get("selected"),
        }
    if raw_material:
        return {
            "kind": NodeKind.LEAF.value,
            "code": raw_material.get(RAW_MATERIAL_CODE_KEY),
            "name": raw_material.get(RAW_MATERIAL_NAME_KEY),
            "quantity": item.get("quantity"),
            "cost_per_unit": item.get("cost_per_unit"),
            "measurement_unit": item.get("measurement_unit"),
            "delivery_schedule": item.get("delivery_schedule"),
            "alternates": item.get(ALTERNATES_KEY),
            "tags": raw_material.get("tags"),
            "custom_sections": item.get(CUSTOM_SECTIONS_KEY),
            "selected": item.get("selected"),
        }
    return None
