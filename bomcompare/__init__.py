from .comparer import BomComparer, BomComparison
from .config import CompareSettings
from .hierarchy import BomTreeNode, NodeKind, build_bom_tree
from .adapters import JsonAdapter

__all__ = ["BomComparer", "BomComparison", "CompareSettings", "BomTreeNode", "NodeKind", "build_bom_tree", "JsonAdapter"]
