import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import CompareSettings
from .diff.aggregation import ChangeScope, ChangeStats, aggregate_changes
from .diff.deep_compare import ComparisonSummary, DeepComparator
from .diff.field_diff import ChangeType
from .diff.tree_diff import NodeChange, detect_tree_changes, get_node_change_status, has_changes_in_subtree
from .hierarchy import BomTreeNode, build_bom_tree
from .schema import PARENT_PATH_SEPARATOR

logger = logging.getLogger(__name__)


@dataclass
class BomComparison:
    """Result of comparing two versions of one BOM.

    Holds both trees and the path-keyed change map; aggregated views are
    derived on demand and never modify either.
    """
    left_tree: BomTreeNode
    right_tree: BomTreeNode
    change_map: Dict[str, NodeChange]
    parent_path_separator: str = PARENT_PATH_SEPARATOR

    def stats(self, scope: ChangeScope = ChangeScope.OVERALL) -> ChangeStats:
        """Aggregate the change map for one scope (ITEM, BOM or OVERALL)."""
        return aggregate_changes(
            self.change_map,
            self.left_tree,
            self.right_tree,
            scope,
            parent_path_separator=self.parent_path_separator,
        )

    def status(self, path: str) -> ChangeType:
        """Classification of a single path (UNCHANGED if not in the map)."""
        return get_node_change_status(path, self.change_map)

    def subtree_changed(self, path: str) -> bool:
        """True if the node at path or any of its descendants changed."""
        return has_changes_in_subtree(path, self.change_map)

    @property
    def has_changes(self) -> bool:
        return any(c.change_type is not ChangeType.UNCHANGED for c in self.change_map.values())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "left_root": self.left_tree.path,
            "right_root": self.right_tree.path,
            "changes": {path: change.to_dict() for path, change in self.change_map.items()},
            "summary": {scope.value: self.stats(scope).counts() for scope in ChangeScope},
        }


class BomComparer:
    """Compares two versions of a hierarchical Bill of Materials."""

    def __init__(self, settings: Optional[CompareSettings] = None):
        """Initialize the comparer.

        Args:
            settings: Comparison settings (default: CompareSettings())
        """
        self.adapters = []
        self.settings = settings or CompareSettings()

    def register_adapter(self, adapter):
        """Register a file adapter for loading BOM documents.

        Args:
            adapter: Adapter instance with can_handle() and read() methods
        """
        self.adapters.append(adapter)

    def load(self, file_path: str) -> Dict[str, Any]:
        """Load a BOM document from a file.

        Raises:
            ValueError: If no adapter is found for the file
        """
        adapter = None
        for a in self.adapters:
            if a.can_handle(file_path):
                adapter = a
                break

        if adapter is None:
            raise ValueError(f"No adapter found for {file_path}")

        return adapter.read(file_path)

    def compare(self, left_document: Dict[str, Any], right_document: Dict[str, Any]) -> BomComparison:
        """Compare two BOM documents.

        Args:
            left_document: Older version
            right_document: Newer version

        Returns:
            BomComparison with both trees and the change map
        """
        left_tree = build_bom_tree(left_document)
        right_tree = build_bom_tree(right_document)
        change_map = detect_tree_changes(left_tree, right_tree)

        comparison = BomComparison(
            left_tree=left_tree,
            right_tree=right_tree,
            change_map=change_map,
            parent_path_separator=self.settings.parent_path_separator,
        )

        counts = comparison.stats(ChangeScope.OVERALL).counts()
        logger.info(
            f"Compared BOM '{left_tree.path}' with '{right_tree.path}': "
            f"{counts['added']} added, {counts['removed']} removed, {counts['modified']} modified"
        )

        return comparison

    def compare_files(self, left_path: str, right_path: str) -> BomComparison:
        """Load two BOM documents and compare them.

        Convenience method that combines load() and compare().
        """
        return self.compare(self.load(left_path), self.load(right_path))

    def compare_raw(self, left: Any, right: Any, base_path: str = "") -> ComparisonSummary:
        """Compare two arbitrary nested values with the schema-agnostic comparator."""
        comparator = DeepComparator(
            exclude_fields=self.settings.exclude_fields,
            max_depth=self.settings.max_depth,
            identity_keys=self.settings.identity_keys,
        )
        summary = comparator.compare(left, right, base_path)

        if summary.errors:
            logger.warning(f"Raw comparison finished with {len(summary.errors)} truncated branch(es)")

        return summary
