"""BOM diff module for comparing two versions of a hierarchical BOM."""

from .field_diff import (
    ChangeType,
    FieldChange,
    diff_node_fields,
    collect_custom_fields,
    values_equal,
)

from .tree_diff import (
    NodeChange,
    detect_tree_changes,
    has_changes_in_subtree,
    get_node_change_status,
)

from .aggregation import (
    ChangeScope,
    AggregatedChange,
    ChangeStats,
    aggregate_changes,
    aggregate_item_changes,
    aggregate_bom_changes,
    aggregate_overall_changes,
)

from .deep_compare import (
    DeepComparator,
    ComparisonEntry,
    ComparisonSummary,
    compare_data,
    detect_data_type,
)

__all__ = [
    # Field-level diff
    "ChangeType",
    "FieldChange",
    "diff_node_fields",
    "collect_custom_fields",
    "values_equal",
    # Structural diff
    "NodeChange",
    "detect_tree_changes",
    "has_changes_in_subtree",
    "get_node_change_status",
    # Aggregation
    "ChangeScope",
    "AggregatedChange",
    "ChangeStats",
    "aggregate_changes",
    "aggregate_item_changes",
    "aggregate_bom_changes",
    "aggregate_overall_changes",
    # Schema-agnostic comparison
    "DeepComparator",
    "ComparisonEntry",
    "ComparisonSummary",
    "compare_data",
    "detect_data_type",
]
