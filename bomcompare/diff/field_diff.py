"""
Field-level diff between two matched BOM tree nodes.

This module compares only the fields engineers review on a BOM:
- Root: quantity and total cost
- Items: quantity, cost per unit, custom fields and the number of alternates
- Custom fields are matched purely by NAME, regardless of the section that
  holds them or their per-version identifiers

Bookkeeping data (entry ids, custom field/section ids, selection state,
measurement units, delivery schedules) never appears in a field diff.

CORE PRINCIPLES:
1. Unchanged fields are never reported
2. Values are compared by structure, not identity
3. A field that moves to another section is the same field
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from ..hierarchy import BomTreeNode
from ..schema import (
    ALTERNATES_COUNT_FIELD,
    ALTERNATES_KEY,
    CUSTOM_FIELD_NAME_KEY,
    CUSTOM_FIELD_PREFIX,
    CUSTOM_FIELD_VALUE_KEY,
    CUSTOM_FIELDS_KEY,
    CUSTOM_SECTIONS_KEY,
    ITEM_FIXED_FIELDS,
    ROOT_FIXED_FIELDS,
    field_label,
)


class ChangeType(Enum):
    """Classification of a node or a field across two versions."""
    ADDED = "added"          # Only present in the right (newer) version
    REMOVED = "removed"      # Only present in the left (older) version
    MODIFIED = "modified"    # Present in both, content differs
    UNCHANGED = "unchanged"  # Present in both, content identical


# Marks a field that is absent on one side (distinct from an explicit None)
MISSING = object()


@dataclass
class FieldChange:
    """
    A single field-level change between two matched nodes.

    `field` is the stable identifier ("quantity", "custom_field.Grade",
    "alternates_count"); `label` is what a reviewer sees.
    """
    field: str
    label: str
    from_value: Any
    to_value: Any
    change_type: ChangeType

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "field": self.field,
            "label": self.label,
            "from_value": self.from_value,
            "to_value": self.to_value,
            "change_type": self.change_type.value,
        }


def _canonicalize(value: Any) -> Any:
    """
    Reduce a JSON-like value to a canonical form for structural comparison.

    - Mapping key order is irrelevant
    - Integral floats compare equal to ints (5.0 == 5)
    - Tuples are lists
    """
    if isinstance(value, dict):
        return {str(k): _canonicalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonicalize(v) for v in value]
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def values_equal(a: Any, b: Any) -> bool:
    """
    Deep structural equality over custom field values.

    Booleans never equal numbers (json renders True as "true", 1 as "1").
    """
    return (
        json.dumps(_canonicalize(a), sort_keys=True, default=str)
        == json.dumps(_canonicalize(b), sort_keys=True, default=str)
    )


def create_field_change(field: str, from_value: Any, to_value: Any) -> FieldChange:
    """
    Classify one field given its value on each side.

    Use MISSING for a side where the field does not exist.
    """
    if from_value is MISSING and to_value is not MISSING:
        change_type = ChangeType.ADDED
    elif from_value is not MISSING and to_value is MISSING:
        change_type = ChangeType.REMOVED
    elif from_value is MISSING or values_equal(from_value, to_value):
        change_type = ChangeType.UNCHANGED
    else:
        change_type = ChangeType.MODIFIED

    return FieldChange(
        field=field,
        label=field_label(field),
        from_value=None if from_value is MISSING else from_value,
        to_value=None if to_value is MISSING else to_value,
        change_type=change_type,
    )


def collect_custom_fields(source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten all custom sections of a document or item into name -> value.

    Section membership and field identifiers are discarded. If two fields
    share a name, the last one wins.
    """
    fields: Dict[str, Any] = {}
    for section in source.get(CUSTOM_SECTIONS_KEY) or []:
        for custom_field in section.get(CUSTOM_FIELDS_KEY) or []:
            name = custom_field.get(CUSTOM_FIELD_NAME_KEY)
            if name is None:
                continue
            fields[name] = custom_field.get(CUSTOM_FIELD_VALUE_KEY)
    return fields


def _diff_fixed_fields(
    left: Dict[str, Any],
    right: Dict[str, Any],
    fields: List[str]
) -> List[FieldChange]:
    changes = []
    for name in fields:
        change = create_field_change(name, left.get(name, MISSING), right.get(name, MISSING))
        if change.change_type is not ChangeType.UNCHANGED:
            changes.append(change)
    return changes


def _diff_custom_fields(left: Dict[str, Any], right: Dict[str, Any]) -> List[FieldChange]:
    fields_a = collect_custom_fields(left)
    fields_b = collect_custom_fields(right)

    changes = []
    # Left order first, then names only found on the right
    for name in dict.fromkeys(list(fields_a) + list(fields_b)):
        change = create_field_change(
            f"{CUSTOM_FIELD_PREFIX}.{name}",
            fields_a.get(name, MISSING),
            fields_b.get(name, MISSING),
        )
        if change.change_type is not ChangeType.UNCHANGED:
            changes.append(change)
    return changes


def _alternates_count(item: Dict[str, Any]) -> int:
    return len(item.get(ALTERNATES_KEY) or [])


def diff_root_fields(left: Dict[str, Any], right: Dict[str, Any]) -> List[FieldChange]:
    """Compare two BOM documents at root level (quantity, total, custom fields)."""
    changes = _diff_fixed_fields(left, right, ROOT_FIXED_FIELDS)
    changes.extend(_diff_custom_fields(left, right))
    return changes


def diff_item_fields(left: Dict[str, Any], right: Dict[str, Any]) -> List[FieldChange]:
    """Compare two BOM items (quantity, cost per unit, custom fields, alternates)."""
    changes = _diff_fixed_fields(left, right, ITEM_FIXED_FIELDS)
    changes.extend(_diff_custom_fields(left, right))

    # Only flag alternates when the count actually differs
    count_a = _alternates_count(left)
    count_b = _alternates_count(right)
    if count_a != count_b:
        changes.append(FieldChange(
            field=ALTERNATES_COUNT_FIELD,
            label=field_label(ALTERNATES_COUNT_FIELD),
            from_value=count_a,
            to_value=count_b,
            change_type=ChangeType.MODIFIED,
        ))

    return changes


def diff_node_fields(left: BomTreeNode, right: BomTreeNode) -> List[FieldChange]:
    """
    Compute the field-level changes between two nodes matched at the same path.

    Args:
        left: Node from the older version
        right: Node from the newer version

    Returns:
        Ordered list of FieldChange entries, unchanged fields excluded
    """
    if left.is_root:
        return diff_root_fields(left.source, right.source)
    return diff_item_fields(left.source, right.source)
