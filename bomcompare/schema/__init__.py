"""BOM document schema definitions: document keys, field labels and identity keys."""

from typing import Dict, List

# Root document keys
DOCUMENT_ID_KEY = "entry_id"
DOCUMENT_BOM_KEY = "enterprise_bom"
DOCUMENT_ITEMS_KEY = "bom_items"
DOCUMENT_LINKAGE_KEY = "base_bom_module_linkage_id"

# Assembly descriptor keys (document root and sub-assemblies)
BOM_CODE_KEY = "bom_code"
BOM_NAME_KEY = "bom_name"

# BOM item keys
ITEM_ID_KEY = "entry_id"
SUB_BOM_KEY = "sub_bom"
SUB_BOM_ITEMS_KEY = "sub_bom_items"
RAW_MATERIAL_KEY = "raw_material_item"
RAW_MATERIAL_CODE_KEY = "code"
RAW_MATERIAL_NAME_KEY = "name"
ALTERNATES_KEY = "alternates"

# Custom field containers
CUSTOM_SECTIONS_KEY = "custom_sections"
CUSTOM_FIELDS_KEY = "custom_fields"
CUSTOM_FIELD_NAME_KEY = "name"
CUSTOM_FIELD_VALUE_KEY = "value"

# Field identifier prefix for dynamic custom fields, e.g. "custom_field.Grade"
CUSTOM_FIELD_PREFIX = "custom_field"

# Sentinel identity for items carrying neither a sub-assembly nor a raw material
UNKNOWN_ITEM_CODE = "UNKNOWN"
UNKNOWN_ITEM_NAME = "Unknown Item"

# Fixed fields compared on the document root, in report order
ROOT_FIXED_FIELDS: List[str] = [
    "quantity",
    "total",
]

# Fixed fields compared on every non-root item, in report order
ITEM_FIXED_FIELDS: List[str] = [
    "quantity",
    "cost_per_unit",
]

# Derived field emitted only when the number of alternates differs
ALTERNATES_COUNT_FIELD = "alternates_count"

# Display labels for fixed and derived fields
FIELD_LABELS: Dict[str, str] = {
    "quantity": "Quantity",
    "total": "Total Cost",
    "cost_per_unit": "Cost Per Unit",
    ALTERNATES_COUNT_FIELD: "Alternates Count",
}

# Candidate identity keys for array elements, in priority order.
# The first key with a non-empty value identifies an element.
IDENTITY_KEY_CANDIDATES: List[str] = [
    "entry_id",
    "costing_sheet_item_id",
    "bom_item_id",
    "custom_section_id",
    "custom_field_id",
    "attribute_linkage_id",
    "additional_cost_linkage_id",
    "delivery_schedule_item_id",
    "id",
]

# Default recursion limit of the generic deep comparator
DEFAULT_MAX_DEPTH = 10

# Separator used to render an ancestor path for display, e.g. "A > S1"
PARENT_PATH_SEPARATOR = " > "

# Separator between codes in a hierarchy path, e.g. "A.S1.R3"
PATH_SEPARATOR = "."


def field_label(field: str) -> str:
    """Return the display label for a field identifier.

    Custom fields are labelled with their own name; unknown fixed fields
    fall back to the identifier itself.
    """
    if field.startswith(CUSTOM_FIELD_PREFIX + "."):
        return field[len(CUSTOM_FIELD_PREFIX) + 1:]
    return FIELD_LABELS.get(field, field)
