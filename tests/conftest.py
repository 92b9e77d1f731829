"""Shared fixtures: factories for building BOM documents in tests."""

import itertools
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class BomFactory:
    """Builds BOM documents and items shaped like real exports."""

    def __init__(self):
        self._ids = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def sections(self, fields: Optional[Dict[str, Any]], section_name: str = "General") -> List[Dict[str, Any]]:
        """One custom section holding the given name -> value fields."""
        if fields is None:
            return []
        return [{
            "custom_section_id": self._next_id("cs"),
            "name": section_name,
            "section_type": "ITEM",
            "custom_fields": [
                {
                    "custom_field_id": self._next_id("cf"),
                    "name": name,
                    "type": "SHORTTEXT",
                    "value": value,
                }
                for name, value in fields.items()
            ],
        }]

    def raw(
        self,
        code: str,
        quantity: Any = 1,
        cost_per_unit: Any = 10,
        custom_fields: Optional[Dict[str, Any]] = None,
        alternates: Optional[List[Dict[str, Any]]] = None,
        name: Optional[str] = None,
        entry_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """A raw-material item."""
        return {
            "entry_id": entry_id or self._next_id("item"),
            "bom_item_id": self._next_id("bi"),
            "sub_bom": None,
            "sub_bom_items": None,
            "raw_material_item": {
                "enterprise_item_id": self._next_id("ei"),
                "code": code,
                "name": name or f"Material {code}",
                "tags": [],
            },
            "alternates": alternates or [],
            "quantity": quantity,
            "measurement_unit": "mu-kg",
            "cost_per_unit": cost_per_unit,
            "delivery_schedule": [],
            "custom_sections": self.sections(custom_fields),
            "selected": True,
        }

    def sub(
        self,
        code: str,
        children: List[Dict[str, Any]],
        quantity: Any = 1,
        cost_per_unit: Any = 100,
        custom_fields: Optional[Dict[str, Any]] = None,
        name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """A sub-assembly item with nested children."""
        return {
            "entry_id": self._next_id("item"),
            "bom_item_id": self._next_id("bi"),
            "sub_bom": {
                "enterprise_bom_id": self._next_id("eb"),
                "bom_code": code,
                "bom_name": name or f"Assembly {code}",
            },
            "sub_bom_items": children,
            "raw_material_item": None,
            "alternates": [],
            "quantity": quantity,
            "measurement_unit": "mu-pcs",
            "cost_per_unit": cost_per_unit,
            "delivery_schedule": [],
            "custom_sections": self.sections(custom_fields),
            "selected": False,
        }

    def malformed(self) -> Dict[str, Any]:
        """An item with neither a sub-assembly nor a raw-material descriptor."""
        return {
            "entry_id": self._next_id("item"),
            "sub_bom": None,
            "raw_material_item": None,
            "quantity": 1,
            "cost_per_unit": 0,
        }

    def document(
        self,
        code: str,
        items: List[Dict[str, Any]],
        quantity: Any = 1,
        total: Any = 1000,
        custom_fields: Optional[Dict[str, Any]] = None,
        name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """A BOM document (root)."""
        return {
            "entry_id": self._next_id("doc"),
            "base_bom_module_linkage_id": self._next_id("link"),
            "enterprise_bom": {
                "enterprise_bom_id": self._next_id("eb"),
                "bom_code": code,
                "bom_name": name or f"BOM {code}",
            },
            "quantity": quantity,
            "total": total,
            "currency_id": "usd",
            "custom_sections": self.sections(custom_fields),
            "bom_items": items,
        }


@pytest.fixture
def bom():
    """Factory for BOM documents and items."""
    return BomFactory()


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def caplog_warnings(caplog):
    """caplog capturing bomcompare warnings."""
    caplog.set_level(logging.WARNING, logger="bomcompare")
    return caplog
