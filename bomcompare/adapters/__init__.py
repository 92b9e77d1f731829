"""File adapters that load BOM documents for comparison."""

from .json_adapter import JsonAdapter

__all__ = ["JsonAdapter"]
