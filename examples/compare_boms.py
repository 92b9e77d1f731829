#!/usr/bin/env python3
"""Example: Compare two versions of a BOM and print what changed.

This script demonstrates how to use bomcompare to review a BOM revision:
which assemblies and items were added or removed, and which fields of the
remaining ones changed.
"""

import logging

from bomcompare import BomComparer, CompareSettings
from bomcompare.adapters import JsonAdapter
from bomcompare.diff import ChangeScope


def print_scope(comparison, scope: ChangeScope):
    """Print added/removed/modified nodes for one scope."""
    stats = comparison.stats(scope)
    counts = stats.counts()
    print(f"\n{scope.value.upper()} changes: {counts['total']} "
          f"({counts['added']} added, {counts['removed']} removed, {counts['modified']} modified)")

    for change in stats.added:
        print(f"  + {change.code:<12} {change.name}  [{change.parent_path}]")
    for change in stats.removed:
        print(f"  - {change.code:<12} {change.name}  [{change.parent_path}]")
    for change in stats.modified:
        print(f"  ~ {change.code:<12} {change.name}  [{change.parent_path}]")
        for field_change in change.changes:
            print(f"      {field_change.label}: {field_change.from_value!r} -> {field_change.to_value!r}")


def compare_boms(left_file: str, right_file: str, env_file: str = ".env"):
    """Compare two BOM JSON files.

    Settings (max depth, excluded fields, ...) are read from BOMCOMPARE_*
    environment variables, optionally loaded from env_file.

    Args:
        left_file: Path to the older BOM version
        right_file: Path to the newer BOM version
        env_file: Optional .env file with BOMCOMPARE_* settings
    """
    comparer = BomComparer(CompareSettings.from_env(env_file))
    comparer.register_adapter(JsonAdapter())

    comparison = comparer.compare_files(left_file, right_file)

    if not comparison.has_changes:
        print("✓ No differences found")
        return comparison

    print(f"Comparing {comparison.left_tree.code} ({left_file}) with {comparison.right_tree.code} ({right_file})")
    print_scope(comparison, ChangeScope.BOM)
    print_scope(comparison, ChangeScope.ITEM)

    return comparison


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 3:
        print("Usage: python compare_boms.py <old_bom.json> <new_bom.json>")
        print("\nExample:")
        print("  python compare_boms.py tests/fixtures/bom_v1.json tests/fixtures/bom_v2.json")
        sys.exit(1)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    compare_boms(sys.argv[1], sys.argv[2])
