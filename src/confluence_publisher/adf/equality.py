"""Structural equality for plain data and ADF documents.

Two comparators decide whether a publish is needed:

- is_equal(): deep equality over JSON-like data. List order matters, dict key
  order does not, booleans never equal numbers and None only equals None.
- adf_equal(): ADF equality where the unordered "marks" list of every node
  is deep-sorted first, so the same annotations in a different order compare
  equal.

A True result must only be returned when nothing needs publishing; reporting
False for semantically equal values merely causes a harmless re-publish.
"""

import json
from typing import Any, Dict, Optional

from .traverse import ANY, traverse

AdfNode = Dict[str, Any]


def is_equal(first: Any, second: Any) -> bool:
    """Deep equality over nested dicts, lists and primitives."""
    if first is second:
        return True

    if first is None or second is None:
        return False

    if isinstance(first, bool) or isinstance(second, bool):
        return isinstance(first, bool) and isinstance(second, bool) and first == second

    if isinstance(first, dict) and isinstance(second, dict):
        if first.keys() != second.keys():
            return False
        return all(is_equal(value, second[key]) for key, value in first.items())

    if isinstance(first, (list, tuple)) and isinstance(second, (list, tuple)):
        if len(first) != len(second):
            return False
        return all(is_equal(a, b) for a, b in zip(first, second))

    if isinstance(first, (dict, list, tuple)) or isinstance(second, (dict, list, tuple)):
        return False

    if isinstance(first, (int, float)) and isinstance(second, (int, float)):
        return first == second

    return type(first) is type(second) and first == second


def _sort_key(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def sort_deep(value: Any) -> Any:
    """Recursively sort every list inside value into a canonical order."""
    if isinstance(value, dict):
        return {key: sort_deep(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return sorted((sort_deep(item) for item in value), key=_sort_key)
    return value


def order_marks(adf: AdfNode) -> AdfNode:
    """Return a copy of adf where every node's marks list is deep-sorted."""
    def _sort_marks(node: AdfNode, _parent: Optional[AdfNode]) -> AdfNode:
        if node.get("marks"):
            node["marks"] = sort_deep(node["marks"])
        return node

    return traverse(adf, {ANY: _sort_marks})


def adf_equal(first: Optional[AdfNode], second: Optional[AdfNode]) -> bool:
    """Compare two ADF trees ignoring the order of marks."""
    if first is None or second is None:
        return first is second
    return is_equal(order_marks(first), order_marks(second))
