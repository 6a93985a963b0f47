"""Traversal helpers for ADF JSON trees.

traverse() rebuilds a tree while letting visitors replace nodes; it never
mutates its input. filter_nodes() collects nodes in document (pre-order)
order.
"""

import copy
from typing import Any, Callable, Dict, List, Optional

AdfNode = Dict[str, Any]
Visitor = Callable[[AdfNode, Optional[AdfNode]], Optional[AdfNode]]

# Visitor key applied to every node regardless of type
ANY = "any"


def traverse(adf: AdfNode, visitors: Dict[str, Visitor]) -> AdfNode:
    """Return a copy of adf with visitors applied top-down.

    Visitors are looked up by node type, then by ANY. A visitor receives a
    private copy of the node and its (already visited) parent; it returns the
    replacement node, or None to keep the node as it is. Children of the
    returned node are visited afterwards.

    Args:
        adf: ADF document or node
        visitors: Mapping of node type (or ANY) to visitor

    Returns:
        New ADF tree
    """
    return _visit(copy.deepcopy(adf), None, visitors)


def _visit(node: AdfNode, parent: Optional[AdfNode], visitors: Dict[str, Visitor]) -> AdfNode:
    for key in (node.get("type"), ANY):
        visitor = visitors.get(key)
        if visitor is None:
            continue
        replacement = visitor(node, parent)
        if replacement is not None:
            node = replacement

    content = node.get("content")
    if isinstance(content, list):
        node["content"] = [
            _visit(child, node, visitors) if isinstance(child, dict) else child
            for child in content
        ]
    return node


def filter_nodes(adf: AdfNode, predicate: Callable[[AdfNode], bool]) -> List[AdfNode]:
    """Collect the nodes matching predicate, in document order."""
    matches: List[AdfNode] = []

    def collect(node: AdfNode) -> None:
        if predicate(node):
            matches.append(node)
        for child in node.get("content") or []:
            if isinstance(child, dict):
                collect(child)

    collect(adf)
    return matches
