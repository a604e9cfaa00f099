"""Convert flat dotted counter names into nested counters.

A key such as ``"WaitResponse.Pass.OK"`` becomes
``{"WaitResponse": {"Pass": {"OK": value}}}``. A key may not be both a leaf
and the prefix of another key.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional


class HierarchyError(ValueError):
    """Raised when flat counters cannot be arranged into a hierarchy."""


@dataclass
class TreeNode:
    """A node of the key tree; inner nodes carry the value -1."""

    key: str
    value: int = -1
    children: list[Optional["TreeNode"]] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children


def new_node(is_last_key: bool, node_key: str, node_val: int) -> TreeNode:
    """Create a leaf carrying ``node_val`` or an inner node carrying -1."""
    return TreeNode(node_key, node_val if is_last_key else -1)


def check_validity(node: TreeNode, is_last_key: bool, cnt_key: str) -> None:
    """Check that an existing ``node`` may be reused while inserting ``cnt_key``."""
    if node.is_leaf:
        raise HierarchyError(f"key[{cnt_key}] at least has one prefix key")
    if is_last_key:
        raise HierarchyError(f"key[{cnt_key}] is the prefix of other keys")


def get_node(children: Optional[list[Optional[TreeNode]]], key: str) -> Optional[TreeNode]:
    """Return the child whose key is ``key``, or None."""
    for child in children or ():
        if child is not None and child.key == key:
            return child
    return None


def insert(father: TreeNode, child: TreeNode) -> None:
    """Append ``child`` to the children of ``father``."""
    father.children.append(child)


def build_tree(root: TreeNode, cnt_key: str, cnt_val: int) -> None:
    """Insert the dotted key ``cnt_key`` with ``cnt_val`` below ``root``."""
    parts = cnt_key.split(".")
    node = root
    for index, part in enumerate(parts):
        is_last_key = index + 1 == len(parts)
        child = get_node(node.children, part)
        if child is None:
            child = new_node(is_last_key, part, cnt_val)
            insert(node, child)
        else:
            check_validity(child, is_last_key, cnt_key)
        node = child


def new_multi_tree(counters: Mapping[str, int]) -> TreeNode:
    """Build the key tree for all of ``counters``."""
    root = TreeNode("root", -1)
    for key, value in counters.items():
        build_tree(root, key, value)
    return root


def hier_counters_from_tree(node: TreeNode) -> dict[str, Any]:
    """Return nested counters for the children of ``node``.

    A node without children yields a mapping of its own key to its value.
    """
    if node.is_leaf:
        return {node.key: node.value}
    result: dict[str, Any] = {}
    for child in node.children:
        if child is None:
            continue
        result[child.key] = child.value if child.is_leaf else hier_counters_from_tree(child)
    return result


def to_hier_counters(counters: Mapping[str, int]) -> dict[str, Any]:
    """Convert flat dotted counters into nested counters."""
    try:
        root = new_multi_tree(counters)
    except HierarchyError as err:
        raise HierarchyError(f"Counters.toHierCounters(): {err}") from err
    if root.is_leaf:
        return {}
    return hier_counters_from_tree(root)