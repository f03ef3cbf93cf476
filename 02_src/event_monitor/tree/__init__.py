"""Tree renderer module."""

from .renderer import (
    ExpansionState,
    JsonTree,
    NodeKind,
    TreeChild,
    TreeNode,
    classify,
    iter_leaves,
    iter_nodes,
    load_embedded,
    node_to_dict,
    parse_embedded,
    render,
)

__all__ = [
    "ExpansionState",
    "JsonTree",
    "NodeKind",
    "TreeChild",
    "TreeNode",
    "classify",
    "iter_leaves",
    "iter_nodes",
    "load_embedded",
    "node_to_dict",
    "parse_embedded",
    "render",
]
