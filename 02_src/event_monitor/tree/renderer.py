"""Structured-data tree renderer.

Turns an arbitrary JSON-like value (or a string holding embedded JSON) into a
lazily expanded tree of display nodes. Rendering depends only on the value,
the node depth and an ExpansionState, so the same inputs always produce the
same tree.
"""

import json
import math
import numbers
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any

from ..errors import ParseError

DEFAULT_EXPANDED_DEPTH = 2
PREVIEW_KEY_LIMIT = 4

Path = tuple[str | int, ...]


class NodeKind(str, Enum):
    """Intrinsic type of a rendered value."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"


def load_embedded(text: str) -> Any:
    """Parse embedded JSON text, raising ParseError when malformed.

    NaN, Infinity and -Infinity are not JSON and are rejected.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise ParseError(str(e)) from e


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_embedded(value: Any) -> Any:
    """Unwrap a string that holds a JSON object or array; anything else passes through."""
    if isinstance(value, str):
        trimmed = value.strip()
        if (trimmed.startswith("{") and trimmed.endswith("}")) or (
            trimmed.startswith("[") and trimmed.endswith("]")
        ):
            try:
                return load_embedded(trimmed)
            except ParseError:
                return value
    return value


def classify(value: Any) -> NodeKind:
    """Classify a value by its runtime type."""
    if value is None:
        return NodeKind.NULL
    # bool is a Number subclass, check it first
    if isinstance(value, bool):
        return NodeKind.BOOLEAN
    if isinstance(value, numbers.Number):
        return NodeKind.NUMBER
    if isinstance(value, str):
        return NodeKind.STRING
    if isinstance(value, Mapping):
        return NodeKind.OBJECT
    if isinstance(value, (list, tuple)):
        return NodeKind.ARRAY
    return NodeKind.STRING


class ExpansionState:
    """Per-tree expansion overrides keyed by node path."""

    def __init__(self, overrides: Mapping[Path, bool] | None = None):
        self._overrides: dict[Path, bool] = dict(overrides or {})

    def is_expanded(self, path: Path, depth: int) -> bool:
        return self._overrides.get(path, depth < DEFAULT_EXPANDED_DEPTH)

    def set(self, path: Path, expanded: bool) -> None:
        self._overrides[path] = expanded

    def toggle(self, path: Path, depth: int) -> bool:
        """Flip the node at path and return its new state."""
        expanded = not self.is_expanded(path, depth)
        self._overrides[path] = expanded
        return expanded

    def clear(self) -> None:
        self._overrides.clear()

    def __len__(self) -> int:
        return len(self._overrides)


@dataclass(frozen=True)
class TreeChild:
    """A child slot of a composite node."""

    key: str | None  # None for array items
    has_separator: bool
    node: "TreeNode"


@dataclass(frozen=True)
class TreeNode:
    """A display node; children are rendered on first access."""

    kind: NodeKind
    value: Any
    depth: int
    path: Path
    expanded: bool
    expansion: ExpansionState = field(repr=False, compare=False)

    @property
    def is_complex(self) -> bool:
        return self.kind in (NodeKind.OBJECT, NodeKind.ARRAY)

    @property
    def key(self) -> str | int | None:
        return self.path[-1] if self.path else None

    @property
    def size(self) -> int:
        return len(self.value) if self.is_complex else 0

    @cached_property
    def children(self) -> list[TreeChild]:
        if self.kind is NodeKind.OBJECT:
            items = [(str(key), value) for key, value in self.value.items()]
            last = len(items) - 1
            return [
                TreeChild(
                    key=key,
                    has_separator=idx < last,
                    node=render(value, self.depth + 1, self.expansion, self.path + (key,)),
                )
                for idx, (key, value) in enumerate(items)
            ]
        if self.kind is NodeKind.ARRAY:
            last = len(self.value) - 1
            return [
                TreeChild(
                    key=None,
                    has_separator=idx < last,
                    node=render(item, self.depth + 1, self.expansion, self.path + (idx,)),
                )
                for idx, item in enumerate(self.value)
            ]
        return []

    @property
    def display_value(self) -> str:
        if self.kind is NodeKind.STRING:
            return f'"{self.value}"'
        if self.kind is NodeKind.NULL:
            return "null"
        if self.kind is NodeKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind is NodeKind.NUMBER:
            return _format_number(self.value)
        return ""

    @property
    def open_bracket(self) -> str:
        return "[" if self.kind is NodeKind.ARRAY else "{"

    @property
    def close_bracket(self) -> str:
        return "]" if self.kind is NodeKind.ARRAY else "}"

    @property
    def preview(self) -> str:
        """Summary shown in place of the children while collapsed."""
        if self.kind is NodeKind.ARRAY:
            count = len(self.value)
            if count == 0:
                return ""
            return f"… {count} item{'s' if count > 1 else ''}"
        if self.kind is NodeKind.OBJECT:
            keys = [str(key) for key in self.value]
            if not keys:
                return ""
            preview = ", ".join(keys[:PREVIEW_KEY_LIMIT])
            return f"{preview}, …" if len(keys) > PREVIEW_KEY_LIMIT else preview
        return ""

    @property
    def item_count_label(self) -> str:
        if self.kind is not NodeKind.OBJECT:
            return ""
        count = len(self.value)
        return f"// {count} key{'s' if count != 1 else ''}"


def _format_number(value: Any) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def render(
    value: Any,
    depth: int = 0,
    expansion: ExpansionState | None = None,
    path: Path = (),
) -> TreeNode:
    """Render a value into a TreeNode at the given depth."""
    if expansion is None:
        expansion = ExpansionState()

    parsed = parse_embedded(value)
    kind = classify(parsed)
    if kind is NodeKind.STRING and not isinstance(parsed, str):
        parsed = str(parsed)
    elif kind is NodeKind.ARRAY and isinstance(parsed, tuple):
        parsed = list(parsed)

    return TreeNode(
        kind=kind,
        value=parsed,
        depth=depth,
        path=path,
        expanded=expansion.is_expanded(path, depth),
        expansion=expansion,
    )


def iter_nodes(node: TreeNode, displayed_only: bool = True) -> Iterator[TreeNode]:
    """Walk nodes depth-first in display order.

    With displayed_only, collapsed composites are yielded but not entered.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if current.is_complex and (current.expanded or not displayed_only):
            stack.extend(child.node for child in reversed(current.children))


def iter_leaves(node: TreeNode) -> Iterator[tuple[Path, str]]:
    """Yield (path, display value) for every displayed primitive."""
    for current in iter_nodes(node):
        if not current.is_complex:
            yield current.path, current.display_value


def node_to_dict(node: TreeNode) -> dict:
    """Serialize the displayed part of a tree."""
    data: dict[str, Any] = {
        "kind": node.kind.value,
        "path": list(node.path),
        "depth": node.depth,
        "expanded": node.expanded,
    }
    if not node.is_complex:
        data["display_value"] = node.display_value
        return data

    data.update(
        {
            "open_bracket": node.open_bracket,
            "close_bracket": node.close_bracket,
            "preview": node.preview,
            "item_count_label": node.item_count_label,
            "size": node.size,
        }
    )
    if node.expanded:
        data["children"] = [
            {
                "key": child.key,
                "has_separator": child.has_separator,
                **node_to_dict(child.node),
            }
            for child in node.children
        ]
    return data


class JsonTree:
    """One rendered tree instance with its own expansion state."""

    def __init__(self, value: Any, depth: int = 0):
        self._value = value
        self._depth = depth
        self.expansion = ExpansionState()

    @property
    def root(self) -> TreeNode:
        return render(self._value, self._depth, self.expansion)

    def node_at(self, path: Path) -> TreeNode:
        """Find the node at path, raising KeyError if the path does not exist."""
        node = self.root
        for step in path:
            node = _child_at(node, step, path)
        return node

    def toggle(self, path: Path) -> bool:
        """Toggle the node at path and return its new expanded state."""
        node = self.node_at(path)
        return self.expansion.toggle(node.path, node.depth)

    def collapse_all(self) -> None:
        """Pin every composite closed; reset() restores the initial view."""
        self._set_all(False)

    def expand_all(self) -> None:
        """Pin every composite open, including those below the default depth.

        This is not the initial view: nodes at depth 2 and deeper start
        collapsed. Use reset() to return to the depth-based defaults.
        """
        self._set_all(True)

    def reset(self) -> None:
        """Drop all toggles and return to depth-based defaults."""
        self.expansion.clear()

    def to_dict(self) -> dict:
        return node_to_dict(self.root)

    def _set_all(self, expanded: bool) -> None:
        for node in iter_nodes(self.root, displayed_only=False):
            if node.is_complex:
                self.expansion.set(node.path, expanded)


def _child_at(node: TreeNode, step: str | int, path: Path) -> TreeNode:
    if node.kind is NodeKind.ARRAY:
        try:
            index = int(step)
        except (TypeError, ValueError):
            raise KeyError(f"No node at path {list(path)!r}") from None
        if 0 <= index < len(node.children):
            return node.children[index].node
    elif node.kind is NodeKind.OBJECT:
        for child in node.children:
            if child.key == str(step):
                return child.node
    raise KeyError(f"No node at path {list(path)!r}")
