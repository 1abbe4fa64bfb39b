"""Depth-first tree traversal with parent/index context.

The visitor receives the matched node together with its parent and its
position in ``parent.children`` so that it can splice a replacement in
place::

    def visitor(node, index, parent):
        parent.children[index] = replacement

    visit(tree, "image", visitor)
"""

from __future__ import annotations

from collections.abc import Callable

from mdx_images.nodes import AnyNode, children_of

Visitor = Callable[[AnyNode, int | None, AnyNode | None], None]
"""``visitor(node, index, parent)``; *index* and *parent* are ``None`` for the root."""


def visit(tree: AnyNode, node_type: str, visitor: Visitor) -> None:
    """Call *visitor* for every node of *node_type* under *tree*, in document order.

    The visitor may replace ``parent.children[index]`` with exactly one
    node.  Traversal then descends into the children of the node as it
    was before the call and continues with the next sibling, so a
    replacement is never itself visited.

    Exceptions raised by *visitor* propagate unchanged.
    """
    if tree.type == node_type:
        visitor(tree, None, None)
    _visit_children(tree, node_type, visitor)


def _visit_children(parent: AnyNode, node_type: str, visitor: Visitor) -> None:
    children = children_of(parent)
    if not children:
        return
    # Explicit stack of (parent, next index) frames keeps deep trees off
    # the Python call stack.
    stack: list[tuple[AnyNode, int]] = [(parent, 0)]
    while stack:
        current, index = stack.pop()
        siblings = children_of(current)
        if siblings is None or index >= len(siblings):
            continue
        node = siblings[index]
        if node.type == node_type:
            visitor(node, index, current)
        stack.append((current, index + 1))
        if children_of(node):
            stack.append((node, 0))
