"""mdast JSON (unist) reading and writing.

Trees arrive as JSON produced by a Markdown parser (for example
``remark --tree-out``) and leave in the shape ``mdast-util-mdx``
expects, including the ``data.estree`` programs that MDX compiles
imports and expression attributes from.

Nodes the rewriter has no special knowledge of are preserved through
:class:`~mdx_images.nodes.Node`; their fields come back out unchanged.
MDX nodes already present in the input (ESM blocks, JSX elements) are
read as generic nodes too, so their source text and ESTree payloads
round-trip verbatim; only nodes the rewriter creates are typed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mdx_images.nodes import (
    AnyNode,
    ExpressionValue,
    Image,
    ImageImport,
    JsxAttribute,
    JsxTextElement,
    Node,
    Root,
)

_log = logging.getLogger("mdast")


class MdastError(ValueError):
    """Input JSON does not describe an mdast tree."""


# ---------------------------------------------------------------------------
# dict -> nodes
# ---------------------------------------------------------------------------


def _check_attributes(data: dict[str, Any]) -> None:
    """Reject a JSX element whose ``attributes`` is not a list of objects."""
    attrs = data.get("attributes", [])
    if not isinstance(attrs, list) or not all(isinstance(a, dict) for a in attrs):
        raise MdastError(f"Malformed JSX attributes: {data!r:.80}")


def _children(data: dict[str, Any]) -> list[AnyNode]:
    return [from_dict(child) for child in data.get("children", [])]


def from_dict(data: dict[str, Any]) -> AnyNode:
    """Build a node (and its subtree) from an mdast JSON object.

    Raises:
        MdastError: If *data* or any descendant is not an object with a
            string ``type``.
        MdastError: If a JSX element carries attributes that are not
            a list of objects.
    """
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise MdastError(f"Not an mdast node: {data!r:.80}")

    node_type = data["type"]
    rest = {k: v for k, v in data.items() if k not in ("type", "children")}

    if node_type == Root.type:
        return Root(_children(data), rest)

    if node_type == Image.type:
        if not isinstance(data.get("url"), str):
            raise MdastError(f"Image node without a string url: {data!r:.80}")
        extra = {k: v for k, v in rest.items() if k not in ("url", "alt", "title")}
        return Image(data["url"], data.get("alt"), data.get("title"), extra)

    if node_type == JsxTextElement.type:
        _check_attributes(data)

    children = _children(data) if "children" in data else None
    return Node(node_type, children, rest)


def load_tree(path: Path) -> Root:
    """Read an mdast JSON file whose top-level node is ``root``."""
    data = json.loads(path.read_text(encoding="utf-8"))
    tree = from_dict(data)
    if not isinstance(tree, Root):
        raise MdastError(f"{path}: top-level node is {tree.type!r}, expected 'root'")
    _log.debug("Loaded %s (%d top-level nodes)", path, len(tree.children))
    return tree


# ---------------------------------------------------------------------------
# nodes -> dict
# ---------------------------------------------------------------------------


def _attribute_dict(attr: JsxAttribute) -> dict[str, Any]:
    value: Any = attr.value
    if isinstance(value, ExpressionValue):
        value = {
            "type": value.type,
            "value": value.value,
            "data": {"estree": value.estree()},
        }
    return {"type": attr.type, "name": attr.name, "value": value}


def to_dict(node: AnyNode) -> dict[str, Any]:
    """Serialize *node* (and its subtree) to an mdast JSON object."""
    if isinstance(node, ImageImport):
        return {"type": node.type, "value": "", "data": {"estree": node.estree()}}

    if isinstance(node, Image):
        out: dict[str, Any] = {"type": node.type, "url": node.url, "alt": node.alt}
        if node.title is not None:
            out["title"] = node.title
        out.update(node.extra)
        return out

    if isinstance(node, JsxTextElement):
        return {
            "type": node.type,
            "name": node.name,
            "attributes": [_attribute_dict(a) for a in node.attributes],
            "children": [to_dict(c) for c in node.children],
            **node.extra,
        }

    out = {"type": node.type, **node.extra}
    if node.children is not None:
        out["children"] = [to_dict(c) for c in node.children]
    return out


def dump_tree(tree: Root, path: Path) -> None:
    """Write *tree* to *path* as indented UTF-8 JSON."""
    path.write_text(
        json.dumps(to_dict(tree), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
