"""Document tree node model (mdast + MDX subset).

Only the node variants the image rewriter reads or creates get their
own dataclass.  Everything else an upstream parser produces is kept as
a generic :class:`Node` so that it survives a pass untouched.

Two variants exist purely to carry host-program syntax:

- :class:`ImageImport`: an ``mdxjsEsm`` node holding one
  ``import <name> from "<source>"`` declaration.
- :class:`ExpressionValue`: an attribute value that is a JavaScript
  expression (``src={name}``) rather than a quoted string.

Both expose :meth:`estree` so serializers that compile from ESTree
(as MDX does) receive the same program fragment the tree describes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union


def _program(body: list[dict[str, Any]], **extra: Any) -> dict[str, Any]:
    """Wrap *body* statements in an ESTree ``Program`` (module source)."""
    return {"type": "Program", "sourceType": "module", **extra, "body": body}


# ---------------------------------------------------------------------------
# Generic nodes
# ---------------------------------------------------------------------------


@dataclass
class Node:
    """Any node variant the rewriter has no special knowledge of."""

    type: str
    children: list[AnyNode] | None = None
    """Child sequence, or ``None`` for leaf nodes."""

    extra: dict[str, Any] = field(default_factory=dict)
    """Remaining variant-specific fields (``value``, ``depth``, ``position``...)."""


@dataclass
class Root:
    """Document root.  Hoisted imports are inserted at the front of :attr:`children`."""

    type: ClassVar[str] = "root"

    children: list[AnyNode] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class Image:
    """Markdown image ``![alt](url "title")``."""

    type: ClassVar[str] = "image"

    url: str
    alt: str | None = None
    title: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Synthetic MDX nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImageImport:
    """ESM import binding the default export of :attr:`source` to :attr:`name`."""

    type: ClassVar[str] = "mdxjsEsm"

    name: str
    source: str

    def estree(self) -> dict[str, Any]:
        """Return the ESTree program for ``import name from "source"``."""
        return _program([
            {
                "type": "ImportDeclaration",
                "source": {
                    "type": "Literal",
                    "value": self.source,
                    "raw": json.dumps(self.source),
                },
                "specifiers": [
                    {
                        "type": "ImportDefaultSpecifier",
                        "local": {"type": "Identifier", "name": self.name},
                    },
                ],
            },
        ])


@dataclass(frozen=True)
class ExpressionValue:
    """Attribute value emitted as a bare identifier reference (``{name}``)."""

    type: ClassVar[str] = "mdxJsxAttributeValueExpression"

    value: str

    def estree(self) -> dict[str, Any]:
        return _program(
            [
                {
                    "type": "ExpressionStatement",
                    "expression": {"type": "Identifier", "name": self.value},
                },
            ],
            comments=[],
        )


@dataclass
class JsxAttribute:
    type: ClassVar[str] = "mdxJsxAttribute"

    name: str
    value: str | ExpressionValue | None = None


@dataclass
class JsxTextElement:
    """Inline JSX element such as ``<img alt="..." src={...} />``."""

    type: ClassVar[str] = "mdxJsxTextElement"

    name: str | None
    attributes: list[JsxAttribute] = field(default_factory=list)
    children: list[AnyNode] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)


AnyNode = Union[Node, Root, Image, ImageImport, JsxTextElement]


def children_of(node: AnyNode) -> list[AnyNode] | None:
    """Return the mutable child list of *node*, or ``None`` for leaves."""
    return getattr(node, "children", None)
