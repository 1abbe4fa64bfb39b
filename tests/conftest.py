"""Shared test fixtures and helpers for mdx-images tests."""

from __future__ import annotations

from mdx_images.nodes import AnyNode, Image, Node, Root


def text(value: str) -> Node:
    """Build an mdast ``text`` leaf."""
    return Node("text", extra={"value": value})


def paragraph(*children: AnyNode) -> Node:
    """Build an mdast ``paragraph`` holding *children*."""
    return Node("paragraph", list(children))


def make_tree(*blocks: AnyNode) -> Root:
    """Build a root whose top-level children are *blocks*."""
    return Root(list(blocks))


def image_doc(*urls: str) -> Root:
    """Build a one-paragraph document with one image per URL, separated by text.

    Images get ``alt`` text ``img<N>`` (0-indexed) and no title.
    """
    children: list[AnyNode] = []
    for i, url in enumerate(urls):
        if children:
            children.append(text(" "))
        children.append(Image(url, alt=f"img{i}"))
    return make_tree(paragraph(*children))
