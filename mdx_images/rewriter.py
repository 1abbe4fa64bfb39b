"""Rewrite Markdown images into MDX ``<img>`` elements backed by ESM imports.

A Markdown image such as::

    ![Diagram](diagram.png "Overview")

is replaced by an inline JSX element whose ``src`` is an expression
referencing an imported binding, and the import is hoisted to the top of
the document::

    import __0_data_diagram_png__ from "./data/diagram.png"

    <img alt="Diagram" src={__0_data_diagram_png__} title="Overview" />

This lets a bundler resolve, hash and emit the image next to the
compiled document instead of leaving the browser to fetch a path that
only made sense relative to the source file.

URL handling:

- ``/abs.png``, ``http://...``, ``https://...``: left untouched.
- ``./x.png``, ``../x.png``: imported as written.
- ``x.png`` (bare): with ``resolve`` enabled, rewritten to
  ``./data/<source_file_dir>/x.png`` and imported; with ``resolve``
  disabled, left untouched.

Identical final URLs share one import and one identifier.  The URL to
identifier cache lives only for a single :func:`rewrite_images` call.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mdx_images.nodes import (
    AnyNode,
    ExpressionValue,
    Image,
    ImageImport,
    JsxAttribute,
    JsxTextElement,
    Root,
)
from mdx_images.visit import visit

_log = logging.getLogger("rewriter")

DATA_ROOT = "data"
"""Fixed first path segment for resolved bare URLs."""

_ABSOLUTE_URL_RE = re.compile(r"^(https?:)?/")
"""Matches ``/path``, ``http://...`` and ``https://...``."""

_RELATIVE_PATH_RE = re.compile(r"^\.\.?/")
"""Matches ``./path`` and ``../path``."""

_NON_WORD_RE = re.compile(r"\W", re.ASCII)
"""Characters that cannot appear in a JavaScript identifier we generate."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RewriteOptions:
    """Options fixed when the transformer is constructed."""

    resolve: bool = True
    """Rewrite bare URLs under ``./data/`` before importing them.

    When ``False`` only ``./`` and ``../`` URLs are imported; bare URLs
    are left as plain string sources.  Local images can still be
    imported by writing them with a leading ``./``.
    """


@dataclass(frozen=True)
class DocumentMetadata:
    """Per-document side channel supplied by the document loader."""

    source_file_dir: str | None = None
    """Directory of the source file, inserted between ``data`` and the URL."""

    @classmethod
    def from_mapping(cls, data: Any) -> DocumentMetadata:
        """Read ``rawDocumentData.sourceFileDir`` from loosely-typed file data.

        Anything of the wrong shape is treated as absent.
        """
        raw = data.get("rawDocumentData") if isinstance(data, Mapping) else None
        source_dir = raw.get("sourceFileDir") if isinstance(raw, Mapping) else None
        if not isinstance(source_dir, str):
            source_dir = None
        return cls(source_file_dir=source_dir)


# ---------------------------------------------------------------------------
# URL policy
# ---------------------------------------------------------------------------


class UrlKind(Enum):
    """Classification of an image URL."""

    ABSOLUTE = "absolute"
    """Root-absolute path or http(s) URL; never imported."""

    RELATIVE = "relative"
    """Explicit ``./`` or ``../`` path; imported as written."""

    BARE = "bare"
    """Anything else; imported only when resolution is enabled."""


def classify_url(url: str) -> UrlKind:
    if _ABSOLUTE_URL_RE.match(url):
        return UrlKind.ABSOLUTE
    if _RELATIVE_PATH_RE.match(url):
        return UrlKind.RELATIVE
    return UrlKind.BARE


def resolve_url(
    url: str,
    *,
    resolve: bool = True,
    source_file_dir: str | None = None,
) -> str | None:
    """Return the import source for *url*, or ``None`` if it is not imported.

    >>> resolve_url("pic.png", source_file_dir="blog/x")
    './data/blog/x/pic.png'
    >>> resolve_url("pic.png")
    './data/pic.png'
    >>> resolve_url("pic.png", resolve=False) is None
    True
    """
    kind = classify_url(url)
    if kind is UrlKind.ABSOLUTE:
        return None
    if kind is UrlKind.RELATIVE:
        return url
    if not resolve:
        return None
    segments = [DATA_ROOT]
    if source_file_dir:
        segments.append(source_file_dir)
    segments.append(url)
    return "./" + "/".join(segments)


def identifier_name(url: str, index: int) -> str:
    """Build the import binding name for the *index*-th distinct URL.

    >>> identifier_name("./data/a.png", 0)
    '__0_data_a_png__'
    """
    sanitized = _NON_WORD_RE.sub("_", url).strip("_")
    return f"__{index}_{sanitized}__"


# ---------------------------------------------------------------------------
# Rewrite pass
# ---------------------------------------------------------------------------


def _image_element(image: Image, name: str) -> JsxTextElement:
    """Build ``<img alt=... src={name} title=... />`` for *image*."""
    attributes = [
        JsxAttribute("alt", image.alt),
        JsxAttribute("src", ExpressionValue(name)),
    ]
    if image.title:
        attributes.append(JsxAttribute("title", image.title))
    return JsxTextElement("img", attributes)


@dataclass
class _ImportTable:
    """Distinct import sources for one pass, in first-seen order."""

    imports: list[ImageImport] = field(default_factory=list)
    names: dict[str, str] = field(default_factory=dict)
    origins: dict[str, str] = field(default_factory=dict)

    def name_for(self, source: str, original: str) -> str:
        name = self.names.get(source)
        if name is None:
            name = identifier_name(source, len(self.names))
            self.imports.append(ImageImport(name, source))
            self.names[source] = name
            self.origins[source] = original
            _log.debug("  import %s from %r", name, source)
        elif self.origins[source] != original:
            _log.warning(
                "Images %r and %r resolve to the same import %r",
                self.origins[source], original, source,
            )
        return name


def rewrite_images(
    tree: Root,
    metadata: DocumentMetadata | None = None,
    options: RewriteOptions | None = None,
) -> None:
    """Replace image nodes in *tree* with import-backed ``<img>`` elements.

    Mutates *tree* in place: each eligible image becomes a
    :class:`~mdx_images.nodes.JsxTextElement` at the same position, and
    one :class:`~mdx_images.nodes.ImageImport` per distinct source is
    inserted at the front of ``tree.children`` in first-seen order.

    Errors from traversal propagate; the tree may then be partially
    rewritten.
    """
    options = options or RewriteOptions()
    source_dir = metadata.source_file_dir if metadata else None
    table = _ImportTable()

    def visitor(node: AnyNode, index: int | None, parent: AnyNode | None) -> None:
        source = resolve_url(
            node.url, resolve=options.resolve, source_file_dir=source_dir,
        )
        if source is None:
            return
        name = table.name_for(source, node.url)
        parent.children[index] = _image_element(node, name)

    visit(tree, Image.type, visitor)

    if table.imports:
        _log.debug(
            "Hoisting %d image import(s)", len(table.imports),
        )
    tree.children[:0] = table.imports


@dataclass(frozen=True)
class MdxImages:
    """Transformer form of :func:`rewrite_images` with options bound up front.

    >>> transform = MdxImages(resolve=False)
    >>> transform(tree, metadata)  # doctest: +SKIP
    """

    resolve: bool = True

    @property
    def options(self) -> RewriteOptions:
        return RewriteOptions(resolve=self.resolve)

    def __call__(self, tree: Root, metadata: DocumentMetadata | None = None) -> None:
        rewrite_images(tree, metadata, self.options)


# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImageDecision:
    """What a rewrite pass would do with one image."""

    url: str
    kind: UrlKind
    source: str | None = None
    """Import source, or ``None`` when the image is left untouched."""

    name: str | None = None


@dataclass
class RewriteSummary:
    """Per-image decisions for one document, in document order."""

    decisions: list[ImageDecision] = field(default_factory=list)

    @property
    def imports(self) -> dict[str, str]:
        """Distinct import sources mapped to their binding names."""
        return {
            d.source: d.name
            for d in self.decisions
            if d.source is not None and d.name is not None
        }

    @property
    def skipped(self) -> list[ImageDecision]:
        return [d for d in self.decisions if d.source is None]


def scan_images(
    tree: Root,
    metadata: DocumentMetadata | None = None,
    options: RewriteOptions | None = None,
) -> RewriteSummary:
    """Report what :func:`rewrite_images` would do, without mutating *tree*.

    Resolution collisions are logged exactly as during a rewrite.
    """
    options = options or RewriteOptions()
    source_dir = metadata.source_file_dir if metadata else None
    table = _ImportTable()
    summary = RewriteSummary()

    def visitor(node: AnyNode, index: int | None, parent: AnyNode | None) -> None:
        source = resolve_url(
            node.url, resolve=options.resolve, source_file_dir=source_dir,
        )
        name = None
        if source is not None:
            name = table.name_for(source, node.url)
        summary.decisions.append(
            ImageDecision(node.url, classify_url(node.url), source, name),
        )

    visit(tree, Image.type, visitor)
    return summary
