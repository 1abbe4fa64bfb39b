"""Markdown image → MDX import rewriting.

Turns ``![alt](pic.png)`` image nodes of a parsed mdast tree into
``<img alt="alt" src={__0_data_pic_png__} />`` elements and hoists one
``import __0_data_pic_png__ from "./data/pic.png"`` per distinct image
to the top of the document, so a bundler resolves and emits the asset
alongside the compiled page.

Key features:
- Explicit depth-first traversal with in-place one-for-one splicing
- Absolute and http(s) URLs left untouched
- Optional resolution of bare URLs under ``./data/<source dir>/``
- One import per distinct source, named in first-seen order
- mdast JSON reading/writing with ESTree payloads for MDX compilers
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("mdx-images")
except PackageNotFoundError:
    __version__ = "0.0.0"  # fallback for uninstalled dev usage


def __getattr__(name: str):
    """Lazy imports so ``import mdx_images`` stays cheap."""
    _lazy_imports = {
        # mdx_images.nodes
        "Node": "mdx_images.nodes",
        "Root": "mdx_images.nodes",
        "Image": "mdx_images.nodes",
        "ImageImport": "mdx_images.nodes",
        "ExpressionValue": "mdx_images.nodes",
        "JsxAttribute": "mdx_images.nodes",
        "JsxTextElement": "mdx_images.nodes",
        # mdx_images.visit
        "visit": "mdx_images.visit",
        # mdx_images.rewriter
        "DocumentMetadata": "mdx_images.rewriter",
        "MdxImages": "mdx_images.rewriter",
        "RewriteOptions": "mdx_images.rewriter",
        "UrlKind": "mdx_images.rewriter",
        "classify_url": "mdx_images.rewriter",
        "identifier_name": "mdx_images.rewriter",
        "resolve_url": "mdx_images.rewriter",
        "rewrite_images": "mdx_images.rewriter",
        "scan_images": "mdx_images.rewriter",
        # mdx_images.mdast
        "MdastError": "mdx_images.mdast",
        "from_dict": "mdx_images.mdast",
        "to_dict": "mdx_images.mdast",
        "load_tree": "mdx_images.mdast",
        "dump_tree": "mdx_images.mdast",
    }

    if name in _lazy_imports:
        import importlib
        module = importlib.import_module(_lazy_imports[name])
        return getattr(module, name)

    raise AttributeError(f"module 'mdx_images' has no attribute {name!r}")


__all__ = [
    "classify_url",
    "DocumentMetadata",
    "dump_tree",
    "ExpressionValue",
    "from_dict",
    "identifier_name",
    "Image",
    "ImageImport",
    "JsxAttribute",
    "JsxTextElement",
    "load_tree",
    "MdastError",
    "MdxImages",
    "Node",
    "resolve_url",
    "rewrite_images",
    "RewriteOptions",
    "Root",
    "scan_images",
    "to_dict",
    "UrlKind",
    "visit",
]
