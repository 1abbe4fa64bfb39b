"""CLI entry point for mdx-images.

Rewrite Markdown images in mdast JSON trees into import-backed MDX
``<img>`` elements.

Usage::

    mdx-images rewrite post.json
    mdx-images rewrite *.json -o build/ --source-dir blog/hello
    mdx-images rewrite post.json --no-resolve
    mdx-images scan post.json --metadata post.data.json
"""

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path

import colorlog

from mdx_images import __version__
from mdx_images.mdast import dump_tree, load_tree
from mdx_images.rewriter import (
    DocumentMetadata,
    RewriteOptions,
    UrlKind,
    rewrite_images,
    scan_images,
)


_log = logging.getLogger("mdx-images")

_OUTPUT_SUFFIX = ".mdx.json"
"""Suffix replacing ``.json`` for rewritten tree files."""

_SUMMARY_SEP = "=" * 78
"""Separator line for the summary block."""


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_colorized_logging():
    """Configure colorized logging output."""
    handler = colorlog.StreamHandler()
    handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(name)-9s%(reset)s: "
            "%(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)


def _setup_logging(verbose: bool) -> None:
    """Initialize colorized logging and optionally enable debug level."""
    setup_colorized_logging()
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands."""
    # -- Parent parsers for shared argument groups -----------------------------
    verbose_parent = argparse.ArgumentParser(add_help=False)
    verbose_parent.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    resolve_parent = argparse.ArgumentParser(add_help=False)
    resolve_parent.add_argument(
        "trees",
        nargs="+",
        type=Path,
        help="mdast JSON file(s) to process (supports shell globs)",
    )
    resolve_parent.add_argument(
        "--no-resolve",
        action="store_true",
        help="Do not resolve bare image URLs under ./data/. Only './' and "
             "'../' URLs are imported; bare URLs are left as plain strings.",
    )
    resolve_parent.add_argument(
        "--source-dir",
        default=None,
        metavar="DIR",
        help="Source file directory inserted between 'data' and the image "
             "URL when resolving (overrides --metadata).",
    )
    resolve_parent.add_argument(
        "--metadata",
        type=Path,
        default=None,
        metavar="FILE",
        help="JSON file with the document's file data; "
             "rawDocumentData.sourceFileDir is used when present.",
    )

    # -- Main parser -----------------------------------------------------------
    parser = argparse.ArgumentParser(
        prog="mdx-images",
        description="Rewrite Markdown images in mdast trees into "
                    "import-backed MDX <img> elements",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  rewrite       Rewrite images and write the resulting trees
  scan          Report what 'rewrite' would do (no files written)

Examples:
  %(prog)s rewrite post.json                 Writes post.mdx.json
  %(prog)s rewrite *.json -o build/          Write all trees to build/
  %(prog)s scan post.json --no-resolve       Preview without resolution

Run '%(prog)s COMMAND --help' for command-specific options.
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # -- rewrite ---------------------------------------------------------------
    p_rewrite = subparsers.add_parser(
        "rewrite",
        parents=[verbose_parent, resolve_parent],
        formatter_class=argparse.RawDescriptionHelpFormatter,
        help="Rewrite images and write the resulting trees",
        description="Replace image nodes with <img src={...}> elements and "
                    "hoist one ESM import per distinct image source.",
        epilog="""
Examples:
  %(prog)s post.json                        Write post.mdx.json next to input
  %(prog)s docs/*.json -o build/            Custom output directory
  %(prog)s post.json --source-dir blog/x    Resolve to ./data/blog/x/...
  %(prog)s post.json -f                     Overwrite existing output
        """,
    )
    p_rewrite.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=None,
        help="Output directory for rewritten trees "
             "(default: same directory as each input)",
    )
    p_rewrite.add_argument(
        "-f", "--force",
        action="store_true",
        help="Overwrite output files that already exist",
    )

    # -- scan ------------------------------------------------------------------
    subparsers.add_parser(
        "scan",
        parents=[verbose_parent, resolve_parent],
        formatter_class=argparse.RawDescriptionHelpFormatter,
        help="Report what 'rewrite' would do (no files written)",
        description="List each image with its classification, import "
                    "source and binding name.",
        epilog="""
Examples:
  %(prog)s post.json                        Preview a single tree
  %(prog)s -v *.json                        Preview with debug logging
        """,
    )

    return parser


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def resolve_output(tree_path: Path, output_dir: Path | None) -> Path:
    """Resolve the rewritten tree path for *tree_path*.

    ``post.json`` becomes ``post.mdx.json``, next to the input or in
    *output_dir* when given.
    """
    base = output_dir if output_dir else tree_path.parent
    return base / f"{tree_path.stem}{_OUTPUT_SUFFIX}"


def _resolve_file_paths(raw_paths: list[Path]) -> list[Path] | None:
    """Resolve input paths; return ``None`` (after logging) on the first missing file."""
    resolved: list[Path] = []
    for p in raw_paths:
        rp = p.resolve()
        if not rp.is_file():
            _log.error("Tree file not found: %s", p)
            return None
        resolved.append(rp)
    return resolved


def _load_metadata(args: argparse.Namespace) -> DocumentMetadata:
    """Build document metadata from ``--metadata`` and ``--source-dir``."""
    metadata = DocumentMetadata()
    if args.metadata:
        data = json.loads(args.metadata.read_text(encoding="utf-8"))
        metadata = DocumentMetadata.from_mapping(data)
    if args.source_dir is not None:
        metadata = DocumentMetadata(source_file_dir=args.source_dir)
    return metadata


def _prepare(args: argparse.Namespace):
    """Common setup for both commands.

    Returns ``(paths, metadata, options)`` or ``None`` after reporting an
    error.
    """
    if args.metadata and not args.metadata.is_file():
        print(f"error: Metadata file not found: {args.metadata}", file=sys.stderr)
        return None

    _setup_logging(args.verbose)

    paths = _resolve_file_paths(args.trees)
    if paths is None:
        return None

    try:
        metadata = _load_metadata(args)
    except (OSError, ValueError) as e:
        _log.error("Cannot read metadata %s: %s", args.metadata, e)
        return None

    options = RewriteOptions(resolve=not args.no_resolve)

    _log.info("mdx-images %s", __version__)
    _log.info("Resolve bare URLs: %s", "yes" if options.resolve else "no")
    if metadata.source_file_dir:
        _log.info("Source directory: %s", metadata.source_file_dir)
    return paths, metadata, options


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_rewrite(args: argparse.Namespace) -> int:
    """Handle the ``rewrite`` command."""
    prepared = _prepare(args)
    if prepared is None:
        return 1
    paths, metadata, options = prepared

    output_dir = args.output_dir.resolve() if args.output_dir else None
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    counts: Counter[str] = Counter()
    for path in paths:
        output_file = resolve_output(path, output_dir)
        if output_file.exists() and not args.force:
            _log.info("⊙ %s (exists, use -f to overwrite)", output_file.name)
            counts["skipped"] += 1
            continue
        try:
            tree = load_tree(path)
            rewrite_images(tree, metadata, options)
            dump_tree(tree, output_file)
        except Exception as e:
            _log.error("  ✗ %s: %s: %s", path.name, type(e).__name__, e)
            counts["failed"] += 1
            continue
        _log.info("✓ %s → %s", path.name, output_file)
        counts["rewritten"] += 1

    _log.info(_SUMMARY_SEP)
    _log.info(
        "Results: %d rewritten, %d skipped, %d failed",
        counts["rewritten"], counts["skipped"], counts["failed"],
    )
    _log.info(_SUMMARY_SEP)
    return 1 if counts["failed"] else 0


def _cmd_scan(args: argparse.Namespace) -> int:
    """Handle the ``scan`` command."""
    prepared = _prepare(args)
    if prepared is None:
        return 1
    paths, metadata, options = prepared

    failed = 0
    totals: Counter[str] = Counter()
    for path in paths:
        try:
            summary = scan_images(load_tree(path), metadata, options)
        except Exception as e:
            _log.error("  ✗ %s: %s: %s", path.name, type(e).__name__, e)
            failed += 1
            continue

        _log.info("%s:", path.name)
        for d in summary.decisions:
            if d.source is None:
                _log.info("  - %-40s %s, left as is", d.url, d.kind.value)
            else:
                _log.info("  + %-40s %s as %s", d.url, d.source, d.name)
        totals["images"] += len(summary.decisions)
        totals["imports"] += len(summary.imports)
        totals["skipped"] += len(summary.skipped)
        totals["absolute"] += sum(
            1 for d in summary.skipped if d.kind is UrlKind.ABSOLUTE
        )

    _log.info(_SUMMARY_SEP)
    _log.info(
        "Scan %d tree(s): %d image(s), %d import(s), %d left as is "
        "(%d absolute)%s",
        len(paths), totals["images"], totals["imports"], totals["skipped"],
        totals["absolute"], f", {failed} failed" if failed else "",
    )
    _log.info(_SUMMARY_SEP)
    return 1 if failed else 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = _build_parser()
    argv = sys.argv[1:] if argv is None else argv

    # Show help if no arguments provided.
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)

    # No subcommand given.
    if args.command is None:
        parser.print_help()
        return 0

    handlers = {
        "rewrite": _cmd_rewrite,
        "scan": _cmd_scan,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
