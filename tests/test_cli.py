"""Tests for CLI argument parsing and subcommand dispatch.

Commands run against small mdast JSON files in ``tmp_path``.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mdx_images.cli import _build_parser, main, resolve_output


_DOC = {
    "type": "root",
    "children": [
        {
            "type": "paragraph",
            "children": [
                {"type": "image", "url": "a.png", "alt": "A"},
                {"type": "image", "url": "https://x.org/b.png", "alt": "B"},
            ],
        },
    ],
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse(argv: list[str]):
    """Parse *argv* using the CLI parser and return the namespace."""
    parser = _build_parser()
    return parser.parse_args(argv)


def _parse_fails(argv: list[str]):
    """Assert that parsing *argv* raises SystemExit (argparse error)."""
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(argv)


def _write_doc(tmp_path: Path, name: str = "post.json", doc: dict | None = None) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(doc or _DOC), encoding="utf-8")
    return path


def _read(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class TestRewriteArgs:
    """Argument parsing for the ``rewrite`` subcommand."""

    def test_minimal(self):
        args = _parse(["rewrite", "post.json"])
        assert args.command == "rewrite"
        assert [str(p) for p in args.trees] == ["post.json"]

    def test_defaults(self):
        args = _parse(["rewrite", "post.json"])
        assert args.verbose is False
        assert args.force is False
        assert args.output_dir is None
        assert args.no_resolve is False
        assert args.source_dir is None
        assert args.metadata is None

    def test_all_options(self):
        args = _parse([
            "rewrite", "a.json", "b.json",
            "-v", "-f",
            "-o", "/tmp/out",
            "--no-resolve",
            "--source-dir", "blog/x",
            "--metadata", "meta.json",
        ])
        assert len(args.trees) == 2
        assert args.verbose is True
        assert args.force is True
        assert str(args.output_dir) == "/tmp/out"
        assert args.no_resolve is True
        assert args.source_dir == "blog/x"
        assert str(args.metadata) == "meta.json"

    def test_requires_at_least_one_tree(self):
        _parse_fails(["rewrite"])


class TestScanArgs:
    """Argument parsing for the ``scan`` subcommand."""

    def test_minimal(self):
        args = _parse(["scan", "post.json"])
        assert args.command == "scan"

    def test_no_output_options(self):
        _parse_fails(["scan", "post.json", "-o", "out"])
        _parse_fails(["scan", "post.json", "-f"])


class TestMainDispatch:
    """Top-level behaviour of main()."""

    def test_no_args_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage:" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "mdx-images" in capsys.readouterr().out

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            main(["compile", "post.json"])


# ---------------------------------------------------------------------------
# resolve_output
# ---------------------------------------------------------------------------


class TestResolveOutput:

    def test_next_to_input(self, tmp_path: Path):
        assert resolve_output(tmp_path / "post.json", None) == tmp_path / "post.mdx.json"

    def test_output_dir(self, tmp_path: Path):
        out = tmp_path / "build"
        assert resolve_output(tmp_path / "post.json", out) == out / "post.mdx.json"


# ---------------------------------------------------------------------------
# rewrite command
# ---------------------------------------------------------------------------


class TestRewriteCommand:
    """End-to-end runs of ``rewrite``."""

    def test_writes_rewritten_tree(self, tmp_path: Path):
        src = _write_doc(tmp_path)
        assert main(["rewrite", str(src)]) == 0
        out = _read(tmp_path / "post.mdx.json")
        esm = out["children"][0]
        assert esm["type"] == "mdxjsEsm"
        decl = esm["data"]["estree"]["body"][0]
        assert decl["source"]["value"] == "./data/a.png"
        assert decl["specifiers"][0]["local"]["name"] == "__0_data_a_png__"
        para = out["children"][1]["children"]
        assert para[0]["type"] == "mdxJsxTextElement"
        assert para[1] == _DOC["children"][0]["children"][1]

    def test_source_dir(self, tmp_path: Path):
        src = _write_doc(tmp_path)
        assert main(["rewrite", str(src), "--source-dir", "blog/x"]) == 0
        esm = _read(tmp_path / "post.mdx.json")["children"][0]
        assert esm["data"]["estree"]["body"][0]["source"]["value"] == "./data/blog/x/a.png"

    def test_metadata_file(self, tmp_path: Path):
        src = _write_doc(tmp_path)
        meta = tmp_path / "meta.json"
        meta.write_text(
            json.dumps({"rawDocumentData": {"sourceFileDir": "notes"}}), encoding="utf-8",
        )
        assert main(["rewrite", str(src), "--metadata", str(meta)]) == 0
        esm = _read(tmp_path / "post.mdx.json")["children"][0]
        assert esm["data"]["estree"]["body"][0]["source"]["value"] == "./data/notes/a.png"

    def test_source_dir_overrides_metadata(self, tmp_path: Path):
        src = _write_doc(tmp_path)
        meta = tmp_path / "meta.json"
        meta.write_text(
            json.dumps({"rawDocumentData": {"sourceFileDir": "notes"}}), encoding="utf-8",
        )
        argv = ["rewrite", str(src), "--metadata", str(meta), "--source-dir", "blog"]
        assert main(argv) == 0
        esm = _read(tmp_path / "post.mdx.json")["children"][0]
        assert esm["data"]["estree"]["body"][0]["source"]["value"] == "./data/blog/a.png"

    def test_no_resolve_leaves_bare_urls(self, tmp_path: Path):
        src = _write_doc(tmp_path)
        assert main(["rewrite", str(src), "--no-resolve"]) == 0
        assert _read(tmp_path / "post.mdx.json") == _DOC

    def test_output_dir_created(self, tmp_path: Path):
        src = _write_doc(tmp_path)
        out_dir = tmp_path / "build" / "trees"
        assert main(["rewrite", str(src), "-o", str(out_dir)]) == 0
        assert (out_dir / "post.mdx.json").is_file()

    def test_existing_output_skipped_without_force(self, tmp_path: Path):
        src = _write_doc(tmp_path)
        existing = tmp_path / "post.mdx.json"
        existing.write_text("{}", encoding="utf-8")
        assert main(["rewrite", str(src)]) == 0
        assert existing.read_text(encoding="utf-8") == "{}"
        assert main(["rewrite", str(src), "-f"]) == 0
        assert _read(existing)["type"] == "root"

    def test_missing_input(self, tmp_path: Path):
        assert main(["rewrite", str(tmp_path / "nope.json")]) == 1

    def test_missing_metadata(self, tmp_path: Path, capsys):
        src = _write_doc(tmp_path)
        assert main(["rewrite", str(src), "--metadata", str(tmp_path / "nope.json")]) == 1
        assert "Metadata file not found" in capsys.readouterr().err

    def test_bad_tree_counts_as_failure(self, tmp_path: Path):
        good = _write_doc(tmp_path, "good.json")
        bad = tmp_path / "bad.json"
        bad.write_text('{"type": "paragraph"}', encoding="utf-8")
        assert main(["rewrite", str(good), str(bad)]) == 1
        assert (tmp_path / "good.mdx.json").is_file()
        assert not (tmp_path / "bad.mdx.json").exists()


# ---------------------------------------------------------------------------
# scan command
# ---------------------------------------------------------------------------


class TestScanCommand:
    """End-to-end runs of ``scan``."""

    def test_writes_nothing(self, tmp_path: Path):
        src = _write_doc(tmp_path)
        assert main(["scan", str(src)]) == 0
        assert sorted(p.name for p in tmp_path.iterdir()) == ["post.json"]

    def test_invalid_json_fails(self, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json", encoding="utf-8")
        assert main(["scan", str(bad)]) == 1
