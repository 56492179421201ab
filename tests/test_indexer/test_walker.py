"""Tests for the corpus scanner."""

from pathlib import Path

import pytest

from odoo_docs_mcp.indexer.walker import is_supported_file, scan_corpus


class TestIsSupportedFile:
    def test_accepts_rst_and_markdown(self):
        assert is_supported_file("index.rst")
        assert is_supported_file("README.md")

    def test_extension_is_case_insensitive(self):
        assert is_supported_file("INDEX.RST")

    def test_rejects_other_extensions(self):
        assert not is_supported_file("notes.txt")
        assert not is_supported_file("image.png")
        assert not is_supported_file("conf.py")


class TestScanCorpus:
    @pytest.fixture
    def fixtures_root(self) -> Path:
        return Path(__file__).parent.parent / "fixtures" / "docs"

    def test_discovers_supported_files(self, fixtures_root: Path):
        files = scan_corpus(fixtures_root)
        names = {f.name for f in files}
        assert names == {
            "time_off.rst",
            "tiny.rst",
            "pipeline.md",
            "install.rst",
            "getting_started.md",
        }

    def test_returns_absolute_paths(self, fixtures_root: Path):
        files = scan_corpus(fixtures_root)
        assert files
        assert all(f.is_absolute() for f in files)
        assert all(f.exists() for f in files)

    def test_skips_unsupported_extensions(self, fixtures_root: Path):
        files = scan_corpus(fixtures_root)
        assert not any(f.suffix == ".txt" for f in files)

    def test_skips_hidden_directories(self, fixtures_root: Path):
        files = scan_corpus(fixtures_root)
        assert not any(".hidden" in f.parts for f in files)

    def test_skips_hidden_files(self, tmp_path: Path):
        (tmp_path / "guide.md").write_text("# Guide")
        (tmp_path / ".draft.md").write_text("# Draft")
        (tmp_path / ".tx").mkdir()
        (tmp_path / ".tx" / "config.rst").write_text("Config")

        files = scan_corpus(tmp_path)
        assert [f.name for f in files] == ["guide.md"]

    def test_skips_oversized_files(self, tmp_path: Path):
        (tmp_path / "small.md").write_text("# Small\n\nFits under the cap.")
        (tmp_path / "large.rst").write_text("x" * 2048)

        files = scan_corpus(tmp_path, max_file_size=1024)
        assert [f.name for f in files] == ["small.md"]

    def test_default_cap_is_one_megabyte(self, tmp_path: Path):
        (tmp_path / "huge.md").write_bytes(b"a" * (1024 * 1024 + 1))
        (tmp_path / "exact.md").write_bytes(b"a" * (1024 * 1024))

        names = [f.name for f in scan_corpus(tmp_path)]
        assert names == ["exact.md"]

    def test_recurses_into_subdirectories(self, tmp_path: Path):
        nested = tmp_path / "applications" / "inventory" / "routes"
        nested.mkdir(parents=True)
        (nested / "dropship.rst").write_text("Dropship\n========\n")

        files = scan_corpus(tmp_path)
        assert len(files) == 1
        assert files[0].parent.name == "routes"

    def test_handles_nonexistent_root(self, caplog):
        files = scan_corpus(Path("/nonexistent/odoo/docs"))
        assert files == []
        assert any("not found" in r.message for r in caplog.records)

    def test_handles_file_as_root(self, tmp_path: Path):
        file_root = tmp_path / "index.rst"
        file_root.write_text("Index\n=====\n")
        assert scan_corpus(file_root) == []
