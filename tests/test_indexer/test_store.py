"""Tests for the index store and its snapshot files."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from odoo_docs_mcp.indexer.models import DocumentRecord
from odoo_docs_mcp.indexer.store import (
    INDEX_FILENAME,
    METADATA_FILENAME,
    SNAPSHOT_FORMAT_VERSION,
    IndexStore,
)


def make_doc(doc_id: str, section: str = "applications", **kwargs) -> DocumentRecord:
    defaults = {
        "title": doc_id.replace("_", " ").title(),
        "content": f"Content of {doc_id}.",
        "file_path": f"{section}/{doc_id}.rst",
        "section": section,
        "keywords": [doc_id, section],
        "word_count": 3,
        "last_updated": "2024-05-01T12:00:00+00:00",
        "metadata": {"parser": "rst", "source": "corpus", "file_type": ".rst"},
    }
    defaults.update(kwargs)
    return DocumentRecord(id=doc_id, **defaults)


@pytest.fixture
def store(tmp_path: Path) -> IndexStore:
    return IndexStore(tmp_path / "cache", corpus_version="17.0")


class TestMapping:
    def test_set_get_delete(self, store: IndexStore):
        doc = make_doc("sales_quotes")
        store.set(doc.id, doc)

        assert store.get("sales_quotes") is doc
        assert "sales_quotes" in store
        assert store.size() == 1

        store.delete("sales_quotes")
        assert store.get("sales_quotes") is None
        assert len(store) == 0

    def test_delete_missing_is_noop(self, store: IndexStore):
        store.delete("missing")
        assert store.size() == 0

    def test_set_replaces_existing(self, store: IndexStore):
        store.set("a", make_doc("a", title="First"))
        store.set("a", make_doc("a", title="Second"))

        assert store.size() == 1
        assert store.get("a").title == "Second"

    def test_documents_preserve_insertion_order(self, store: IndexStore):
        for doc_id in ("c", "a", "b"):
            store.set(doc_id, make_doc(doc_id))
        assert [d.id for d in store.documents()] == ["c", "a", "b"]
        assert store.ids() == ["c", "a", "b"]

    def test_documents_returns_copy(self, store: IndexStore):
        store.set("a", make_doc("a"))
        docs = store.documents()
        store.set("b", make_doc("b"))
        assert len(docs) == 1

    def test_section_counts(self, store: IndexStore):
        store.set("a", make_doc("a", section="applications"))
        store.set("b", make_doc("b", section="applications"))
        store.set("c", make_doc("c", section="developer"))
        assert store.section_counts() == {"applications": 2, "developer": 1}

    def test_clear(self, store: IndexStore):
        store.set("a", make_doc("a"))
        store.clear()
        assert store.size() == 0


class TestSnapshot:
    def test_save_and_load_round_trip(self, store: IndexStore, tmp_path: Path):
        store.set("a", make_doc("a", description="Alpha"))
        store.set("b", make_doc("b", section="developer"))
        store.last_update = datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)

        assert store.save({"stats": {"total_documents": 2}})

        reloaded = IndexStore(tmp_path / "cache", corpus_version="17.0")
        assert reloaded.load()
        assert reloaded.ids() == ["a", "b"]
        assert reloaded.get("a") == store.get("a")
        assert reloaded.last_update == store.last_update

    def test_snapshot_file_format(self, store: IndexStore):
        store.set("a", make_doc("a"))
        store.save()

        data = json.loads(store.index_path.read_text())
        assert data["format_version"] == SNAPSHOT_FORMAT_VERSION
        assert data["source"] == "odoo-documentation"
        assert data["corpus_version"] == "17.0"
        assert data["total_documents"] == 1
        assert data["documents"][0][0] == "a"
        assert data["documents"][0][1]["title"] == "A"
        assert store.index_path.name == INDEX_FILENAME

    def test_companion_metadata_file(self, store: IndexStore):
        store.save({"corpus_path": "/docs"})

        companion = json.loads((store.cache_dir / METADATA_FILENAME).read_text())
        assert companion["corpus_path"] == "/docs"
        assert "created_at" in companion

    def test_save_creates_cache_dir(self, tmp_path: Path):
        store = IndexStore(tmp_path / "nested" / "cache")
        assert store.save()
        assert store.index_path.exists()

    def test_load_missing_snapshot(self, store: IndexStore, caplog):
        import logging

        with caplog.at_level(logging.INFO):
            assert store.load() is False
        assert store.size() == 0
        assert any("No index snapshot" in r.message for r in caplog.records)

    def test_load_corrupt_snapshot(self, store: IndexStore, caplog):
        store.cache_dir.mkdir(parents=True)
        store.index_path.write_text("{not json")
        store.set("stale", make_doc("stale"))

        assert store.load() is False
        assert store.size() == 0
        assert store.last_update is None
        assert any("Unreadable" in r.message for r in caplog.records)

    def test_load_outdated_format(self, store: IndexStore):
        store.set("a", make_doc("a"))
        store.save()
        data = json.loads(store.index_path.read_text())
        data["format_version"] = "0.9"
        store.index_path.write_text(json.dumps(data))

        assert store.load() is False
        assert store.size() == 0

    def test_load_other_source(self, store: IndexStore, tmp_path: Path):
        store.set("a", make_doc("a"))
        store.save()

        other = IndexStore(store.cache_dir, source="another-source")
        assert other.load() is False

    def test_load_malformed_documents(self, store: IndexStore):
        store.cache_dir.mkdir(parents=True)
        store.index_path.write_text(json.dumps({
            "format_version": SNAPSHOT_FORMAT_VERSION,
            "source": "odoo-documentation",
            "documents": [["a", {"title": "missing id and content"}]],
        }))

        assert store.load() is False
        assert store.size() == 0

    def test_load_naive_timestamp_is_utc(self, store: IndexStore):
        store.cache_dir.mkdir(parents=True)
        store.index_path.write_text(json.dumps({
            "format_version": SNAPSHOT_FORMAT_VERSION,
            "source": "odoo-documentation",
            "last_update": "2024-06-01T08:30:00",
            "documents": [],
        }))

        assert store.load()
        assert store.last_update == datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)

    def test_load_ignores_unknown_record_fields(self, store: IndexStore):
        record = make_doc("a").to_dict()
        record["legacy_field"] = "ignored"
        store.cache_dir.mkdir(parents=True)
        store.index_path.write_text(json.dumps({
            "format_version": SNAPSHOT_FORMAT_VERSION,
            "source": "odoo-documentation",
            "documents": [["a", record]],
        }))

        assert store.load()
        assert store.get("a").title == "A"

    def test_failed_write_keeps_previous_snapshot(self, store: IndexStore, monkeypatch):
        store.set("a", make_doc("a"))
        assert store.save()
        previous = store.index_path.read_text()

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("odoo_docs_mcp.indexer.store.os.replace", failing_replace)
        store.set("b", make_doc("b"))

        assert store.save() is False
        assert store.index_path.read_text() == previous
        assert not list(store.cache_dir.glob("*.tmp"))
