"""Tests for the refresh manager."""

import logging
import shutil
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from odoo_docs_mcp.indexer import Indexer
from odoo_docs_mcp.sync import RefreshManager

FIXTURES = Path(__file__).parent / "fixtures" / "docs"
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def docs_root(tmp_path) -> Path:
    root = tmp_path / "docs"
    shutil.copytree(FIXTURES, root)
    return root


@pytest.fixture
def indexer(docs_root, tmp_path) -> Indexer:
    return Indexer(docs_root=docs_root, cache_dir=tmp_path / "cache")


class TestCheck:
    def test_interval_must_be_positive(self, indexer):
        with pytest.raises(ValueError, match="Refresh check interval must be positive"):
            RefreshManager(indexer, 0)

    def test_fresh_index_is_left_alone(self, indexer):
        indexer.store.last_update = NOW - timedelta(hours=1)
        manager = RefreshManager(indexer, 60)

        assert manager.check(NOW) is None
        assert manager.refreshes_started == 0
        assert manager.last_check == NOW
        assert not indexer.indexing_in_progress

    def test_stale_index_starts_refresh(self, indexer, caplog):
        indexer.store.last_update = NOW - timedelta(hours=25)
        manager = RefreshManager(indexer, 60)

        with caplog.at_level(logging.INFO):
            thread = manager.check(NOW)

        assert thread is not None
        assert indexer.wait(timeout=10)
        assert manager.refreshes_started == 1
        assert "faq_hr_leave_config" in indexer.store
        assert any("age 1 day, 1:00:00" in r.message for r in caplog.records)

    def test_never_indexed_is_stale(self, indexer, caplog):
        manager = RefreshManager(indexer, 60)

        with caplog.at_level(logging.INFO):
            assert manager.check(NOW) is not None
        assert indexer.wait(timeout=10)
        assert any("never indexed" in r.message for r in caplog.records)

    def test_skipped_while_indexing(self, indexer, monkeypatch):
        manager = RefreshManager(indexer, 60)
        requested = []
        monkeypatch.setattr(indexer, "refresh_if_stale", lambda now=None: requested.append(now))

        assert indexer._begin_indexing()
        try:
            assert manager.check(NOW) is None
        finally:
            indexer._finish_indexing()

        assert requested == []
        assert manager.refreshes_started == 0

    def test_missing_corpus_pauses_checks(self, tmp_path, caplog):
        indexer = Indexer(docs_root=tmp_path / "missing", cache_dir=tmp_path / "cache")
        manager = RefreshManager(indexer, 60)

        for _ in range(3):
            assert manager.check(NOW) is None

        warnings = [r for r in caplog.records if "refresh checks paused" in r.message]
        assert len(warnings) == 1
        assert not indexer.indexing_in_progress
        assert not indexer.store.index_path.exists()

    def test_restored_corpus_resumes_checks(self, tmp_path, caplog):
        docs_root = tmp_path / "docs"
        indexer = Indexer(docs_root=docs_root, cache_dir=tmp_path / "cache")
        manager = RefreshManager(indexer, 60)
        assert manager.check(NOW) is None

        shutil.copytree(FIXTURES, docs_root)
        with caplog.at_level(logging.INFO):
            thread = manager.check(NOW)

        assert thread is not None
        assert indexer.wait(timeout=10)
        assert any("is back" in r.message for r in caplog.records)


class TestSchedule:
    def test_checks_run_in_daemon_thread(self, indexer):
        indexer.store.last_update = datetime.now(timezone.utc)
        manager = RefreshManager(indexer, 1)

        manager.start()
        try:
            assert manager._thread.daemon is True
            assert manager._thread.name == "odoo-docs-refresh"
            deadline = time.time() + 3
            while manager.last_check is None and time.time() < deadline:
                time.sleep(0.1)
            assert manager.last_check is not None
            assert manager.refreshes_started == 0
        finally:
            manager.stop()
        assert manager._thread is None

    def test_failed_check_keeps_thread_alive(self, indexer, monkeypatch):
        calls = []

        def flaky_should_update(now=None):
            calls.append(now)
            if len(calls) == 1:
                raise RuntimeError("clock went backwards")
            return False

        monkeypatch.setattr(indexer, "should_update", flaky_should_update)
        manager = RefreshManager(indexer, 1)

        manager.start()
        try:
            deadline = time.time() + 5
            while len(calls) < 2 and time.time() < deadline:
                time.sleep(0.1)
            assert len(calls) >= 2
        finally:
            manager.stop()
