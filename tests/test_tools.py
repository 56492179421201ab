"""Tests for the MCP tools."""

from pathlib import Path

import pytest
from fastmcp import FastMCP

from odoo_docs_mcp.indexer import Indexer
from odoo_docs_mcp.tools import register_tools


@pytest.fixture
def indexer(tmp_path):
    """Indexer over the fixture corpus, indexed without synthetic documents."""
    docs_root = Path(__file__).parent / "fixtures" / "docs"
    idx = Indexer(docs_root=docs_root, cache_dir=tmp_path / "cache", corpus_version="17.0")
    idx.index_corpus()
    return idx


@pytest.fixture
def tools(indexer):
    """Registered tool functions by name."""
    mcp = FastMCP()
    register_tools(mcp, indexer)
    return {tool.fn.__name__: tool.fn for tool in mcp._tool_manager._tools.values()}


class TestRegisterTools:
    def test_registers_all_tools(self, tools):
        assert set(tools) == {"search_docs", "docs_stats", "refresh_docs"}


class TestSearchDocs:
    def test_returns_ranked_results(self, tools):
        payload = tools["search_docs"](query="congé")

        assert payload["results"][0]["id"] == "applications_hr_time_off"
        assert payload["results"][0]["title"] == "Time Off"
        assert payload["sources_summary"]
        assert payload["domain_related"] is False

    def test_results_omit_content_and_metadata(self, tools):
        payload = tools["search_docs"](query="congé")
        result = payload["results"][0]

        assert "content" not in result
        assert "metadata" not in result
        assert result["excerpt"].endswith("...")
        assert isinstance(result["score"], float)

    def test_include_metadata(self, tools):
        payload = tools["search_docs"](query="congé", include_metadata=True)
        assert payload["results"][0]["metadata"]["parser"] == "rst"

    def test_limit(self, tools):
        payload = tools["search_docs"](query="odoo module install sales", limit=1)
        assert len(payload["results"]) == 1

    def test_section_filter(self, tools):
        payload = tools["search_docs"](query="install odoo", section="administration")

        assert [r["id"] for r in payload["results"]] == ["administration_install"]
        assert payload["domain_related"] is True

    def test_unknown_section(self, tools):
        payload = tools["search_docs"](query="congé", section="marketing")
        assert payload["results"] == []
        assert payload["sources_summary"] == []

    def test_history_adds_context(self, tools):
        without = tools["search_docs"](query="python module", section="developer")
        with_history = tools["search_docs"](
            query="python module",
            section="developer",
            history=[{"role": "user", "content": "Which model do I need"}],
        )

        assert with_history["results"][0]["score"] > without["results"][0]["score"]


class TestDocsStats:
    def test_reports_index(self, tools):
        stats = tools["docs_stats"]()

        assert stats["total_documents"] == 4
        assert stats["version"] == "17.0"
        assert stats["sections"]["applications"] == 2
        assert stats["last_update"] is not None
        assert stats["metrics"]["failed_files"] == 0


class TestRefreshDocs:
    def test_fresh_index_is_not_rebuilt(self, tools):
        result = tools["refresh_docs"]()
        assert result["started"] is False
        assert result["indexing_in_progress"] is False

    def test_forced_refresh(self, tools, indexer):
        result = tools["refresh_docs"](force=True)

        assert result["started"] is True
        assert indexer.wait(timeout=10)
        assert indexer.state.value == "ready"
        assert "faq_hr_leave_config" in indexer.store
