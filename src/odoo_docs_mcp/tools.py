"""MCP tools for the documentation server.

This module defines the tools exposed by the MCP server:
- search_docs: Ranked search over the Odoo documentation
- docs_stats: Index statistics for health and monitoring
- refresh_docs: Request a background rebuild of the index
"""

from fastmcp import FastMCP

from odoo_docs_mcp.indexer import Indexer
from odoo_docs_mcp.indexer.query import extract_contextual_terms, is_domain_query


def register_tools(mcp: FastMCP, indexer: Indexer) -> None:
    """Register all tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        indexer: Indexer serving the documentation index
    """

    @mcp.tool()
    def search_docs(
        query: str,
        section: str | None = None,
        limit: int = 5,
        min_score: float = 0,
        include_metadata: bool = False,
        context: list[str] | None = None,
        history: list[dict] | None = None,
    ) -> dict:
        """Search the Odoo documentation (French or English queries).

        Ranking considers title, description and content matches, the
        detected topic of the query (HR, sales, accounting, development...),
        document recency and length.

        Args:
            query: Free-text question or keywords
            section: Optional top-level section (e.g. "applications", "developer")
            limit: Maximum number of results to return (default: 5)
            min_score: Minimum relevance score
            include_metadata: Include parser and source metadata per result
            context: Extra terms that boost matching documents
            history: Recent chat messages ({"role", "content"}) used to derive
                extra context terms

        Returns:
            Dictionary with:
            - results: Documents with title, section, excerpt, score...
            - sources_summary: One line per documentation area used
            - domain_related: Whether the query is about Odoo at all
        """
        contextual_terms = list(context or [])
        if history:
            contextual_terms.extend(extract_contextual_terms(history))

        response = indexer.search(
            query,
            limit=limit,
            section=section,
            min_score=min_score,
            include_metadata=include_metadata,
            contextual_terms=contextual_terms,
        )
        payload = response.to_dict()
        for result in payload["results"]:
            # Full content stays server-side; the excerpt is what clients need
            result.pop("content", None)
        payload["domain_related"] = is_domain_query(query)
        return payload

    @mcp.tool()
    def docs_stats() -> dict:
        """Statistics about the documentation index.

        Returns:
            Dictionary with total_documents, last_update, sections (document
            count per section), version, source, state, indexing_in_progress
            and metrics (files seen, processed, failed, bytes processed).
        """
        return indexer.get_stats()

    @mcp.tool()
    def refresh_docs(force: bool = False) -> dict:
        """Rebuild the documentation index in the background.

        Args:
            force: Rebuild even if the index is not stale

        Returns:
            Dictionary with started (bool) and the current state.
        """
        thread = indexer.request_refresh(force=force)
        return {
            "started": thread is not None,
            "state": indexer.state.value,
            "indexing_in_progress": indexer.indexing_in_progress,
        }
