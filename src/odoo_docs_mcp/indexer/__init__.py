"""
Indexer module for odoo-docs-mcp.

This module scans the Odoo documentation corpus, keeps an in-memory index
persisted as a JSON snapshot, and ranks documents for free-text queries.
"""

from odoo_docs_mcp.indexer.indexer import Indexer
from odoo_docs_mcp.indexer.models import (
    DocumentRecord,
    IndexMetrics,
    IndexState,
    SearchResponse,
    SearchResult,
)
from odoo_docs_mcp.indexer.parser import parse_document
from odoo_docs_mcp.indexer.query import classify_query, preprocess_terms
from odoo_docs_mcp.indexer.scoring import AdaptiveScorer, ScoringWeights
from odoo_docs_mcp.indexer.store import IndexStore
from odoo_docs_mcp.indexer.walker import scan_corpus

__all__ = [
    "AdaptiveScorer",
    "DocumentRecord",
    "IndexMetrics",
    "IndexState",
    "IndexStore",
    "Indexer",
    "ScoringWeights",
    "SearchResponse",
    "SearchResult",
    "classify_query",
    "parse_document",
    "preprocess_terms",
    "scan_corpus",
]
