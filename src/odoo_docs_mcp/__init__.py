"""
odoo-docs-mcp - MCP server for searching the Odoo documentation.

Indexes a local checkout of the Odoo documentation (reStructuredText and
Markdown) and answers support questions with an adaptive keyword ranking,
so a chat assistant can ground its answers in the official docs.

Stack:
- Python + FastMCP
- In-memory index with JSON snapshots
- SSE (remote HTTP transport)
"""

__version__ = "0.1.0"
