"""Main entry point for the odoo-docs-mcp server."""

import argparse
import logging
import sys

from fastmcp import FastMCP

from odoo_docs_mcp.config import Config
from odoo_docs_mcp.indexer import Indexer
from odoo_docs_mcp.sync import RefreshManager
from odoo_docs_mcp.tools import register_tools

logger = logging.getLogger(__name__)


def create_server(config: Config, indexer: Indexer | None = None) -> FastMCP:
    """Create and configure the MCP server with all components.

    Args:
        config: Configuration instance with all settings.
        indexer: Optional prebuilt indexer; created from config otherwise.
    """
    mcp = FastMCP(
        name="odoo-docs",
        instructions=(
            "odoo-docs searches the official Odoo documentation. Use search_docs "
            "with the user's question to retrieve relevant excerpts before "
            "answering, and cite the sources summary."
        ),
    )

    if indexer is None:
        indexer = Indexer.from_config(config)

    logger.info("Loading documentation index from %s", config.cache_dir)
    indexer.start()

    if config.refresh_check_interval > 0:
        refresh_mgr = RefreshManager(indexer, config.refresh_check_interval)
        refresh_mgr.start()
    else:
        logger.info("Refresh checks disabled, index refreshes only on demand")

    logger.info("Registering tools...")
    register_tools(mcp, indexer)

    logger.info("Server configured successfully")
    return mcp


def main() -> None:
    """Main function - starts the MCP server."""
    # Configure logging here to avoid side effects on import
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="odoo-docs-mcp - MCP server for the Odoo documentation"
    )
    parser.add_argument(
        "--reindex",
        action="store_true",
        help="Rebuild the documentation index before starting",
    )
    args = parser.parse_args()

    try:
        config = Config.from_env()
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)

    # Print startup banner
    logger.info("=" * 50)
    logger.info("odoo-docs-mcp starting...")
    logger.info("  DOCS_ROOT:  %s", config.docs_root)
    logger.info("  CACHE_DIR:  %s", config.cache_dir)
    logger.info("  VERSION:    %s", config.docs_version)
    logger.info("  INTERVAL:   %ss", config.update_interval)
    logger.info("  PORT:       %s", config.port)
    logger.info("=" * 50)

    indexer = Indexer.from_config(config)

    # Force reindex if requested (before server starts)
    if args.reindex:
        logger.info("Force reindex requested...")
        doc_count = indexer.rebuild()
        logger.info("Reindex complete: %d documents indexed", doc_count)

    try:
        mcp = create_server(config, indexer)
        logger.info("Starting MCP server on port %s...", config.port)
        mcp.run(transport="sse", host="0.0.0.0", port=config.port)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception:
        logger.exception("Server error")
        sys.exit(1)


if __name__ == "__main__":
    main()
