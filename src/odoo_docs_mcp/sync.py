"""Periodic staleness checks for the documentation index.

Every ``ODOO_DOCS_REFRESH_CHECK_INTERVAL`` seconds a daemon thread looks at
the age of the index and asks the indexer for a background rebuild once it
is older than the update interval. A check is a no-op while a rebuild is
running or while the documentation corpus is missing.
"""

import logging
import threading
from datetime import datetime, timezone

from odoo_docs_mcp.indexer import Indexer

logger = logging.getLogger(__name__)


class RefreshManager:
    """Schedules staleness checks and records their outcome.

    Attributes:
        last_check: When the last check ran (UTC), None before the first one.
        refreshes_started: Background rebuilds started by this manager.
    """

    def __init__(self, indexer: Indexer, interval: int):
        """
        Args:
            indexer: Indexer whose snapshot is kept fresh.
            interval: Seconds between checks. Must be > 0.
        """
        if interval <= 0:
            raise ValueError(f"Refresh check interval must be positive, got {interval}")

        self._indexer = indexer
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._corpus_missing_reported = False
        self.last_check: datetime | None = None
        self.refreshes_started = 0

    def check(self, now: datetime | None = None) -> threading.Thread | None:
        """
        Run one staleness check.

        Returns the rebuild thread when a refresh was started, None otherwise.
        """
        now = now or datetime.now(timezone.utc)
        self.last_check = now
        indexer = self._indexer

        if indexer.indexing_in_progress:
            logger.debug("Refresh check skipped: indexing already in progress")
            return None

        if not indexer.corpus_available:
            if not self._corpus_missing_reported:
                logger.warning(
                    "Documentation corpus %s is missing, refresh checks paused "
                    "until it is restored",
                    indexer.docs_root,
                )
                self._corpus_missing_reported = True
            return None
        if self._corpus_missing_reported:
            logger.info("Documentation corpus %s is back", indexer.docs_root)
            self._corpus_missing_reported = False

        if not indexer.should_update(now):
            logger.debug("Index is fresh (age %s)", indexer.index_age(now))
            return None

        age = indexer.index_age(now)
        thread = indexer.refresh_if_stale(now)
        if thread is not None:
            self.refreshes_started += 1
            logger.info(
                "Index is stale (age %s, limit %s), background refresh started",
                age if age is not None else "never indexed",
                indexer.update_interval,
            )
        return thread

    def start(self) -> None:
        """Start the check thread. The first check runs after one interval."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Refresh thread already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="odoo-docs-refresh",
            daemon=True,
        )
        self._thread.start()
        logger.info("Refresh checks every %ds", self._interval)

    def stop(self) -> None:
        """Stop the check thread; a rebuild already running is left alone."""
        if self._thread is None or not self._thread.is_alive():
            return

        self._stop_event.set()
        self._thread.join(timeout=self._interval + 1)
        if self._thread.is_alive():
            logger.warning("Refresh thread did not stop cleanly")
        self._thread = None

    def _run(self) -> None:
        # Startup already checked staleness through Indexer.start()
        while not self._stop_event.wait(timeout=self._interval):
            try:
                self.check()
            except Exception:
                logger.exception("Refresh check failed")
