"""Indexer that keeps the in-memory documentation index fresh."""

import logging
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

from odoo_docs_mcp.config import Config
from odoo_docs_mcp.indexer.models import (
    DocumentRecord,
    IndexMetrics,
    IndexState,
    SearchResponse,
)
from odoo_docs_mcp.indexer.parser import parse_document
from odoo_docs_mcp.indexer.scoring import AdaptiveScorer, ScoringWeights
from odoo_docs_mcp.indexer.store import IndexStore
from odoo_docs_mcp.indexer.synthetic import build_synthetic_documents
from odoo_docs_mcp.indexer.walker import scan_corpus

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_INTERVAL = timedelta(hours=24)

# Snapshot is written every N indexed documents during a rebuild
PROGRESSIVE_SAVE_EVERY = 50

CORPUS_REPOSITORY = "https://github.com/odoo/documentation.git"


class Indexer:
    """
    Coordinates scanning, parsing, persistence and search of the corpus.

    The documentation files are the source of truth; the snapshot in the
    cache directory is a derived index that can be rebuilt at any time.

    Lifecycle:
        ``start()`` loads the snapshot synchronously so searches work right
        away, then launches a background rebuild when the snapshot is stale
        or missing. Only one rebuild runs at a time.

    Thread Safety:
        Rebuilds write into the live store record by record. Searches never
        wait for a rebuild and may see a mix of old and new records.
    """

    def __init__(
        self,
        docs_root: Path,
        cache_dir: Path,
        corpus_version: str = "",
        update_interval: timedelta = DEFAULT_UPDATE_INTERVAL,
        weights: ScoringWeights | None = None,
        save_every: int = PROGRESSIVE_SAVE_EVERY,
    ):
        """
        Initialize the indexer.

        Args:
            docs_root: Root directory of the documentation corpus
            cache_dir: Directory holding the index snapshot
            corpus_version: Version label of the documentation (e.g. "17.0")
            update_interval: Age after which the index is considered stale
            weights: Scoring magnitudes, defaults to ScoringWeights()
            save_every: Documents between progressive snapshot saves
        """
        self.docs_root = docs_root
        self.cache_dir = cache_dir
        self.corpus_version = corpus_version
        self.update_interval = update_interval
        self.save_every = save_every
        self.store = IndexStore(cache_dir, corpus_version=corpus_version)
        self.scorer = AdaptiveScorer(weights)
        self.metrics = IndexMetrics()

        self._state = IndexState.UNINITIALIZED
        self._indexing_in_progress = False
        self._state_lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @classmethod
    def from_config(cls, config: Config) -> "Indexer":
        return cls(
            docs_root=config.docs_root,
            cache_dir=config.cache_dir,
            corpus_version=config.docs_version,
            update_interval=timedelta(seconds=config.update_interval),
        )

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def indexing_in_progress(self) -> bool:
        return self._indexing_in_progress

    @property
    def corpus_available(self) -> bool:
        return self.docs_root.is_dir()

    # Lifecycle

    def start(self) -> threading.Thread | None:
        """
        Load the cached index and refresh it in the background if stale.

        Returns the background indexing thread, or None when no rebuild was
        started.
        """
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create cache directory %s: %s", self.cache_dir, e)

        self.store.load()
        self._state = IndexState.LOADED_FROM_CACHE

        if not self.corpus_available:
            logger.error("Documentation corpus not found: %s", self.docs_root)
            logger.error(
                "Clone it with: git clone --branch %s --depth 1 %s "
                "and point ODOO_DOCS_ROOT to its content/ directory",
                self.corpus_version or "<version>",
                CORPUS_REPOSITORY,
            )
            return None

        thread = self.refresh_if_stale()
        if thread is None:
            self._state = IndexState.READY
            logger.info("Documentation index ready (%d documents)", len(self.store))
        else:
            logger.info(
                "Documentation index serving %d cached documents, refresh running",
                len(self.store),
            )
        return thread

    def should_update(self, now: datetime | None = None) -> bool:
        """Whether the index is missing or older than the update interval."""
        last_update = self.store.last_update
        if last_update is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now - last_update > self.update_interval

    def index_age(self, now: datetime | None = None) -> timedelta | None:
        """Time since the last complete corpus scan, None if never indexed."""
        last_update = self.store.last_update
        if last_update is None:
            return None
        return (now or datetime.now(timezone.utc)) - last_update

    def refresh_if_stale(self, now: datetime | None = None) -> threading.Thread | None:
        """
        Start a background rebuild when the index is stale.

        Nothing is started while the corpus is missing: a rebuild could not
        index anything.
        """
        if not self.corpus_available or not self.should_update(now):
            return None
        logger.info("Documentation index is stale, starting background indexing")
        return self._start_background()

    def request_refresh(self, force: bool = False) -> threading.Thread | None:
        """Start a background rebuild if stale, or unconditionally with force."""
        if force:
            return self._start_background()
        return self.refresh_if_stale()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the current background rebuild ends. Returns True if idle."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        return not self._indexing_in_progress

    def rebuild(self) -> int:
        """
        Rebuild the index synchronously.

        Returns the number of corpus documents indexed, or 0 if a rebuild
        is already running.
        """
        if not self._begin_indexing():
            return 0
        try:
            return self._rebuild()
        finally:
            self._finish_indexing()

    def _begin_indexing(self) -> bool:
        with self._state_lock:
            if self._indexing_in_progress:
                logger.info("Indexing already in progress, request ignored")
                return False
            self._indexing_in_progress = True
            self._state = IndexState.INDEXING_IN_BACKGROUND
            return True

    def _finish_indexing(self) -> None:
        with self._state_lock:
            self._indexing_in_progress = False
            self._state = IndexState.READY

    def _start_background(self) -> threading.Thread | None:
        if not self._begin_indexing():
            return None
        thread = threading.Thread(
            target=self._run_background,
            name="odoo-docs-indexer",
            daemon=True,
        )
        self._thread = thread
        thread.start()
        return thread

    def _run_background(self) -> None:
        try:
            self._rebuild()
            logger.info(
                "Background indexing finished: %d documents available", len(self.store)
            )
        except Exception:
            logger.exception("Error during background indexing")
        finally:
            self._finish_indexing()

    def _rebuild(self) -> int:
        if not self.corpus_available:
            # A missing corpus never overwrites the snapshot
            logger.error(
                "Documentation corpus not found: %s, keeping the cached index",
                self.docs_root,
            )
            return 0

        count = 0
        try:
            count = self.index_corpus()
        except Exception:
            logger.exception("Documentation indexing failed, keeping partial index")

        self.enrich()
        self.store.save(self._snapshot_metadata())
        self.summarize()
        return count

    # Indexing

    def index_corpus(self) -> int:
        """
        Scan and parse the corpus into the store.

        Records are written into the live store one by one. Records whose
        source file disappeared are removed at the end of a complete scan.

        Returns the number of documents indexed.
        """
        root = self.docs_root.absolute()
        if not root.is_dir():
            logger.error("Documentation corpus not found: %s", root)
            return 0

        started = datetime.now(timezone.utc)
        files = scan_corpus(root)
        self.metrics.total_files += len(files)
        logger.info("Indexing %d documentation files from %s", len(files), root)

        seen: set[str] = set()
        processed = 0
        for position, path in enumerate(files, start=1):
            relative_path = path.relative_to(root).as_posix()
            logger.debug("Processing (%d/%d): %s", position, len(files), relative_path)

            try:
                doc = self.index_file(path, relative_path)
            except Exception as e:
                logger.warning(
                    "Failed to process %s: %s: %s", relative_path, type(e).__name__, e
                )
                self.metrics.failed_files += 1
                continue

            if doc is None:
                continue
            if doc.id in seen:
                logger.warning(
                    "Duplicate document id %s from %s replaces an earlier file",
                    doc.id,
                    relative_path,
                )
            seen.add(doc.id)
            self.store.set(doc.id, doc)
            processed += 1

            if processed % self.save_every == 0:
                self.store.save(self._snapshot_metadata())
                logger.info("Progressive save: %d documents", processed)

        removed = self._prune(seen)
        self.store.last_update = datetime.now(timezone.utc)

        elapsed = (self.store.last_update - started).total_seconds()
        logger.info(
            "Indexing complete in %.1fs: %d documents indexed, %d removed",
            elapsed,
            processed,
            removed,
        )
        return processed

    def index_file(self, path: Path, relative_path: str) -> DocumentRecord | None:
        """
        Read and parse one file.

        Raises OSError or UnicodeDecodeError when the file cannot be read.
        """
        content = path.read_text(encoding="utf-8")
        modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

        doc = parse_document(
            content,
            relative_path,
            full_path=str(path),
            last_modified=modified,
        )
        if doc is not None:
            self.metrics.processed_files += 1
            self.metrics.total_bytes_processed += doc.file_size
        return doc

    def _prune(self, seen: set[str]) -> int:
        removed = 0
        for doc_id in self.store.ids():
            doc = self.store.get(doc_id)
            if doc_id in seen or (doc is not None and doc.is_synthetic):
                continue
            self.store.delete(doc_id)
            removed += 1
        return removed

    def enrich(self) -> dict:
        """Add the synthetic reference documents to the store."""
        documents = build_synthetic_documents()
        for doc in documents:
            self.store.set(doc.id, doc)
        logger.info("%d synthetic documents added", len(documents))
        return {"added_documents": len(documents), "total_documents": len(self.store)}

    # Queries

    def search(
        self,
        query: str,
        limit: int = 20,
        section: str | None = None,
        min_score: float = 0,
        include_metadata: bool = True,
        contextual_terms: list[str] | None = None,
    ) -> SearchResponse:
        """
        Search the documentation.

        Args:
            query: Free-text query (French or English)
            limit: Maximum number of results
            section: Only return documents from this section
            min_score: Caller threshold, applied on top of the quality floor
            include_metadata: Include parser/source metadata in serialized results
            contextual_terms: Extra terms that boost matching documents

        Returns:
            SearchResponse with ranked results and a sources summary.
        """
        return self.scorer.search(
            self.store.documents(),
            query,
            limit=limit,
            section=section,
            min_score=min_score,
            include_metadata=include_metadata,
            contextual_terms=contextual_terms,
        )

    def get_stats(self) -> dict:
        last_update = self.store.last_update
        return {
            "total_documents": len(self.store),
            "last_update": last_update.isoformat() if last_update else None,
            "sections": self.store.section_counts(),
            "version": self.corpus_version,
            "source": self.store.source,
            "state": self._state.value,
            "indexing_in_progress": self._indexing_in_progress,
            "metrics": self.metrics.to_dict(),
        }

    def summarize(self) -> dict:
        """Log and return aggregate statistics about the index."""
        documents = self.store.documents()
        summary = {
            "total_documents": len(documents),
            "total_words": sum(doc.word_count for doc in documents),
            "total_reading_time": sum(doc.reading_time for doc in documents),
            "megabytes_processed": round(
                self.metrics.total_bytes_processed / 1024 / 1024, 2
            ),
            "sections": self.store.section_counts(),
        }

        logger.info(
            "Index stats: %d documents, %d words, %d min reading time, %.2f MB",
            summary["total_documents"],
            summary["total_words"],
            summary["total_reading_time"],
            summary["megabytes_processed"],
        )
        for section, count in summary["sections"].items():
            logger.info("  %s: %d documents", section or "(root)", count)
        return summary

    def _snapshot_metadata(self) -> dict:
        return {
            "stats": self.get_stats(),
            "metrics": self.metrics.to_dict(),
            "corpus_path": str(self.docs_root),
        }
