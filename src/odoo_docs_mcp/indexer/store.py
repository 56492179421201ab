"""In-memory document index with JSON snapshot persistence."""

import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

from odoo_docs_mcp.indexer.models import DocumentRecord

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT_VERSION = "1.0"
SNAPSHOT_SOURCE = "odoo-documentation"

INDEX_FILENAME = "documentation-index.json"
METADATA_FILENAME = "documentation-metadata.json"


class IndexStore:
    """
    Mapping from document id to DocumentRecord.

    The snapshot is disposable: it regenerates from the documentation corpus.

    Thread Safety:
        Mutations take a lock and ``documents()`` returns a copy, so queries
        can iterate while a background rebuild writes. Readers may observe a
        mix of old and new records during a rebuild.
    """

    def __init__(
        self,
        cache_dir: Path,
        corpus_version: str = "",
        source: str = SNAPSHOT_SOURCE,
    ):
        self.cache_dir = cache_dir
        self.corpus_version = corpus_version
        self.source = source
        self.last_update: datetime | None = None
        self._documents: dict[str, DocumentRecord] = {}
        self._lock = threading.Lock()

    @property
    def index_path(self) -> Path:
        return self.cache_dir / INDEX_FILENAME

    @property
    def metadata_path(self) -> Path:
        return self.cache_dir / METADATA_FILENAME

    # Mapping operations

    def set(self, doc_id: str, doc: DocumentRecord) -> None:
        with self._lock:
            self._documents[doc_id] = doc

    def get(self, doc_id: str) -> DocumentRecord | None:
        return self._documents.get(doc_id)

    def delete(self, doc_id: str) -> None:
        with self._lock:
            self._documents.pop(doc_id, None)

    def clear(self) -> None:
        with self._lock:
            self._documents.clear()

    def size(self) -> int:
        return len(self._documents)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    def __iter__(self) -> Iterator[DocumentRecord]:
        return iter(self.documents())

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._documents)

    def documents(self) -> list[DocumentRecord]:
        """Snapshot of all records in insertion order."""
        with self._lock:
            return list(self._documents.values())

    def section_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for doc in self.documents():
            counts[doc.section] = counts.get(doc.section, 0) + 1
        return counts

    # Persistence

    def save(self, metadata: dict | None = None) -> bool:
        """
        Write the snapshot and its companion metadata file.

        Each file is written to a temporary file in the cache directory and
        moved into place, so an interrupted write leaves the previous
        snapshot intact. Returns False (after logging) on I/O errors.
        """
        with self._lock:
            entries = [[doc_id, doc.to_dict()] for doc_id, doc in self._documents.items()]

        snapshot = {
            "format_version": SNAPSHOT_FORMAT_VERSION,
            "corpus_version": self.corpus_version,
            "source": self.source,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "total_documents": len(entries),
            "documents": entries,
        }
        companion = {
            "created_at": datetime.now(timezone.utc).isoformat(),
            **(metadata or {}),
        }

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            _write_json_atomic(self.index_path, snapshot)
            _write_json_atomic(self.metadata_path, companion)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save index snapshot to %s: %s", self.cache_dir, e)
            return False

        logger.debug("Snapshot saved: %d documents", len(entries))
        return True

    def load(self) -> bool:
        """
        Replace the in-memory index with the snapshot on disk.

        A missing, unreadable or incompatible snapshot is a cache miss: the
        index is left empty and False is returned.
        """
        if not self.index_path.exists():
            logger.info("No index snapshot found at %s", self.index_path)
            self._reset()
            return False

        try:
            data = json.loads(self.index_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Unreadable index snapshot %s: %s", self.index_path, e)
            self._reset()
            return False

        if not isinstance(data, dict) or (
            data.get("format_version") != SNAPSHOT_FORMAT_VERSION
            or data.get("source") != self.source
        ):
            logger.info("Index snapshot format is outdated, a rebuild is needed")
            self._reset()
            return False

        try:
            documents = {
                doc_id: DocumentRecord.from_dict(record)
                for doc_id, record in data.get("documents", [])
            }
            last_update = data.get("last_update")
            last_update_at = datetime.fromisoformat(last_update) if last_update else None
            if last_update_at is not None and last_update_at.tzinfo is None:
                last_update_at = last_update_at.replace(tzinfo=timezone.utc)
        except (TypeError, ValueError) as e:
            logger.warning("Malformed index snapshot %s: %s", self.index_path, e)
            self._reset()
            return False

        with self._lock:
            self._documents = documents
        self.last_update = last_update_at
        logger.info("Index snapshot loaded: %d documents", len(documents))
        return True

    def _reset(self) -> None:
        self.clear()
        self.last_update = None


def _write_json_atomic(path: Path, payload: dict) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
