"""Data models for the documentation index."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum


class IndexState(str, Enum):
    """Lifecycle state of the documentation index."""

    UNINITIALIZED = "uninitialized"
    LOADED_FROM_CACHE = "loaded_from_cache"
    INDEXING_IN_BACKGROUND = "indexing_in_background"
    READY = "ready"


@dataclass
class DocumentRecord:
    """One parsed unit of documentation."""

    id: str
    title: str
    content: str
    file_path: str | None = None  # Relative to the corpus root
    full_path: str | None = None
    description: str = ""
    section: str = ""
    subsection: str = ""
    keywords: list[str] = field(default_factory=list)
    word_count: int = 0
    reading_time: int = 0  # Minutes
    file_size: int = 0
    file_type: str = ""  # ".rst", ".md" or "" for synthetic documents
    last_updated: str | None = None  # ISO 8601
    metadata: dict = field(default_factory=dict)

    @property
    def is_synthetic(self) -> bool:
        return self.metadata.get("source") == "synthetic"

    def last_updated_at(self) -> datetime | None:
        """Parse last_updated, assuming UTC for naive timestamps."""
        if not self.last_updated:
            return None
        try:
            value = datetime.fromisoformat(self.last_updated)
        except ValueError:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentRecord":
        """Build a record from its serialized form, ignoring unknown keys."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)


@dataclass
class SearchResult:
    """A scored document with the breakdown of its ranking."""

    document: DocumentRecord
    excerpt: str
    term_score: float
    phrase_bonus: float
    type_bonus: float
    contextual_bonus: float
    quality_adjustment: float
    score: float

    def to_dict(self, include_metadata: bool = True) -> dict:
        data = self.document.to_dict()
        if not include_metadata:
            data.pop("metadata", None)
        data["score"] = round(self.score, 2)
        data["excerpt"] = self.excerpt
        return data


@dataclass
class SearchResponse:
    """Ranked results plus a human-readable summary of their sources."""

    results: list[SearchResult] = field(default_factory=list)
    sources_summary: list[str] = field(default_factory=list)
    include_metadata: bool = True

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict(self.include_metadata) for r in self.results],
            "sources_summary": list(self.sources_summary),
        }


@dataclass
class IndexMetrics:
    """Counters accumulated across indexing runs for the process lifetime."""

    total_files: int = 0
    processed_files: int = 0
    failed_files: int = 0
    total_bytes_processed: int = 0
    started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> dict:
        return asdict(self)
