"""Adaptive relevance scoring for documentation search.

Ranking combines:
- Per-term matches (title > description > content frequency > section)
- Exact phrase bonus when the whole query appears in the content
- Tag-specific bonuses driven by the query classification
- Contextual terms supplied by the caller (e.g. from chat history)
- Quality adjustments (length, recency, code density, important sections)
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from odoo_docs_mcp.indexer.models import DocumentRecord, SearchResponse, SearchResult
from odoo_docs_mcp.indexer.parser import split_sentences
from odoo_docs_mcp.indexer.query import classify_query, preprocess_terms

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30
EXCERPT_LENGTH = 300
FALLBACK_EXCERPT_LENGTH = 200
ELLIPSIS = "..."


@dataclass(frozen=True)
class TagSignal:
    """Bonus granted to a document when it matches what a query tag expects."""

    bonus: float
    sections: tuple[str, ...] = ()
    titles: tuple[str, ...] = ()
    contents: tuple[str, ...] = ()

    def matches(self, section: str, title: str, content: str) -> bool:
        return (
            any(s in section for s in self.sections)
            or any(t in title for t in self.titles)
            or any(c in content for c in self.contents)
        )


TAG_SIGNALS: dict[str, TagSignal] = {
    "hr": TagSignal(
        150,
        sections=("hr", "timesheet"),
        titles=("employee", "leave", "payroll"),
    ),
    "sales": TagSignal(120, sections=("sales", "crm"), titles=("customer", "quote")),
    "accounting": TagSignal(120, sections=("accounting",), titles=("invoice", "payment")),
    "development": TagSignal(
        100, sections=("developer",), contents=("python", "xml", "api")
    ),
    "configuration": TagSignal(
        80, titles=("configuration", "setup"), contents=("setting",)
    ),
    "beginner": TagSignal(
        60, titles=("introduction", "getting started"), contents=("step by step",)
    ),
    "technical": TagSignal(80, contents=("api", "code", "development")),
}

# Applied on top of the beginner bonus for documents that look advanced
BEGINNER_PENALTY = TagSignal(-30, contents=("advanced", "customize", "override"))

CODE_MARKERS = ("class ", "def ", "import ", "from ")
TECHNICAL_TAGS = ("technical", "development")
IMPORTANT_SECTIONS = ("user", "administration", "applications")


@dataclass
class ScoringWeights:
    """Tunable magnitudes used by the scorer.

    The defaults keep the ordering title > description > content frequency
    > section metadata.
    """

    title_match: float = 100
    exact_title_match: float = 50
    description_match: float = 40
    content_frequency_factor: float = 15
    content_frequency_cap: float = 50
    section_match: float = 25
    subsection_match: float = 20
    exact_phrase: float = 80
    contextual_term: float = 30
    long_document_words: tuple[int, int] = (500, 1000)
    long_document_bonus: float = 10
    recent_months: float = 6
    recent_bonus: float = 15
    older_months: float = 12
    older_bonus: float = 5
    code_penalty: float = -40
    important_section_bonus: float = 15
    short_document_words: int = 100
    short_document_penalty: float = -20
    title_length_range: tuple[int, int] = (10, 100)
    title_length_bonus: float = 5
    max_score: float = 1000
    quality_floor: float = 10
    tag_signals: dict[str, TagSignal] = field(default_factory=lambda: dict(TAG_SIGNALS))


class AdaptiveScorer:
    """Scores and ranks documents for a free-text query."""

    def __init__(self, weights: ScoringWeights | None = None):
        self.weights = weights or ScoringWeights()

    # Individual components

    def term_score(self, doc: DocumentRecord, terms: Iterable[str]) -> float:
        w = self.weights
        title = doc.title.lower()
        description = (doc.description or "").lower()
        content = doc.content.lower()
        section = doc.section.lower()
        subsection = (doc.subsection or "").lower()

        score = 0.0
        for term in terms:
            if term in title:
                score += w.title_match
                if title == term:
                    score += w.exact_title_match
            if term in description:
                score += w.description_match
            occurrences = content.count(term)
            if occurrences:
                score += min(
                    math.log(occurrences + 1) * w.content_frequency_factor,
                    w.content_frequency_cap,
                )
            if term in section:
                score += w.section_match
            if subsection and term in subsection:
                score += w.subsection_match
        return score

    def phrase_bonus(self, doc: DocumentRecord, query: str) -> float:
        phrase = query.strip().lower()
        if phrase and phrase in doc.content.lower():
            return self.weights.exact_phrase
        return 0.0

    def type_bonus(self, doc: DocumentRecord, tags: Iterable[str]) -> float:
        section = doc.section.lower()
        title = doc.title.lower()
        content = doc.content.lower()

        bonus = 0.0
        for tag in tags:
            signal = self.weights.tag_signals.get(tag)
            if signal and signal.matches(section, title, content):
                bonus += signal.bonus
            if tag == "beginner" and BEGINNER_PENALTY.matches(section, title, content):
                bonus += BEGINNER_PENALTY.bonus
        return bonus

    def contextual_bonus(self, doc: DocumentRecord, contextual_terms: Iterable[str]) -> float:
        title = doc.title.lower()
        content = doc.content.lower()
        bonus = 0.0
        for term in contextual_terms:
            term = term.lower()
            if term and (term in title or term in content):
                bonus += self.weights.contextual_term
        return bonus

    def quality_adjustment(
        self,
        doc: DocumentRecord,
        tags: Iterable[str],
        now: datetime | None = None,
    ) -> float:
        w = self.weights
        tags = list(tags)
        adjustment = 0.0

        for threshold in w.long_document_words:
            if doc.word_count > threshold:
                adjustment += w.long_document_bonus

        updated = doc.last_updated_at()
        if updated is not None:
            now = now or datetime.now(timezone.utc)
            months_old = (now - updated).total_seconds() / 86400 / DAYS_PER_MONTH
            if months_old < w.recent_months:
                adjustment += w.recent_bonus
            elif months_old < w.older_months:
                adjustment += w.older_bonus

        if not any(tag in tags for tag in TECHNICAL_TAGS):
            content = doc.content.lower()
            if any(marker in content for marker in CODE_MARKERS):
                adjustment += w.code_penalty

        if any(section in doc.section for section in IMPORTANT_SECTIONS):
            adjustment += w.important_section_bonus

        if doc.word_count < w.short_document_words:
            adjustment += w.short_document_penalty

        low, high = w.title_length_range
        if low < len(doc.title) < high:
            adjustment += w.title_length_bonus

        return adjustment

    # Whole document

    def score(
        self,
        doc: DocumentRecord,
        query: str,
        terms: list[str],
        tags: list[str],
        contextual_terms: Iterable[str] = (),
        now: datetime | None = None,
    ) -> SearchResult:
        term_score = self.term_score(doc, terms)
        phrase_bonus = self.phrase_bonus(doc, query)
        type_bonus = self.type_bonus(doc, tags)
        contextual_bonus = self.contextual_bonus(doc, contextual_terms)
        quality = self.quality_adjustment(doc, tags, now=now)

        total = term_score + phrase_bonus + type_bonus + contextual_bonus + quality
        final_score = max(0.0, min(total, self.weights.max_score))

        return SearchResult(
            document=doc,
            excerpt="",
            term_score=term_score,
            phrase_bonus=phrase_bonus,
            type_bonus=type_bonus,
            contextual_bonus=contextual_bonus,
            quality_adjustment=quality,
            score=final_score,
        )

    def search(
        self,
        documents: Iterable[DocumentRecord],
        query: str,
        limit: int = 20,
        section: str | None = None,
        min_score: float = 0,
        include_metadata: bool = True,
        contextual_terms: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> SearchResponse:
        """
        Rank documents for a query.

        Results scoring at or below the quality floor are dropped even when
        ``min_score`` is lower. Ties keep the iteration order of
        ``documents``.
        """
        terms = preprocess_terms(query)
        tags = classify_query(query)
        contextual = list(contextual_terms or [])

        results: list[SearchResult] = []
        for doc in documents:
            if section and doc.section != section:
                continue
            try:
                result = self.score(doc, query, terms, tags, contextual, now=now)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning("Skipping unscorable document %s: %s", getattr(doc, "id", "?"), e)
                continue
            if result.score >= min_score and result.score > self.weights.quality_floor:
                results.append(result)

        results.sort(key=lambda r: r.score, reverse=True)
        results = results[: max(limit, 0)]

        for result in results:
            result.excerpt = extract_excerpt(result.document.content, terms)

        return SearchResponse(
            results=results,
            # Summarizes the returned page only, not every result above the floor
            sources_summary=build_sources_summary(results),
            include_metadata=include_metadata,
        )


def extract_excerpt(content: str, terms: Iterable[str]) -> str:
    """Return the sentence with the most matched term characters."""
    terms = list(terms)
    best_sentence = ""
    best_score = 0

    for sentence in split_sentences(content):
        lowered = sentence.lower()
        score = sum(len(term) for term in terms if term in lowered)
        if score > best_score:
            best_score = score
            best_sentence = sentence

    if best_sentence:
        return best_sentence.strip()[:EXCERPT_LENGTH] + ELLIPSIS
    return content[:FALLBACK_EXCERPT_LENGTH] + ELLIPSIS


def build_sources_summary(results: Iterable[SearchResult]) -> list[str]:
    """One line per distinct documentation section among the results."""
    sections = dict.fromkeys(r.document.section for r in results)
    summary = []
    for section in sections:
        name = section.replace("_", " ").replace("-", " ").strip() or "general"
        summary.append(f"This information comes from the {name} documentation")
    return summary
