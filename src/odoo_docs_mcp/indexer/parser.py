"""Parsers for reStructuredText and Markdown documentation files."""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import PurePath

import yaml

from odoo_docs_mcp.indexer.models import DocumentRecord

logger = logging.getLogger(__name__)

# Cleaned content shorter than this is not worth indexing
MIN_CONTENT_LENGTH = 100

# Cleaned content is truncated to this many characters
MAX_CONTENT_LENGTH = 50_000

MAX_DESCRIPTION_LENGTH = 200
MIN_SENTENCE_LENGTH = 20
WORDS_PER_MINUTE = 200

FRONTMATTER_MARKER = "---"

# reStructuredText
RST_TITLE_UNDERLINE = re.compile(r"^=+$")
RST_ADORNMENT_LINE = re.compile(r"^[ \t]*([=\-~^*#+\"'`:.])\1{3,}[ \t]*$", re.MULTILINE)
RST_DIRECTIVE = re.compile(r"^[ \t]*\.\.[ \t]+[\w:-]+::.*$", re.MULTILINE)
RST_COMMENT = re.compile(r"^[ \t]*\.\.(?:[ \t].*)?$", re.MULTILINE)
RST_EXTERNAL_LINK = re.compile(r"`([^`<]+?)\s*<[^>]+>`__?")
RST_ROLE_WITH_TARGET = re.compile(r":[\w:-]+:`([^`<]+?)\s*<[^>]+>`")
RST_ROLE = re.compile(r":[\w:-]+:`([^`]+)`")

# Markdown
MD_HTML_TAG = re.compile(r"<[^>]*>")
MD_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]+\)")
MD_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
MD_CODE_FENCE = re.compile(r"^[ \t]*(```|~~~).*$", re.MULTILINE)
MD_INLINE_CODE = re.compile(r"`([^`]+)`")
MD_HEADING = re.compile(r"^#+[ \t]+", re.MULTILINE)
MD_BULLET = re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE)
MD_NUMBERED = re.compile(r"^[ \t]*\d+\.[ \t]+", re.MULTILINE)
MD_BLOCKQUOTE = re.compile(r"^[ \t]*>[ \t]?", re.MULTILINE)

SENTENCE_SPLIT = re.compile(r"[.!?]+")
WHITESPACE = re.compile(r"\s+")
DOC_EXTENSION = re.compile(r"\.(rst|md)$", re.IGNORECASE)


@dataclass
class DocumentMetadata:
    """Metadata extracted from a documentation file."""

    title: str = ""
    description: str = ""
    section: str = ""
    subsection: str = ""
    keywords: list[str] = field(default_factory=list)


def generate_document_id(relative_path: str) -> str:
    """Derive a stable id from a path relative to the corpus root."""
    doc_id = re.sub(r"[\\/]", "_", relative_path)
    return DOC_EXTENSION.sub("", doc_id).lower()


def humanize_filename(relative_path: str) -> str:
    """Turn ``getting_started-guide.rst`` into ``Getting Started Guide``."""
    stem = PurePath(relative_path.replace("\\", "/")).stem
    words = stem.replace("_", " ").replace("-", " ").split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)


def split_sentences(text: str, min_length: int = MIN_SENTENCE_LENGTH) -> list[str]:
    """Split text on sentence delimiters, dropping short fragments."""
    return [s for s in SENTENCE_SPLIT.split(text) if len(s.strip()) > min_length]


def collapse_whitespace(text: str) -> str:
    return WHITESPACE.sub(" ", text).strip()


def path_sections(relative_path: str) -> tuple[str, str]:
    """Return (section, subsection) from the directory part of a path."""
    directories = PurePath(relative_path.replace("\\", "/")).parts[:-1]
    section = directories[0] if directories else ""
    subsection = directories[1] if len(directories) > 1 else ""
    return section, subsection


def extract_description(content: str, title: str) -> str:
    """First sentence longer than 20 characters that follows the title."""
    start = content.find(title) if title else -1
    following = content[start + len(title):] if start >= 0 else content
    sentences = split_sentences(following)
    if not sentences:
        return ""
    return collapse_whitespace(sentences[0])[:MAX_DESCRIPTION_LENGTH]


def build_keywords(title: str, section: str, subsection: str) -> list[str]:
    keywords = [title.lower(), section.lower()]
    if subsection:
        keywords.append(subsection.lower())
    return [k for k in keywords if k]


# reStructuredText dialect


def extract_rst_title(content: str) -> str:
    """
    Return the line preceding the first ``====`` underline.

    An overline (``=====`` directly above the title) is skipped because the
    line before it is blank or absent.
    """
    lines = content.split("\n")
    for i in range(1, len(lines)):
        if not RST_TITLE_UNDERLINE.match(lines[i].strip()):
            continue
        candidate = lines[i - 1].strip()
        if candidate and not RST_TITLE_UNDERLINE.match(candidate):
            return candidate
    return ""


def clean_rst_content(content: str) -> str:
    """Strip directives, comments and role/link markup from RST text."""
    text = RST_DIRECTIVE.sub("", content)
    text = RST_COMMENT.sub("", text)
    text = RST_ADORNMENT_LINE.sub("", text)
    text = RST_EXTERNAL_LINK.sub(r"\1", text)
    text = RST_ROLE_WITH_TARGET.sub(r"\1", text)
    text = RST_ROLE.sub(r"\1", text)
    return collapse_whitespace(text)[:MAX_CONTENT_LENGTH]


def extract_rst_metadata(content: str, relative_path: str, cleaned: str) -> DocumentMetadata:
    section, subsection = path_sections(relative_path)
    title = extract_rst_title(content) or humanize_filename(relative_path)
    return DocumentMetadata(
        title=title,
        description=extract_description(cleaned, title),
        section=section,
        subsection=subsection,
        keywords=build_keywords(title, section, subsection),
    )


# Markdown dialect


def split_frontmatter(content: str) -> tuple[dict, str]:
    """
    Separate a leading ``---`` delimited front-matter block from the body.

    Returns (front-matter mapping, body). Invalid YAML yields an empty
    mapping (including values YAML cannot construct); the block is still
    removed from the body.
    """
    lines = content.split("\n")
    if not lines or lines[0].strip() != FRONTMATTER_MARKER:
        return {}, content

    for i in range(1, len(lines)):
        if lines[i].strip() == FRONTMATTER_MARKER:
            block = "\n".join(lines[1:i])
            body = "\n".join(lines[i + 1:])
            try:
                raw = yaml.safe_load(block)
            except (yaml.YAMLError, ValueError, RecursionError) as e:
                # Bad dates such as 2024-13-45 raise ValueError, deep nesting RecursionError
                logger.debug("Invalid YAML front matter: %s", e)
                return {}, body
            return (raw if isinstance(raw, dict) else {}), body

    return {}, content


def extract_markdown_title(body: str) -> str:
    for line in body.split("\n"):
        line = line.strip()
        if line.startswith("# "):
            return line[2:].strip()
    return ""


def clean_markdown_content(content: str) -> str:
    """Strip front matter, HTML and Markdown syntax, keeping the readable text."""
    _, text = split_frontmatter(content)
    text = MD_HTML_TAG.sub("", text)
    text = MD_IMAGE.sub(r"\1", text)
    text = MD_LINK.sub(r"\1", text)
    text = MD_CODE_FENCE.sub("", text)
    text = MD_INLINE_CODE.sub(r"\1", text)
    text = MD_HEADING.sub("", text)
    text = MD_BULLET.sub("", text)
    text = MD_NUMBERED.sub("", text)
    text = MD_BLOCKQUOTE.sub("", text)
    return collapse_whitespace(text)[:MAX_CONTENT_LENGTH]


def extract_markdown_metadata(
    content: str, relative_path: str, cleaned: str
) -> DocumentMetadata:
    section, subsection = path_sections(relative_path)
    frontmatter, body = split_frontmatter(content)

    title = str(frontmatter.get("title") or "").strip()
    description = str(frontmatter.get("description") or "").strip()

    if not title:
        title = extract_markdown_title(body) or humanize_filename(relative_path)
    if not description:
        description = extract_description(cleaned, title)

    return DocumentMetadata(
        title=title,
        description=description[:MAX_DESCRIPTION_LENGTH],
        section=section,
        subsection=subsection,
        keywords=build_keywords(title, section, subsection),
    )


def parse_document(
    content: str,
    relative_path: str,
    full_path: str | None = None,
    last_modified: datetime | None = None,
) -> DocumentRecord | None:
    """
    Parse raw file content into a DocumentRecord.

    The dialect is chosen from the extension of ``relative_path``: ``.md``
    uses the Markdown rules, everything else the reStructuredText rules.

    Returns None when the cleaned content is shorter than
    MIN_CONTENT_LENGTH characters.
    """
    extension = PurePath(relative_path).suffix.lower()
    if extension == ".md":
        parser_name = "markdown"
        cleaned = clean_markdown_content(content)
        if len(cleaned) < MIN_CONTENT_LENGTH:
            return None
        meta = extract_markdown_metadata(content, relative_path, cleaned)
    else:
        parser_name = "rst"
        cleaned = clean_rst_content(content)
        if len(cleaned) < MIN_CONTENT_LENGTH:
            return None
        meta = extract_rst_metadata(content, relative_path, cleaned)

    word_count = len(cleaned.split())
    updated = last_modified or datetime.now(timezone.utc)

    return DocumentRecord(
        id=generate_document_id(relative_path),
        file_path=relative_path,
        full_path=full_path,
        title=meta.title,
        description=meta.description,
        content=cleaned,
        section=meta.section,
        subsection=meta.subsection,
        keywords=meta.keywords,
        word_count=word_count,
        reading_time=math.ceil(word_count / WORDS_PER_MINUTE),
        file_size=len(content.encode("utf-8")),
        file_type=extension,
        last_updated=updated.isoformat(),
        metadata={
            "parser": parser_name,
            "source": "corpus",
            "file_type": extension,
        },
    )
