"""Corpus scanner for discovering documentation files."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".rst", ".md")

# Files above this size are skipped (1 MB)
MAX_FILE_SIZE = 1024 * 1024


def is_supported_file(filename: str) -> bool:
    """Check whether a filename has a supported documentation extension."""
    return filename.lower().endswith(SUPPORTED_EXTENSIONS)


def scan_corpus(root: Path, max_file_size: int = MAX_FILE_SIZE) -> list[Path]:
    """
    Recursively collect every documentation file under root.

    Structure expected (Odoo documentation checkout):
    <root>/
    ├── applications/
    │   ├── sales/
    │   │   └── crm.rst
    │   └── hr.rst
    ├── administration/
    └── developer/

    Hidden files and directories (e.g. ``.git``, ``.tx``) are skipped, so
    the result is narrower than a plain recursive listing. Files larger
    than ``max_file_size`` bytes are skipped with a log message. A missing or
    unreadable root yields an empty list.
    """
    if not root.is_dir():
        logger.warning("Documentation root not found or not a directory: %s", root)
        return []

    files: list[Path] = []
    _scan_directory(root.absolute(), files, max_file_size)
    return files


def _scan_directory(directory: Path, files: list[Path], max_file_size: int) -> None:
    try:
        entries = sorted(directory.iterdir())
    except OSError as e:
        logger.warning("Cannot scan %s: %s", directory, e)
        return

    for entry in entries:
        if entry.name.startswith("."):
            continue

        try:
            if entry.is_dir():
                _scan_directory(entry, files, max_file_size)
                continue
            if not entry.is_file() or not is_supported_file(entry.name):
                continue
            size = entry.stat().st_size
        except OSError as e:
            logger.warning("Cannot stat %s: %s", entry, e)
            continue

        if size > max_file_size:
            logger.info(
                "Skipping oversized file %s (%.1f KB)", entry.name, size / 1024
            )
            continue

        files.append(entry)
