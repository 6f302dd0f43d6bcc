"""Guarded file effects: create-if-absent writes and depth-1 cleanup.

None of these raise on I/O failure; each returns a ``WriteOutcome`` the
caller reports.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from openapi_docs_gen.errors import DocsGenError, WriteError

logger = logging.getLogger(__name__)

CLEAN_PATTERNS = ("*.api.mdx", "*.info.mdx", "*.tag.mdx", "sidebar.js", "versions.json")


class WriteStatus(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"
    DELETED = "deleted"


@dataclass(frozen=True)
class WriteOutcome:
    path: Path
    status: WriteStatus
    error: DocsGenError | None = None

    @property
    def ok(self) -> bool:
        return self.status is not WriteStatus.FAILED


def write_if_absent(path: Path, content: str) -> WriteOutcome:
    """Write ``content`` to ``path`` unless the file already exists."""
    if path.exists():
        logger.debug("%s exists, leaving it untouched", path)
        return WriteOutcome(path, WriteStatus.SKIPPED)
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        return WriteOutcome(path, WriteStatus.FAILED, WriteError(str(path), str(e)))
    return WriteOutcome(path, WriteStatus.CREATED)


def ensure_dir(path: Path) -> WriteOutcome:
    """Create ``path`` (and parents) if it does not exist yet."""
    if path.is_dir():
        return WriteOutcome(path, WriteStatus.SKIPPED)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return WriteOutcome(path, WriteStatus.FAILED, WriteError(str(path), str(e), action="create"))
    return WriteOutcome(path, WriteStatus.CREATED)


def delete_file(path: Path) -> WriteOutcome:
    try:
        path.unlink()
    except OSError as e:
        return WriteOutcome(path, WriteStatus.FAILED, WriteError(str(path), str(e), action="clean up"))
    return WriteOutcome(path, WriteStatus.DELETED)


def clean_output_dir(output_dir: Path, patterns: tuple[str, ...] = CLEAN_PATTERNS) -> list[WriteOutcome]:
    """Delete generated files directly under ``output_dir`` (not recursive)."""
    if not output_dir.is_dir():
        logger.debug("%s does not exist, nothing to clean", output_dir)
        return []

    targets: list[Path] = []
    for pattern in patterns:
        for path in sorted(output_dir.glob(pattern)):
            if path.is_file() and path not in targets:
                targets.append(path)
    return [delete_file(path) for path in targets]
