"""
Source discovery and loading.

Walks the given paths for Ballerina files, skipping ignored directories, and
reads them into :class:`SourceFile` records for the chunker. Unreadable files
are logged and skipped; the chunker never sees them.
"""
from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from ..chunking import SourceFile
from ..logger import get_logger

log = get_logger(__name__)

BALLERINA_SUFFIXES: Sequence[str] = (".bal",)

DEFAULT_IGNORE_PATTERNS: Sequence[str] = (
    ".*",
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".vscode",
    ".DS_Store",
    "__pycache__",
    ".venv",
    "venv",
    "node_modules",
    "target",
    "build*",
    "dist",
    "tmp",
)


class SourceProvider:
    """Recursive file discovery plus UTF-8 reading."""

    def __init__(
        self,
        suffixes: Optional[Sequence[str]] = None,
        ignore_patterns: Optional[Iterable[str]] = None,
        encoding: str = "utf-8",
    ) -> None:
        self.suffixes = {suffix.lower() for suffix in (suffixes or BALLERINA_SUFFIXES)}
        extra = tuple(pattern.strip() for pattern in (ignore_patterns or []) if pattern.strip())
        self.ignore_patterns: Tuple[str, ...] = tuple(dict.fromkeys(tuple(DEFAULT_IGNORE_PATTERNS) + extra))
        self.encoding = encoding

    def _should_ignore(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.ignore_patterns)

    def _accepts(self, path: Path) -> bool:
        return path.suffix.lower() in self.suffixes and not self._should_ignore(path.name)

    def discover(self, paths: Sequence[Path]) -> List[Tuple[Path, Path]]:
        """
        Return ``(file, root)`` pairs for every eligible file under ``paths``.

        Directories are walked in sorted order so repeated runs see files in
        the same sequence. Raises ``FileNotFoundError`` for a missing path.
        """
        found: List[Tuple[Path, Path]] = []
        for base in paths:
            if not base.exists():
                raise FileNotFoundError(f"Source path not found: {base}")
            if base.is_file():
                if self._accepts(base):
                    found.append((base, base.parent))
                continue
            for root, dirs, filenames in os.walk(base):
                dirs[:] = sorted(d for d in dirs if not self._should_ignore(d))
                root_path = Path(root)
                for filename in sorted(filenames):
                    candidate = root_path / filename
                    if self._accepts(candidate):
                        found.append((candidate, base))
        unique = list(dict.fromkeys(found))
        log.info("sources_discovered", roots=[str(p) for p in paths], files=len(unique))
        return unique

    def read(self, path: Path, root: Optional[Path] = None) -> Optional[SourceFile]:
        """Read one file; ``None`` when it cannot be read or decoded."""
        try:
            text = path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("source_unreadable", file=str(path), error=str(exc))
            return None
        identifier = path.relative_to(root).as_posix() if root is not None else path.name
        return SourceFile(path=identifier, text=text)

    def load(self, paths: Sequence[Path]) -> List[SourceFile]:
        sources: List[SourceFile] = []
        for path, root in self.discover(paths):
            source = self.read(path, root)
            if source is not None:
                sources.append(source)
        return sources
