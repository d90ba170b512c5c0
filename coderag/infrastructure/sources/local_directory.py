import logging
import os
from pathlib import Path

from coderag.core.chunking.languages import LANGUAGE_BY_EXTENSION

logger = logging.getLogger(__name__)


class LocalDirectorySource:
    """Enumerates indexable files under a local checkout."""

    EXTENSIONS = frozenset(LANGUAGE_BY_EXTENSION) | {".dockerfile"}
    SPECIAL_NAMES = frozenset({"dockerfile", "makefile", "rakefile", "gemfile", "procfile"})
    SKIP_DIRS = frozenset({
        "node_modules", ".git", "dist", "build", ".next",
        "__pycache__", ".venv", "venv", "target",
        ".turbo", ".cache", "coverage", ".nyc_output",
        "vendor",
    })

    def __init__(self, root: str | Path, max_file_size: int = 500 * 1024):
        self._root = Path(root).resolve()
        self._max_file_size = max_file_size

    @property
    def root(self) -> Path:
        return self._root

    @property
    def collection(self) -> str:
        """Default collection name: the directory name."""
        return self._root.name

    def supports(self, file_path: Path) -> bool:
        if any(part in self.SKIP_DIRS for part in file_path.parts):
            return False

        if file_path.suffix.lower() in self.EXTENSIONS:
            return True
        return file_path.name.lower() in self.SPECIAL_NAMES

    def files(self) -> list[str]:
        """List absolute paths of indexable files, sorted."""
        if not self._root.is_dir():
            logger.error(f"Source directory not found: {self._root}")
            return []

        found = []
        for dirpath, dirnames, filenames in os.walk(self._root):
            dirnames[:] = [d for d in dirnames if d not in self.SKIP_DIRS]
            for name in filenames:
                path = Path(dirpath) / name
                if self.supports(path.relative_to(self._root)) and self._within_size(path):
                    found.append(str(path))

        found.sort()
        logger.info(f"Found {len(found)} indexable files in {self._root}")
        return found

    def _within_size(self, path: Path) -> bool:
        try:
            return path.stat().st_size <= self._max_file_size
        except OSError:
            return False
