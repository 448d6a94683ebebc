"""
Library search — find a DLL by name under the system root.

The search directory is walked once and indexed by case-folded file
name, so a resolve run with hundreds of lookups still reads the tree
a single time.  The system root must not change during a run.

When several files share a name, candidates are ordered by depth
below the search directory (shallowest first), then by relative path.
The first one wins.  This replaces "whatever ``find`` printed first",
which depended on directory order and was not reproducible.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class LibrarySearch:
    """Name → candidate paths lookup over one search directory.

    A missing search directory is not an error here: every lookup
    simply comes back empty.
    """

    def __init__(self, search_dir: Path):
        self._search_dir = Path(search_dir)
        self._index: dict[str, list[Path]] | None = None

    @property
    def search_dir(self) -> Path:
        return self._search_dir

    def candidates(self, name: str) -> list[Path]:
        """All files named ``name`` (case-insensitive), best first."""
        index = self._ensure_index()
        return list(index.get(name.casefold(), []))

    def find(self, name: str) -> Path | None:
        """The selected candidate for ``name``, or None."""
        found = self.candidates(name)
        if not found:
            return None
        if len(found) > 1:
            logger.warning(
                "%d candidates for %s under %s, using %s",
                len(found),
                name,
                self._search_dir,
                found[0].relative_to(self._search_dir).as_posix(),
            )
        return found[0]

    def _ensure_index(self) -> dict[str, list[Path]]:
        if self._index is None:
            self._index = self._build_index()
        return self._index

    def _build_index(self) -> dict[str, list[Path]]:
        index: dict[str, list[Path]] = {}
        if not self._search_dir.is_dir():
            logger.warning("Library directory does not exist: %s", self._search_dir)
            return index

        for dirpath, dirnames, filenames in os.walk(self._search_dir):
            dirnames.sort()
            for filename in filenames:
                path = Path(dirpath) / filename
                if path.is_file():
                    index.setdefault(filename.casefold(), []).append(path)

        for paths in index.values():
            paths.sort(key=self._rank)

        logger.debug("Indexed %d library names under %s", len(index), self._search_dir)
        return index

    def _rank(self, path: Path) -> tuple[int, str]:
        relative = path.relative_to(self._search_dir)
        return len(relative.parts), relative.as_posix()
