"""
Inspector base — the contract between the resolver and import-table readers.

The resolver never parses binaries itself.  It asks an inspector for
the ordered list of library names a file declares, and an inspector
either answers or raises ``MalformedArtifact``.

To add an inspector:
    1. Subclass ImportInspector
    2. Implement name, is_available, list_dependencies
    3. Register it in the InspectorRegistry
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class ImportInspector(ABC):
    """Abstract base class for import-table inspectors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The inspector identifier (e.g., 'objdump', 'pefile')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying tool or library can be used.

        Should be fast and never raise.
        """

    @abstractmethod
    def list_dependencies(self, path: Path) -> list[str]:
        """Return the library names ``path`` declares, in declaration order.

        Each name appears once; the first occurrence wins.

        Raises:
            MalformedArtifact: If ``path`` is not a readable PE image.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


def unique_names(names: list[str]) -> list[str]:
    """Drop repeated names, keeping first-occurrence order."""
    return list(dict.fromkeys(n for n in names if n))
