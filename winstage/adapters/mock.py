"""
Mock inspector — test double backed by a plain mapping.

Maps a file NAME (not path) to the library names it declares, which
is what a synthetic dependency graph looks like: a copied DLL keeps
its name, so the same entry answers for the system-root original and
the staged copy.
"""

from __future__ import annotations

from pathlib import Path

from winstage.adapters.base import ImportInspector, unique_names
from winstage.core.errors import MalformedArtifact


class MockInspector(ImportInspector):
    """Mapping-backed inspector for testing.

    Unknown names declare no dependencies.  Names in ``malformed``
    raise ``MalformedArtifact``.
    """

    def __init__(
        self,
        graph: dict[str, list[str]] | None = None,
        malformed: set[str] | None = None,
        available: bool = True,
    ):
        self._graph: dict[str, list[str]] = dict(graph or {})
        self._malformed: set[str] = set(malformed or ())
        self._available = available
        self._call_log: list[Path] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[Path]:
        """Every path this mock was asked to inspect, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def set_dependencies(self, name: str, dependencies: list[str]) -> None:
        self._graph[name] = list(dependencies)

    def set_malformed(self, name: str) -> None:
        self._malformed.add(name)

    def list_dependencies(self, path: Path) -> list[str]:
        path = Path(path)
        self._call_log.append(path)
        if path.name in self._malformed:
            raise MalformedArtifact(path, "mock: malformed")
        return unique_names(self._graph.get(path.name, []))

    def reset(self) -> None:
        """Clear the call log."""
        self._call_log.clear()
