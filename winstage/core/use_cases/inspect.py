"""
Inspect use case — show what a binary imports, without staging anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from winstage.adapters.base import ImportInspector
from winstage.adapters.registry import inspector_for
from winstage.core.config.loader import ConfigError, load_config
from winstage.core.errors import MalformedArtifact
from winstage.core.exclusions import ExclusionSet
from winstage.core.services.resolver import staged_path


@dataclass
class DependencyEntry:
    name: str
    excluded: bool = False
    staged: bool = False    # already present next to the subject


@dataclass
class InspectResult:
    """Declared dependencies of one binary."""

    subject: Path | None = None
    inspector: str = ""
    entries: list[DependencyEntry] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "subject": str(self.subject),
            "inspector": self.inspector,
            "dependencies": [
                {"name": e.name, "excluded": e.excluded, "staged": e.staged}
                for e in self.entries
            ],
        }


@dataclass
class ExclusionsResult:
    names: list[str] = field(default_factory=list)
    extra: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {"names": self.names, "extra": self.extra, "count": len(self.names)}


def inspect_subject(
    subject: Path,
    config_path: Path | None = None,
    inspector: ImportInspector | None = None,
) -> InspectResult:
    """List the libraries ``subject`` declares, flagging excluded ones."""
    result = InspectResult(subject=subject)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    inspector = inspector or inspector_for(config)
    exclusions = ExclusionSet.with_extra(config.exclude)
    result.inspector = inspector.name

    try:
        names = inspector.list_dependencies(subject)
    except MalformedArtifact as e:
        result.error = str(e)
        return result

    for name in names:
        result.entries.append(
            DependencyEntry(
                name=name,
                excluded=name in exclusions,
                staged=staged_path(subject.parent, name) is not None,
            )
        )
    return result


def list_exclusions(config_path: Path | None = None) -> ExclusionsResult:
    """The effective exclusion set: built-in table plus configured names."""
    result = ExclusionsResult()
    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.names = list(ExclusionSet.with_extra(config.exclude))
    result.extra = list(config.exclude)
    return result
