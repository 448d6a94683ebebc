"""
Resolve use case — stage a binary's DLL closure from the CLI.

Loads the stage config, picks the inspector, runs the resolver, and
turns the outcome into a result the CLI can print or serialize.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from winstage.adapters.base import ImportInspector
from winstage.adapters.registry import inspector_for
from winstage.core.config.loader import ConfigError, load_config
from winstage.core.errors import DependencyNotFound, ResolutionError
from winstage.core.exclusions import ExclusionSet
from winstage.core.models.report import ResolutionReport
from winstage.core.services.resolver import DependencyResolver

logger = logging.getLogger(__name__)


@dataclass
class ResolveResult:
    """Result of staging one binary."""

    report: ResolutionReport | None = None
    error: str | None = None
    error_kind: str | None = None
    missing: str | None = None          # unresolved library name
    requested_by: str | None = None     # subject that declared it
    retriable: bool = True
    rollback_errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        if self.error:
            result: dict = {
                "error": self.error,
                "error_kind": self.error_kind,
                "retriable": self.retriable,
            }
            if self.missing:
                result["missing"] = self.missing
                result["requested_by"] = self.requested_by
            if self.rollback_errors:
                result["rollback_errors"] = self.rollback_errors
            return result
        assert self.report is not None
        return self.report.to_dict()


def resolve_subject(
    system_root: Path,
    subject: Path,
    config_path: Path | None = None,
    inspector: ImportInspector | None = None,
) -> ResolveResult:
    """Resolve and copy every dependency of ``subject``.

    Args:
        system_root: Root of the cross-compilation runtime tree.
        subject: Binary whose directory receives the libraries.
        config_path: Optional explicit path to winstage.yml.
        inspector: Override the configured inspector (tests).

    Returns:
        ResolveResult with either the report or the failure details.
    """
    result = ResolveResult()

    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        result.error_kind = "ConfigError"
        return result

    if not subject.is_file():
        result.error = f"Subject not found: {subject}"
        result.error_kind = "MalformedArtifact"
        return result

    resolver = DependencyResolver(
        inspector or inspector_for(config),
        exclusions=ExclusionSet.with_extra(config.exclude),
        library_dir=config.library_dir,
    )

    try:
        result.report = resolver.resolve(system_root, subject)
    except ResolutionError as e:
        logger.debug("Resolution of %s failed", subject, exc_info=True)
        result.error = str(e)
        result.error_kind = type(e).__name__
        result.retriable = e.retriable
        result.rollback_errors = [str(r) for r in e.rollback_errors]
        if isinstance(e, DependencyNotFound):
            result.missing = e.name
            result.requested_by = e.requested_by

    return result
