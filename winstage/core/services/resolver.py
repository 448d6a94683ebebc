"""
Dependency resolver — stage the transitive DLL closure of a binary.

For a subject binary, every imported library that is not part of the
base OS is looked up under the system root, copied next to the
subject, and then resolved in turn, depth first.

The target directory itself is the visited set: a library whose file
is already present there, under any letter case, is neither copied
nor inspected again.  That is what stops cycles (A → B → A) and
repeated edges, and it is why the walk must stay single-threaded per
target directory.

A failed branch is rolled back on the way up: each frame deletes the
library it copied before re-raising, so a retry re-attempts it instead
of mistaking a half-processed copy for a resolved one.  Libraries
fully resolved before the failure stay in place.
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from datetime import UTC, datetime
from pathlib import Path

from winstage.adapters.base import ImportInspector
from winstage.core.errors import (
    CopyFailed,
    DeleteFailed,
    DependencyNotFound,
    ResolutionError,
)
from winstage.core.exclusions import ExclusionSet
from winstage.core.models.report import ResolutionReport
from winstage.core.services.library_search import LibrarySearch

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Resolve and materialize DLL dependencies into a subject's directory.

    Args:
        inspector: Reads the import table of a binary.
        exclusions: OS-provided names to skip (default: built-in table).
        library_dir: Search directory, relative to the system root.
    """

    def __init__(
        self,
        inspector: ImportInspector,
        exclusions: ExclusionSet | None = None,
        library_dir: str = "bin",
    ):
        self._inspector = inspector
        self._exclusions = exclusions if exclusions is not None else ExclusionSet()
        self._library_dir = library_dir

    @property
    def exclusions(self) -> ExclusionSet:
        return self._exclusions

    def resolve(self, system_root: Path, subject: Path) -> ResolutionReport:
        """Copy the full dependency closure of ``subject`` next to it.

        Args:
            system_root: Root of the target platform's runtime tree. Read only.
            subject: The binary to stage. Its directory receives the copies.

        Returns:
            Report of what was copied, skipped and excluded.

        Raises:
            MalformedArtifact: A binary in the closure cannot be inspected.
            DependencyNotFound: A required library is not under system_root.
            CopyFailed: A library could not be copied.
        """
        system_root = Path(system_root)
        subject = Path(subject)

        report = ResolutionReport(
            subject=str(subject),
            system_root=str(system_root),
            target_dir=str(subject.parent),
        )
        search = LibrarySearch(system_root / self._library_dir)

        start = time.monotonic()
        self._resolve(system_root, subject, search, report)

        report.ended_at = datetime.now(UTC).isoformat()
        report.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Resolved %s: %d copied, %d already present, %d excluded",
            subject.name,
            len(report.copied),
            len(report.present),
            len(report.excluded),
        )
        return report

    def _resolve(
        self,
        system_root: Path,
        subject: Path,
        search: LibrarySearch,
        report: ResolutionReport,
    ) -> None:
        names = self._inspector.list_dependencies(subject)
        report.inspected.append(subject.name)
        target_dir = subject.parent

        for name in names:
            if name in self._exclusions:
                logger.debug("Skipping system library %s (%s)", name, subject.name)
                _note(report.excluded, name)
                continue

            logger.info("Looking for %s for %s in %s", name, subject.name, system_root)
            source = search.find(name)
            if source is None:
                raise DependencyNotFound(name, subject)

            staged = staged_path(target_dir, name)
            if staged is not None:
                logger.debug("%s already staged in %s as %s", name, target_dir, staged.name)
                _note(report.present, name)
                continue

            target = target_dir / name
            self._copy(source, target)
            report.copied.append(name)

            try:
                self._resolve(system_root, target, search, report)
            except Exception as exc:
                self._rollback(target, exc)
                report.copied.remove(name)
                raise

    def _copy(self, source: Path, target: Path) -> None:
        logger.info("Copying %s -> %s", source, target)
        try:
            shutil.copy2(source, target)
        except OSError as e:
            failure = CopyFailed(source, target, str(e))
            if target.exists():
                # A partial copy would pass for a resolved library.
                self._rollback(target, failure)
            raise failure from e

    def _rollback(self, target: Path, error: Exception) -> None:
        logger.warning("Removing %s after failed resolution: %s", target.name, error)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            failure = DeleteFailed(target, str(e))
            failure.__cause__ = e
            logger.error("%s — manual cleanup required", failure)
            if isinstance(error, ResolutionError):
                error.add_rollback_error(failure)
            else:
                error.add_note(f"rollback failed: {failure}")


def resolve(
    system_root: Path,
    subject: Path,
    inspector: ImportInspector,
    exclusions: ExclusionSet | None = None,
    library_dir: str = "bin",
) -> ResolutionReport:
    """One-shot helper around ``DependencyResolver.resolve``."""
    resolver = DependencyResolver(inspector, exclusions=exclusions, library_dir=library_dir)
    return resolver.resolve(system_root, subject)


def _note(names: list[str], name: str) -> None:
    if name not in names:
        names.append(name)


def staged_path(target_dir: Path, name: str) -> Path | None:
    """Return the staged file matching ``name`` the way the Windows loader would.

    Dangling symlinks count as staged so a copy never writes through them.
    """
    target = target_dir / name
    if os.path.lexists(target):
        return target
    key = name.casefold()
    try:
        with os.scandir(target_dir) as entries:
            for entry in entries:
                if entry.name.casefold() == key:
                    return target_dir / entry.name
    except FileNotFoundError:
        return None
    return None
