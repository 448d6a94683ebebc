"""
Resolution errors — what can go wrong while staging a DLL closure.

Every failure unwinds the recursive resolve call chain.  Frames that
copied a library for the failing branch delete it on the way up, so
the top-level caller normally gets a directory it can simply retry.

When one of those rollback deletes fails too, the ORIGINAL error is
still the one propagated: the ``DeleteFailed`` is attached to it in
``rollback_errors`` and the error stops being retriable.
"""

from __future__ import annotations

from pathlib import Path


class ResolutionError(Exception):
    """Base class for dependency resolution failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.rollback_errors: list[DeleteFailed] = []

    @property
    def retriable(self) -> bool:
        """Whether re-running the top-level resolve starts from a clean state."""
        return not self.rollback_errors

    def add_rollback_error(self, error: DeleteFailed) -> None:
        """Attach a failed rollback delete as a secondary diagnostic."""
        self.rollback_errors.append(error)
        self.add_note(
            f"rollback failed: {error}; the target directory needs manual cleanup"
        )


class MalformedArtifact(ResolutionError):
    """The subject's import table cannot be read."""

    def __init__(self, path: Path, reason: str = ""):
        self.path = Path(path)
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot inspect {self.path}{detail}")


class DependencyNotFound(ResolutionError):
    """A declared dependency has no candidate anywhere under the system root."""

    def __init__(self, name: str, subject: Path):
        self.name = name
        self.subject = Path(subject)
        super().__init__(f"{name} not found")

    @property
    def requested_by(self) -> str:
        """File name of the subject that declared the missing library."""
        return self.subject.name


class CopyFailed(ResolutionError):
    """Copying a library into the target directory raised an I/O error."""

    def __init__(self, source: Path, target: Path, reason: str = ""):
        self.source = Path(source)
        self.target = Path(target)
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot copy {self.source} to {self.target}{detail}")


class DeleteFailed(ResolutionError):
    """Removing a copied library during rollback raised an I/O error."""

    def __init__(self, path: Path, reason: str = ""):
        self.path = Path(path)
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot delete {self.path}{detail}")
