"""
Resolution report — what a resolve run did to the target directory.

The resolver fills this in while it walks the import graph, in the
order things happened, so the lists double as a build log.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ResolutionReport(BaseModel):
    """Outcome of one top-level resolve call."""

    subject: str
    system_root: str
    target_dir: str

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = ""
    duration_ms: int = 0

    copied: list[str] = Field(default_factory=list)      # names copied, in copy order
    present: list[str] = Field(default_factory=list)     # already in target_dir, skipped
    excluded: list[str] = Field(default_factory=list)    # OS-provided, never searched
    inspected: list[str] = Field(default_factory=list)   # subjects whose imports were read

    @property
    def copy_count(self) -> int:
        return len(self.copied)

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["copy_count"] = self.copy_count
        return data
