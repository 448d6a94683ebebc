"""
Stage configuration — loaded from winstage.yml.

Everything here has a default, so a project without a config file
behaves exactly like the stock MinGW cross build.
"""

from __future__ import annotations

from pathlib import PurePosixPath, PureWindowsPath
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_OBJDUMP = "x86_64-w64-mingw32-objdump"


class StageConfig(BaseModel):
    """How to inspect binaries and where to look for their libraries."""

    library_dir: str = "bin"
    inspector: Literal["objdump", "pefile"] = "objdump"
    objdump: str = DEFAULT_OBJDUMP
    exclude: list[str] = Field(default_factory=list)

    @field_validator("library_dir")
    @classmethod
    def _relative_library_dir(cls, value: str) -> str:
        value = value.strip()
        if PurePosixPath(value).is_absolute() or PureWindowsPath(value).anchor:
            raise ValueError("library_dir must be relative to the system root")
        parts = PureWindowsPath(value).parts
        if ".." in parts:
            raise ValueError("library_dir must stay inside the system root")
        return "/".join(part for part in parts if part != ".") or "."

    @field_validator("exclude")
    @classmethod
    def _strip_excludes(cls, value: list[str]) -> list[str]:
        return [name.strip() for name in value if name.strip()]
