"""
pefile inspector — reads import tables in-process, no binutils needed.

Covers both the regular import directory and delay-load imports,
since delay-loaded DLLs still have to ship next to the binary.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pefile

from winstage.adapters.base import ImportInspector, unique_names
from winstage.core.errors import MalformedArtifact

logger = logging.getLogger(__name__)

_IMPORT_DIRECTORIES = (
    "IMAGE_DIRECTORY_ENTRY_IMPORT",
    "IMAGE_DIRECTORY_ENTRY_DELAY_IMPORT",
)


class PefileInspector(ImportInspector):
    """List imported DLLs with the ``pefile`` library."""

    @property
    def name(self) -> str:
        return "pefile"

    def is_available(self) -> bool:
        return True

    def list_dependencies(self, path: Path) -> list[str]:
        path = Path(path)
        if not path.is_file():
            raise MalformedArtifact(path, "no such file")

        try:
            pe = pefile.PE(str(path), fast_load=True)
        except pefile.PEFormatError as e:
            raise MalformedArtifact(path, str(e)) from e
        except OSError as e:
            raise MalformedArtifact(path, str(e)) from e

        try:
            pe.parse_data_directories(
                directories=[pefile.DIRECTORY_ENTRY[d] for d in _IMPORT_DIRECTORIES]
            )
            names = [
                _decode(entry.dll)
                for attr in ("DIRECTORY_ENTRY_IMPORT", "DIRECTORY_ENTRY_DELAY_IMPORT")
                for entry in getattr(pe, attr, [])
            ]
        except pefile.PEFormatError as e:
            raise MalformedArtifact(path, str(e)) from e
        finally:
            pe.close()

        logger.debug("%s imports %d libraries", path.name, len(names))
        return unique_names(names)


def _decode(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw
