"""
Objdump inspector — reads import tables through binutils.

Runs ``<objdump> -p <file>`` (the MinGW cross objdump by default) and
collects the ``DLL Name:`` lines of the private headers dump.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path

from winstage.adapters.base import ImportInspector, unique_names
from winstage.core.errors import MalformedArtifact
from winstage.core.models.config import DEFAULT_OBJDUMP

logger = logging.getLogger(__name__)

_DLL_NAME_RE = re.compile(r"^[ \t]*DLL Name:[ \t]*(\S+)[ \t]*$", re.MULTILINE)
_PE_FORMAT_RE = re.compile(r"file format pei?-", re.IGNORECASE)


class ObjdumpInspector(ImportInspector):
    """List imported DLLs with ``objdump -p``.

    Args:
        objdump: objdump executable name or path.
        timeout: Seconds to wait for a single objdump run.
    """

    def __init__(self, objdump: str = DEFAULT_OBJDUMP, timeout: int = 60):
        self._objdump = objdump
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "objdump"

    @property
    def executable(self) -> str:
        return self._objdump

    def is_available(self) -> bool:
        return shutil.which(self._objdump) is not None

    def list_dependencies(self, path: Path) -> list[str]:
        path = Path(path)
        if not path.is_file():
            raise MalformedArtifact(path, "no such file")

        command = [self._objdump, "-p", str(path)]
        logger.debug("Executing: %s", " ".join(command))

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self._timeout,
            )
        except FileNotFoundError as e:
            raise MalformedArtifact(path, f"{self._objdump} is not installed") from e
        except subprocess.TimeoutExpired as e:
            raise MalformedArtifact(path, f"{self._objdump} timed out after {self._timeout}s") from e

        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise MalformedArtifact(
                path, stderr or f"{self._objdump} exited with code {result.returncode}"
            )

        return parse_objdump_imports(result.stdout, path)


def parse_objdump_imports(output: str, path: Path) -> list[str]:
    """Extract DLL names from ``objdump -p`` output.

    Raises:
        MalformedArtifact: If the dump is not of a PE image.
    """
    if not _PE_FORMAT_RE.search(output):
        raise MalformedArtifact(path, "not a PE image")
    return unique_names(_DLL_NAME_RE.findall(output))
