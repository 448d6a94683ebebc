"""
Exclusion set — libraries that ship with every Windows installation.

These are never searched for and never copied.  Names are matched
the way the Windows loader matches them: case-insensitively, with or
without the file extension.
"""

from __future__ import annotations

from collections.abc import Iterable

# System DLLs the MinGW toolchain links against.
DEFAULT_EXCLUDED: tuple[str, ...] = (
    "ADVAPI32",
    "KERNEL32",
    "WS2_32",
    "GDI32",
    "DNSAPI",
    "SHELL32",
    "COMCTL32",
    "USERENV",
    "MSIMG32",
    "USER32",
    "IPHLPAPI",
    "WINSPOOL",
    "SHLWAPI",
    "IMM32",
    "SETUPAPI",
    "WINMM",
    "msvcrt",
    "ole32",
    "dwmapi",
    "comdlg32",
)

_STRIPPED_SUFFIXES = (".dll", ".drv")


def normalize_name(name: str) -> str:
    """Fold a library name to its exclusion key.

    >>> normalize_name("Kernel32.DLL")
    'kernel32'
    """
    key = name.strip().casefold()
    for suffix in _STRIPPED_SUFFIXES:
        if key.endswith(suffix):
            return key[: -len(suffix)]
    return key


class ExclusionSet:
    """Immutable set of OS-provided library names."""

    def __init__(self, names: Iterable[str] = DEFAULT_EXCLUDED):
        by_key: dict[str, str] = {}
        for name in names:
            name = name.strip()
            if name:
                by_key.setdefault(normalize_name(name), name)
        self._names = tuple(by_key.values())
        self._keys = frozenset(by_key)

    @classmethod
    def with_extra(cls, extra: Iterable[str]) -> ExclusionSet:
        """Default table extended with configured names."""
        return cls([*DEFAULT_EXCLUDED, *extra])

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return normalize_name(name) in self._keys

    def __iter__(self):
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"<ExclusionSet {len(self)} names>"
