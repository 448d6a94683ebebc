"""
Inspector registry — lookup of import-table inspectors by name.

The use cases never construct inspectors directly: they ask the
registry built from the stage configuration for the configured one.
"""

from __future__ import annotations

import logging
from typing import Any

from winstage.adapters.base import ImportInspector
from winstage.adapters.objdump import ObjdumpInspector
from winstage.adapters.pe_imports import PefileInspector
from winstage.core.models.config import StageConfig

logger = logging.getLogger(__name__)


class InspectorRegistry:
    """Registry of the inspectors available to this process."""

    def __init__(self) -> None:
        self._inspectors: dict[str, ImportInspector] = {}

    def register(self, inspector: ImportInspector) -> None:
        name = inspector.name
        if name in self._inspectors:
            logger.warning("Overwriting existing inspector: %s", name)
        self._inspectors[name] = inspector
        logger.debug("Registered inspector: %s", name)

    def unregister(self, name: str) -> None:
        """Remove an inspector from the registry."""
        self._inspectors.pop(name, None)

    def get(self, name: str) -> ImportInspector | None:
        """Look up an inspector by name."""
        return self._inspectors.get(name)

    def list_inspectors(self) -> list[str]:
        return list(self._inspectors.keys())

    def inspector_status(self) -> dict[str, dict[str, Any]]:
        """Get availability of all registered inspectors."""
        status = {}
        for name, inspector in self._inspectors.items():
            status[name] = {
                "name": name,
                "available": inspector.is_available(),
                "type": inspector.__class__.__name__,
            }
        return status

    @classmethod
    def from_config(cls, config: StageConfig) -> InspectorRegistry:
        """Registry holding the built-in inspectors, set up from ``config``."""
        registry = cls()
        registry.register(ObjdumpInspector(objdump=config.objdump))
        registry.register(PefileInspector())
        return registry


def inspector_for(config: StageConfig) -> ImportInspector:
    """The inspector ``config`` selects."""
    inspector = InspectorRegistry.from_config(config).get(config.inspector)
    if inspector is None:
        raise KeyError(f"No inspector registered for '{config.inspector}'")
    return inspector
