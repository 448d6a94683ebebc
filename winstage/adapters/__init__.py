"""
Import-table inspectors.

    from winstage.adapters import ImportInspector, InspectorRegistry
"""

from winstage.adapters.base import ImportInspector
from winstage.adapters.registry import InspectorRegistry, inspector_for

__all__ = [
    "ImportInspector",
    "InspectorRegistry",
    "inspector_for",
]
