"""
Domain models — Pydantic types for winstage.

    from winstage.core.models import ResolutionReport, StageConfig
"""

from winstage.core.models.config import DEFAULT_OBJDUMP, StageConfig
from winstage.core.models.report import ResolutionReport

__all__ = [
    "DEFAULT_OBJDUMP",
    "ResolutionReport",
    "StageConfig",
]
