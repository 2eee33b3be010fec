"""Weblate REST client and payload models."""

from __future__ import annotations

from .client import WeblateAPI, WeblateClient, main_component_of
from .config import WeblateConfig
from .errors import WeblateAPIError, WeblateConfigError, WeblateResponseShapeError
from .models import (
    AddonPreset,
    Category,
    ComponentSpec,
    ComponentTask,
    RepositoryStatus,
    TranslationStatistics,
    WeblateComponent,
)

__all__ = [
    "AddonPreset",
    "Category",
    "ComponentSpec",
    "ComponentTask",
    "RepositoryStatus",
    "TranslationStatistics",
    "WeblateAPI",
    "WeblateAPIError",
    "WeblateClient",
    "WeblateComponent",
    "WeblateConfig",
    "WeblateConfigError",
    "WeblateResponseShapeError",
    "main_component_of",
]
