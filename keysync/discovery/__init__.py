"""Discovery of translatable keyset directories in the repository tree."""

from __future__ import annotations

from .models import ResourceGroup
from .scanner import discover_resource_groups, is_glob_pattern, project_prefix

__all__ = [
    "ResourceGroup",
    "discover_resource_groups",
    "is_glob_pattern",
    "project_prefix",
]
