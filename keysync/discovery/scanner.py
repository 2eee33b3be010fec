"""Scan keyset directories into resource groups.

A keyset root is either a concrete directory (``src/i18n-keysets``) or a glob
matching several roots (``projects/*/src/i18n-keysets``). Each non-hidden
subdirectory of a root is one resource group. Glob results are prefixed with
the project segment that follows ``anchor_segment`` so identical keyset
layouts under different projects do not collide.
"""

from __future__ import annotations

import dataclasses
import glob
import os
from pathlib import Path, PurePosixPath

from keysync.discovery.models import ResourceGroup
from keysync.logging import get_logger, log_info, log_warning

logger = get_logger(__name__)

_GLOB_METACHARACTERS = frozenset("*?[")
_IGNORED_SEGMENTS = frozenset({".git", "node_modules"})


def is_glob_pattern(path: str) -> bool:
    """Return True when ``path`` contains a glob metacharacter."""
    return any(char in _GLOB_METACHARACTERS for char in path)


def _list_subdirectories(directory: Path) -> list[str]:
    """Return non-hidden subdirectory names in directory listing order."""
    with os.scandir(directory) as entries:
        return [
            entry.name
            for entry in entries
            if entry.is_dir() and not entry.name.startswith(".")
        ]


def project_prefix(matched_dir: str, anchor_segment: str) -> str:
    """Return the name prefix for groups found under ``matched_dir``.

    Examples
    --------
    >>> project_prefix("projects/project-a/src/i18n-keysets", "projects")
    'project-a'
    >>> project_prefix("apps/web/i18n", "projects")
    'web'

    """
    parts = PurePosixPath(matched_dir).parts
    if anchor_segment in parts:
        index = parts.index(anchor_segment)
        if index + 1 < len(parts):
            return parts[index + 1]
    matched = PurePosixPath(matched_dir)
    return matched.parent.name or matched.name


def _build_group(
    directory: str, name: str, group_name: str, language: str
) -> ResourceGroup:
    group_dir = PurePosixPath(directory) / name
    return ResourceGroup(
        name=group_name,
        source=str(group_dir / f"{language}.json"),
        file_mask=str(group_dir / "*.json"),
    )


def _expand_glob(pattern: str, root: Path) -> list[str]:
    matches = glob.glob(pattern, root_dir=root, recursive=True)  # noqa: PTH207
    return [
        Path(match).as_posix()
        for match in matches
        if _IGNORED_SEGMENTS.isdisjoint(Path(match).parts)
    ]


def _discover_glob(
    pattern: str, main_language: str, root: Path, anchor_segment: str
) -> list[ResourceGroup]:
    log_info(logger, "Glob pattern detected: %s", pattern)
    matched_dirs = _expand_glob(pattern, root)
    log_info(logger, "Found %d directories matching pattern", len(matched_dirs))

    groups: list[ResourceGroup] = []
    for matched_dir in matched_dirs:
        try:
            names = _list_subdirectories(root / matched_dir)
        except OSError as exc:
            log_warning(
                logger,
                "Failed to read directory %s: %s",
                matched_dir,
                exc,
                exc_info=exc,
            )
            continue

        prefix = project_prefix(matched_dir, anchor_segment)
        found = [
            _build_group(matched_dir, name, f"{prefix}_{name}", main_language)
            for name in names
        ]
        groups.extend(found)
        log_info(
            logger,
            "%s: found %d component(s): %s",
            matched_dir,
            len(found),
            ", ".join(group.name for group in found),
        )

    log_info(logger, "Total components found: %d", len(groups))
    return groups


def _discover_direct(path: str, main_language: str, root: Path) -> list[ResourceGroup]:
    log_info(logger, "Direct path: %s", path)
    names = _list_subdirectories(root / path)
    groups = [_build_group(path, name, name, main_language) for name in names]
    log_info(logger, "Found %d component(s) in %s", len(groups), path)
    return groups


def discover_resource_groups(
    path_or_pattern: str,
    main_language: str,
    *,
    root: Path | None = None,
    anchor_segment: str = "projects",
) -> list[ResourceGroup]:
    """Discover keyset directories and return them as resource groups.

    Parameters
    ----------
    path_or_pattern
        Keyset root relative to ``root``, or a glob matching several roots.
    main_language
        Language code of the template file in every group.
    root
        Directory the path is resolved against; defaults to the working
        directory.
    anchor_segment
        Path segment whose successor names the project in glob mode.

    Returns
    -------
    list[ResourceGroup]
        Groups in directory listing order. The first one is marked as the
        owner of the VCS binding.

    Raises
    ------
    OSError
        If a concrete (non-glob) directory cannot be read. Unreadable glob
        matches are logged and skipped instead.

    """
    base = root if root is not None else Path.cwd()
    if is_glob_pattern(path_or_pattern):
        groups = _discover_glob(path_or_pattern, main_language, base, anchor_segment)
    else:
        groups = _discover_direct(path_or_pattern, main_language, base)

    if groups:
        groups[0] = dataclasses.replace(groups[0], is_owner=True)
    return groups
