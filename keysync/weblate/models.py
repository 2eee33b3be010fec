"""Typed Weblate API payloads and request specifications."""

from __future__ import annotations

import dataclasses
import enum

import msgspec


class Category(msgspec.Struct, kw_only=True):
    """Weblate category mirroring one git branch.

    Attributes
    ----------
    id : int
        Numeric category identifier.
    name : str
        Branch name the category mirrors.
    slug : str
        Slug used in component paths.
    url : str, optional
        API URL of the category.
    was_recently_created : bool
        True only on the call that created the category. Not part of the
        Weblate payload.

    """

    id: int
    name: str
    slug: str
    url: str | None = None
    was_recently_created: bool = False


class WeblateComponent(msgspec.Struct, kw_only=True):
    """Weblate translation component.

    A component without ``linked_component`` owns the VCS checkout of its
    category; linked components share that checkout through a
    ``weblate://`` repository URL.
    """

    name: str
    slug: str
    filemask: str = ""
    template: str = ""
    linked_component: str | None = None
    repo: str | None = None
    branch: str | None = None
    category: str | None = None
    task_url: str | None = None
    url: str | None = None


class RepositoryStatus(msgspec.Struct, kw_only=True):
    """State of a component's repository as reported by Weblate."""

    needs_commit: bool = False
    needs_merge: bool = False
    needs_push: bool = False
    merge_failure: str | None = None
    url: str | None = None
    status: str | None = None


class TranslationStatistics(msgspec.Struct, kw_only=True):
    """Per-language translation counters of a component."""

    code: str
    translated: int = 0
    total: int = 0


class ComponentTask(msgspec.Struct, kw_only=True):
    """Background task (clone, pull, update) attached to a component."""

    completed: bool = False
    progress: int = 0
    result: object | None = None


class AddonPreset(enum.StrEnum):
    """Named sets of addons installed on created components."""

    MAIN_BRANCH = "main-branch"


@dataclasses.dataclass(frozen=True, slots=True)
class ComponentSpec:
    """Request to create (or converge) one component in a category.

    Attributes
    ----------
    name
        Component name, unique within the category.
    file_mask
        Glob matching the per-language files.
    source
        Path of the main-language template file.
    category
        Category the component belongs to.
    repo
        Git URL for the owning component, or a ``weblate://`` link for the
        rest.
    branch
        Git branch; only set on the owning component.
    push
        Push URL; only set on the owning component.
    apply_addons
        Addon preset to install on creation.
    pull_request_author, pull_request_number
        Recorded on pull-request components.
    update_if_exist
        When the component already exists, patch its VCS binding and masks
        instead of returning it unchanged.

    """

    name: str
    file_mask: str
    source: str
    category: Category
    repo: str
    branch: str | None = None
    push: str | None = None
    apply_addons: AddonPreset | None = None
    pull_request_author: str | None = None
    pull_request_number: int | None = None
    update_if_exist: bool = False
