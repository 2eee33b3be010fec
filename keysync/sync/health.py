"""Repository health checks run around a synchronisation.

These helpers turn Weblate's repository status and translation statistics
into the messages shown to operators and pull-request authors.
"""

from __future__ import annotations

import typing as typ

from keysync.logging import get_logger, log_info, log_warning
from keysync.sync.models import RepositoryErrors

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from keysync.sync.barrier import TaskBarrier
    from keysync.weblate import Category, WeblateAPI, WeblateComponent

logger = get_logger(__name__)


def merge_failure_message(component_url: str, merge_failure: str) -> str:
    """Format the message for a failed merge of upstream changes."""
    return (
        f"Weblate failed to merge remote changes into {component_url}.\n\n"
        f"```\n{merge_failure.strip()}\n```\n\n"
        "Resolve the conflict in the branch (or reset the Weblate repository) "
        "and run the synchronisation again."
    )


def needs_commit_message(component_url: str) -> str:
    """Format the message for uncommitted changes in Weblate."""
    return (
        f"Weblate has uncommitted changes in {component_url}. "
        "Translators may be actively working on this branch."
    )


def needs_push_message(component_url: str) -> str:
    """Format the message for commits Weblate has not pushed upstream."""
    return (
        f"Weblate has unpushed commits in {component_url}. This typically "
        "happens when a source string changed and Weblate committed formatting "
        "or flag changes through an addon (e.g. weblate.json.customize). Push "
        "the Weblate changes manually or trigger a push from the Weblate UI, "
        "then run the synchronisation again."
    )


def untranslated_components_message(component_urls: cabc.Sequence[str]) -> str:
    """Format the message listing components with no translations at all."""
    listing = "\n".join(f"- {url}" for url in component_urls)
    return (
        "The following components have no translated strings in any language. "
        f"Add translations before merging:\n\n{listing}"
    )


async def classify_repository(
    client: WeblateAPI, component_name: str, category_slug: str
) -> RepositoryErrors:
    """Classify the repository state of the category's owning component."""
    status = await client.get_component_repository(component_name, category_slug)
    component_url = client.component_web_url(component_name, category_slug)
    return RepositoryErrors(
        merge_failure_error=(
            merge_failure_message(component_url, status.merge_failure)
            if status.merge_failure
            else None
        ),
        needs_commit_error=(
            needs_commit_message(component_url) if status.needs_commit else None
        ),
        needs_push_error=(
            needs_push_message(component_url) if status.needs_push else None
        ),
    )


async def pull_remote_changes(
    client: WeblateAPI, category: Category, barrier: TaskBarrier
) -> str | None:
    """Pull upstream changes into a category and report a failed merge.

    The pull targets the category's main component; linked components share
    its checkout.

    Returns
    -------
    str | None
        The merge failure message, or ``None`` when the pull merged cleanly
        or the category has no main component yet.

    """
    main = await client.get_main_component_in_category(category.id)
    if main is None:
        log_warning(logger, "No main component in %s; skipping pull", category.slug)
        return None

    log_info(logger, "Pulling remote changes into %s/%s", category.slug, main.name)
    await client.pull_component_remote_changes(main.name, category.slug)
    await barrier.wait_components_tasks([main.name], category.slug)

    errors = await classify_repository(client, main.name, category.slug)
    return errors.merge_failure_error


async def find_untranslated_components(
    client: WeblateAPI,
    components: cabc.Iterable[WeblateComponent],
    category_slug: str,
    main_language: str,
) -> list[str]:
    """Return names of components with no translated string in any language.

    The source language is always complete and is ignored.
    """
    untranslated: list[str] = []
    for component in components:
        statistics = await client.get_component_statistics(
            component.name, category_slug
        )
        translated = sum(
            entry.translated for entry in statistics if entry.code != main_language
        )
        if translated == 0:
            untranslated.append(component.name)
    return untranslated
