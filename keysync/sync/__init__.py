"""Branch synchronisation between the repository and Weblate.

Public API
----------
SyncService
    Runs ``sync-master``, ``validate-pull-request`` or ``remove-branch``.
SyncServiceDependencies
    Frozen dataclass grouping the Weblate client and PR commenter.
SyncOutcome
    Summary of a successful run.
ComponentReconciler
    Creates, clones and prunes the components of a category.
TaskBarrier
    Bounded wait on Weblate background tasks.

Example:
>>> from keysync.sync import SyncService, SyncServiceDependencies
>>> service = SyncService(SyncServiceDependencies(weblate=client), config)
>>> outcome = await service.run()

"""

from keysync.sync.barrier import TaskBarrier
from keysync.sync.health import (
    classify_repository,
    find_untranslated_components,
    pull_remote_changes,
    untranslated_components_message,
)
from keysync.sync.models import RepositoryErrors, SyncOutcome
from keysync.sync.reconcile import (
    ComponentBinding,
    ComponentReconciler,
    ReconcileResult,
)
from keysync.sync.service import SyncService, SyncServiceDependencies

__all__ = [
    "ComponentBinding",
    "ComponentReconciler",
    "ReconcileResult",
    "RepositoryErrors",
    "SyncOutcome",
    "SyncService",
    "SyncServiceDependencies",
    "TaskBarrier",
    "classify_repository",
    "find_untranslated_components",
    "pull_remote_changes",
    "untranslated_components_message",
]
