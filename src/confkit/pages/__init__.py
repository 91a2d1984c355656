"""confkit.pages -- the page repository and the optimistic-concurrency update flow.

* :mod:`.conflict` -- version-conflict classification.
* :mod:`.executor` -- one update attempt as a tagged result.
* :mod:`.refresh` -- the version-refresh retry loop.
* :mod:`.changes` -- change descriptions.
* :mod:`.repository` -- page reads and writes.
* :mod:`.update` -- the update-page use case.
* :mod:`.create` -- the create-page use case.
"""

from __future__ import annotations

from .changes import track_changes
from .conflict import is_version_conflict
from .create import CreatePageUseCase
from .executor import (
    AsyncUpdateExecutor,
    AttemptConflicted,
    AttemptFailed,
    AttemptOutcome,
    AttemptSucceeded,
)
from .refresh import RefreshResult, RefreshState, VersionRefreshController
from .repository import AsyncPageRepository
from .update import UpdatePageUseCase

__all__ = [
    "AsyncPageRepository",
    "AsyncUpdateExecutor",
    "AttemptConflicted",
    "AttemptFailed",
    "AttemptOutcome",
    "AttemptSucceeded",
    "CreatePageUseCase",
    "RefreshResult",
    "RefreshState",
    "UpdatePageUseCase",
    "VersionRefreshController",
    "is_version_conflict",
    "track_changes",
]
