"""Version-refresh retry loop for page updates.

Confluence uses optimistic concurrency: an update is accepted only when
it carries ``current version + 1``.  When another writer got there first
the update is rejected with a version conflict.  The
:class:`VersionRefreshController` recovers by re-reading the page,
adopting its version number and resubmitting the same changes, within
the budget of a :class:`~confkit.config.VersionRefreshPolicy`.

State machine (one run per update request)::

    ATTEMPTING --success--------------------> SUCCEEDED
    ATTEMPTING --conflict, budget left-------> CONFLICTED
    ATTEMPTING --conflict, budget spent------> EXHAUSTED_FAILED
    ATTEMPTING --any other failure-----------> EXHAUSTED_FAILED
    CONFLICTED --delay elapsed---------------> REFRESHING
    REFRESHING --page fetched----------------> ATTEMPTING
    REFRESHING --page missing / fetch error--> EXHAUSTED_FAILED

Only a classified conflict is ever retried.  Every run either returns a
:class:`RefreshResult` or raises one error: the executor's
:class:`~confkit.errors.ConfkitRepositoryError` when the very first attempt
fails for a reason other than a conflict, and one aggregated
:class:`~confkit.errors.ConfkitVersionRefreshExhaustedError` otherwise.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from confkit.config import VersionRefreshPolicy
from confkit.errors import ConfkitNotFoundError, ConfkitVersionRefreshExhaustedError
from confkit.models import Page, UpdatePageRequest
from confkit.observability import NoopMetricsHook, get_logger

from .executor import AsyncUpdateExecutor, AttemptFailed, AttemptSucceeded

log = get_logger("confkit.pages.refresh")

FetchPage = Callable[[str], Awaitable[Optional[Page]]]


class RefreshState(str, Enum):
    ATTEMPTING = "attempting"
    CONFLICTED = "conflicted"
    REFRESHING = "refreshing"
    SUCCEEDED = "succeeded"
    EXHAUSTED_FAILED = "exhausted_failed"


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of a successful run.

    Attributes
    ----------
    page:
        The page returned by the accepted update.
    attempts:
        Update attempts made, the successful one included.
    refreshes:
        Re-reads of the page performed after conflicts.
    expected_version_number:
        The version the accepted attempt was submitted against.
    trace:
        States visited, in order.
    """

    page: Page
    attempts: int
    refreshes: int
    expected_version_number: int
    trace: tuple[RefreshState, ...] = ()


class VersionRefreshController:
    """Run an update, refreshing the expected version after each conflict.

    Parameters
    ----------
    executor:
        Performs one update attempt.
    fetch_page:
        Coroutine function returning the current page, or ``None`` when it
        no longer exists.
    policy:
        Attempt budget and linear backoff unit.
    sleep:
        Awaitable sleep, replaceable in tests.
    metrics:
        Optional metrics hook.
    """

    def __init__(
        self,
        executor: AsyncUpdateExecutor,
        fetch_page: FetchPage,
        policy: VersionRefreshPolicy,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        metrics: Any | None = None,
    ) -> None:
        self._executor = executor
        self._fetch_page = fetch_page
        self._policy = policy
        self._sleep = sleep
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    async def run(self, request: UpdatePageRequest) -> RefreshResult:
        """Drive *request* to success or to an exhausted failure.

        Raises
        ------
        ConfkitRepositoryError
            When the first attempt fails for a reason other than a conflict.
            No refresh happened, so the failure is reported as it is.
        ConfkitVersionRefreshExhaustedError
            When conflicts outlast the budget, on a non-conflict failure
            after a refresh, or when the page vanished or could not be read
            during a refresh.
        """
        page_id = request.page_id
        current = request
        attempts = 0
        refreshes = 0
        trace: list[RefreshState] = []

        while True:
            trace.append(RefreshState.ATTEMPTING)
            attempts += 1
            outcome = await self._executor.attempt(page_id, current)

            if isinstance(outcome, AttemptSucceeded):
                trace.append(RefreshState.SUCCEEDED)
                return RefreshResult(
                    page=outcome.page,
                    attempts=attempts,
                    refreshes=refreshes,
                    expected_version_number=current.expected_version_number,
                    trace=tuple(trace),
                )

            if isinstance(outcome, AttemptFailed):
                if refreshes == 0:
                    log.error(
                        "Page update failed",
                        extra={
                            "extra_fields": {
                                "op": "update_page",
                                "page_id": page_id,
                                "last_error_code": outcome.error.context.get("cause_code"),
                            }
                        },
                    )
                    raise outcome.error
                raise self._exhausted(page_id, attempts, refreshes, trace, outcome.error)

            self._metrics.increment("confkit.version_conflicts_total")
            if attempts >= self._policy.max_attempts:
                raise self._exhausted(page_id, attempts, refreshes, trace, outcome.error)

            trace.append(RefreshState.CONFLICTED)
            delay = self._policy.delay_for(attempts)
            log.warning(
                "Version conflict, refreshing page version",
                extra={
                    "extra_fields": {
                        "op": "update_page",
                        "page_id": page_id,
                        "attempt": attempts,
                        "expected_version": current.expected_version_number,
                        "delay_s": delay,
                    }
                },
            )
            await self._sleep(delay)

            trace.append(RefreshState.REFRESHING)
            refreshes += 1
            self._metrics.increment("confkit.version_refreshes_total")
            try:
                latest = await self._fetch_page(page_id)
            except Exception as exc:
                raise self._exhausted(page_id, attempts, refreshes, trace, exc) from exc
            if latest is None:
                missing = ConfkitNotFoundError(
                    message=f"Page not found during version refresh: {page_id}",
                    context={"resource_type": "page", "resource_id": page_id},
                )
                raise self._exhausted(page_id, attempts, refreshes, trace, missing)

            current = current.with_expected_version(latest.version.number)

    def _exhausted(
        self,
        page_id: str,
        attempts: int,
        refreshes: int,
        trace: list[RefreshState],
        cause: BaseException,
    ) -> ConfkitVersionRefreshExhaustedError:
        trace.append(RefreshState.EXHAUSTED_FAILED)
        last_code = getattr(cause, "code", None)
        log.error(
            "Page update failed after version refresh",
            extra={
                "extra_fields": {
                    "op": "update_page",
                    "page_id": page_id,
                    "attempts": attempts,
                    "refreshes": refreshes,
                    "last_error_code": last_code,
                }
            },
        )
        return ConfkitVersionRefreshExhaustedError(
            message=(
                f"Failed to update page {page_id} after {attempts} attempt(s) "
                f"with version refresh: {cause}"
            ),
            context={
                "page_id": page_id,
                "attempts": attempts,
                "refreshes": refreshes,
                "last_error_code": last_code,
                "trace": [state.value for state in trace],
            },
            cause=cause,
        )
