"""Update-page use case.

Ties the pieces of a page update together::

    fetch current page -> rename check -> update with version refresh
    -> describe changes -> UpdatePageOutcome

Version mismatches are not checked up front: submitting against a stale
version is exactly what the refresh controller recovers from.
"""

from __future__ import annotations

from typing import Any

from confkit.errors import (
    ConfkitNotFoundError,
    ConfkitRepositoryError,
    ConfkitValidationError,
)
from confkit.models import Page, UpdatePageOutcome, UpdatePageRequest
from confkit.observability import NoopMetricsHook, get_logger

from .changes import track_changes
from .repository import AsyncPageRepository

log = get_logger("confkit.pages.update")


class UpdatePageUseCase:
    """Apply one :class:`UpdatePageRequest` and report the outcome.

    Error policy:

    * :class:`ConfkitNotFoundError` and :class:`ConfkitValidationError`
      propagate unchanged.
    * :class:`ConfkitRepositoryError` (including an exhausted version
      refresh) propagates unchanged; it already names the page.
    * Anything else is wrapped in :class:`ConfkitRepositoryError` with the
      page id.  Cancellation is never wrapped.
    """

    def __init__(self, repository: AsyncPageRepository, metrics: Any | None = None) -> None:
        self._repository = repository
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    async def execute(self, request: UpdatePageRequest) -> UpdatePageOutcome:
        page_id = request.page_id
        try:
            outcome = await self._execute(request)
        except (ConfkitNotFoundError, ConfkitValidationError, ConfkitRepositoryError) as exc:
            outcome_tag = getattr(exc.code, "value", exc.code)
            self._metrics.increment("confkit.page_updates_total", tags={"outcome": outcome_tag})
            raise
        except Exception as exc:
            self._metrics.increment("confkit.page_updates_total", tags={"outcome": "error"})
            raise ConfkitRepositoryError(
                message=f"Failed to update page {page_id}: {exc}",
                context={
                    "operation": "update_page",
                    "page_id": page_id,
                    "cause_code": getattr(exc, "code", None),
                },
                cause=exc,
            ) from exc

        self._metrics.increment("confkit.page_updates_total", tags={"outcome": "success"})
        return outcome

    async def _execute(self, request: UpdatePageRequest) -> UpdatePageOutcome:
        page_id = request.page_id
        current = await self._repository.find_by_id(page_id)
        if current is None:
            raise ConfkitNotFoundError(
                message=f"Page not found: {page_id}",
                context={"resource_type": "page", "resource_id": page_id},
            )

        await self._check_rename(request, current)

        result = await self._repository.update(request)
        page = result.page
        previous = result.expected_version_number
        if page.version.number != previous + 1:
            log.warning(
                "Unexpected version after update",
                extra={
                    "extra_fields": {
                        "op": "update_page",
                        "page_id": page_id,
                        "expected_version": previous + 1,
                        "actual_version": page.version.number,
                    }
                },
            )

        log.info(
            "Page updated",
            extra={
                "extra_fields": {
                    "op": "update_page",
                    "page_id": page_id,
                    "version": page.version.number,
                    "attempts": result.attempts,
                    "refreshes": result.refreshes,
                }
            },
        )
        return UpdatePageOutcome(
            page=page,
            previous_version_number=previous,
            current_version_number=page.version.number,
            changes=track_changes(request, current),
            message=f'Page "{page.title}" updated successfully',
        )

    async def _check_rename(self, request: UpdatePageRequest, current: Page) -> None:
        """Reject a rename onto a title another page in the space already has."""
        if request.title is None or request.title == current.title:
            return
        existing = await self._repository.find_by_title(current.space_id, request.title)
        if existing is not None and existing.id != current.id:
            raise ConfkitValidationError(
                message=(
                    f'A page titled "{request.title}" already exists in space '
                    f"{current.space_id} (page {existing.id})"
                ),
                context={
                    "field": "title",
                    "value": request.title,
                    "conflicting_page_id": existing.id,
                },
            )
