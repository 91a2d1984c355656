"""Create-page use case.

Checks run before anything is written::

    duplicate title in space -> parent exists -> create

A duplicate that races the title lookup still comes back from Confluence
as a 409, raised as :class:`~confkit.errors.ConfkitValidationError`.
"""

from __future__ import annotations

from typing import Any

from confkit.errors import (
    ConfkitNotFoundError,
    ConfkitRepositoryError,
    ConfkitValidationError,
)
from confkit.models import CreatePageRequest, Page
from confkit.observability import NoopMetricsHook, get_logger

from .repository import AsyncPageRepository

log = get_logger("confkit.pages.create")


class CreatePageUseCase:
    """Create one page after validating its title and parent.

    Error policy matches :class:`~confkit.pages.update.UpdatePageUseCase`:
    not-found, validation and repository errors propagate unchanged,
    anything else is wrapped in :class:`ConfkitRepositoryError`.
    """

    def __init__(self, repository: AsyncPageRepository, metrics: Any | None = None) -> None:
        self._repository = repository
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    async def execute(self, request: CreatePageRequest) -> Page:
        try:
            page = await self._execute(request)
        except (ConfkitNotFoundError, ConfkitValidationError, ConfkitRepositoryError) as exc:
            outcome_tag = getattr(exc.code, "value", exc.code)
            self._metrics.increment("confkit.page_creates_total", tags={"outcome": outcome_tag})
            raise
        except Exception as exc:
            self._metrics.increment("confkit.page_creates_total", tags={"outcome": "error"})
            raise ConfkitRepositoryError(
                message=f"Failed to create page {request.title!r}: {exc}",
                context={
                    "operation": "create_page",
                    "space_id": request.space_id,
                    "title": request.title,
                    "cause_code": getattr(exc, "code", None),
                },
                cause=exc,
            ) from exc

        self._metrics.increment("confkit.page_creates_total", tags={"outcome": "success"})
        return page

    async def _execute(self, request: CreatePageRequest) -> Page:
        existing = await self._repository.find_by_title(request.space_id, request.title)
        if existing is not None:
            raise ConfkitValidationError(
                message=(
                    f'A page titled "{request.title}" already exists in space '
                    f"{request.space_id} (page {existing.id})"
                ),
                context={
                    "field": "title",
                    "value": request.title,
                    "conflicting_page_id": existing.id,
                },
            )

        if request.parent_page_id is not None:
            parent = await self._repository.find_by_id(request.parent_page_id, include_content=False)
            if parent is None:
                raise ConfkitNotFoundError(
                    message=f"Parent page not found: {request.parent_page_id}",
                    context={"resource_type": "page", "resource_id": request.parent_page_id},
                )

        page = await self._repository.create(request)
        log.info(
            "Page created",
            extra={
                "extra_fields": {
                    "op": "create_page",
                    "page_id": page.id,
                    "space_id": request.space_id,
                }
            },
        )
        return page
