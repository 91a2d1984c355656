"""Page repository: page-level reads and writes over the Confluence API.

:class:`AsyncPageRepository` turns raw endpoint responses into
:mod:`confkit.models` values and gives every failure one shape:

* A missing page is ``None`` from the ``find_*`` lookups and a
  :class:`~confkit.errors.ConfkitNotFoundError` everywhere else.
* A rejected request (400, or 409 on create for a duplicate title) stays a
  :class:`~confkit.errors.ConfkitValidationError`.
* Every other failure is a :class:`~confkit.errors.ConfkitRepositoryError`
  naming the operation and wrapping the original error.

Updates go through :class:`~confkit.pages.refresh.VersionRefreshController`,
so a version conflict is recovered here and never reaches the caller on
its own.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import Any

from confkit.config import VersionRefreshPolicy
from confkit.confluence_api import mappers
from confkit.confluence_api.pages import AsyncPageAPI
from confkit.confluence_api.search import AsyncSearchAPI
from confkit.errors import (
    ConfkitNotFoundError,
    ConfkitRepositoryError,
    ConfkitValidationError,
)
from confkit.models import (
    ContentType,
    CreatePageRequest,
    Page,
    PageListResult,
    PageSummary,
    PageVersion,
    SearchPagesRequest,
    UpdatePageRequest,
)
from confkit.search.cql import CQLQuery, build_search_cql

from .executor import AsyncUpdateExecutor
from .refresh import RefreshResult, VersionRefreshController

_SEARCHABLE_TYPES = frozenset({ContentType.PAGE.value, ContentType.BLOGPOST.value})


@contextmanager
def _wrap_failures(operation: str, **context: Any) -> Iterator[None]:
    """Re-raise any failure other than not-found or validation as a repository error."""
    try:
        yield
    except (ConfkitNotFoundError, ConfkitValidationError, ConfkitRepositoryError):
        raise
    except Exception as exc:
        raise ConfkitRepositoryError(
            message=f"Failed to {operation.replace('_', ' ')}: {exc}",
            context={
                "operation": operation,
                **context,
                "cause_code": getattr(exc, "code", None),
            },
            cause=exc,
        ) from exc


class AsyncPageRepository:
    """Async page repository.

    Parameters
    ----------
    pages:
        Wrapper for the v2 pages endpoints.
    search:
        Wrapper for CQL search.
    policy:
        Version-refresh budget applied by :meth:`update`.
    base_url:
        Wiki base URL used to build ``web_url`` fields.
    default_limit:
        Page size for list calls that pass none.
    metrics:
        Optional metrics hook.
    sleep:
        Awaitable sleep used between refresh attempts.
    """

    def __init__(
        self,
        pages: AsyncPageAPI,
        search: AsyncSearchAPI,
        policy: VersionRefreshPolicy,
        *,
        base_url: str = "",
        default_limit: int = 25,
        metrics: Any | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._pages = pages
        self._search = search
        self._policy = policy
        self._base_url = base_url
        self._default_limit = default_limit
        self._metrics = metrics
        self._sleep = sleep
        self._executor = AsyncUpdateExecutor(pages, base_url)

    # -- reads -------------------------------------------------------------

    async def find_by_id(self, page_id: str, include_content: bool = True) -> Page | None:
        """Return the page, or ``None`` when Confluence answers 404."""
        with _wrap_failures("retrieve_page", page_id=page_id):
            try:
                data = await self._pages.retrieve(page_id, include_body=include_content)
            except ConfkitNotFoundError:
                return None
            return mappers.page_from_v2(data, self._base_url)

    async def find_by_title(self, space_id: str, title: str) -> Page | None:
        """Return the page titled exactly *title* in *space_id*, if any."""
        query = (
            CQLQuery.title_equals(title)
            & CQLQuery.space_id(space_id)
            & CQLQuery.type(ContentType.PAGE)
        )
        with _wrap_failures("find_page_by_title", space_id=space_id, title=title):
            try:
                data = await self._search.cql(query.build(), limit=1)
            except ConfkitNotFoundError:
                return None
            results = data.get("results") or []
            if not results:
                return None
            return mappers.page_from_search_hit(results[0], space_id, self._base_url)

    async def find_by_space(
        self, space_id: str, limit: int | None = None, cursor: str | None = None,
    ) -> PageListResult:
        limit = limit or self._default_limit
        with _wrap_failures("list_pages_in_space", space_id=space_id):
            data = await self._pages.list_in_space(space_id, limit, cursor)
            return self._summaries(data, limit)

    async def iter_space(self, space_id: str) -> AsyncIterator[PageSummary]:
        """Yield a summary of every page in *space_id*, across all cursors."""
        with _wrap_failures("list_pages_in_space", space_id=space_id):
            async for item in self._pages.iter_in_space(space_id):
                yield mappers.summary_from_v2(item, self._base_url)

    async def find_children(
        self, page_id: str, limit: int | None = None, cursor: str | None = None,
    ) -> PageListResult:
        limit = limit or self._default_limit
        with _wrap_failures("list_child_pages", page_id=page_id):
            data = await self._pages.list_children(page_id, limit, cursor)
            return self._summaries(data, limit)

    async def search(self, request: SearchPagesRequest) -> PageListResult:
        """Run a page search; hits that are not pages or blog posts are dropped."""
        cql = build_search_cql(request)
        with _wrap_failures("search_pages", cql=cql):
            data = await self._search.cql(cql, limit=request.limit, start=request.start)
            pages = [
                mappers.summary_from_search_hit(hit, self._base_url)
                for hit in data.get("results", [])
                if (hit.get("content") or {}).get("type") in _SEARCHABLE_TYPES
            ]
            return PageListResult(
                pages=pages,
                pagination=mappers.offset_pagination(data, size=len(pages)),
            )

    async def get_version(self, page_id: str, version_number: int) -> PageVersion:
        with _wrap_failures("get_page_version", page_id=page_id, version_number=version_number):
            data = await self._pages.get_version(page_id, version_number)
            return mappers.version_from_v2(data)

    # -- writes ------------------------------------------------------------

    async def create(self, request: CreatePageRequest) -> Page:
        with _wrap_failures("create_page", space_id=request.space_id, title=request.title):
            data = await self._pages.create(mappers.build_create_payload(request))
            return mappers.page_from_v2(data, self._base_url)

    async def update(self, request: UpdatePageRequest) -> RefreshResult:
        """Apply *request*, recovering from version conflicts.

        Raises
        ------
        ConfkitRepositoryError
            When the first attempt fails for a reason other than a conflict.
        ConfkitVersionRefreshExhaustedError
            When the update could not be applied within the refresh budget.
        """
        controller = VersionRefreshController(
            self._executor,
            lambda page_id: self.find_by_id(page_id, include_content=False),
            self._policy,
            sleep=self._sleep,
            metrics=self._metrics,
        )
        return await controller.run(request)

    async def delete(self, page_id: str) -> None:
        with _wrap_failures("delete_page", page_id=page_id):
            await self._pages.delete(page_id)

    # -- internals ---------------------------------------------------------

    def _summaries(self, data: dict[str, Any], limit: int) -> PageListResult:
        return PageListResult(
            pages=[mappers.summary_from_v2(item, self._base_url) for item in data.get("results", [])],
            pagination=mappers.cursor_pagination(data, limit),
        )
