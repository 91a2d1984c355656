"""Asynchronous Confluence client.

:class:`AsyncConfkitClient` is the public entry point.  It owns the
configuration and the HTTP transport and exposes page, space and search
operations as coroutines.

Usage::

    import asyncio
    from confkit import AsyncConfkitClient

    async def main():
        async with AsyncConfkitClient.from_env() as client:
            page = await client.get_page("42")
            outcome = await client.update_page(
                "42",
                version_number=page.version.number,
                content="<p>Hello</p>",
                timeout=30,
            )
            print(outcome.message, outcome.changes)

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from confkit.config import ConfkitConfig
from confkit.confluence_api import mappers
from confkit.confluence_api.pages import AsyncPageAPI
from confkit.confluence_api.search import AsyncSearchAPI
from confkit.confluence_api.spaces import AsyncSpaceAPI
from confkit.confluence_api.transport import AsyncConfluenceTransport
from confkit.errors import ConfkitNotFoundError
from confkit.models import (
    ContentFormat,
    CreatePageRequest,
    Page,
    PageListResult,
    PageStatus,
    PageSummary,
    PageVersion,
    SearchOrder,
    SearchPagesRequest,
    SearchResults,
    Space,
    SpaceListResult,
    UpdatePageOutcome,
    UpdatePageRequest,
)
from confkit.pages.create import CreatePageUseCase
from confkit.pages.repository import AsyncPageRepository
from confkit.pages.update import UpdatePageUseCase
from confkit.search.cql import CQLQuery


class AsyncConfkitClient:
    """Asynchronous Confluence client.

    Parameters
    ----------
    host_url:
        Confluence site URL, e.g. ``https://acme.atlassian.net``.
    user_email:
        Atlassian account email.
    api_token:
        Atlassian API token.
    **kwargs:
        Forwarded to :class:`ConfkitConfig`.
    """

    def __init__(self, host_url: str, user_email: str, api_token: str, **kwargs: Any) -> None:
        self._init_from_config(
            ConfkitConfig(host_url=host_url, user_email=user_email, api_token=api_token, **kwargs)
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> AsyncConfkitClient:
        """Build a client from ``CONFLUENCE_*`` environment variables."""
        client = cls.__new__(cls)
        client._init_from_config(ConfkitConfig.from_env(**overrides))
        return client

    def _init_from_config(self, config: ConfkitConfig) -> None:
        self._config = config
        self._transport = AsyncConfluenceTransport(config)
        self._pages = AsyncPageAPI(self._transport)
        self._spaces = AsyncSpaceAPI(self._transport)
        self._search = AsyncSearchAPI(self._transport)
        self._repository = AsyncPageRepository(
            self._pages,
            self._search,
            config.version_refresh,
            base_url=config.wiki_url,
            default_limit=config.default_page_limit,
            metrics=config.metrics,
        )
        self._create_use_case = CreatePageUseCase(self._repository, metrics=config.metrics)
        self._update_use_case = UpdatePageUseCase(self._repository, metrics=config.metrics)

    @property
    def config(self) -> ConfkitConfig:
        return self._config

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def get_page(self, page_id: str, include_content: bool = True) -> Page:
        """Fetch one page.

        Raises
        ------
        ConfkitNotFoundError
            If the page does not exist.
        """
        page = await self._repository.find_by_id(page_id, include_content=include_content)
        if page is None:
            raise ConfkitNotFoundError(
                message=f"Page not found: {page_id}",
                context={"resource_type": "page", "resource_id": page_id},
            )
        return page

    async def create_page(
        self,
        space_id: str,
        title: str,
        content: str,
        parent_page_id: str | None = None,
        status: str = PageStatus.CURRENT.value,
        content_format: str = ContentFormat.STORAGE.value,
    ) -> Page:
        """Create a page in *space_id*.

        Raises
        ------
        ConfkitValidationError
            For invalid values, or when the space already has a page with
            this title.
        ConfkitNotFoundError
            If *parent_page_id* does not exist.
        ConfkitRepositoryError
            For any other failure.
        """
        request = CreatePageRequest(
            space_id=space_id,
            title=title,
            content=content,
            parent_page_id=parent_page_id,
            status=status,
            content_format=content_format,
        )
        return await self._create_use_case.execute(request)

    async def update_page(
        self,
        page_id: str,
        version_number: int,
        title: str | None = None,
        content: str | None = None,
        status: str | None = None,
        content_format: str = ContentFormat.STORAGE.value,
        version_message: str | None = None,
        timeout: float | None = None,
    ) -> UpdatePageOutcome:
        """Update a page, recovering automatically from version conflicts.

        Parameters
        ----------
        page_id:
            The page to update.
        version_number:
            The version the caller last saw.  If another writer has moved
            the page on since, the client re-reads the page and retries
            within ``config.version_refresh``.
        title, content, status:
            New values; ``None`` leaves a field untouched.
        content_format:
            Representation of *content*.
        version_message:
            Message stored with the new version.
        timeout:
            Upper bound in seconds for the whole update, refreshes and
            delays included.  On expiry no further write is attempted and
            :class:`asyncio.TimeoutError` propagates.

        Returns
        -------
        UpdatePageOutcome

        Raises
        ------
        ConfkitNotFoundError
            If the page does not exist.
        ConfkitValidationError
            For invalid values or a rename onto another page's title.
        ConfkitVersionRefreshExhaustedError
            When the update could not be applied within the refresh budget.
        ConfkitRepositoryError
            For any other failure, including a write that failed on the
            network (it is not resent, since it may have been applied).
        """
        request = UpdatePageRequest(
            page_id=page_id,
            expected_version_number=version_number,
            title=title,
            content=content,
            status=status,
            content_format=content_format,
            version_message=version_message,
        )
        if timeout is None:
            return await self._update_use_case.execute(request)
        return await asyncio.wait_for(self._update_use_case.execute(request), timeout)

    async def delete_page(self, page_id: str) -> None:
        await self._repository.delete(page_id)

    async def get_pages_by_space(
        self, space_id: str, limit: int | None = None, cursor: str | None = None,
    ) -> PageListResult:
        """One page of summaries for *space_id*; pass ``pagination.next_cursor``
        back as *cursor* for the next.
        """
        return await self._repository.find_by_space(space_id, limit, cursor)

    async def iter_pages_in_space(self, space_id: str) -> AsyncIterator[PageSummary]:
        """Yield every page summary in *space_id*."""
        async for summary in self._repository.iter_space(space_id):
            yield summary

    async def get_child_pages(
        self, page_id: str, limit: int | None = None, cursor: str | None = None,
    ) -> PageListResult:
        return await self._repository.find_children(page_id, limit, cursor)

    async def get_page_version(self, page_id: str, version_number: int) -> PageVersion:
        return await self._repository.get_version(page_id, version_number)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_pages(
        self,
        query: str,
        space_key: str | None = None,
        content_type: str | None = None,
        limit: int = 25,
        start: int = 0,
        order_by: str = SearchOrder.RELEVANCE.value,
    ) -> PageListResult:
        """Free-text page search, narrowed by space and content type."""
        request = SearchPagesRequest(
            query=query,
            space_key=space_key,
            content_type=content_type,
            limit=limit,
            start=start,
            order_by=order_by,
        )
        return await self._repository.search(request)

    async def search(self, cql: str | CQLQuery, limit: int = 25, start: int = 0) -> SearchResults:
        """Run a CQL query and return the raw hits.

        *cql* may be a :class:`CQLQuery` or a CQL string written by the
        caller; a string is sent as-is.
        """
        cql_text = cql.build() if isinstance(cql, CQLQuery) else cql
        data = await self._search.cql(cql_text, limit=limit, start=start)
        base_url = self._config.wiki_url
        return SearchResults(
            results=[mappers.search_result_from_hit(hit, base_url) for hit in data.get("results", [])],
            pagination=mappers.offset_pagination(data),
            cql=cql_text,
        )

    # ------------------------------------------------------------------
    # Spaces
    # ------------------------------------------------------------------

    async def get_spaces(
        self,
        limit: int | None = None,
        cursor: str | None = None,
        space_type: str | None = None,
    ) -> SpaceListResult:
        limit = limit or self._config.default_page_limit
        data = await self._spaces.list_spaces(limit, cursor=cursor, space_type=space_type)
        base_url = self._config.wiki_url
        return SpaceListResult(
            spaces=[mappers.space_from_v2(item, base_url) for item in data.get("results", [])],
            pagination=mappers.cursor_pagination(data, limit),
        )

    async def get_space_by_id(self, space_id: str) -> Space:
        data = await self._spaces.retrieve(space_id)
        return mappers.space_from_v2(data, self._config.wiki_url)

    async def get_space_by_key(self, key: str) -> Space:
        """Look a space up by key.

        Raises
        ------
        ConfkitNotFoundError
            If no space has that key.
        """
        data = await self._spaces.list_spaces(1, keys=[key])
        results = data.get("results") or []
        if not results:
            raise ConfkitNotFoundError(
                message=f"Space not found: {key}",
                context={"resource_type": "space", "resource_id": key},
            )
        return mappers.space_from_v2(results[0], self._config.wiki_url)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP transport."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncConfkitClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
