"""Thin async wrapper around the Confluence v2 ``/pages`` endpoints.

All HTTP concerns (auth, pacing, retries, error mapping) live in the
transport; these methods only shape paths, query strings and bodies and
return the raw JSON.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from .transport import AsyncConfluenceTransport

PAGES_PATH = "/api/v2/pages"


class AsyncPageAPI:
    """Asynchronous wrapper for the Confluence Pages API.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncConfluenceTransport`.
    """

    def __init__(self, transport: AsyncConfluenceTransport) -> None:
        self._transport = transport

    async def retrieve(self, page_id: str, include_body: bool = True) -> dict[str, Any]:
        """Fetch one page, with its storage body unless *include_body* is false."""
        params: dict[str, Any] = {}
        if include_body:
            params["body-format"] = "storage"
        return await self._transport.request("GET", f"{PAGES_PATH}/{page_id}", params=params)

    async def create(self, body: dict[str, Any]) -> dict[str, Any]:
        """Create a page from a body built by
        :func:`~confkit.confluence_api.mappers.build_create_payload`.
        """
        return await self._transport.request("POST", PAGES_PATH, json=body)

    async def update(self, page_id: str, body: dict[str, Any]) -> dict[str, Any]:
        """Replace a page.

        *body* must carry ``version.number`` one above the current version;
        otherwise Confluence answers 409 and the transport raises
        :class:`~confkit.errors.ConfkitVersionConflictError`.
        """
        return await self._transport.request("PUT", f"{PAGES_PATH}/{page_id}", json=body)

    async def delete(self, page_id: str) -> None:
        """Move a page to the trash."""
        await self._transport.request("DELETE", f"{PAGES_PATH}/{page_id}")

    async def list_in_space(
        self, space_id: str, limit: int, cursor: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        return await self._transport.request(
            "GET", f"/api/v2/spaces/{space_id}/pages", params=params,
        )

    async def list_children(
        self, page_id: str, limit: int, cursor: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        return await self._transport.request(
            "GET", f"{PAGES_PATH}/{page_id}/children", params=params,
        )

    async def get_version(self, page_id: str, version_number: int) -> dict[str, Any]:
        return await self._transport.request(
            "GET", f"{PAGES_PATH}/{page_id}/versions/{version_number}",
        )

    def iter_in_space(self, space_id: str, page_size: int = 250) -> AsyncIterator[dict]:
        """Async-iterate every page of a space, following cursors."""
        return self._transport.paginate(f"/api/v2/spaces/{space_id}/pages", page_size=page_size)
