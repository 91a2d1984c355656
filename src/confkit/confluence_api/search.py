"""Thin async wrapper around ``/rest/api/search`` (CQL).

Confluence v2 has no search endpoint, so this one call stays on v1.
"""

from __future__ import annotations

from typing import Any

from .transport import AsyncConfluenceTransport

SEARCH_PATH = "/rest/api/search"

# Expansions needed to map a hit to a page snapshot.
CONTENT_EXPAND = "content.version,content.space"


class AsyncSearchAPI:
    """Asynchronous wrapper for CQL search.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncConfluenceTransport`.
    """

    def __init__(self, transport: AsyncConfluenceTransport) -> None:
        self._transport = transport

    async def cql(
        self,
        cql: str,
        limit: int = 25,
        start: int = 0,
        expand: str | None = CONTENT_EXPAND,
    ) -> dict[str, Any]:
        """Run a CQL query and return the raw search response."""
        params: dict[str, Any] = {"cql": cql, "limit": limit}
        if start:
            params["start"] = start
        if expand:
            params["expand"] = expand
        return await self._transport.request("GET", SEARCH_PATH, params=params)
