"""Thin async wrapper around the Confluence v2 ``/spaces`` endpoints."""

from __future__ import annotations

from typing import Any

from .transport import AsyncConfluenceTransport

SPACES_PATH = "/api/v2/spaces"


class AsyncSpaceAPI:
    """Asynchronous wrapper for the Confluence Spaces API.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncConfluenceTransport`.
    """

    def __init__(self, transport: AsyncConfluenceTransport) -> None:
        self._transport = transport

    async def list_spaces(
        self,
        limit: int,
        cursor: str | None = None,
        keys: list[str] | None = None,
        space_type: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        if keys:
            params["keys"] = ",".join(keys)
        if space_type:
            params["type"] = space_type
        return await self._transport.request("GET", SPACES_PATH, params=params)

    async def retrieve(self, space_id: str) -> dict[str, Any]:
        return await self._transport.request(
            "GET", f"{SPACES_PATH}/{space_id}", params={"description-format": "plain"},
        )
