"""Tests for the endpoint wrappers: AsyncPageAPI, AsyncSpaceAPI, AsyncSearchAPI.

The transport is an AsyncMock; these tests pin paths, query strings and
bodies only.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from confkit.confluence_api.pages import AsyncPageAPI
from confkit.confluence_api.search import CONTENT_EXPAND, AsyncSearchAPI
from confkit.confluence_api.spaces import AsyncSpaceAPI


def _mock_transport(return_value=None) -> MagicMock:
    transport = MagicMock()
    transport.request = AsyncMock(return_value=return_value if return_value is not None else {})
    return transport


class TestAsyncPageAPI:
    async def test_retrieve_with_body(self):
        transport = _mock_transport({"id": "42"})
        result = await AsyncPageAPI(transport).retrieve("42")
        assert result == {"id": "42"}
        transport.request.assert_awaited_once_with(
            "GET", "/api/v2/pages/42", params={"body-format": "storage"},
        )

    async def test_retrieve_without_body(self):
        transport = _mock_transport()
        await AsyncPageAPI(transport).retrieve("42", include_body=False)
        transport.request.assert_awaited_once_with("GET", "/api/v2/pages/42", params={})

    async def test_create_posts_body(self):
        transport = _mock_transport()
        await AsyncPageAPI(transport).create({"title": "x"})
        transport.request.assert_awaited_once_with("POST", "/api/v2/pages", json={"title": "x"})

    async def test_update_puts_body(self):
        transport = _mock_transport()
        body = {"id": "42", "version": {"number": 2}}
        await AsyncPageAPI(transport).update("42", body)
        transport.request.assert_awaited_once_with("PUT", "/api/v2/pages/42", json=body)

    async def test_delete(self):
        transport = _mock_transport()
        assert await AsyncPageAPI(transport).delete("42") is None
        transport.request.assert_awaited_once_with("DELETE", "/api/v2/pages/42")

    async def test_list_in_space_with_cursor(self):
        transport = _mock_transport()
        await AsyncPageAPI(transport).list_in_space("100", 10, cursor="abc")
        transport.request.assert_awaited_once_with(
            "GET", "/api/v2/spaces/100/pages", params={"limit": 10, "cursor": "abc"},
        )

    async def test_list_children(self):
        transport = _mock_transport()
        await AsyncPageAPI(transport).list_children("42", 5)
        transport.request.assert_awaited_once_with(
            "GET", "/api/v2/pages/42/children", params={"limit": 5},
        )

    async def test_get_version(self):
        transport = _mock_transport()
        await AsyncPageAPI(transport).get_version("42", 3)
        transport.request.assert_awaited_once_with("GET", "/api/v2/pages/42/versions/3")

    def test_iter_in_space_delegates_to_paginate(self):
        transport = MagicMock()
        sentinel = object()
        transport.paginate.return_value = sentinel
        assert AsyncPageAPI(transport).iter_in_space("100", page_size=50) is sentinel
        transport.paginate.assert_called_once_with("/api/v2/spaces/100/pages", page_size=50)


class TestAsyncSpaceAPI:
    async def test_list_spaces_with_filters(self):
        transport = _mock_transport()
        await AsyncSpaceAPI(transport).list_spaces(25, keys=["ENG", "OPS"], space_type="global")
        transport.request.assert_awaited_once_with(
            "GET", "/api/v2/spaces", params={"limit": 25, "keys": "ENG,OPS", "type": "global"},
        )

    async def test_retrieve(self):
        transport = _mock_transport()
        await AsyncSpaceAPI(transport).retrieve("100")
        transport.request.assert_awaited_once_with(
            "GET", "/api/v2/spaces/100", params={"description-format": "plain"},
        )


class TestAsyncSearchAPI:
    async def test_cql_default_params(self):
        transport = _mock_transport()
        await AsyncSearchAPI(transport).cql('title = "x"')
        transport.request.assert_awaited_once_with(
            "GET",
            "/rest/api/search",
            params={"cql": 'title = "x"', "limit": 25, "expand": CONTENT_EXPAND},
        )

    async def test_cql_with_offset_no_expand(self):
        transport = _mock_transport()
        await AsyncSearchAPI(transport).cql("type = page", limit=10, start=20, expand=None)
        transport.request.assert_awaited_once_with(
            "GET", "/rest/api/search", params={"cql": "type = page", "limit": 10, "start": 20},
        )
