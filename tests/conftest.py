"""Shared test fixtures for the confkit test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from confkit.config import ConfkitConfig, VersionRefreshPolicy
from confkit.models import Page, PageVersion


@pytest.fixture
def config() -> ConfkitConfig:
    """Default test configuration with dummy credentials."""
    return ConfkitConfig(
        host_url="https://acme.atlassian.net",
        user_email="dev@acme.test",
        api_token="test_token_1234",
    )


@pytest.fixture
def fast_policy() -> VersionRefreshPolicy:
    """Three attempts, no waiting between them."""
    return VersionRefreshPolicy(max_attempts=3, base_delay_ms=0)


@pytest.fixture
def make_page() -> Callable[..., Page]:
    """Factory for :class:`Page` snapshots."""

    def _make(
        page_id: str = "42",
        version: int = 1,
        title: str = "Runbook",
        content: str | None = "<p>body</p>",
        status: str = "current",
        space_id: str = "100",
    ) -> Page:
        return Page(
            id=page_id,
            title=title,
            status=status,
            space_id=space_id,
            version=PageVersion(number=version),
            content=content,
        )

    return _make


@pytest.fixture
def page_json() -> Callable[..., dict[str, Any]]:
    """Factory for raw ``/api/v2/pages/{id}`` response bodies."""

    def _make(
        page_id: str = "42",
        version: int = 1,
        title: str = "Runbook",
        body: str | None = "<p>body</p>",
        status: str = "current",
        space_id: str = "100",
    ) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": page_id,
            "status": status,
            "title": title,
            "spaceId": space_id,
            "parentId": "7",
            "authorId": "acc-1",
            "createdAt": "2024-01-15T10:30:00.000Z",
            "version": {
                "number": version,
                "message": "",
                "minorEdit": False,
                "authorId": "acc-1",
                "createdAt": "2024-02-01T08:00:00.000Z",
            },
            "_links": {"webui": f"/spaces/ENG/pages/{page_id}/{title}"},
        }
        if body is not None:
            data["body"] = {"storage": {"value": body, "representation": "storage"}}
        return data

    return _make
