"""confkit -- typed async client for the Confluence Cloud REST API.

Public re-exports
-----------------

* **Client:** :class:`AsyncConfkitClient`
* **Configuration:** :class:`ConfkitConfig`, :class:`VersionRefreshPolicy`
* **Errors:** Every :class:`ConfkitError` subclass and :class:`ErrorCode`
* **Models:** Request, result and read-model dataclasses and enums
* **Search:** :class:`CQLQuery`

Usage::

    from confkit import AsyncConfkitClient

    async with AsyncConfkitClient(
        host_url="https://acme.atlassian.net",
        user_email="me@acme.com",
        api_token="...",
    ) as client:
        outcome = await client.update_page("42", version_number=7, title="New title")
"""

from __future__ import annotations

# ── Client ─────────────────────────────────────────────────────────────
from confkit.async_client import AsyncConfkitClient

# ── Configuration ───────────────────────────────────────────────────────
from confkit.config import ConfkitConfig, VersionRefreshPolicy

# ── Errors ──────────────────────────────────────────────────────────────
from confkit.errors import (
    ConfkitAuthError,
    ConfkitConfigError,
    ConfkitError,
    ConfkitNetworkError,
    ConfkitNotFoundError,
    ConfkitPermissionError,
    ConfkitRepositoryError,
    ConfkitRetryExhaustedError,
    ConfkitValidationError,
    ConfkitVersionConflictError,
    ConfkitVersionRefreshExhaustedError,
    ErrorCode,
)

# ── Models ──────────────────────────────────────────────────────────────
from confkit.models import (
    ContentFormat,
    ContentType,
    CreatePageRequest,
    Page,
    PageListResult,
    PageStatus,
    PageSummary,
    PageVersion,
    PaginationInfo,
    SearchOrder,
    SearchPagesRequest,
    SearchResult,
    SearchResults,
    Space,
    SpaceListResult,
    UpdatePageOutcome,
    UpdatePageRequest,
)

# ── Search ──────────────────────────────────────────────────────────────
from confkit.search import CQLQuery

__all__ = [
    "AsyncConfkitClient",
    "CQLQuery",
    "ConfkitAuthError",
    "ConfkitConfig",
    "ConfkitConfigError",
    "ConfkitError",
    "ConfkitNetworkError",
    "ConfkitNotFoundError",
    "ConfkitPermissionError",
    "ConfkitRepositoryError",
    "ConfkitRetryExhaustedError",
    "ConfkitValidationError",
    "ConfkitVersionConflictError",
    "ConfkitVersionRefreshExhaustedError",
    "ContentFormat",
    "ContentType",
    "CreatePageRequest",
    "ErrorCode",
    "Page",
    "PageListResult",
    "PageStatus",
    "PageSummary",
    "PageVersion",
    "PaginationInfo",
    "SearchOrder",
    "SearchPagesRequest",
    "SearchResult",
    "SearchResults",
    "Space",
    "SpaceListResult",
    "UpdatePageOutcome",
    "UpdatePageRequest",
    "VersionRefreshPolicy",
]
