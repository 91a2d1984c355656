"""Translation between Confluence JSON and :mod:`confkit.models`.

Inbound mappers turn raw response dicts into frozen read models;
outbound builders turn request dataclasses into request bodies.  All
functions are pure.  Missing optional keys never raise; a missing ``id``
or ``version`` does, since nothing useful can be built without them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from confkit.models import (
    CreatePageRequest,
    Page,
    PageSummary,
    PageVersion,
    PaginationInfo,
    SearchResult,
    Space,
    UpdatePageRequest,
)

from .transport import next_cursor


def parse_datetime(raw: str | None) -> datetime | None:
    """Parse a Confluence ISO-8601 timestamp (``...Z`` suffix allowed)."""
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


def _web_url(data: dict[str, Any], base_url: str) -> str:
    webui = (data.get("_links") or {}).get("webui") or ""
    if not webui or webui.startswith("http"):
        return webui
    return f"{base_url.rstrip('/')}{webui}"


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------

def version_from_v2(data: dict[str, Any]) -> PageVersion:
    return PageVersion(
        number=int(data["number"]),
        message=data.get("message") or None,
        created_at=parse_datetime(data.get("createdAt")),
        author_id=data.get("authorId"),
        minor_edit=bool(data.get("minorEdit", False)),
    )


def page_from_v2(data: dict[str, Any], base_url: str = "") -> Page:
    """Map a ``/api/v2/pages/{id}`` object to a :class:`Page`."""
    body = data.get("body") or {}
    content: str | None = None
    content_format = "storage"
    for fmt in ("storage", "atlas_doc_format"):
        rep = body.get(fmt)
        if isinstance(rep, dict) and "value" in rep:
            content = rep["value"]
            content_format = rep.get("representation", fmt)
            break

    return Page(
        id=str(data["id"]),
        title=data.get("title", ""),
        status=data.get("status", "current"),
        space_id=str(data.get("spaceId", "")),
        version=version_from_v2(data["version"]),
        content=content,
        content_format=content_format,
        parent_id=str(data["parentId"]) if data.get("parentId") else None,
        author_id=data.get("authorId"),
        created_at=parse_datetime(data.get("createdAt")),
        web_url=_web_url(data, base_url),
    )


def summary_from_v2(data: dict[str, Any], base_url: str = "") -> PageSummary:
    version = data.get("version") or {}
    return PageSummary(
        id=str(data["id"]),
        title=data.get("title", ""),
        status=data.get("status", "current"),
        space_id=str(data.get("spaceId", "")),
        version_number=int(version.get("number", 0)),
        updated_at=parse_datetime(version.get("createdAt")),
        web_url=_web_url(data, base_url),
    )


def page_from_search_hit(hit: dict[str, Any], fallback_space_id: str, base_url: str = "") -> Page:
    """Map a ``/rest/api/search`` hit (content expanded) to a :class:`Page`.

    The v1 search payload has no body, so ``content`` is ``None``.
    """
    content = hit["content"]
    version = content.get("version") or {}
    space = content.get("space") or {}
    author = (version.get("by") or {}).get("accountId")
    return Page(
        id=str(content["id"]),
        title=content.get("title", ""),
        status=content.get("status", "current"),
        space_id=str(space.get("id") or content.get("spaceId") or fallback_space_id),
        version=PageVersion(
            number=int(version.get("number", 1)),
            message=version.get("message") or None,
            created_at=parse_datetime(version.get("when") or version.get("createdAt")),
            author_id=author,
        ),
        content=None,
        author_id=author,
        web_url=_web_url(content, base_url),
    )


def summary_from_search_hit(hit: dict[str, Any], base_url: str = "") -> PageSummary:
    content = hit["content"]
    version = content.get("version") or {}
    space = content.get("space") or {}
    return PageSummary(
        id=str(content["id"]),
        title=content.get("title", ""),
        status=content.get("status", "current"),
        space_id=str(space.get("id") or content.get("spaceId") or ""),
        version_number=int(version.get("number", 0)),
        updated_at=parse_datetime(hit.get("lastModified") or version.get("when")),
        web_url=_web_url(content, base_url),
    )


def search_result_from_hit(hit: dict[str, Any], base_url: str = "") -> SearchResult:
    content = hit.get("content") or {}
    space = content.get("space") or {}
    url = hit.get("url") or ""
    if url and not url.startswith("http"):
        url = f"{base_url.rstrip('/')}{url}"
    return SearchResult(
        content_id=str(content.get("id", "")),
        content_type=content.get("type", ""),
        title=hit.get("title") or content.get("title", ""),
        excerpt=hit.get("excerpt") or "",
        space_key=space.get("key"),
        url=url,
        last_modified=parse_datetime(hit.get("lastModified")),
    )


def space_from_v2(data: dict[str, Any], base_url: str = "") -> Space:
    description = data.get("description") or {}
    plain = (description.get("plain") or {}).get("value") if isinstance(description, dict) else None
    return Space(
        id=str(data["id"]),
        key=data.get("key", ""),
        name=data.get("name", ""),
        type=data.get("type", "global"),
        status=data.get("status", "current"),
        homepage_id=str(data["homepageId"]) if data.get("homepageId") else None,
        description=plain or None,
        web_url=_web_url(data, base_url),
    )


def cursor_pagination(data: dict[str, Any], limit: int) -> PaginationInfo:
    """Pagination of a v2 cursor list response."""
    cursor = next_cursor(data)
    return PaginationInfo(
        start=0,
        limit=limit,
        size=len(data.get("results", [])),
        has_more=cursor is not None,
        next_cursor=cursor,
    )


def offset_pagination(data: dict[str, Any], size: int | None = None) -> PaginationInfo:
    """Pagination of a v1 offset response such as ``/rest/api/search``.

    *size* overrides the hit count when results were filtered locally.
    """
    limit = data.get("limit") or 25
    raw_size = data.get("size", len(data.get("results", [])))
    links = data.get("_links") or {}
    return PaginationInfo(
        start=data.get("start") or 0,
        limit=limit,
        size=raw_size if size is None else size,
        has_more=bool(links.get("next")) or raw_size == limit,
        total=data.get("totalSize"),
    )


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------

def build_update_payload(request: UpdatePageRequest) -> dict[str, Any]:
    """Body for ``PUT /api/v2/pages/{id}``.

    ``version.number`` is always ``expected_version_number + 1``.  Title,
    body and status are included only when the request sets them.
    """
    version: dict[str, Any] = {"number": request.expected_version_number + 1}
    if request.version_message:
        version["message"] = request.version_message

    payload: dict[str, Any] = {"id": request.page_id, "version": version}
    if request.title is not None:
        payload["title"] = request.title
    if request.content is not None:
        payload["body"] = {
            "representation": request.content_format,
            "value": request.content,
        }
    if request.status is not None:
        payload["status"] = request.status
    return payload


def build_create_payload(request: CreatePageRequest) -> dict[str, Any]:
    """Body for ``POST /api/v2/pages``."""
    payload: dict[str, Any] = {
        "spaceId": request.space_id,
        "status": request.status,
        "title": request.title,
        "body": {
            "representation": request.content_format,
            "value": request.content,
        },
    }
    if request.parent_page_id:
        payload["parentId"] = request.parent_page_id
    return payload
