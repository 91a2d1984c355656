"""Public data models for the confkit SDK.

This module contains every request type, result type, enum, and read
model referenced by the public API surface.  Request types are frozen
dataclasses that validate themselves on construction and are never
mutated afterwards; use :func:`dataclasses.replace` (or the helpers
provided) to derive a modified copy.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from confkit.errors import ConfkitValidationError

TITLE_MAX_LENGTH = 255
SEARCH_LIMIT_MAX = 250


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PageStatus(str, Enum):
    """Lifecycle status of a Confluence page."""

    CURRENT = "current"
    DRAFT = "draft"
    TRASHED = "trashed"
    DELETED = "deleted"
    ARCHIVED = "archived"


class ContentFormat(str, Enum):
    """Body representation accepted by Confluence."""

    STORAGE = "storage"
    EDITOR = "editor"
    WIKI = "wiki"
    ATLAS_DOC_FORMAT = "atlas_doc_format"


class ContentType(str, Enum):
    """Content types that CQL can filter on."""

    PAGE = "page"
    BLOGPOST = "blogpost"
    COMMENT = "comment"
    ATTACHMENT = "attachment"


class SearchOrder(str, Enum):
    """Sort orders offered by page search."""

    RELEVANCE = "relevance"
    CREATED = "created"
    MODIFIED = "modified"
    TITLE = "title"


# Statuses a caller may set on create / update.
WRITABLE_STATUSES: frozenset[str] = frozenset({PageStatus.CURRENT.value, PageStatus.DRAFT.value})


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _require_id(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfkitValidationError(
            message=f"{field_name} cannot be empty",
            context={"field": field_name, "value": value},
        )
    return value.strip()


def _check_title(title: str) -> str:
    stripped = title.strip()
    if not stripped:
        raise ConfkitValidationError(
            message="Page title cannot be empty",
            context={"field": "title", "value": title},
        )
    if len(stripped) > TITLE_MAX_LENGTH:
        raise ConfkitValidationError(
            message=f"Page title is too long (maximum {TITLE_MAX_LENGTH} characters)",
            context={"field": "title", "constraint": f"max_length={TITLE_MAX_LENGTH}"},
        )
    return stripped


def _check_status(status: str) -> str:
    value = status.value if isinstance(status, PageStatus) else status
    if value not in WRITABLE_STATUSES:
        raise ConfkitValidationError(
            message=f"Invalid page status {value!r}; expected one of {sorted(WRITABLE_STATUSES)}",
            context={"field": "status", "value": value},
        )
    return value


def _check_format(content_format: str) -> str:
    try:
        return ContentFormat(content_format).value
    except ValueError as exc:
        raise ConfkitValidationError(
            message=f"Invalid content format {content_format!r}",
            context={"field": "content_format", "value": content_format},
            cause=exc,
        ) from exc


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageVersion:
    """Version metadata of a page.

    ``number`` starts at 1 and is incremented by exactly one by Confluence
    on every successful update.
    """

    number: int
    message: str | None = None
    created_at: datetime | None = None
    author_id: str | None = None
    minor_edit: bool = False


@dataclass(frozen=True)
class Page:
    """A page snapshot as returned by Confluence.

    Snapshots are read-only views.  ``content`` is ``None`` when the body
    was not requested.
    """

    id: str
    title: str
    status: str
    space_id: str
    version: PageVersion
    content: str | None = None
    content_format: str = ContentFormat.STORAGE.value
    parent_id: str | None = None
    author_id: str | None = None
    created_at: datetime | None = None
    web_url: str = ""


@dataclass(frozen=True)
class PageSummary:
    """Lightweight page listing entry."""

    id: str
    title: str
    status: str
    space_id: str
    version_number: int
    updated_at: datetime | None = None
    web_url: str = ""


@dataclass(frozen=True)
class Space:
    """A Confluence space."""

    id: str
    key: str
    name: str
    type: str = "global"
    status: str = "current"
    homepage_id: str | None = None
    description: str | None = None
    web_url: str = ""


@dataclass(frozen=True)
class SearchResult:
    """A single hit from ``/rest/api/search``."""

    content_id: str
    content_type: str
    title: str
    excerpt: str = ""
    space_key: str | None = None
    url: str = ""
    last_modified: datetime | None = None


@dataclass(frozen=True)
class PaginationInfo:
    """Pagination metadata for list and search results.

    Offset-based endpoints fill ``start`` / ``total``; cursor-based
    (v2) endpoints fill ``next_cursor``.
    """

    start: int
    limit: int
    size: int
    has_more: bool
    total: int | None = None
    next_cursor: str | None = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UpdatePageRequest:
    """An update of an existing page.

    Attributes
    ----------
    page_id:
        The page to update.
    expected_version_number:
        The version the caller believes is current.  Must be ``>= 1``.
        The update is submitted as ``expected_version_number + 1``.
    title, content, status:
        Optional new values.  ``None`` leaves the field untouched.
    content_format:
        Representation of *content*.
    version_message:
        Optional message recorded with the new version.
    """

    page_id: str
    expected_version_number: int
    title: str | None = None
    content: str | None = None
    status: str | None = None
    content_format: str = ContentFormat.STORAGE.value
    version_message: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "page_id", _require_id(self.page_id, "page_id"))
        version = self.expected_version_number
        if isinstance(version, bool) or not isinstance(version, int) or version < 1:
            raise ConfkitValidationError(
                message="Version number must be a positive integer",
                context={"field": "expected_version_number", "value": version},
            )
        if self.title is not None:
            object.__setattr__(self, "title", _check_title(self.title))
        if self.status is not None:
            object.__setattr__(self, "status", _check_status(self.status))
        object.__setattr__(self, "content_format", _check_format(self.content_format))

    def with_expected_version(self, version_number: int) -> UpdatePageRequest:
        """Return a copy that expects *version_number* instead."""
        return dataclasses.replace(self, expected_version_number=version_number)


@dataclass(frozen=True)
class CreatePageRequest:
    """Creation of a new page in a space."""

    space_id: str
    title: str
    content: str
    parent_page_id: str | None = None
    status: str = PageStatus.CURRENT.value
    content_format: str = ContentFormat.STORAGE.value

    def __post_init__(self) -> None:
        object.__setattr__(self, "space_id", _require_id(self.space_id, "space_id"))
        object.__setattr__(self, "title", _check_title(self.title))
        if not self.content:
            raise ConfkitValidationError(
                message="Page content cannot be empty",
                context={"field": "content"},
            )
        if self.parent_page_id is not None:
            object.__setattr__(
                self, "parent_page_id", _require_id(self.parent_page_id, "parent_page_id"),
            )
        object.__setattr__(self, "status", _check_status(self.status))
        object.__setattr__(self, "content_format", _check_format(self.content_format))


@dataclass(frozen=True)
class SearchPagesRequest:
    """Free-text page search, optionally narrowed to a space and type."""

    query: str
    space_key: str | None = None
    content_type: str | None = None
    limit: int = 25
    start: int = 0
    order_by: str = SearchOrder.RELEVANCE.value

    def __post_init__(self) -> None:
        if not self.query or not self.query.strip():
            raise ConfkitValidationError(
                message="Search query cannot be empty",
                context={"field": "query"},
            )
        object.__setattr__(self, "query", self.query.strip())
        if not 1 <= self.limit <= SEARCH_LIMIT_MAX:
            raise ConfkitValidationError(
                message=f"limit must be between 1 and {SEARCH_LIMIT_MAX}",
                context={"field": "limit", "value": self.limit},
            )
        if self.start < 0:
            raise ConfkitValidationError(
                message="start must be >= 0",
                context={"field": "start", "value": self.start},
            )
        try:
            object.__setattr__(self, "order_by", SearchOrder(self.order_by).value)
        except ValueError as exc:
            raise ConfkitValidationError(
                message=f"Invalid order_by {self.order_by!r}",
                context={"field": "order_by", "value": self.order_by},
                cause=exc,
            ) from exc


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class UpdatePageOutcome:
    """Result of :meth:`AsyncConfkitClient.update_page`.

    Attributes
    ----------
    page:
        The page as returned by the successful update.
    previous_version_number:
        The version that the successful attempt was submitted against.
        After a version refresh this is the refreshed version, not the
        one the caller originally sent.
    current_version_number:
        The version Confluence assigned; ``previous_version_number + 1``.
    changes:
        Human-readable descriptions of changed fields, in the fixed order
        title, content, status.
    message:
        A one-line summary.
    """

    page: Page
    previous_version_number: int
    current_version_number: int
    changes: list[str] = field(default_factory=list)
    message: str = ""


@dataclass
class PageListResult:
    """A page of page summaries plus pagination metadata."""

    pages: list[PageSummary]
    pagination: PaginationInfo


@dataclass
class SpaceListResult:
    """A page of spaces plus pagination metadata."""

    spaces: list[Space]
    pagination: PaginationInfo


@dataclass
class SearchResults:
    """Raw CQL search hits plus pagination metadata."""

    results: list[SearchResult]
    pagination: PaginationInfo
    cql: str = ""
