"""confkit.confluence_api -- Confluence REST transport and endpoint wrappers.

* :mod:`.rate_limit` -- async token bucket.
* :mod:`.retries` -- transport retry decisions and backoff.
* :mod:`.transport` -- authenticated HTTP transport.
* :mod:`.pages` / :mod:`.spaces` / :mod:`.search` -- endpoint wrappers.
* :mod:`.mappers` -- JSON to model translation.
"""

from __future__ import annotations

from .pages import AsyncPageAPI
from .rate_limit import AsyncTokenBucket
from .retries import compute_backoff, should_retry
from .search import AsyncSearchAPI
from .spaces import AsyncSpaceAPI
from .transport import AsyncConfluenceTransport

__all__ = [
    "AsyncConfluenceTransport",
    "AsyncPageAPI",
    "AsyncSearchAPI",
    "AsyncSpaceAPI",
    "AsyncTokenBucket",
    "compute_backoff",
    "should_retry",
]
