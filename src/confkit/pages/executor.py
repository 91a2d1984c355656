"""Single page-update attempt.

:class:`AsyncUpdateExecutor` submits one ``PUT`` and reports what
happened as a tagged result instead of raising, so the refresh
controller can switch on the outcome explicitly:

* :class:`AttemptSucceeded` -- Confluence accepted the new version.
* :class:`AttemptConflicted` -- Confluence reported a version conflict.
* :class:`AttemptFailed` -- anything else, wrapped in
  :class:`~confkit.errors.ConfkitRepositoryError`.

``asyncio.CancelledError`` is not an :class:`Exception` and is never
turned into an outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from confkit.confluence_api.mappers import build_update_payload, page_from_v2
from confkit.confluence_api.pages import AsyncPageAPI
from confkit.errors import ConfkitError, ConfkitRepositoryError
from confkit.models import Page, UpdatePageRequest

from .conflict import is_version_conflict


@dataclass(frozen=True)
class AttemptSucceeded:
    page: Page


@dataclass(frozen=True)
class AttemptConflicted:
    error: ConfkitError


@dataclass(frozen=True)
class AttemptFailed:
    error: ConfkitRepositoryError


AttemptOutcome = Union[AttemptSucceeded, AttemptConflicted, AttemptFailed]


class AsyncUpdateExecutor:
    """Submit page updates through an :class:`AsyncPageAPI`.

    Parameters
    ----------
    pages:
        Endpoint wrapper used for the ``PUT``.
    base_url:
        Wiki base URL used to build ``Page.web_url``.
    """

    def __init__(self, pages: AsyncPageAPI, base_url: str = "") -> None:
        self._pages = pages
        self._base_url = base_url

    async def attempt(self, page_id: str, request: UpdatePageRequest) -> AttemptOutcome:
        """Submit *request* once as version ``expected_version_number + 1``."""
        payload = build_update_payload(request)
        try:
            data = await self._pages.update(page_id, payload)
            return AttemptSucceeded(page_from_v2(data, self._base_url))
        except Exception as exc:
            if is_version_conflict(exc):
                return AttemptConflicted(exc)
            return AttemptFailed(ConfkitRepositoryError(
                message=f"Failed to update page {page_id}: {exc}",
                context={
                    "operation": "update",
                    "page_id": page_id,
                    "cause_code": getattr(exc, "code", None),
                },
                cause=exc,
            ))
