"""Human-readable change descriptions for a page update."""

from __future__ import annotations

from confkit.models import Page, UpdatePageRequest


def track_changes(request: UpdatePageRequest, before: Page) -> list[str]:
    """Describe what *request* changes relative to *before*.

    Entries appear in the fixed order title, content, status.  A field
    the request leaves unset, or sets to its current value, produces no
    entry.
    """
    changes: list[str] = []
    if request.title is not None and request.title != before.title:
        changes.append(f'Title changed from "{before.title}" to "{request.title}"')
    if request.content is not None and request.content != before.content:
        changes.append("Content updated")
    if request.status is not None and request.status != before.status:
        changes.append(f'Status changed from "{before.status}" to "{request.status}"')
    return changes
