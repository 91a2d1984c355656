"""Version-conflict classification.

Confluence rejects a page update whose ``version.number`` does not follow
the current version.  The transport turns that answer into a
:class:`~confkit.errors.ConfkitVersionConflictError`; this module decides,
from the error's ``code`` alone, whether a failure is that signal.
"""

from __future__ import annotations

from confkit.errors import ConfkitError, ErrorCode


def is_version_conflict(error: object) -> bool:
    """Return ``True`` only for an error tagged ``VERSION_CONFLICT``.

    Messages and context are never inspected, so an unrelated error whose
    text happens to mention a conflict is not misclassified.  Non-errors,
    plain exceptions and every other :class:`ConfkitError` return ``False``.
    """
    return isinstance(error, ConfkitError) and error.code == ErrorCode.VERSION_CONFLICT
