"""Full error hierarchy for the confkit SDK.

Every public error class inherits from ConfkitError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.  The
``code`` is the only thing callers should branch on: messages are for
humans and may change.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the SDK can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    VERSION_CONFLICT = "VERSION_CONFLICT"
    REPOSITORY_ERROR = "REPOSITORY_ERROR"
    VERSION_REFRESH_EXHAUSTED = "VERSION_REFRESH_EXHAUSTED"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class ConfkitError(Exception):
    """Base exception for all confkit errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: BaseException | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Request / configuration errors
# ---------------------------------------------------------------------------

class ConfkitValidationError(ConfkitError):
    """A request was rejected before or by Confluence as invalid.

    Raised for malformed request values, CQL builder misuse, business-rule
    violations such as a duplicate title on rename, and HTTP 400 responses.

    Context keys: ``field``, ``value``, ``status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ConfkitConfigError(ConfkitError):
    """Required configuration is missing or unusable.

    Context keys: ``missing`` (list of environment variable names).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONFIG_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# API / transport errors
# ---------------------------------------------------------------------------

class ConfkitAuthError(ConfkitError):
    """Confluence returned 401: the email / API token pair was rejected.

    Context keys: ``status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.AUTH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ConfkitPermissionError(ConfkitError):
    """Confluence returned 403: the account lacks access to the resource.

    Context keys: ``status_code``, ``operation``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PERMISSION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ConfkitNotFoundError(ConfkitError):
    """The requested resource does not exist.

    Context keys: ``resource_type``, ``resource_id``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class ConfkitRetryExhaustedError(ConfkitError):
    """All transport-level retry attempts failed (429 / 5xx).

    Context keys: ``attempts``, ``last_status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RETRY_EXHAUSTED,
            message=message,
            context=context,
            cause=cause,
        )


class ConfkitNetworkError(ConfkitError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``attempt``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ConfkitVersionConflictError(ConfkitError):
    """Confluence rejected an update because the submitted version number
    no longer follows its current version.

    Only the version-refresh controller should ever see this error; it is
    retried there and surfaces to callers only inside
    :class:`ConfkitVersionRefreshExhaustedError`.

    Context keys: ``status_code``, ``operation``, ``detail``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VERSION_CONFLICT,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Repository errors
# ---------------------------------------------------------------------------

class ConfkitRepositoryError(ConfkitError):
    """A repository operation failed for a reason other than not-found,
    validation, or a version conflict.  Always wraps the original cause.

    Context keys: ``operation``, ``page_id``, ``cause_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
        code: str = ErrorCode.REPOSITORY_ERROR,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class ConfkitVersionRefreshExhaustedError(ConfkitRepositoryError):
    """The version-refresh loop gave up.

    Raised after the retry budget is spent on conflicts, after a
    non-conflict failure on any attempt, or when the page disappeared
    during a refresh.  The message always names the attempt count and the
    last underlying cause.

    Context keys: ``page_id``, ``attempts``, ``refreshes``,
    ``last_error_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.VERSION_REFRESH_EXHAUSTED,
        )

    @property
    def attempts(self) -> int:
        return int(self.context.get("attempts", 0))
