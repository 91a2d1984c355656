"""Transport-level retry decisions and backoff.

Two pure functions used by :class:`AsyncConfluenceTransport`:

* :func:`should_retry` decides whether one failed HTTP call is repeated.
* :func:`compute_backoff` computes the pause before the repeat.

These retries cover throttling, server errors and network failures of a
single call.  A ``409`` is never retried here: version conflicts belong to
the page-update refresh loop in :mod:`confkit.pages.refresh`.

Writes (``POST``, ``PUT``, ``PATCH``) are only repeated after a ``429``.
A timed-out or 5xx write may already have been applied, and resending it
would apply the same change twice.
"""

from __future__ import annotations

import random

import httpx

RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Statuses proving the request never reached the handler.
UNSENT_STATUSES: frozenset[int] = frozenset({429})

NON_IDEMPOTENT_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH"})

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def is_idempotent(method: str) -> bool:
    return method.upper() not in NON_IDEMPOTENT_METHODS


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
    idempotent: bool = True,
) -> bool:
    """Return ``True`` when the call made on *attempt* (0-indexed) may be
    repeated.

    Parameters
    ----------
    status_code:
        Response status, or ``None`` when no response arrived.
    exception:
        The exception raised while sending, or ``None``.
    attempt:
        Zero-based number of the attempt that just failed.
    max_attempts:
        Total attempts allowed, the first one included.
    idempotent:
        ``False`` for writes; only a ``429`` is then retryable.
    """
    if attempt + 1 >= max_attempts:
        return False
    if exception is not None:
        return idempotent and isinstance(exception, RETRYABLE_EXCEPTIONS)
    if status_code is None:
        return False
    if not idempotent:
        return status_code in UNSENT_STATUSES
    return status_code in RETRYABLE_STATUSES


def compute_backoff(
    attempt: int,
    base: float = 1.0,
    maximum: float = 30.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Seconds to wait before retrying after *attempt* (0-indexed).

    A server-supplied ``Retry-After`` wins.  Otherwise the delay is
    ``base * 2 ** attempt`` capped at *maximum*.  With *jitter* the result
    is scaled by a random factor in ``[0.5, 1.0)``.
    """
    delay = retry_after if retry_after is not None else min(base * (2 ** attempt), maximum)
    if jitter:
        delay *= 0.5 + random.random() * 0.5
    return delay
