"""Async HTTP transport for the Confluence Cloud REST API.

Every request goes through the same lifecycle:

1. Take a token-bucket slot, waiting if the bucket is empty.
2. Send the request with basic auth (account email + API token).
3. On ``2xx`` return the decoded JSON body (``{}`` for empty bodies).
4. On ``429`` honour ``Retry-After``, sleep and retry.
5. On ``5xx`` or a network error back off exponentially and retry.
   Writes (``POST``, ``PUT``, ``PATCH``) skip this step and fail at once.
   A write that timed out may have landed; resending it would apply it
   twice.
6. On any other ``4xx`` raise the matching typed error at once.
7. When the attempt budget is spent raise
   :class:`ConfkitRetryExhaustedError` (or :class:`ConfkitNetworkError`
   when the last failure was a network error).

A ``409`` answering a ``PUT`` is the page-version conflict signal and is
raised as :class:`ConfkitVersionConflictError`.  A ``409`` on any other
method (typically a duplicate title on create) is a validation error.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx

from confkit.config import ConfkitConfig
from confkit.errors import (
    ConfkitAuthError,
    ConfkitNetworkError,
    ConfkitNotFoundError,
    ConfkitPermissionError,
    ConfkitRetryExhaustedError,
    ConfkitValidationError,
    ConfkitVersionConflictError,
)
from confkit.observability import NoopMetricsHook, get_logger

from .rate_limit import AsyncTokenBucket
from .retries import RETRYABLE_STATUSES, compute_backoff, is_idempotent, should_retry

log = get_logger("confkit.transport")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _error_detail(response: httpx.Response) -> tuple[str, Any]:
    """Return ``(message, body)`` from a Confluence error response.

    v1 endpoints answer ``{"message": ...}``; v2 endpoints answer
    ``{"errors": [{"title": ..., "detail": ...}]}``.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text[:500], {}
    if not isinstance(body, dict):
        return response.text[:500], body

    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        first = errors[0]
        detail = first.get("detail") or first.get("title") or first.get("code")
        if detail:
            return str(detail), body
    message = body.get("message") or body.get("detail") or response.text[:500]
    return str(message), body


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the typed error for a non-retryable ``4xx`` response."""
    status = response.status_code
    detail, body = _error_detail(response)
    operation = f"{method} {path}"

    if status == 401:
        raise ConfkitAuthError(
            message=f"Authentication failed on {operation}: check the API token and email",
            context={"status_code": status},
        )
    if status == 403:
        raise ConfkitPermissionError(
            message=f"Permission denied on {operation}: {detail}",
            context={"status_code": status, "operation": operation},
        )
    if status == 404:
        raise ConfkitNotFoundError(
            message=f"Resource not found on {operation}: {detail}",
            context={"status_code": status, "path": path},
        )
    if status == 409 and method.upper() == "PUT":
        raise ConfkitVersionConflictError(
            message=f"Version conflict on {operation}: {detail}",
            context={"status_code": status, "operation": operation, "detail": detail},
        )
    raise ConfkitValidationError(
        message=f"Client error {status} on {operation}: {detail}",
        context={"status_code": status, "body": body},
    )


def next_cursor(data: dict[str, Any]) -> str | None:
    """Extract the ``cursor`` query parameter of a v2 ``_links.next`` link."""
    link = (data.get("_links") or {}).get("next")
    if not link:
        return None
    values = parse_qs(urlparse(link).query).get("cursor")
    return values[0] if values else None


def _dump_payload(
    config: ConfkitConfig,
    method: str,
    response: httpx.Response,
    json_payload: Any,
) -> None:
    """Write a redacted request/response pair to stderr."""
    from confkit.utils.redact import redact

    try:
        response_body: Any = response.json()
    except ValueError:
        response_body = response.text[:1000]

    dump: dict[str, Any] = {
        "method": method,
        "url": str(response.url),
        "response_status": response.status_code,
        "response_body": response_body,
    }
    if json_payload is not None:
        dump["request_body"] = json_payload
    print(_json.dumps(redact(dump, config.api_token), indent=2, default=str), file=sys.stderr)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class AsyncConfluenceTransport:
    """Authenticated, paced and retrying HTTP access to one Confluence site.

    Paths are relative to ``<host>/wiki``, e.g. ``/api/v2/pages/42`` or
    ``/rest/api/search``.

    Parameters
    ----------
    config:
        The :class:`ConfkitConfig` controlling auth, pacing and retries.
    """

    def __init__(self, config: ConfkitConfig) -> None:
        self._config = config
        self._bucket = AsyncTokenBucket(rate_rps=config.rate_limit_rps, burst=10)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

        proxy: httpx.URL | str | None = config.http_proxy
        self._client = httpx.AsyncClient(
            base_url=config.wiki_url,
            auth=httpx.BasicAuth(config.user_email, config.api_token),
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=proxy,
        )

    # -- public API --------------------------------------------------------

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Send one API request and return its decoded JSON body.

        Parameters
        ----------
        method:
            ``GET``, ``POST``, ``PUT`` or ``DELETE``.
        path:
            Path relative to the wiki base URL.
        **kwargs:
            Forwarded to :meth:`httpx.AsyncClient.request` (``json=``,
            ``params=``, ``headers=``).

        Raises
        ------
        ConfkitAuthError
            On 401.
        ConfkitPermissionError
            On 403.
        ConfkitNotFoundError
            On 404.
        ConfkitVersionConflictError
            On 409 answering a ``PUT``.
        ConfkitValidationError
            On 400, 409 for other methods, and any other non-retryable 4xx.
        ConfkitRetryExhaustedError
            When 429 / 5xx responses used up every attempt, or at once on a
            5xx answering a write.
        ConfkitNetworkError
            When network failures used up every attempt, or at once when a
            write fails on the network.
        """
        max_attempts = self._config.retry_max_attempts
        idempotent = is_idempotent(method)
        attempts_made = 0
        last_status: int | None = None
        json_payload = kwargs.get("json")
        tags = {"method": method, "path": path}

        for attempt in range(max_attempts):
            attempts_made = attempt + 1
            wait = await self._bucket.acquire()
            if wait > 0:
                self._metrics.timing("confkit.rate_limit_wait_ms", wait * 1000, tags=tags)

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                delay = self._on_network_error(method, path, exc, attempt, idempotent)
                await asyncio.sleep(delay)
                continue
            elapsed_ms = (time.monotonic() - t0) * 1000

            last_status = response.status_code
            status_tags = {**tags, "status": str(last_status)}
            self._metrics.increment("confkit.requests_total", tags=status_tags)
            self._metrics.timing("confkit.request_duration_ms", elapsed_ms, tags=status_tags)

            if self._config.debug_dump_payload:
                _dump_payload(self._config, method, response, json_payload)

            if 200 <= last_status < 300:
                if last_status == 204 or not response.content:
                    return {}
                result: dict = response.json()
                return result

            if last_status not in RETRYABLE_STATUSES:
                _raise_for_status(response, method, path)

            if not should_retry(last_status, None, attempt, max_attempts, idempotent=idempotent):
                break

            retry_after: float | None = None
            reason = "server_error"
            if last_status == 429:
                retry_after = _parse_retry_after(response)
                reason = "rate_limited"
                self._metrics.increment("confkit.rate_limited_total", tags=tags)
                log.warning(
                    "Rate limited by Confluence",
                    extra={
                        "extra_fields": {
                            "op": "request",
                            "method": method,
                            "path": path,
                            "retry_after": retry_after,
                            "attempt": attempt + 1,
                        }
                    },
                )

            delay = compute_backoff(
                attempt,
                base=self._config.retry_base_delay,
                maximum=self._config.retry_max_delay,
                jitter=self._config.retry_jitter,
                retry_after=retry_after,
            )
            self._metrics.increment("confkit.retries_total", tags={**tags, "reason": reason})
            await asyncio.sleep(delay)

        raise ConfkitRetryExhaustedError(
            message=(
                f"Gave up on {method} {path} after {attempts_made} attempt(s) "
                f"(last status: {last_status})"
            ),
            context={"attempts": attempts_made, "last_status_code": last_status},
        )

    async def paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        page_size: int = 250,
    ) -> AsyncIterator[dict]:
        """Yield every item of a cursor-paginated v2 list endpoint.

        Follows ``_links.next`` until the server stops returning one.
        """
        query: dict[str, Any] = dict(params or {})
        query["limit"] = page_size
        while True:
            data = await self.request("GET", path, params=dict(query))
            for item in data.get("results", []):
                yield item
            cursor = next_cursor(data)
            if cursor is None:
                break
            query["cursor"] = cursor

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncConfluenceTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- internals ---------------------------------------------------------

    def _on_network_error(
        self, method: str, path: str, exc: Exception, attempt: int, idempotent: bool = True,
    ) -> float:
        """Record a network failure; return the backoff or raise when spent."""
        self._metrics.increment(
            "confkit.requests_total",
            tags={"method": method, "path": path, "status": "error"},
        )
        log.warning(
            "Request network error",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "attempt": attempt + 1,
                    "error": str(exc),
                }
            },
        )
        if not should_retry(None, exc, attempt, self._config.retry_max_attempts, idempotent=idempotent):
            raise ConfkitNetworkError(
                message=f"Network error on {method} {path}: {exc}",
                context={"url": path, "attempt": attempt + 1},
                cause=exc,
            ) from exc
        self._metrics.increment(
            "confkit.retries_total",
            tags={"method": method, "path": path, "reason": "network_error"},
        )
        return compute_backoff(
            attempt,
            base=self._config.retry_base_delay,
            maximum=self._config.retry_max_delay,
            jitter=self._config.retry_jitter,
        )
