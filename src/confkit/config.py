"""SDK configuration for confkit.

:class:`ConfkitConfig` is a dataclass that captures every tuneable knob
exposed by the SDK.  An instance is built by :class:`AsyncConfkitClient`
from its keyword arguments, or loaded from the environment with
:meth:`ConfkitConfig.from_env`.

:class:`VersionRefreshPolicy` is the frozen value handed to the
version-refresh controller.  It is deliberately separate from the
transport retry knobs: transport retries cover 429 / 5xx / network errors
of a single HTTP call, while the refresh policy bounds how many times a
page update is resubmitted after a version conflict.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

from confkit.errors import ConfkitConfigError

# Environment variables read by ConfkitConfig.from_env().
ENV_HOST_URL = "CONFLUENCE_HOST_URL"
ENV_USER_EMAIL = "CONFLUENCE_USER_EMAIL"
ENV_API_TOKEN = "CONFLUENCE_API_TOKEN"


# ---------------------------------------------------------------------------
# Version-refresh policy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VersionRefreshPolicy:
    """Retry budget for conflicted page updates.

    Parameters
    ----------
    max_attempts:
        Total number of update attempts, including the first one.
    base_delay_ms:
        Linear backoff unit.  The wait before the *n*-th refresh is
        ``n * base_delay_ms`` milliseconds.
    """

    max_attempts: int = 3

    base_delay_ms: int = 1000

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay_ms < 0:
            raise ValueError(f"base_delay_ms must be >= 0, got {self.base_delay_ms}")

    def delay_for(self, attempt: int) -> float:
        """Return the delay in seconds after the conflicted *attempt* (1-based)."""
        return attempt * self.base_delay_ms / 1000.0


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class ConfkitConfig:
    """Complete configuration for a confkit client.

    Parameters
    ----------
    host_url:
        Confluence site URL, e.g. ``https://acme.atlassian.net``.  A
        trailing ``/wiki`` is accepted and not duplicated.
    user_email:
        Atlassian account email used for basic auth.
    api_token:
        Atlassian API token.  **Never logged.**
    retry_max_attempts:
        Maximum number of transport attempts per HTTP request for
        retryable errors (429, 5xx, network).
    retry_base_delay:
        Base delay (seconds) for transport exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed transport backoff.
    retry_jitter:
        Add random jitter to transport backoff intervals.
    rate_limit_rps:
        Target requests per second for client-side pacing (token bucket).
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    version_refresh:
        Retry budget for version conflicts on page update.
    default_page_limit:
        Page size used by list operations when the caller gives none.
    metrics:
        Optional :class:`~confkit.observability.MetricsHook` backend.
    debug_dump_payload:
        Write the (redacted) request/response pair to *stderr*.
    """

    # ── Core ────────────────────────────────────────────────────────────
    host_url: str = ""

    user_email: str = ""

    api_token: str = ""

    # ── Retry & rate ────────────────────────────────────────────────────
    retry_max_attempts: int = 3

    retry_base_delay: float = 1.0

    retry_max_delay: float = 30.0

    retry_jitter: bool = True

    rate_limit_rps: float = 10.0

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Pages ───────────────────────────────────────────────────────────
    version_refresh: VersionRefreshPolicy = field(default_factory=VersionRefreshPolicy)

    default_page_limit: int = 25

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.host_url:
            raise ValueError("host_url is required")

        parsed = urlparse(self.host_url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"host_url must be an absolute http(s) URL, got {self.host_url!r}")
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"host_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing."
            )

        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.rate_limit_rps <= 0:
            raise ValueError(f"rate_limit_rps must be > 0, got {self.rate_limit_rps}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if not 1 <= self.default_page_limit <= 250:
            raise ValueError(
                f"default_page_limit must be between 1 and 250, got {self.default_page_limit}"
            )

    @property
    def wiki_url(self) -> str:
        """Base URL of the Confluence wiki, always ending in ``/wiki``."""
        base = self.host_url.rstrip("/")
        return base if base.endswith("/wiki") else f"{base}/wiki"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: Any) -> ConfkitConfig:
        """Build a config from ``CONFLUENCE_*`` environment variables.

        Raises
        ------
        ConfkitConfigError
            If any of the three required variables is missing or empty.
            All missing names are reported at once.
        """
        env = os.environ if environ is None else environ
        values = {
            "host_url": env.get(ENV_HOST_URL, ""),
            "user_email": env.get(ENV_USER_EMAIL, ""),
            "api_token": env.get(ENV_API_TOKEN, ""),
        }
        names = {
            "host_url": ENV_HOST_URL,
            "user_email": ENV_USER_EMAIL,
            "api_token": ENV_API_TOKEN,
        }
        missing = [names[key] for key, val in values.items() if not val]
        if missing:
            raise ConfkitConfigError(
                message=f"Missing required environment variables: {', '.join(missing)}",
                context={"missing": missing},
            )
        values.update(overrides)
        return cls(**values)

    def __repr__(self) -> str:
        """Mask the API token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "api_token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"api_token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"ConfkitConfig({', '.join(parts)})"
