"""Credential and payload redaction for debug output.

:func:`redact` must be applied to any request or response payload before
it is written to logs or stderr.  Its rules:

* Values under **sensitive keys** (``authorization``, ``api_token``,
  ``password`` and friends) are masked.
* ``Basic`` and ``Bearer`` credentials are replaced wherever they appear
  in a string.
* The configured **API token** is scrubbed from every string; only its
  last four characters survive.
* Oversized **page bodies** (``value`` strings inside a ``body`` object)
  are truncated to a short preview with their original length.
"""

from __future__ import annotations

import copy
import re
from typing import Any

# A key is sensitive when its lower-cased name contains one of these.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "authorization",
    "token",
    "secret",
    "password",
    "credential",
    "cookie",
    "api_key",
    "api-key",
})

_AUTH_SCHEME_RE = re.compile(r"\b(Basic|Bearer)\s+[A-Za-z0-9+/=._~-]+")

# Page bodies longer than this are cut down to a preview.
_BODY_PREVIEW_CHARS = 200


def _mask_secret(value: str, token: str | None) -> str:
    """Scrub *token* and any auth-scheme credential from *value*."""
    if token and token in value:
        placeholder = f"<redacted:...{token[-4:]}>" if len(token) >= 8 else "<redacted>"
        value = value.replace(token, placeholder)
    return _AUTH_SCHEME_RE.sub(lambda m: f"{m.group(1)} <redacted>", value)


def _truncate_body(value: str) -> str:
    if len(value) <= _BODY_PREVIEW_CHARS:
        return value
    return f"{value[:_BODY_PREVIEW_CHARS]}...<truncated:{len(value)}_chars>"


def _redact_value(value: Any, token: str | None, in_body: bool) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, token, in_body)
    if isinstance(value, list):
        return [_redact_value(item, token, in_body) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    if isinstance(value, str):
        return _mask_secret(value, token)
    return value


def _redact_dict(d: dict, token: str | None, in_body: bool = False) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            result[key] = _mask_secret(value, token) if isinstance(value, str) else "<redacted>"
        elif in_body and key_lower == "value" and isinstance(value, str):
            result[key] = _truncate_body(_mask_secret(value, token))
        else:
            result[key] = _redact_value(value, token, in_body or key_lower == "body")
    return result


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a redacted deep copy of *payload*.

    Parameters
    ----------
    payload:
        A request body, response body, header mapping or debug dump.
    token:
        The Atlassian API token.  Every occurrence is replaced.

    Returns
    -------
    dict
        A new dictionary; *payload* itself is never mutated.

    Examples
    --------
    >>> redact({"Authorization": "Basic dXNlcjp0b2tlbg=="})
    {'Authorization': 'Basic <redacted>'}
    """
    return _redact_dict(copy.deepcopy(payload), token)
