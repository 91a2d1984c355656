"""Property-based tests for confkit using Hypothesis.

These tests verify invariants of the pure building blocks: CQL quoting,
update payloads, conflict classification, backoff schedules, change
tracking and redaction.  They complement the example-based unit tests by
exercising the code with a wide range of randomly generated inputs.
"""

from __future__ import annotations

import string

from hypothesis import given
from hypothesis import strategies as st

from confkit.config import VersionRefreshPolicy
from confkit.confluence_api.mappers import build_update_payload
from confkit.confluence_api.retries import compute_backoff
from confkit.errors import (
    ConfkitError,
    ConfkitNotFoundError,
    ConfkitRepositoryError,
    ConfkitValidationError,
    ConfkitVersionConflictError,
    ErrorCode,
)
from confkit.models import Page, PageVersion, UpdatePageRequest
from confkit.pages.changes import track_changes
from confkit.pages.conflict import is_version_conflict
from confkit.search.cql import CQLQuery, quote
from confkit.utils.redact import redact

# ---------------------------------------------------------------------------
# Reusable strategies
# ---------------------------------------------------------------------------

_title_st = st.text(
    alphabet=string.ascii_letters + string.digits + " -_", min_size=1, max_size=40,
).filter(lambda s: s.strip())

_version_st = st.integers(min_value=1, max_value=10**9)

_status_st = st.sampled_from(["current", "draft"])


def _unquote(literal: str) -> str:
    """Parse a CQL string literal, failing on any unescaped quote inside."""
    assert literal.startswith('"') and literal.endswith('"') and len(literal) >= 2
    out: list[str] = []
    chars = iter(literal[1:-1])
    for ch in chars:
        if ch == "\\":
            out.append(next(chars))
        else:
            assert ch != '"', f"unescaped quote in {literal!r}"
            out.append(ch)
    return "".join(out)


# ---------------------------------------------------------------------------
# CQL
# ---------------------------------------------------------------------------


@given(st.text())
def test_quote_round_trips_any_text(value):
    assert _unquote(quote(value)) == value


@given(st.text(min_size=1).filter(lambda s: s.strip()))
def test_text_clause_value_cannot_escape_literal(term):
    rendered = CQLQuery.text(term).build()
    assert rendered.startswith("text ~ ")
    assert _unquote(rendered[len("text ~ "):]) == term.strip()


# ---------------------------------------------------------------------------
# Update payloads
# ---------------------------------------------------------------------------


@given(_version_st, st.one_of(st.none(), _title_st), st.one_of(st.none(), st.text(max_size=50)))
def test_payload_version_is_expected_plus_one(version, title, content):
    request = UpdatePageRequest("42", version, title=title, content=content)
    payload = build_update_payload(request)
    assert payload["version"]["number"] == version + 1
    assert ("title" in payload) == (title is not None)
    assert ("body" in payload) == (content is not None)


@given(_version_st, _version_st)
def test_with_expected_version_changes_only_version(first, second):
    request = UpdatePageRequest("42", first, title="T", content="<p>x</p>", status="draft")
    refreshed = request.with_expected_version(second)
    a = build_update_payload(request)
    b = build_update_payload(refreshed)
    a.pop("version")
    b.pop("version")
    assert a == b


# ---------------------------------------------------------------------------
# Conflict classification
# ---------------------------------------------------------------------------


@given(st.text())
def test_classification_ignores_message(message):
    assert is_version_conflict(ConfkitVersionConflictError(message)) is True
    assert is_version_conflict(ConfkitValidationError(message)) is False
    assert is_version_conflict(ConfkitNotFoundError(message)) is False
    assert is_version_conflict(ConfkitRepositoryError(message)) is False
    assert is_version_conflict(RuntimeError(message)) is False


@given(st.sampled_from(list(ErrorCode)))
def test_classification_depends_only_on_code(code):
    assert is_version_conflict(ConfkitError(code, "x")) is (code == ErrorCode.VERSION_CONFLICT)


# ---------------------------------------------------------------------------
# Backoff schedules
# ---------------------------------------------------------------------------


@given(st.integers(min_value=1, max_value=20), st.integers(min_value=0, max_value=10_000))
def test_refresh_delay_is_linear_and_monotonic(max_attempts, base_ms):
    policy = VersionRefreshPolicy(max_attempts=max_attempts, base_delay_ms=base_ms)
    delays = [policy.delay_for(n) for n in range(1, max_attempts + 1)]
    assert delays == sorted(delays)
    assert all(d == n * base_ms / 1000 for n, d in enumerate(delays, start=1))


@given(
    st.integers(min_value=0, max_value=30),
    st.floats(min_value=0, max_value=10),
    st.floats(min_value=0, max_value=60),
    st.booleans(),
)
def test_transport_backoff_bounded(attempt, base, maximum, jitter):
    delay = compute_backoff(attempt, base=base, maximum=maximum, jitter=jitter)
    assert 0 <= delay <= maximum + 1e-9


# ---------------------------------------------------------------------------
# Change tracking
# ---------------------------------------------------------------------------


@given(
    _title_st, _title_st, _status_st, _status_st,
    st.one_of(st.none(), st.text(max_size=20)), st.text(max_size=20),
)
def test_changes_in_fixed_order(old_title, new_title, old_status, new_status, old_body, new_body):
    before = Page(
        id="42", title=old_title.strip(), status=old_status, space_id="1",
        version=PageVersion(number=1), content=old_body,
    )
    request = UpdatePageRequest("42", 1, title=new_title, content=new_body, status=new_status)
    changes = track_changes(request, before)

    kinds = [c.split(" ", 1)[0] for c in changes]
    order = ["Title", "Content", "Status"]
    assert kinds == [k for k in order if k in kinds]
    assert ("Title" in kinds) == (request.title != before.title)
    assert ("Content" in kinds) == (new_body != old_body)
    assert ("Status" in kinds) == (new_status != old_status)


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------


@given(
    st.text(alphabet=string.ascii_letters + string.digits, min_size=8, max_size=40),
    st.text(max_size=30),
    st.text(max_size=30),
)
def test_redact_never_leaks_token(token, prefix, suffix):
    payload = {"message": f"{prefix}{token}{suffix}", "nested": [{"detail": token}]}
    result = redact(payload, token)
    assert token not in result["nested"][0]["detail"]
    assert result["nested"][0]["detail"] == f"<redacted:...{token[-4:]}>"
