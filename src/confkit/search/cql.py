"""Immutable CQL (Confluence Query Language) expression builder.

Queries are built from typed primitives and combined into a small
expression tree.  Rendering happens once, in :meth:`CQLQuery.build`, and
is the only place user values are turned into CQL text: every value is
emitted as a double-quoted literal with backslashes and quotes escaped,
so a value can never close its literal and inject CQL of its own.

Usage::

    from confkit.search import CQLQuery

    q = (CQLQuery.text('release "notes"') & CQLQuery.space("DOCS")).order_by("lastModified")
    str(q)
    # '(text ~ "release \\"notes\\"") AND (space.key = "DOCS") ORDER BY lastModified DESC'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

from confkit.errors import ConfkitValidationError
from confkit.models import ContentType, SearchPagesRequest

COMPARISON_OPERATORS: frozenset[str] = frozenset({"=", "!=", ">", "<", ">=", "<="})
ORDER_FIELDS: frozenset[str] = frozenset({"created", "lastModified", "title"})
ORDER_DIRECTIONS: frozenset[str] = frozenset({"ASC", "DESC"})

# yyyy-mm-dd or yyyy/mm/dd, optionally followed by " hh:mm".
_DATE_RE = re.compile(r"^\d{4}[-/]\d{2}[-/]\d{2}( \d{2}:\d{2})?$")

# SearchPagesRequest.order_by -> (CQL field, direction); relevance adds no ORDER BY.
_SEARCH_ORDER: dict[str, tuple[str, str]] = {
    "created": ("created", "DESC"),
    "modified": ("lastModified", "DESC"),
    "title": ("title", "ASC"),
}


def quote(value: str) -> str:
    """Render *value* as a CQL string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _invalid(message: str, field: str, value: object) -> ConfkitValidationError:
    return ConfkitValidationError(message=message, context={"field": field, "value": value})


def _require_term(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise _invalid(f"CQL {field} value cannot be empty", field, value)
    return value.strip()


def _format_date(value: str | date | datetime, field: str) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, str) and _DATE_RE.match(value.strip()):
        return value.strip()
    raise _invalid(
        f"Invalid CQL date {value!r}; expected yyyy-mm-dd or yyyy-mm-dd hh:mm",
        field,
        value,
    )


def _check_operator(operator: str, field: str) -> str:
    if operator not in COMPARISON_OPERATORS:
        raise _invalid(f"Unsupported CQL operator {operator!r}", field, operator)
    return operator


# ---------------------------------------------------------------------------
# Expression tree
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Clause:
    """A single ``field operator "value"`` comparison."""

    field: str
    operator: str
    value: str

    def render(self) -> str:
        return f"{self.field} {self.operator} {quote(self.value)}"


@dataclass(frozen=True)
class Combined:
    """Two sub-expressions joined by ``AND`` or ``OR``."""

    conjunction: str
    left: Expression
    right: Expression

    def render(self) -> str:
        return f"({self.left.render()}) {self.conjunction} ({self.right.render()})"


Expression = Union[Clause, Combined]


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: str

    def render(self) -> str:
        return f"{self.field} {self.direction}"


# ---------------------------------------------------------------------------
# Query value
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CQLQuery:
    """An immutable CQL query: a filter expression plus optional ordering.

    Build instances with the class-method constructors, then combine them
    with :meth:`and_` / :meth:`or_` (or ``&`` / ``|``) and finish with
    :meth:`order_by`.  Every method returns a new query.
    """

    expression: Expression
    ordering: tuple[OrderBy, ...] = ()

    # -- constructors ------------------------------------------------------

    @classmethod
    def text(cls, term: str) -> CQLQuery:
        """Full-text match: ``text ~ "term"``."""
        return cls(Clause("text", "~", _require_term(term, "text")))

    @classmethod
    def title(cls, term: str) -> CQLQuery:
        """Fuzzy title match: ``title ~ "term"``."""
        return cls(Clause("title", "~", _require_term(term, "title")))

    @classmethod
    def title_equals(cls, title: str) -> CQLQuery:
        """Exact title match: ``title = "title"``."""
        return cls(Clause("title", "=", _require_term(title, "title")))

    @classmethod
    def space(cls, key: str) -> CQLQuery:
        return cls(Clause("space.key", "=", _require_term(key, "space.key")))

    @classmethod
    def space_id(cls, space_id: str) -> CQLQuery:
        return cls(Clause("space.id", "=", _require_term(space_id, "space.id")))

    @classmethod
    def type(cls, kind: str | ContentType) -> CQLQuery:
        raw = kind.value if isinstance(kind, ContentType) else kind
        try:
            value = ContentType(raw).value
        except ValueError as exc:
            raise ConfkitValidationError(
                message=f"Unknown content type {raw!r}",
                context={"field": "type", "value": raw},
                cause=exc,
            ) from exc
        return cls(Clause("type", "=", value))

    @classmethod
    def creator(cls, account_id: str) -> CQLQuery:
        return cls(Clause("creator", "=", _require_term(account_id, "creator")))

    @classmethod
    def label(cls, name: str) -> CQLQuery:
        return cls(Clause("label", "=", _require_term(name, "label")))

    @classmethod
    def created(cls, when: str | date | datetime, operator: str = "=") -> CQLQuery:
        """Creation-date comparison, e.g. ``created >= "2024-01-01"``."""
        return cls(Clause(
            "created", _check_operator(operator, "created"), _format_date(when, "created"),
        ))

    @classmethod
    def last_modified(cls, when: str | date | datetime, operator: str = "=") -> CQLQuery:
        """Modification-date comparison, e.g. ``lastModified > "2024-06-30"``."""
        return cls(Clause(
            "lastModified",
            _check_operator(operator, "lastModified"),
            _format_date(when, "lastModified"),
        ))

    # -- combinators -------------------------------------------------------

    def _combine(self, conjunction: str, other: CQLQuery) -> CQLQuery:
        if not isinstance(other, CQLQuery):
            raise TypeError(f"cannot combine CQLQuery with {type(other).__name__}")
        if self.ordering or other.ordering:
            raise ConfkitValidationError(
                message="Cannot combine a query that already has ORDER BY",
                context={"field": "order_by"},
            )
        return CQLQuery(Combined(conjunction, self.expression, other.expression))

    def and_(self, other: CQLQuery) -> CQLQuery:
        return self._combine("AND", other)

    def or_(self, other: CQLQuery) -> CQLQuery:
        return self._combine("OR", other)

    __and__ = and_
    __or__ = or_

    def order_by(self, field: str, direction: str = "DESC") -> CQLQuery:
        """Append a sort key.  Repeated calls add secondary keys."""
        if field not in ORDER_FIELDS:
            raise _invalid(f"Unsupported ORDER BY field {field!r}", "order_by", field)
        normalized = direction.upper() if isinstance(direction, str) else direction
        if normalized not in ORDER_DIRECTIONS:
            raise _invalid(f"Unsupported ORDER BY direction {direction!r}", "direction", direction)
        return CQLQuery(self.expression, self.ordering + (OrderBy(field, normalized),))

    # -- rendering ---------------------------------------------------------

    def build(self) -> str:
        cql = self.expression.render()
        if self.ordering:
            cql += " ORDER BY " + ", ".join(o.render() for o in self.ordering)
        return cql

    def __str__(self) -> str:
        return self.build()


def build_search_cql(request: SearchPagesRequest) -> str:
    """Render the CQL for a :class:`SearchPagesRequest`.

    Free text, then the optional space and content-type filters, then the
    sort implied by ``order_by`` (none for ``relevance``).
    """
    query = CQLQuery.text(request.query)
    if request.space_key:
        query = query & CQLQuery.space(request.space_key)
    if request.content_type:
        query = query & CQLQuery.type(request.content_type)
    if request.order_by in _SEARCH_ORDER:
        query = query.order_by(*_SEARCH_ORDER[request.order_by])
    return query.build()
