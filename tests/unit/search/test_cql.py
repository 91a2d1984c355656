"""Tests for the CQL builder in confkit.search.cql."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from confkit.errors import ConfkitValidationError
from confkit.models import ContentType, SearchPagesRequest
from confkit.search import CQLQuery, build_search_cql, quote


class TestQuote:
    def test_plain(self):
        assert quote("release notes") == '"release notes"'

    def test_escapes_double_quote(self):
        assert quote('say "hi"') == '"say \\"hi\\""'

    def test_escapes_backslash_first(self):
        assert quote('a\\"b') == '"a\\\\\\"b"'

    def test_injection_stays_inside_literal(self):
        rendered = quote('x" OR space.key = "SECRET')
        assert rendered == '"x\\" OR space.key = \\"SECRET"'


class TestPrimitives:
    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            (CQLQuery.text("deploy"), 'text ~ "deploy"'),
            (CQLQuery.title("run"), 'title ~ "run"'),
            (CQLQuery.title_equals("Runbook"), 'title = "Runbook"'),
            (CQLQuery.space("ENG"), 'space.key = "ENG"'),
            (CQLQuery.space_id("100"), 'space.id = "100"'),
            (CQLQuery.type("blogpost"), 'type = "blogpost"'),
            (CQLQuery.type(ContentType.PAGE), 'type = "page"'),
            (CQLQuery.creator("acc-1"), 'creator = "acc-1"'),
            (CQLQuery.label("howto"), 'label = "howto"'),
        ],
    )
    def test_render(self, query, expected):
        assert query.build() == expected
        assert str(query) == expected

    def test_terms_are_trimmed(self):
        assert CQLQuery.text("  deploy  ").build() == 'text ~ "deploy"'

    @pytest.mark.parametrize("term", ["", "   "])
    def test_empty_term_rejected(self, term):
        with pytest.raises(ConfkitValidationError) as exc_info:
            CQLQuery.text(term)
        assert exc_info.value.context["field"] == "text"

    def test_unknown_type_rejected(self):
        with pytest.raises(ConfkitValidationError):
            CQLQuery.type("whiteboard")


class TestDates:
    def test_date_object(self):
        assert CQLQuery.created(date(2024, 1, 31), ">=").build() == 'created >= "2024-01-31"'

    def test_datetime_object(self):
        q = CQLQuery.last_modified(datetime(2024, 6, 30, 14, 5), ">")
        assert q.build() == 'lastModified > "2024-06-30 14:05"'

    @pytest.mark.parametrize("raw", ["2024-01-31", "2024/01/31", "2024-01-31 09:00"])
    def test_accepted_strings(self, raw):
        assert CQLQuery.created(raw).build() == f'created = "{raw}"'

    @pytest.mark.parametrize("raw", ["yesterday", "31-01-2024", "2024-1-3", 'now()" OR "1'])
    def test_rejected_strings(self, raw):
        with pytest.raises(ConfkitValidationError):
            CQLQuery.created(raw)

    def test_unsupported_operator(self):
        with pytest.raises(ConfkitValidationError):
            CQLQuery.created("2024-01-31", "~")


class TestCombinators:
    def test_and(self):
        q = CQLQuery.text("deploy") & CQLQuery.space("ENG")
        assert q.build() == '(text ~ "deploy") AND (space.key = "ENG")'

    def test_or_is_grouped(self):
        q = (CQLQuery.label("a") | CQLQuery.label("b")) & CQLQuery.type("page")
        assert q.build() == '((label = "a") OR (label = "b")) AND (type = "page")'

    def test_named_methods_match_operators(self):
        a, b = CQLQuery.text("x"), CQLQuery.space("Y")
        assert a.and_(b) == (a & b)
        assert a.or_(b) == (a | b)

    def test_immutable(self):
        base = CQLQuery.text("x")
        base & CQLQuery.space("Y")
        base.order_by("created")
        assert base.build() == 'text ~ "x"'

    def test_combining_with_non_query_raises_type_error(self):
        with pytest.raises(TypeError):
            CQLQuery.text("x") & 'space = "Y"'

    def test_combining_ordered_query_rejected(self):
        ordered = CQLQuery.text("x").order_by("created")
        with pytest.raises(ConfkitValidationError):
            ordered & CQLQuery.space("Y")
        with pytest.raises(ConfkitValidationError):
            CQLQuery.space("Y") | ordered


class TestOrderBy:
    def test_default_desc(self):
        assert CQLQuery.text("x").order_by("created").build() == 'text ~ "x" ORDER BY created DESC'

    def test_direction_normalised(self):
        q = CQLQuery.text("x").order_by("title", "asc")
        assert q.build() == 'text ~ "x" ORDER BY title ASC'

    def test_secondary_keys(self):
        q = CQLQuery.text("x").order_by("lastModified").order_by("title", "ASC")
        assert q.build() == 'text ~ "x" ORDER BY lastModified DESC, title ASC'

    def test_unknown_field(self):
        with pytest.raises(ConfkitValidationError):
            CQLQuery.text("x").order_by("space")

    def test_unknown_direction(self):
        with pytest.raises(ConfkitValidationError):
            CQLQuery.text("x").order_by("created", "UP")


class TestBuildSearchCql:
    def test_relevance_has_no_order(self):
        assert build_search_cql(SearchPagesRequest("deploy")) == 'text ~ "deploy"'

    def test_all_filters(self):
        request = SearchPagesRequest("deploy", space_key="ENG", content_type="blogpost", order_by="created")
        assert build_search_cql(request) == (
            '((text ~ "deploy") AND (space.key = "ENG")) AND (type = "blogpost") ORDER BY created DESC'
        )

    def test_title_order_is_ascending(self):
        assert build_search_cql(SearchPagesRequest("x", order_by="title")).endswith("ORDER BY title ASC")

    def test_invalid_content_type(self):
        with pytest.raises(ConfkitValidationError):
            build_search_cql(SearchPagesRequest("x", content_type="space"))
