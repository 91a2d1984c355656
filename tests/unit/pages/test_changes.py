"""Tests for track_changes."""

from __future__ import annotations

from confkit.models import UpdatePageRequest
from confkit.pages.changes import track_changes


class TestTrackChanges:
    def test_all_fields_in_fixed_order(self, make_page):
        before = make_page(title="Old", content="<p>a</p>", status="current")
        request = UpdatePageRequest("42", 1, title="New", content="<p>b</p>", status="draft")

        assert track_changes(request, before) == [
            'Title changed from "Old" to "New"',
            "Content updated",
            'Status changed from "current" to "draft"',
        ]

    def test_unset_fields_produce_nothing(self, make_page):
        assert track_changes(UpdatePageRequest("42", 1), make_page()) == []

    def test_unchanged_values_produce_nothing(self, make_page):
        before = make_page(title="Same", content="<p>same</p>", status="current")
        request = UpdatePageRequest("42", 1, title="Same", content="<p>same</p>", status="current")
        assert track_changes(request, before) == []

    def test_content_only(self, make_page):
        request = UpdatePageRequest("42", 1, content="<p>new</p>")
        assert track_changes(request, make_page()) == ["Content updated"]

    def test_content_against_unknown_body(self, make_page):
        request = UpdatePageRequest("42", 1, content="<p>new</p>")
        assert track_changes(request, make_page(content=None)) == ["Content updated"]

    def test_title_is_compared_after_trimming(self, make_page):
        request = UpdatePageRequest("42", 1, title="  Runbook  ")
        assert track_changes(request, make_page(title="Runbook")) == []
