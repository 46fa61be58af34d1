"""Unit tests for joddit.views.NoteTable."""

import polars as pl
import pytest

from joddit.views import NoteTable


@pytest.fixture()
def table(make_note) -> NoteTable:
    notes = [
        make_note("a", title="Product Vision", content="thinking companion", category="Ideas", is_pinned=True, updated_at=10),
        make_note("b", title="Grocery List", content="Milk, eggs", category="Personal", updated_at=30),
        make_note("c", title="Launch", content="Design review", category="Ideas", updated_at=20),
        make_note("d", title="Old", content="gone", category="Ideas", is_deleted=True, updated_at=40),
    ]
    return NoteTable(notes)


class TestTableView:
    def test_returns_polars_dataframe(self, table):
        assert isinstance(table.table_view(), pl.DataFrame)

    def test_pinned_first_then_newest(self, table):
        assert list(table.table_view()["id"]) == ["a", "b", "c"]

    def test_newest_only(self, table):
        assert list(table.table_view(pinned_first=False)["id"]) == ["b", "c", "a"]

    def test_category_filter(self, table):
        assert list(table.table_view(category="Ideas")["id"]) == ["a", "c"]

    def test_all_category_is_unfiltered(self, table):
        assert table.table_view(category="All").height == 3

    def test_search_is_case_insensitive(self, table):
        assert list(table.table_view(search="DESIGN")["id"]) == ["c"]
        assert list(table.table_view(search="milk")["id"]) == ["b"]

    def test_search_quotes_are_safe(self, table):
        assert table.table_view(search="it's").height == 0


class TestCategoryCounts:
    def test_counts(self, table):
        assert table.category_counts() == {"All": 3, "Ideas": 2, "Personal": 1}

    def test_empty(self):
        with NoteTable([]) as empty:
            assert empty.category_counts() == {"All": 0}

    def test_refresh(self, table, make_note):
        table.refresh([make_note("z", category="Bookmarks")])
        assert table.category_counts() == {"All": 1, "Bookmarks": 1}
