"""
Tests for parkdesk.listing module.

Covers:
- Categorical, range and text filters (AND across filters, OR within one)
- The "none" sentinel
- Stable single-key sorting
- Pagination and page clamping
- ListState page resets
"""

from dataclasses import dataclass
from typing import Optional

import pytest


@dataclass
class Item:
    name: str
    color: Optional[str] = None
    tags: tuple = ()
    size: Optional[float] = None


def _items():
    return [
        Item("apple", "red", ("fruit",), 3),
        Item("Banana", "yellow", ("fruit", "long"), 7),
        Item("cherry", "red", ("fruit", "small"), 1),
        Item("Éclair", None, (), 5),
        Item("date", "brown", ("fruit",), None),
    ]


def _view():
    from parkdesk.listing import CategoricalField, ListView, RangeField, SortField, SortSpec

    return ListView(
        name="items",
        categorical=(
            CategoricalField("color", "Color", lambda i: i.color),
            CategoricalField("tags", "Tags", lambda i: i.tags, allow_none=False),
        ),
        ranges=(RangeField("size", "Size", lambda i: i.size),),
        text_accessors=(lambda i: i.name, lambda i: i.color),
        sort_fields=(
            SortField("name", "Name", lambda i: i.name),
            SortField("size", "Size", lambda i: i.size, numeric=True),
        ),
        default_sort=SortSpec("name"),
    )


def _names(items):
    return [i.name for i in items]


class TestFilters:
    def test_no_filters_keeps_everything(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        assert len(_view().filter(_items(), state)) == 5

    def test_or_within_filter(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        state.set_selection("color", ["red", "brown"])
        assert _names(_view().filter(_items(), state)) == ["apple", "cherry", "date"]

    def test_and_across_filters(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        state.set_selection("color", ["red"])
        state.set_selection("tags", ["small"])
        assert _names(_view().filter(_items(), state)) == ["cherry"]

    def test_result_is_intersection_of_single_filters(self):
        from parkdesk.listing import ListState

        view = _view()
        combined = ListState(page_size=20)
        combined.set_selection("color", ["red", "yellow"])
        combined.set_range("size", 2, None)
        combined.set_search("an")

        singles = []
        for apply in (
            lambda s: s.set_selection("color", ["red", "yellow"]),
            lambda s: s.set_range("size", 2, None),
            lambda s: s.set_search("an"),
        ):
            state = ListState(page_size=20)
            apply(state)
            singles.append({i.name for i in view.filter(_items(), state)})

        assert {i.name for i in view.filter(_items(), combined)} == set.intersection(*singles) == {"Banana"}

    def test_none_sentinel_matches_empty(self):
        from parkdesk.listing import NONE, ListState

        state = ListState(page_size=20)
        state.set_selection("color", [NONE])
        assert _names(_view().filter(_items(), state)) == ["Éclair"]

    def test_none_sentinel_with_values(self):
        from parkdesk.listing import NONE, ListState

        state = ListState(page_size=20)
        state.set_selection("color", [NONE, "yellow"])
        assert _names(_view().filter(_items(), state)) == ["Banana", "Éclair"]

    def test_range_is_inclusive_and_missing_counts_as_zero(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        state.set_range("size", 0, 3)
        assert _names(_view().filter(_items(), state)) == ["apple", "cherry", "date"]

    def test_range_bounds_from_text(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        state.set_range("size", "5", "")
        assert _names(_view().filter(_items(), state)) == ["Banana", "Éclair"]

    def test_unparseable_bound_is_ignored(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        state.set_range("size", "abc", "zzz")
        assert state.ranges == {}
        assert len(_view().filter(_items(), state)) == 5

    def test_search_is_case_insensitive(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        state.set_search("RED")
        assert _names(_view().filter(_items(), state)) == ["apple", "cherry"]

    def test_search_can_be_skipped(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        state.set_search("no such thing")
        assert len(_view().filter(_items(), state, include_text=False)) == 5


class TestOptions:
    def test_options_with_none(self):
        from parkdesk.listing import NONE

        assert _view().options(_items(), "color") == ["brown", "red", "yellow", NONE]

    def test_flattened_set_values(self):
        assert _view().options(_items(), "tags") == ["fruit", "long", "small"]

    def test_unknown_filter(self):
        from parkdesk.exceptions import ValidationError

        with pytest.raises(ValidationError):
            _view().options(_items(), "weight")


class TestSorting:
    def test_collation_ignores_case_and_accents(self):
        from parkdesk.listing import SortSpec

        ordered = _view().sort(_items(), SortSpec("name"))
        assert _names(ordered) == ["apple", "Banana", "cherry", "date", "Éclair"]

    def test_descending_reverses_distinct_keys(self):
        from parkdesk.listing import SortSpec

        view = _view()
        ascending = view.sort(_items(), SortSpec("size"))
        descending = view.sort(_items(), SortSpec("size", descending=True))
        assert _names(descending) == list(reversed(_names(ascending)))

    def test_numeric_missing_sorts_as_zero(self):
        from parkdesk.listing import SortSpec

        assert _names(_view().sort(_items(), SortSpec("size")))[0] == "date"

    def test_stable_for_ties(self):
        from parkdesk.listing import sort_records

        items = [Item("b", "x"), Item("a", "x"), Item("c", "w")]
        ordered = sort_records(items, lambda i: i.color, numeric=False)
        assert _names(ordered) == ["c", "b", "a"]

    def test_unknown_sort_key(self):
        from parkdesk.exceptions import ValidationError
        from parkdesk.listing import SortSpec

        with pytest.raises(ValidationError):
            _view().sort(_items(), SortSpec("weight"))

    def test_no_sort_keeps_order(self):
        assert _names(_view().sort(_items(), None)) == _names(_items())

    @pytest.mark.parametrize(
        "text, expected",
        [("name", ("name", False)), ("-price", ("price", True)), ("+size", ("size", False))],
    )
    def test_sort_spec_parse(self, text, expected):
        from parkdesk.listing import SortSpec

        spec = SortSpec.parse(text)
        assert (spec.key, spec.descending) == expected
        assert SortSpec.parse("  ") is None

    def test_toggle_sort(self):
        from parkdesk.listing import ListState, SortSpec

        state = ListState(page_size=20)
        state.toggle_sort("name")
        assert state.sort == SortSpec("name")
        state.toggle_sort("name")
        assert state.sort == SortSpec("name", descending=True)
        state.toggle_sort("size")
        assert state.sort == SortSpec("size")


class TestPagination:
    def test_pages_partition_the_list(self):
        from parkdesk.listing import paginate

        records = list(range(23))
        first = paginate(records, 1, 10)
        pages = [paginate(records, n, 10).items for n in range(1, first.total_pages + 1)]
        assert first.total_pages == 3
        assert [len(p) for p in pages] == [10, 10, 3]
        assert sum(pages, []) == records

    def test_page_is_clamped(self):
        from parkdesk.listing import paginate

        page = paginate(list(range(23)), 9, 10)
        assert page.page == 3
        assert page.items == [20, 21, 22]
        assert paginate(list(range(23)), 0, 10).page == 1

    def test_empty_list_has_one_page(self):
        from parkdesk.listing import paginate

        page = paginate([], 4, 20)
        assert (page.page, page.total_pages, page.items) == (1, 1, [])
        assert page.first_index == 0 and page.last_index == 0

    def test_indices(self):
        from parkdesk.listing import paginate

        page = paginate(list(range(23)), 3, 10)
        assert (page.first_index, page.last_index) == (21, 23)
        assert page.has_previous and not page.has_next

    def test_invalid_page_size(self):
        from parkdesk.exceptions import ValidationError
        from parkdesk.listing import paginate

        with pytest.raises(ValidationError):
            paginate([1], 1, 0)

    @pytest.mark.parametrize(
        "page, total, expected",
        [(1, 10, [1, 2, 3]), (5, 10, [3, 4, 5, 6, 7]), (10, 10, [8, 9, 10]), (1, 1, [1])],
    )
    def test_page_window(self, page, total, expected):
        from parkdesk.listing import page_window

        assert page_window(page, total, radius=2) == expected


class TestListState:
    def test_filter_change_resets_page(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20, page=4)
        state.set_selection("color", ["red"])
        assert state.page == 1

    def test_same_selection_keeps_page(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        state.set_selection("color", ["red"])
        state.goto_page(3)
        state.set_selection("color", ["red"])
        state.set_search("")
        state.set_range("size", None, None)
        assert state.page == 3

    def test_sort_keeps_page(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20, page=2)
        state.toggle_sort("name")
        assert state.page == 2

    def test_toggle_value(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        state.toggle("color", "red")
        state.toggle("color", "brown")
        state.toggle("color", "red")
        assert state.selections == {"color": frozenset({"brown"})}
        state.toggle("color", "brown")
        assert state.selections == {}

    def test_clear_filters(self):
        from parkdesk.listing import ListState

        state = ListState(page_size=20)
        state.set_selection("color", ["red"])
        state.set_range("size", 1, 2)
        state.set_search("a")
        assert state.active_filter_count == 3
        state.goto_page(2)
        state.clear_filters()
        assert state.active_filter_count == 0
        assert state.page == 1

    def test_page_size_must_be_offered(self):
        from parkdesk.exceptions import ValidationError
        from parkdesk.listing import ListState

        state = ListState(page_size=20, page=3)
        with pytest.raises(ValidationError):
            state.set_page_size(33, options=(20, 50, 100))
        state.set_page_size(50, options=(20, 50, 100))
        assert (state.page_size, state.page) == (50, 1)

    def test_run_writes_clamped_page_back(self):
        from parkdesk.listing import ListState

        view = _view()
        state = view.new_state()
        state.page_size = 2
        state.goto_page(10)
        page = view.run(_items(), state)
        assert page.page == 3
        assert state.page == 3
        assert _names(page.items) == ["Éclair"]
