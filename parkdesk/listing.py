"""
ParkDesk - Filter / Sort / Paginate Engine
==========================================
One list pipeline shared by every list view: AND-combined predicate
filters, a single-key stable sort, then a page slice.

A ``ListView`` describes an entity through field accessors (callables that
pull a value out of a record); a ``ListState`` holds what the user has
selected. Views never index records by string keys.

Usage:
    view = lot_view(LotLookups(parks_by_id, companies_by_id, statuses_by_id))
    state = view.new_state()
    state.toggle("status", "FOR_RENT")
    page = view.run(lots, state)
"""

from __future__ import annotations

import math
import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Sequence, TypeVar

from parkdesk.config import settings
from parkdesk.domain import parse_number
from parkdesk.exceptions import ValidationError

T = TypeVar("T")
Accessor = Callable[[Any], Any]

# Selecting this value in a categorical filter matches records with no value.
NONE = "none"


# =============================================================================
# Value helpers
# =============================================================================


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (set, frozenset, list, tuple)):
        return len(value) == 0
    return False


def option_key(value: Any) -> str:
    """Canonical string form of a categorical value."""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _option_keys(value: Any) -> set[str]:
    if isinstance(value, (set, frozenset, list, tuple)):
        return {option_key(v) for v in value if not _is_empty(v)}
    return {option_key(value)}


def collation_key(text: Any) -> str:
    """Case-insensitive, accent-folded ordering key for strings."""
    normalized = unicodedata.normalize("NFKD", str(text or ""))
    return "".join(ch for ch in normalized if not unicodedata.combining(ch)).casefold()


def parse_bound(text: Any) -> float | None:
    """Turn a min/max input into a bound; blank or non-numeric input means no bound."""
    if text is None:
        return None
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return float(text)
    if str(text).strip() == "":
        return None
    return parse_number(text)


# =============================================================================
# Predicates
# =============================================================================


@dataclass(frozen=True)
class CategoricalFilter:
    """Multi-select filter; the ``NONE`` sentinel matches empty values."""

    name: str
    accessor: Accessor
    selected: frozenset[str] = frozenset()

    @property
    def active(self) -> bool:
        return bool(self.selected)

    def matches(self, record: Any) -> bool:
        if not self.selected:
            return True
        value = self.accessor(record)
        if _is_empty(value):
            return NONE in self.selected
        return bool(_option_keys(value) & self.selected)


@dataclass(frozen=True)
class RangeFilter:
    """Inclusive numeric range; a missing record value counts as 0."""

    name: str
    accessor: Accessor
    minimum: float | None = None
    maximum: float | None = None

    @property
    def active(self) -> bool:
        return self.minimum is not None or self.maximum is not None

    def matches(self, record: Any) -> bool:
        if not self.active:
            return True
        number = parse_number(self.accessor(record))
        value = 0.0 if number is None else number
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


@dataclass(frozen=True)
class TextFilter:
    """Case-insensitive substring search across several accessors."""

    accessors: tuple[Accessor, ...]
    query: str = ""

    @property
    def active(self) -> bool:
        return bool(self.query.strip())

    def matches(self, record: Any) -> bool:
        if not self.active:
            return True
        needle = self.query.strip().casefold()
        for accessor in self.accessors:
            value = accessor(record)
            if value is not None and needle in str(value).casefold():
                return True
        return False


def apply_filters(records: Iterable[T], filters: Sequence[Any]) -> list[T]:
    """Keep records that every active filter accepts."""
    active = [f for f in filters if f.active]
    return [r for r in records if all(f.matches(r) for f in active)]


# =============================================================================
# Sorting
# =============================================================================


@dataclass(frozen=True)
class SortSpec:
    key: str
    descending: bool = False

    def toggled(self) -> SortSpec:
        return SortSpec(self.key, not self.descending)

    @classmethod
    def parse(cls, text: str | None) -> SortSpec | None:
        """Parse ``"name"`` / ``"-name"`` / ``"+name"``."""
        raw = (text or "").strip()
        if not raw:
            return None
        if raw[0] in "+-":
            return cls(raw[1:], raw[0] == "-")
        return cls(raw)

    def __str__(self) -> str:
        return f"-{self.key}" if self.descending else self.key


def sort_records(records: Iterable[T], accessor: Accessor, *, numeric: bool, descending: bool = False) -> list[T]:
    """
    Stable single-key sort.

    Strings compare by ``collation_key``; numbers numerically. Missing
    values sort as "" or 0.
    """
    if numeric:

        def key(record: Any) -> float:
            number = parse_number(accessor(record))
            return 0.0 if number is None else number

    else:

        def key(record: Any) -> str:
            return collation_key(accessor(record))

    return sorted(records, key=key, reverse=descending)


# =============================================================================
# Pagination
# =============================================================================


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total: int
    total_pages: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def first_index(self) -> int:
        """1-based index of the first item on the page (0 when empty)."""
        return (self.page - 1) * self.page_size + 1 if self.items else 0

    @property
    def last_index(self) -> int:
        return self.first_index + len(self.items) - 1 if self.items else 0


def total_pages_for(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / page_size))


def paginate(records: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice one page, clamping ``page`` into ``1..total_pages``."""
    if page_size < 1:
        raise ValidationError("must be at least 1", field="page_size")
    total = len(records)
    pages = total_pages_for(total, page_size)
    current = max(1, min(int(page), pages))
    start = (current - 1) * page_size
    return Page(
        items=list(records[start : start + page_size]),
        page=current,
        page_size=page_size,
        total=total,
        total_pages=pages,
    )


def page_window(page: int, total_pages: int, radius: int | None = None) -> list[int]:
    """Page numbers shown around the current page (``page ± radius``)."""
    radius = settings.page_window_radius if radius is None else radius
    start = max(1, page - radius)
    end = min(total_pages, page + radius)
    return list(range(start, end + 1))


# =============================================================================
# List state
# =============================================================================


@dataclass
class ListState:
    """
    User selections for one list view.

    Any change to a filtering input, or to the page size, sends the view
    back to page 1. Sorting keeps the current page.
    """

    selections: dict[str, frozenset[str]] = field(default_factory=dict)
    ranges: dict[str, tuple[float | None, float | None]] = field(default_factory=dict)
    search: str = ""
    sort: SortSpec | None = None
    page: int = 1
    page_size: int = field(default_factory=lambda: settings.default_page_size)

    def set_selection(self, name: str, values: Iterable[Any]) -> None:
        selected = frozenset(option_key(v) for v in values)
        if selected != self.selections.get(name, frozenset()):
            if selected:
                self.selections[name] = selected
            else:
                self.selections.pop(name, None)
            self.page = 1

    def toggle(self, name: str, value: Any) -> None:
        current = set(self.selections.get(name, frozenset()))
        key = option_key(value)
        if key in current:
            current.remove(key)
        else:
            current.add(key)
        self.set_selection(name, current)

    def set_range(self, name: str, minimum: Any = None, maximum: Any = None) -> None:
        bounds = (parse_bound(minimum), parse_bound(maximum))
        if bounds != self.ranges.get(name, (None, None)):
            if bounds == (None, None):
                self.ranges.pop(name, None)
            else:
                self.ranges[name] = bounds
            self.page = 1

    def set_search(self, text: str | None) -> None:
        text = text or ""
        if text != self.search:
            self.search = text
            self.page = 1

    def clear_filters(self) -> None:
        if self.selections or self.ranges or self.search:
            self.selections = {}
            self.ranges = {}
            self.search = ""
            self.page = 1

    def toggle_sort(self, key: str) -> None:
        if self.sort is not None and self.sort.key == key:
            self.sort = self.sort.toggled()
        else:
            self.sort = SortSpec(key)

    def set_page_size(self, page_size: int, options: Sequence[int] | None = None) -> None:
        options = tuple(options or settings.page_size_options)
        if page_size not in options:
            raise ValidationError(
                "unsupported page size",
                field="page_size",
                detail=f"Choose one of {', '.join(str(o) for o in options)}",
            )
        if page_size != self.page_size:
            self.page_size = page_size
            self.page = 1

    def goto_page(self, page: int) -> None:
        self.page = max(1, int(page))

    @property
    def active_filter_count(self) -> int:
        return len(self.selections) + len(self.ranges) + (1 if self.search.strip() else 0)


# =============================================================================
# View definitions
# =============================================================================


@dataclass(frozen=True)
class CategoricalField:
    name: str
    label: str
    accessor: Accessor
    allow_none: bool = True
    option_label: Callable[[str], str] | None = None

    def label_for(self, key: str) -> str:
        if key == NONE:
            return f"No {self.label.lower()}"
        return self.option_label(key) if self.option_label else key


@dataclass(frozen=True)
class RangeField:
    name: str
    label: str
    accessor: Accessor


@dataclass(frozen=True)
class SortField:
    name: str
    label: str
    accessor: Accessor
    numeric: bool = False


@dataclass(frozen=True)
class ListView(Generic[T]):
    """An entity's filterable, sortable fields."""

    name: str
    categorical: tuple[CategoricalField, ...] = ()
    ranges: tuple[RangeField, ...] = ()
    text_accessors: tuple[Accessor, ...] = ()
    sort_fields: tuple[SortField, ...] = ()
    default_sort: SortSpec | None = None

    def new_state(self) -> ListState:
        return ListState(sort=self.default_sort)

    def sort_field(self, key: str) -> SortField:
        for sort_field in self.sort_fields:
            if sort_field.name == key:
                return sort_field
        raise ValidationError(
            "unknown sort key",
            field="sort",
            detail=f"{key!r} is not one of {', '.join(f.name for f in self.sort_fields)}",
        )

    def options(self, records: Iterable[T], name: str) -> list[str]:
        """Distinct values present for a categorical field, plus ``NONE`` if some are empty."""
        definition = next((c for c in self.categorical if c.name == name), None)
        if definition is None:
            raise ValidationError("unknown filter", field=name)
        keys: set[str] = set()
        has_empty = False
        for record in records:
            value = definition.accessor(record)
            if _is_empty(value):
                has_empty = True
            else:
                keys |= _option_keys(value)
        options = sorted(keys, key=lambda k: collation_key(definition.label_for(k)))
        if has_empty and definition.allow_none:
            options.append(NONE)
        return options

    def filters_for(self, state: ListState, *, include_text: bool = True) -> list[Any]:
        filters: list[Any] = [
            CategoricalFilter(c.name, c.accessor, state.selections.get(c.name, frozenset()))
            for c in self.categorical
        ]
        for r in self.ranges:
            minimum, maximum = state.ranges.get(r.name, (None, None))
            filters.append(RangeFilter(r.name, r.accessor, minimum, maximum))
        if include_text and self.text_accessors:
            filters.append(TextFilter(self.text_accessors, state.search))
        return filters

    def filter(self, records: Iterable[T], state: ListState, *, include_text: bool = True) -> list[T]:
        return apply_filters(records, self.filters_for(state, include_text=include_text))

    def sort(self, records: Iterable[T], spec: SortSpec | None) -> list[T]:
        if spec is None:
            return list(records)
        definition = self.sort_field(spec.key)
        return sort_records(records, definition.accessor, numeric=definition.numeric, descending=spec.descending)

    def run(self, records: Iterable[T], state: ListState, *, include_text: bool = True) -> Page[T]:
        """Filter, sort and paginate; writes the clamped page back to ``state``."""
        filtered = self.filter(records, state, include_text=include_text)
        ordered = self.sort(filtered, state.sort)
        page = paginate(ordered, state.page, state.page_size)
        state.page = page.page
        return page
