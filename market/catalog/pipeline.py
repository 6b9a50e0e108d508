"""
Catalog pipeline: facets -> filter -> sort -> paginate.

Every step is a pure function over a list of service records. The input list
is never mutated; each step returns a new list.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from market.catalog.records import (
    ALL,
    distinct,
    effective_category,
    effective_description,
    effective_location,
    effective_name,
    effective_price,
    effective_provider,
    parse_number,
)

SORT_DEFAULT = "default"
SORT_PRICE_LOW = "price-low"
SORT_PRICE_HIGH = "price-high"
SORT_NAME_ASC = "name-asc"
SORT_NAME_DESC = "name-desc"

SORT_MODES = (SORT_DEFAULT, SORT_PRICE_LOW, SORT_PRICE_HIGH, SORT_NAME_ASC, SORT_NAME_DESC)

Record = Dict[str, Any]


@dataclass(frozen=True)
class FilterCriteria:
    search: str = ""
    category: str = ALL
    location: str = ALL
    min_price: str = ""
    max_price: str = ""
    sort: str = SORT_DEFAULT
    page: int = 1


@dataclass(frozen=True)
class CatalogFeatures:
    """Which pipeline stages a listing uses."""

    search: bool = True
    category: bool = True
    location: bool = True
    price_range: bool = True
    sort: bool = True
    paginate: bool = True
    page_size: int = 9


FULL_CATALOG = CatalogFeatures()

CATEGORY_GRID = CatalogFeatures(
    search=False,
    location=False,
    price_range=False,
    sort=False,
    paginate=False,
)


@dataclass(frozen=True)
class Facets:
    categories: List[str]
    locations: List[str]


@dataclass(frozen=True)
class CatalogView:
    items: List[Record]
    total: int
    total_unfiltered: int
    page: int
    total_pages: int
    page_size: int
    facets: Facets = field(default_factory=lambda: Facets([ALL], [ALL]))
    # Criteria actually applied: stale facet values reset, page clamped
    criteria: FilterCriteria = field(default_factory=FilterCriteria)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def start(self) -> int:
        if self.is_empty:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end(self) -> int:
        if self.is_empty:
            return 0
        return self.start + len(self.items) - 1

    @property
    def categories(self) -> List[str]:
        return self.facets.categories

    @property
    def locations(self) -> List[str]:
        return self.facets.locations


def derive_facets(records: List[Record]) -> Facets:
    return Facets(
        categories=[ALL] + distinct(effective_category(r) for r in records),
        locations=[ALL] + distinct(effective_location(r) for r in records),
    )


def _price_bound(raw: Any) -> Optional[float]:
    if raw is None or str(raw).strip() == "":
        return None
    return parse_number(raw)


def _matches_search(rec: Record, query: str) -> bool:
    return (
        query in effective_name(rec).lower()
        or query in effective_description(rec).lower()
        or query in effective_provider(rec).lower()
    )


def apply_filters(records: List[Record], criteria: FilterCriteria, features: CatalogFeatures = FULL_CATALOG) -> List[Record]:
    out = list(records)

    query = (criteria.search or "").strip().lower()
    if features.search and query:
        out = [r for r in out if _matches_search(r, query)]

    if features.category and criteria.category and criteria.category != ALL:
        out = [r for r in out if effective_category(r) == criteria.category]

    if features.location and criteria.location and criteria.location != ALL:
        out = [r for r in out if effective_location(r) == criteria.location]

    if features.price_range:
        lo = _price_bound(criteria.min_price)
        if lo is not None:
            out = [r for r in out if effective_price(r) >= lo]
        hi = _price_bound(criteria.max_price)
        if hi is not None:
            out = [r for r in out if effective_price(r) <= hi]

    return out


def sort_records(records: List[Record], mode: str) -> List[Record]:
    # sorted() is stable, so ties keep fetch order
    if mode == SORT_PRICE_LOW:
        return sorted(records, key=effective_price)
    if mode == SORT_PRICE_HIGH:
        return sorted(records, key=effective_price, reverse=True)
    if mode == SORT_NAME_ASC:
        return sorted(records, key=lambda r: effective_name(r).lower())
    if mode == SORT_NAME_DESC:
        return sorted(records, key=lambda r: effective_name(r).lower(), reverse=True)
    return list(records)


def total_pages(count: int, page_size: int) -> int:
    if count <= 0:
        return 0
    size = max(1, int(page_size))
    return (count + size - 1) // size


def paginate(records: List[Record], page: int, page_size: int) -> List[Record]:
    size = max(1, int(page_size))
    start = (max(1, int(page)) - 1) * size
    return records[start:start + size]


def clamp_page(page: int, pages: int) -> int:
    if pages <= 0:
        return 1
    return min(max(1, int(page)), pages)


def within_facets(criteria: FilterCriteria, facets: Facets) -> FilterCriteria:
    """Reset a category or location that no longer appears in the data to "All"."""
    changes: Dict[str, Any] = {}
    if criteria.category not in facets.categories:
        changes["category"] = ALL
    if criteria.location not in facets.locations:
        changes["location"] = ALL
    return replace(criteria, **changes) if changes else criteria


def build_view(records: List[Record], criteria: FilterCriteria, features: CatalogFeatures = FULL_CATALOG) -> CatalogView:
    facets = derive_facets(records)
    criteria = within_facets(criteria, facets)
    filtered = apply_filters(records, criteria, features)
    ordered = sort_records(filtered, criteria.sort) if features.sort else filtered

    if not features.paginate:
        return CatalogView(
            items=ordered,
            total=len(ordered),
            total_unfiltered=len(records),
            page=1,
            total_pages=1 if ordered else 0,
            page_size=max(1, len(ordered)),
            facets=facets,
            criteria=replace(criteria, page=1),
        )

    pages = total_pages(len(ordered), features.page_size)
    page = clamp_page(criteria.page, pages)
    return CatalogView(
        items=paginate(ordered, page, features.page_size),
        total=len(ordered),
        total_unfiltered=len(records),
        page=page,
        total_pages=pages,
        page_size=max(1, int(features.page_size)),
        facets=facets,
        criteria=replace(criteria, page=page),
    )
