"""
Per-session catalog criteria.

The browse page keeps its criteria in the visitor's session. Any change to a
filter or the sort mode sends the visitor back to page 1; only ``goto`` moves
between pages.
"""

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional

from market.catalog.pipeline import SORT_DEFAULT, SORT_MODES, FilterCriteria

_CRITERIA_FIELDS = ("search", "category", "location", "min_price", "max_price", "sort")


def _int(value: Any, default: int) -> int:
    try:
        return int(str(value).strip())
    except Exception:
        return default


@dataclass(frozen=True)
class CatalogState:
    criteria: FilterCriteria = field(default_factory=FilterCriteria)

    def with_changes(self, **changes: Optional[str]) -> "CatalogState":
        """Apply filter/sort changes; ``None`` values mean "not submitted"."""
        updates: Dict[str, Any] = {}
        for name in _CRITERIA_FIELDS:
            value = changes.get(name)
            if value is None:
                continue
            value = str(value)
            if name == "sort" and value not in SORT_MODES:
                value = SORT_DEFAULT
            if value != getattr(self.criteria, name):
                updates[name] = value

        if not updates:
            return self
        return CatalogState(criteria=replace(self.criteria, page=1, **updates))

    def goto(self, page: Any) -> "CatalogState":
        return CatalogState(criteria=replace(self.criteria, page=max(1, _int(page, 1))))

    def cleared(self) -> "CatalogState":
        return CatalogState()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self.criteria)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CatalogState":
        if not isinstance(data, dict):
            return cls()
        defaults = FilterCriteria()
        kwargs: Dict[str, Any] = {}
        for name in _CRITERIA_FIELDS:
            value = data.get(name)
            kwargs[name] = str(value) if value is not None else getattr(defaults, name)
        if kwargs["sort"] not in SORT_MODES:
            kwargs["sort"] = SORT_DEFAULT
        kwargs["page"] = max(1, _int(data.get("page"), 1))
        return cls(criteria=FilterCriteria(**kwargs))
