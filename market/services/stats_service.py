"""
Dashboard aggregates for providers and administrators.

Chart series are lists of ``{"name": ..., "value": ...}`` dicts; templates
draw them as plain HTML bars.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from market.api.bookings_api import list_bookings
from market.api.client import MarketClient
from market.api.products_api import list_products
from market.api.users_api import DEFAULT_ROLE, list_users, update_user
from market.catalog.records import booking_service_id, effective_category, effective_price, parse_number, record_id

ROLES = ("user", "provider", "admin")

PRICE_RANGES = (
    ("$0-50", 50),
    ("$51-100", 100),
    ("$101-200", 200),
    ("$201-500", 500),
    ("$500+", None),
)

Series = List[Dict[str, Any]]


@dataclass
class AdminStats:
    total_users: int = 0
    total_services: int = 0
    total_bookings: int = 0
    total_revenue: float = 0.0
    users_by_role: Series = field(default_factory=list)
    services_by_category: Series = field(default_factory=list)
    bookings_last_7_days: Series = field(default_factory=list)


@dataclass
class ProviderOverview:
    total_services: int = 0
    active_services: int = 0
    total_bookings: int = 0
    total_revenue: float = 0.0
    services_by_category: Series = field(default_factory=list)
    price_ranges: Series = field(default_factory=list)
    bookings_by_month: Series = field(default_factory=list)
    recent_services: List[Dict[str, Any]] = field(default_factory=list)


def _parse_dt(value: Any) -> Optional[datetime]:
    if not value:
        return None
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass
    try:
        return datetime.strptime(s[:10], "%Y-%m-%d")
    except ValueError:
        return None


def _booking_day(booking: Dict[str, Any]) -> Optional[date]:
    dt = _parse_dt(booking.get("bookingDate"))
    return dt.date() if dt else None


def _plain_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def users_by_role(users: List[Dict[str, Any]]) -> Series:
    counts = Counter(str(u.get("role") or DEFAULT_ROLE) for u in users)
    return [{"name": role[:1].upper() + role[1:], "value": n} for role, n in counts.items()]


def services_by_category(services: List[Dict[str, Any]], top: Optional[int] = None) -> Series:
    counts = Counter(effective_category(s) for s in services)
    items = list(counts.items())
    if top is not None:
        items = sorted(items, key=lambda kv: kv[1], reverse=True)[:top]
    return [{"name": name, "value": n} for name, n in items]


def bookings_last_days(bookings: List[Dict[str, Any]], today: date, days: int = 7) -> Series:
    window = [today - timedelta(days=days - 1 - i) for i in range(days)]
    counts = Counter(d for d in (_booking_day(b) for b in bookings) if d in window)
    return [{"name": f"{d.strftime('%b')} {d.day}", "value": counts.get(d, 0)} for d in window]


def bookings_by_month(bookings: List[Dict[str, Any]], last: int = 6) -> Series:
    counts = Counter(d.strftime("%Y-%m") for d in (_booking_day(b) for b in bookings) if d)
    return [{"name": k, "value": counts[k]} for k in sorted(counts)[-last:]]


def price_ranges(services: List[Dict[str, Any]]) -> Series:
    buckets = {name: 0 for name, _ in PRICE_RANGES}
    for s in services:
        price = effective_price(s)
        for name, upper in PRICE_RANGES:
            if upper is None or price <= upper:
                buckets[name] += 1
                break
    return [{"name": k, "value": v} for k, v in buckets.items()]


def admin_revenue(services: List[Dict[str, Any]], bookings: List[Dict[str, Any]]) -> float:
    prices = {}
    for s in services:
        prices.setdefault(record_id(s), effective_price(s))
    return sum(prices.get(booking_service_id(b), 0.0) for b in bookings)


def provider_revenue(services: List[Dict[str, Any]], bookings: List[Dict[str, Any]]) -> float:
    booked = Counter(str(b.get("serviceId") or "") for b in bookings)
    return sum(effective_price(s) * booked.get(record_id(s), 0) for s in services)


def recent_services(services: List[Dict[str, Any]], limit: int = 10) -> List[Dict[str, Any]]:
    def created(s: Dict[str, Any]) -> float:
        dt = _parse_dt(s.get("createdAt"))
        if dt is None:
            return 0.0
        if dt.tzinfo is None:
            return (dt - datetime(1970, 1, 1)).total_seconds()
        return dt.timestamp()

    rows = []
    for s in sorted(services, key=created, reverse=True)[:limit]:
        dt = _parse_dt(s.get("createdAt"))
        price = parse_number(s.get("price")) or 0
        rows.append({
            "id": record_id(s),
            "name": str(s.get("name") or s.get("title") or "Untitled"),
            "category": str(s.get("category") or s.get("type") or "N/A"),
            "price": f"${_plain_number(price)}",
            "status": str(s.get("status") or "Active"),
            "created_at": dt.strftime("%Y-%m-%d") if dt else "N/A",
        })
    return rows


def build_admin_stats(
    users: List[Dict[str, Any]],
    services: List[Dict[str, Any]],
    bookings: List[Dict[str, Any]],
    today: date,
) -> AdminStats:
    return AdminStats(
        total_users=len(users),
        total_services=len(services),
        total_bookings=len(bookings),
        total_revenue=admin_revenue(services, bookings),
        users_by_role=users_by_role(users),
        services_by_category=services_by_category(services, top=5),
        bookings_last_7_days=bookings_last_days(bookings, today, days=7),
    )


def build_provider_overview(services: List[Dict[str, Any]], bookings: List[Dict[str, Any]]) -> ProviderOverview:
    return ProviderOverview(
        total_services=len(services),
        active_services=sum(1 for s in services if s.get("status") == "Active"),
        total_bookings=len(bookings),
        total_revenue=provider_revenue(services, bookings),
        services_by_category=services_by_category(services),
        price_ranges=price_ranges(services),
        bookings_by_month=bookings_by_month(bookings),
        recent_services=recent_services(services),
    )


def load_admin_stats(client: MarketClient, today: Optional[date] = None) -> Tuple[AdminStats, List[Dict[str, Any]]]:
    users = list_users(client)
    services = list_products(client)
    bookings = list_bookings(client)
    stats = build_admin_stats(users, services, bookings, today or date.today())
    return stats, users


def load_provider_overview(client: MarketClient, email: str) -> ProviderOverview:
    services = list_products(client, provider_email=email)
    bookings = list_bookings(client, client_email=email)
    return build_provider_overview(services, bookings)


def update_user_role(client: MarketClient, email: str, role: str) -> None:
    role = str(role or "").strip().lower()
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    if not email:
        raise ValueError("User email is required")
    update_user(client, email, {"role": role})
    logger.info("Role of {} set to {}", email, role)


def with_percent(series: Series) -> Series:
    """Attach ``percent`` of the largest value for bar rendering."""
    top = max((int(x.get("value") or 0) for x in series), default=0)
    return [dict(x, percent=(round(100 * int(x.get("value") or 0) / top) if top else 0)) for x in series]
