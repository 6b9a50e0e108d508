"""
Service records as delivered by the marketplace API, and their effective fields.

Records stay plain dicts; helpers here read them with the fallback chains the
listing pages rely on and never modify them.
"""

import math
import re
from typing import Any, Dict, Iterable, List, Optional

ALL = "All"

DEFAULT_CATEGORY = "Other"
DEFAULT_LOCATION = "Unknown"

_LEADING_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def normalize_collection(payload: Any, key: Optional[str] = None) -> List[Dict[str, Any]]:
    """Turn an API list payload into a plain list of record dicts.

    The API answers either with a bare array or with an object carrying the
    array under a resource key (``services``, ``bookings``...) or ``data``.
    """
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        items = None
        for k in (key, "services", "data"):
            if k and isinstance(payload.get(k), list):
                items = payload[k]
                break
        if items is None:
            return []
    else:
        return []
    return [x for x in items if isinstance(x, dict)]


def parse_number(value: Any) -> Optional[float]:
    """Leading-number parse: ``"12.5 USD"`` -> 12.5, ``"abc"`` -> None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        f = float(value)
        return f if not math.isnan(f) else None
    m = _LEADING_NUMBER_RE.match(str(value))
    if not m:
        return None
    f = float(m.group(0))
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def record_id(rec: Dict[str, Any]) -> str:
    raw = rec.get("_id") or rec.get("id") or ""
    if isinstance(raw, dict):
        raw = raw.get("$oid") or ""
    return str(raw)


def effective_name(rec: Dict[str, Any]) -> str:
    return str(rec.get("name") or rec.get("title") or "")


def effective_description(rec: Dict[str, Any]) -> str:
    return str(rec.get("description") or rec.get("details") or "")


def effective_category(rec: Dict[str, Any]) -> str:
    return str(rec.get("category") or rec.get("type") or DEFAULT_CATEGORY)


def effective_location(rec: Dict[str, Any]) -> str:
    return str(rec.get("location") or DEFAULT_LOCATION)


def effective_provider(rec: Dict[str, Any]) -> str:
    return str(rec.get("providerName") or "")


def effective_price(rec: Dict[str, Any]) -> float:
    price = parse_number(rec.get("price"))
    return price if price is not None else 0.0


def display_name(rec: Dict[str, Any]) -> str:
    return effective_name(rec) or "Untitled"


def display_provider(rec: Dict[str, Any]) -> str:
    return effective_provider(rec) or "Provider"


def distinct(values: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


def booking_service_id(booking: Dict[str, Any]) -> str:
    raw = booking.get("serviceId") or booking.get("productId") or ""
    if isinstance(raw, dict):
        raw = raw.get("$oid") or ""
    return str(raw)
