"""
Marketplace API: bookings.
GET /bookings?clientEmail=...
"""

from typing import Any, Dict, List, Optional

from market.api.client import MarketClient, ensure_ok, json_object
from market.catalog.records import normalize_collection


def list_bookings(client: MarketClient, client_email: Optional[str] = None) -> List[Dict[str, Any]]:
    params = {"clientEmail": client_email} if client_email else None
    resp = client.get("/bookings", params=params)
    ensure_ok(resp, "Load bookings")
    return normalize_collection(resp.json(), "bookings")


def create_booking(client: MarketClient, payload: Dict[str, Any]) -> Dict[str, Any]:
    resp = client.post("/bookings", json=payload)
    ensure_ok(resp, "Create booking")
    return json_object(resp, "Create booking")


def delete_booking(client: MarketClient, booking_id: str) -> None:
    resp = client.delete(f"/bookings/{booking_id}")
    ensure_ok(resp, "Delete booking")
