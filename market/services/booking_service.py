"""
Booking service: book a service, cancel a booking, review a finished booking.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger

from market.api.bookings_api import create_booking, delete_booking, list_bookings
from market.api.client import MarketClient
from market.api.reviews_api import create_review
from market.catalog.records import booking_service_id, display_name, effective_price, parse_number, record_id
from market.services.session_service import UserSession

BOOKING_STATUS_PENDING = "Pending"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def is_own_service(session: UserSession, service: Dict[str, Any]) -> bool:
    provider = service.get("providerEmail")
    return bool(session.signed_in and provider and provider == session.email)


def book_service(
    client: MarketClient,
    session: UserSession,
    service: Dict[str, Any],
    booking_date: str,
    notes: str = "",
) -> Dict[str, Any]:
    if not session.signed_in:
        raise PermissionError("Please sign in to book a service")
    if is_own_service(session, service):
        raise ValueError("You cannot book your own service.")
    if not (booking_date or "").strip():
        raise ValueError("Please select a booking date")

    payload = {
        "serviceId": record_id(service),
        "serviceName": display_name(service),
        "price": effective_price(service),
        "clientName": session.display_name,
        "clientEmail": session.email,
        "bookingDate": booking_date.strip(),
        "notes": (notes or "").strip(),
        "providerEmail": service.get("providerEmail"),
        "status": BOOKING_STATUS_PENDING,
        "createdAt": _now_iso(),
    }
    saved = create_booking(client, payload)
    logger.info("Booking created for {} by {}", payload["serviceId"], session.email)
    return saved


def my_bookings(client: MarketClient, session: UserSession) -> List[Dict[str, Any]]:
    if not session.signed_in:
        return []
    return list_bookings(client, client_email=session.email)


def cancel_booking(client: MarketClient, session: UserSession, booking_id: str) -> None:
    if not booking_id:
        raise ValueError("Booking ID missing. Delete aborted.")
    if not session.signed_in:
        raise PermissionError("Please sign in to manage your bookings")
    if find_booking(my_bookings(client, session), booking_id) is None:
        logger.warning("{} tried to delete booking {} they do not own", session.email, booking_id)
        raise PermissionError("Booking not found.")
    delete_booking(client, booking_id)
    logger.info("Booking deleted: {}", booking_id)


def _rating(value: Any) -> int:
    try:
        rating = int(str(value).strip())
    except ValueError:
        raise ValueError("Rating must be a number from 1 to 5") from None
    if not 1 <= rating <= 5:
        raise ValueError("Rating must be a number from 1 to 5")
    return rating


def submit_review(
    client: MarketClient,
    session: UserSession,
    booking: Dict[str, Any],
    rating: Any,
    comment: str,
) -> None:
    if not session.signed_in:
        raise PermissionError("Please sign in to review a booking")
    service_id = booking_service_id(booking)
    if not service_id:
        raise ValueError("Service ID missing. Unable to submit review.")

    create_review(
        client,
        service_id,
        {
            "bookingId": record_id(booking),
            "clientEmail": session.email,
            "clientName": session.display_name,
            "rating": _rating(rating),
            "comment": (comment or "").strip(),
        },
    )
    logger.info("Review submitted for service {} by {}", service_id, session.email)


def find_booking(bookings: List[Dict[str, Any]], booking_id: str) -> Optional[Dict[str, Any]]:
    for b in bookings:
        if record_id(b) == booking_id:
            return b
    return None


def average_rating(service: Dict[str, Any], reviews: List[Dict[str, Any]]) -> float:
    stored = parse_number(service.get("averageRating"))
    if stored:
        return stored
    if not reviews:
        return 0.0
    total = sum(parse_number(r.get("rating")) or 0.0 for r in reviews)
    # half-up, one decimal
    return math.floor(total / len(reviews) * 10 + 0.5) / 10


def review_count(service: Dict[str, Any], reviews: List[Dict[str, Any]]) -> int:
    count = parse_number(service.get("reviewCount"))
    return int(count) if count is not None else len(reviews)
