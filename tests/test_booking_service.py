"""Tests for booking, cancelling and reviewing."""

import json

import pytest

from market.services.booking_service import (
    average_rating,
    book_service,
    cancel_booking,
    find_booking,
    is_own_service,
    my_bookings,
    review_count,
    submit_review,
)
from market.services.session_service import UserSession


class TestBookService:
    """Creating bookings."""

    def test_payload(self, api, market, signed_in, services):
        api.on("POST", "/bookings", json={"insertedId": "b1"})
        book_service(market, signed_in, services[1], "2026-11-02", " ring first ")
        body = json.loads(api.calls("POST", "/bookings")[0].content)
        assert body["serviceId"] == "s2"
        assert body["serviceName"] == "Web App"
        assert body["price"] == 500.0
        assert body["clientEmail"] == "cara@example.com"
        assert body["providerEmail"] == "ben@example.com"
        assert body["bookingDate"] == "2026-11-02"
        assert body["notes"] == "ring first"
        assert body["status"] == "Pending"
        assert body["createdAt"].endswith("Z")

    def test_requires_sign_in(self, market, services):
        with pytest.raises(PermissionError):
            book_service(market, UserSession(session_id="anon"), services[0], "2026-11-02")

    def test_own_service_rejected(self, api, market, services):
        ana = UserSession(session_id="s", email="ana@example.com", id_token="t")
        assert is_own_service(ana, services[0])
        with pytest.raises(ValueError, match="own service"):
            book_service(market, ana, services[0], "2026-11-02")
        assert api.requests == []

    def test_date_required(self, market, signed_in, services):
        with pytest.raises(ValueError, match="booking date"):
            book_service(market, signed_in, services[0], "  ")


class TestMyBookings:
    """Listing and cancelling."""

    def test_anonymous_has_none(self, api, market):
        assert my_bookings(market, UserSession(session_id="anon")) == []
        assert api.requests == []

    def test_lists_by_email(self, api, market, signed_in):
        api.on("GET", "/bookings", json=[{"_id": "b1"}, {"_id": "b2"}])
        bookings = my_bookings(market, signed_in)
        assert find_booking(bookings, "b2") == {"_id": "b2"}
        assert find_booking(bookings, "zz") is None

    def test_cancel_requires_id(self, market, signed_in):
        with pytest.raises(ValueError, match="Booking ID missing"):
            cancel_booking(market, signed_in, "")

    def test_cancel_requires_sign_in(self, api, market):
        with pytest.raises(PermissionError):
            cancel_booking(market, UserSession(session_id="anon"), "b1")
        assert api.requests == []

    def test_cancel_refuses_foreign_booking(self, api, market, signed_in):
        api.on("GET", "/bookings", json=[{"_id": "b1"}])
        with pytest.raises(PermissionError, match="Booking not found"):
            cancel_booking(market, signed_in, "b2")
        assert api.calls("DELETE", "/bookings/b2") == []

    def test_cancel_own_booking(self, api, market, signed_in):
        api.on("GET", "/bookings", json=[{"_id": "b1"}])
        api.on("DELETE", "/bookings/b1", json={"deletedCount": 1})
        cancel_booking(market, signed_in, "b1")
        assert len(api.calls("DELETE", "/bookings/b1")) == 1


class TestReviews:
    """Reviews and rating aggregates."""

    def test_submit_review(self, api, market, signed_in):
        api.on("POST", "/products/s1/reviews", json={"insertedId": "r1"})
        submit_review(market, signed_in, {"_id": "b1", "serviceId": "s1"}, "4", " great ")
        body = json.loads(api.calls("POST", "/products/s1/reviews")[0].content)
        assert body == {
            "bookingId": "b1",
            "clientEmail": "cara@example.com",
            "clientName": "Cara",
            "rating": 4,
            "comment": "great",
        }

    @pytest.mark.parametrize("rating", ["0", "6", "five", ""])
    def test_invalid_rating(self, market, signed_in, rating):
        with pytest.raises(ValueError):
            submit_review(market, signed_in, {"_id": "b1", "serviceId": "s1"}, rating, "")

    def test_missing_service_id(self, market, signed_in):
        with pytest.raises(ValueError, match="Service ID missing"):
            submit_review(market, signed_in, {"_id": "b1"}, "5", "")

    def test_average_prefers_service_value(self):
        assert average_rating({"averageRating": 4.2}, [{"rating": 1}]) == 4.2

    def test_average_rounds_half_up(self):
        reviews = [{"rating": 5}, {"rating": 4}, {"rating": 4}, {"rating": 4}]
        assert average_rating({}, reviews) == 4.3
        assert average_rating({}, []) == 0.0

    def test_review_count(self):
        assert review_count({"reviewCount": 7}, []) == 7
        assert review_count({}, [{}, {}]) == 2

    def test_non_numeric_values_do_not_raise(self):
        service = {"averageRating": "N/A", "reviewCount": "many"}
        reviews = [{"rating": "five"}, {"rating": "4"}]
        assert average_rating(service, reviews) == 2.0
        assert review_count(service, reviews) == 2
        assert average_rating({"averageRating": None}, [{"rating": None}]) == 0.0
