"""Tests for the marketplace API client and resource functions."""

import httpx
import pytest

from market.api.bookings_api import create_booking, delete_booking, list_bookings
from market.api.client import MarketAPIError, MarketClient, MarketUnauthorizedError
from market.api.products_api import create_product, get_product, list_products, update_product
from market.api.reviews_api import list_reviews
from market.api.users_api import get_user, role_of, update_user


class TestMarketClient:
    """URL building and status handling."""

    def test_url_with_prefix(self):
        c = MarketClient(base_url="http://api.test/", api_prefix="api/", timeout_seconds=5)
        assert c._url("products") == "http://api.test/api/products"
        assert c._url("/products") == "http://api.test/api/products"

    def test_url_without_prefix(self):
        c = MarketClient(base_url="http://api.test", api_prefix="", timeout_seconds=5)
        assert c._url("/bookings") == "http://api.test/bookings"

    def test_plain_json_headers(self, api, market):
        api.on("POST", "/bookings", json={})
        market.post("/bookings", json={"a": 1})
        headers = api.calls("POST", "/bookings")[0].headers
        assert headers["content-type"] == "application/json"
        assert "authorization" not in headers

    def test_unauthorized_raises(self, api, market):
        api.on("GET", "/products", status=401, json={"message": "no"})
        with pytest.raises(MarketUnauthorizedError):
            list_products(market)


class TestProducts:
    """Products resource."""

    def test_list_accepts_wrapped_payload(self, api, market, services):
        api.on("GET", "/products", json={"services": services})
        assert len(list_products(market)) == 3

    def test_list_passes_query(self, api, market):
        api.on("GET", "/products", json=[])
        list_products(market, provider_email="ana@example.com", sort_by="rating", limit=6)
        params = api.calls("GET", "/products")[0].url.params
        assert params["providerEmail"] == "ana@example.com"
        assert params["sortBy"] == "rating"
        assert params["limit"] == "6"

    def test_list_failure(self, api, market):
        api.on("GET", "/products", status=500, json={"message": "boom"})
        with pytest.raises(MarketAPIError) as exc:
            list_products(market)
        assert exc.value.status_code == 500
        assert exc.value.operation == "Load services"

    def test_get_not_found(self, api, market):
        with pytest.raises(MarketAPIError) as exc:
            get_product(market, "missing")
        assert exc.value.operation == "Service not found"

    def test_create_uses_api_message(self, api, market):
        api.on("POST", "/products", status=400, json={"message": "Price must be positive"})
        with pytest.raises(MarketAPIError) as exc:
            create_product(market, {"name": "x"})
        assert exc.value.operation == "Price must be positive"

    def test_update_sends_patch(self, api, market):
        api.on("PATCH", "/products/s1", json={"modifiedCount": 1})
        assert update_product(market, "s1", {"title": "New"}) == {"modifiedCount": 1}


class TestBookingsAndReviews:
    """Bookings and reviews resources."""

    def test_list_bookings_by_client(self, api, market):
        api.on("GET", "/bookings", json=[{"_id": "b1"}])
        assert list_bookings(market, client_email="cara@example.com") == [{"_id": "b1"}]
        assert api.calls("GET", "/bookings")[0].url.params["clientEmail"] == "cara@example.com"

    def test_create_and_delete(self, api, market):
        api.on("POST", "/bookings", json={"insertedId": "b9"})
        api.on("DELETE", "/bookings/b9", json={"deletedCount": 1})
        assert create_booking(market, {"serviceId": "s1"}) == {"insertedId": "b9"}
        delete_booking(market, "b9")
        assert len(api.calls("DELETE", "/bookings/b9")) == 1

    def test_reviews_missing_is_empty(self, api, market):
        assert list_reviews(market, "s1") == []

    def test_reviews_failure_raises(self, api, market):
        api.on("GET", "/products/s1/reviews", status=503, json={})
        with pytest.raises(MarketAPIError):
            list_reviews(market, "s1")


class TestUsers:
    """Users resource."""

    def test_unknown_user_is_none(self, api, market):
        assert get_user(market, "nobody@example.com") is None
        assert role_of(None) == "user"

    def test_role_of_user(self, api, market):
        api.on("GET", "/users/ana@example.com", json={"email": "ana@example.com", "role": "admin"})
        assert role_of(get_user(market, "ana@example.com")) == "admin"

    def test_update_user(self, api, market):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.content
            return httpx.Response(200, json={"modifiedCount": 1})

        api.on("PATCH", "/users/ana@example.com", handler=handler)
        update_user(market, "ana@example.com", {"role": "provider"})
        assert b'"role"' in seen["body"]
