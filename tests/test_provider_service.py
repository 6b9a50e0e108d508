"""Tests for provider service management."""

import json

import pytest

from market.services.provider_service import (
    PLACEHOLDER_IMAGE,
    ServiceFormError,
    create_service,
    delete_service,
    empty_form,
    form_from_service,
    my_services,
    update_service,
    validate_service_form,
)
from market.services.session_service import UserSession


def valid_form(**overrides):
    form = dict(
        name="Logo Design",
        description="Vector logo",
        price="50",
        category="Design",
        location="Remote",
        image="",
        status="Active",
    )
    form.update(overrides)
    return form


class TestValidation:
    """Service form validation."""

    def test_valid(self):
        assert validate_service_form(valid_form()) == {}

    def test_all_missing(self):
        errors = validate_service_form(empty_form())
        assert errors == {
            "name": "Service name is required",
            "description": "Description is required",
            "price": "Valid price is required",
            "category": "Category is required",
            "location": "Location is required",
        }

    @pytest.mark.parametrize("price", ["0", "-5", "abc"])
    def test_bad_price(self, price):
        assert "price" in validate_service_form(valid_form(price=price))


class TestCreateService:
    """Adding services."""

    def test_payload(self, api, market, signed_in):
        api.on("POST", "/products", json={"insertedId": "s9"})
        create_service(market, signed_in, valid_form(name="  Logo Design "))
        body = json.loads(api.calls("POST", "/products")[0].content)
        assert body["name"] == "Logo Design"
        assert body["price"] == 50.0
        assert body["image"] == PLACEHOLDER_IMAGE
        assert body["providerEmail"] == "cara@example.com"
        assert body["providerName"] == "Cara"

    def test_anonymous_provider_name(self, api, market):
        api.on("POST", "/products", json={})
        session = UserSession(session_id="s", email="x@example.com", id_token="t")
        create_service(market, session, valid_form())
        body = json.loads(api.calls("POST", "/products")[0].content)
        assert body["providerName"] == "Anonymous Provider"

    def test_invalid_form_not_sent(self, api, market, signed_in):
        with pytest.raises(ServiceFormError) as exc:
            create_service(market, signed_in, valid_form(name=""))
        assert exc.value.errors == {"name": "Service name is required"}
        assert api.requests == []

    def test_requires_sign_in(self, market):
        with pytest.raises(PermissionError):
            create_service(market, UserSession(session_id="anon"), valid_form())


class TestEditAndDelete:
    """Editing and deleting services."""

    def test_form_from_service(self, services):
        form = form_from_service(services[2])
        assert form["name"] == "Landing Page"
        assert form["category"] == "Dev"
        assert form["price"] == "150 USD"
        assert form["status"] == "Inactive"

    def test_update_payload(self, api, market, services):
        ben = UserSession(session_id="s", email="ben@example.com", id_token="t")
        api.on("GET", "/products/s3", json=services[2])
        api.on("PATCH", "/products/s3", json={"modifiedCount": 1})
        update_service(market, ben, "s3", valid_form(price="75", status="Weird"))
        body = json.loads(api.calls("PATCH", "/products/s3")[0].content)
        assert body["title"] == "Logo Design"
        assert body["price"] == 75.0
        assert body["status"] == "Active"

    def test_update_rejects_blank_form(self, api, market, services):
        ben = UserSession(session_id="s", email="ben@example.com", id_token="t")
        api.on("GET", "/products/s3", json=services[2])
        with pytest.raises(ServiceFormError):
            update_service(market, ben, "s3", empty_form())
        assert api.calls("PATCH", "/products/s3") == []

    def test_missing_id(self, market, signed_in):
        with pytest.raises(ValueError):
            update_service(market, signed_in, "", valid_form())
        with pytest.raises(ValueError):
            delete_service(market, signed_in, "")

    def test_anonymous_cannot_manage(self, api, market):
        anon = UserSession(session_id="anon")
        with pytest.raises(PermissionError, match="sign in as a provider"):
            update_service(market, anon, "s2", valid_form())
        with pytest.raises(PermissionError):
            delete_service(market, anon, "s2")
        assert api.requests == []

    def test_foreign_service_refused(self, api, market, signed_in, services):
        api.on("GET", "/products/s2", json=services[1])
        with pytest.raises(PermissionError, match="your own services"):
            delete_service(market, signed_in, "s2")
        with pytest.raises(PermissionError):
            update_service(market, signed_in, "s2", valid_form())
        assert api.calls("DELETE", "/products/s2") == []
        assert api.calls("PATCH", "/products/s2") == []

    def test_my_services_by_provider(self, api, market, signed_in, services):
        api.on("GET", "/products", json=services[:1])
        assert my_services(market, signed_in) == services[:1]
        assert api.calls("GET", "/products")[0].url.params["providerEmail"] == "cara@example.com"
