"""
Provider service: list, add, edit and delete the services a provider offers.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from loguru import logger

from market.api.client import MarketClient
from market.api.products_api import create_product, delete_product, get_product, list_products, update_product
from market.catalog.records import parse_number
from market.services.session_service import UserSession

SERVICE_STATUSES = ("Active", "Inactive")
SIGN_IN_REQUIRED = "Please sign in as a provider to manage your services"
PLACEHOLDER_IMAGE = "https://via.placeholder.com/400x300?text=Service"

FORM_FIELDS = ("name", "description", "price", "category", "location", "image", "status", "duration")


class ServiceFormError(ValueError):
    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


def empty_form() -> Dict[str, str]:
    form = {k: "" for k in FORM_FIELDS}
    form["status"] = "Active"
    return form


def form_from_service(service: Dict[str, Any]) -> Dict[str, str]:
    price = service.get("price")
    if price is None:
        price = service.get("cost", service.get("rate", ""))
    return {
        "name": str(service.get("title") or service.get("name") or ""),
        "description": str(service.get("description") or service.get("details") or ""),
        "price": "" if price is None else str(price),
        "category": str(service.get("category") or service.get("type") or ""),
        "location": str(service.get("location") or ""),
        "image": str(service.get("image") or ""),
        "status": str(service.get("status") or "Active"),
        "duration": str(service.get("duration") or ""),
    }


def validate_service_form(form: Dict[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    def blank(key: str) -> bool:
        return not str(form.get(key) or "").strip()

    if blank("name"):
        errors["name"] = "Service name is required"
    if blank("description"):
        errors["description"] = "Description is required"
    price = parse_number(form.get("price"))
    if price is None or price <= 0:
        errors["price"] = "Valid price is required"
    if blank("category"):
        errors["category"] = "Category is required"
    if blank("location"):
        errors["location"] = "Location is required"
    return errors


def _status(form: Dict[str, Any]) -> str:
    status = str(form.get("status") or "Active")
    return status if status in SERVICE_STATUSES else "Active"


def my_services(client: MarketClient, session: UserSession) -> List[Dict[str, Any]]:
    if not session.signed_in:
        return []
    return list_products(client, provider_email=session.email)


def create_service(client: MarketClient, session: UserSession, form: Dict[str, Any]) -> Dict[str, Any]:
    if not session.signed_in:
        raise PermissionError("Please sign in to add a service")

    errors = validate_service_form(form)
    if errors:
        raise ServiceFormError(errors)

    payload = {
        "name": str(form["name"]).strip(),
        "description": str(form["description"]).strip(),
        "price": parse_number(form["price"]),
        "category": str(form["category"]).strip(),
        "location": str(form["location"]).strip(),
        "image": str(form.get("image") or "").strip() or PLACEHOLDER_IMAGE,
        "status": _status(form),
        "providerEmail": session.email,
        "providerName": session.display_name or "Anonymous Provider",
        "createdAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }
    added = create_product(client, payload)
    logger.info("Service added by {}: {}", session.email, payload["name"])
    return added


def own_service(client: MarketClient, session: UserSession, service_id: str) -> Dict[str, Any]:
    """Fetch a service the signed-in provider owns; ``PermissionError`` otherwise."""
    if not session.signed_in:
        raise PermissionError(SIGN_IN_REQUIRED)
    service = get_product(client, service_id)
    if service.get("providerEmail") != session.email:
        logger.warning("{} tried to manage service {} of {}", session.email, service_id, service.get("providerEmail"))
        raise PermissionError("You can only manage your own services.")
    return service


def update_service(client: MarketClient, session: UserSession, service_id: str, form: Dict[str, Any]) -> Dict[str, Any]:
    if not service_id:
        raise ValueError("Missing service identifier. Update aborted.")
    own_service(client, session, service_id)

    errors = validate_service_form(form)
    if errors:
        raise ServiceFormError(errors)

    payload = {
        "title": str(form.get("name") or "").strip(),
        "description": str(form.get("description") or "").strip(),
        "price": parse_number(form["price"]),
        "category": str(form.get("category") or "").strip(),
        "status": _status(form),
        "image": str(form.get("image") or "").strip(),
        "duration": str(form.get("duration") or "").strip(),
        "location": str(form.get("location") or "").strip(),
    }
    updated = update_product(client, service_id, payload)
    logger.info("Service updated: {}", service_id)
    return updated


def delete_service(client: MarketClient, session: UserSession, service_id: str) -> None:
    if not service_id:
        raise ValueError("Missing service identifier. Delete aborted.")
    own_service(client, session, service_id)
    delete_product(client, service_id)
    logger.info("Service deleted: {}", service_id)
