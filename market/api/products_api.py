"""
Marketplace API: products (services offered by providers).
GET /products?providerEmail=...&sortBy=rating&limit=6
"""

from typing import Any, Dict, List, Optional

from market.api.client import MarketClient, ensure_ok, json_object
from market.catalog.records import normalize_collection


def list_products(
    client: MarketClient,
    provider_email: Optional[str] = None,
    sort_by: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    params: Dict[str, Any] = {}
    if provider_email:
        params["providerEmail"] = provider_email
    if sort_by:
        params["sortBy"] = sort_by
    if limit is not None:
        params["limit"] = str(int(limit))

    resp = client.get("/products", params=params or None)
    ensure_ok(resp, "Load services")
    return normalize_collection(resp.json(), "services")


def get_product(client: MarketClient, product_id: str) -> Dict[str, Any]:
    resp = client.get(f"/products/{product_id}")
    ensure_ok(resp, "Service not found" if resp.status_code == 404 else "Load service details")
    return json_object(resp, "Load service details")


def create_product(client: MarketClient, payload: Dict[str, Any]) -> Dict[str, Any]:
    resp = client.post("/products", json=payload)
    if not resp.is_success:
        # The API sends {"message": "..."} on validation errors
        message = None
        try:
            body = resp.json()
            if isinstance(body, dict):
                message = body.get("message")
        except ValueError:
            message = None
        ensure_ok(resp, message or "Add service")
    return json_object(resp, "Add service")


def update_product(client: MarketClient, product_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    resp = client.patch(f"/products/{product_id}", json=payload)
    ensure_ok(resp, "Update service")
    return json_object(resp, "Update service")


def delete_product(client: MarketClient, product_id: str) -> None:
    resp = client.delete(f"/products/{product_id}")
    ensure_ok(resp, "Delete service")
