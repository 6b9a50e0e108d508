"""
Marketplace API: product reviews.
"""

from typing import Any, Dict, List

from market.api.client import MarketClient, ensure_ok
from market.catalog.records import normalize_collection


def list_reviews(client: MarketClient, product_id: str) -> List[Dict[str, Any]]:
    resp = client.get(f"/products/{product_id}/reviews")
    # No reviews yet
    if resp.status_code == 404:
        return []
    ensure_ok(resp, "Load reviews")
    return normalize_collection(resp.json(), "reviews")


def create_review(client: MarketClient, product_id: str, payload: Dict[str, Any]) -> None:
    resp = client.post(f"/products/{product_id}/reviews", json=payload)
    ensure_ok(resp, "Submit review")
