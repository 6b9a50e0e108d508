"""
Marketplace API: user records (profile mirror and role).
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from market.api.client import MarketClient, ensure_ok, json_object
from market.catalog.records import normalize_collection

DEFAULT_ROLE = "user"


def _user_path(email: str) -> str:
    return f"/users/{quote(str(email), safe='')}"


def list_users(client: MarketClient) -> List[Dict[str, Any]]:
    resp = client.get("/users")
    ensure_ok(resp, "Load users")
    return normalize_collection(resp.json(), "users")


def get_user(client: MarketClient, email: str) -> Optional[Dict[str, Any]]:
    resp = client.get(_user_path(email))
    if resp.status_code == 404:
        return None
    ensure_ok(resp, "Load user")
    return json_object(resp, "Load user")


def save_user(client: MarketClient, name: str, email: str, photo_url: str) -> None:
    resp = client.post("/users", json={"name": name, "email": email, "photoURL": photo_url})
    ensure_ok(resp, "Save user")


def update_user(client: MarketClient, email: str, patch: Dict[str, Any]) -> None:
    resp = client.patch(_user_path(email), json=patch)
    ensure_ok(resp, "Update user")


def role_of(user: Optional[Dict[str, Any]]) -> str:
    return str((user or {}).get("role") or DEFAULT_ROLE)
