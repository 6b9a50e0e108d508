"""Shared fixtures: fake marketplace/identity APIs, in-memory session db, web app."""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from front.app import create_app
from market.api.client import MarketClient
from market.api.identity_api import IdentityClient
from market.config.settings import Settings
from market.db.schema import init_schema
from market.db.sqlite import MEMORY, connect
from market.services.session_service import SessionStore, UserSession

Handler = Callable[[httpx.Request], httpx.Response]


class FakeAPI:
    """Route table served through ``httpx.MockTransport``.

    Unknown routes answer 404 so a missing stub shows up as a failed call.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json: Any = None, handler: Optional[Handler] = None) -> None:
        self.routes[(method.upper(), path)] = handler or (status, json)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]


SERVICES = [
    {"_id": {"$oid": "s1"}, "name": "Logo Design", "category": "Design", "location": "Remote",
     "price": 50, "providerName": "Ana", "providerEmail": "ana@example.com", "status": "Active"},
    {"_id": "s2", "name": "Web App", "category": "Dev", "location": "Berlin",
     "price": "500", "providerName": "Ben", "providerEmail": "ben@example.com", "status": "Active"},
    {"id": "s3", "title": "Landing Page", "type": "Dev", "price": "150 USD",
     "description": "One page site", "providerEmail": "ben@example.com", "status": "Inactive"},
]


@pytest.fixture
def services() -> List[Dict[str, Any]]:
    return [dict(s) for s in SERVICES]


@pytest.fixture
def api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def idp() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def market(api: FakeAPI) -> MarketClient:
    return MarketClient(base_url="http://api.test", api_prefix="", timeout_seconds=5, transport=api.transport())


@pytest.fixture
def identity(idp: FakeAPI) -> IdentityClient:
    return IdentityClient(base_url="http://identity.test/v1", api_key="test-key", timeout_seconds=5, transport=idp.transport())


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_base_url="http://api.test",
        api_prefix="",
        identity_base_url="http://identity.test/v1",
        identity_api_key="test-key",
        app_env="test",
        log_level="DEBUG",
        sqlite_path=Path(MEMORY),
        http_timeout_seconds=5,
        session_cookie_name="synvo_session",
        session_ttl_minutes=60,
        cleanup_interval_seconds=300,
        catalog_page_size=2,
        top_rated_limit=6,
        web_enable=False,
        web_host="127.0.0.1",
        web_port=8010,
    )


@pytest.fixture
def db():
    conn = connect(MEMORY)
    init_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def store(db) -> SessionStore:
    return SessionStore(db)


@pytest.fixture
def signed_in() -> UserSession:
    return UserSession(
        session_id="sess-1",
        email="cara@example.com",
        display_name="Cara",
        id_token="token-1",
        role="user",
    )


@pytest.fixture
def client(settings, db, market, identity, store) -> TestClient:
    deps = {
        "settings": settings,
        "db": db,
        "market": market,
        "identity": identity,
        "sessions": store,
    }
    return TestClient(create_app(deps))


def stub_sign_in(idp: FakeAPI, api: FakeAPI, email: str = "cara@example.com", role: str = "user") -> None:
    idp.on(
        "POST",
        "/v1/accounts:signInWithPassword",
        json={"localId": "u1", "email": email, "displayName": "Cara", "idToken": "token-1"},
    )
    api.on("POST", "/users", json={"acknowledged": True})
    api.on("GET", f"/users/{email}", json={"email": email, "role": role})


def login(client: TestClient, idp: FakeAPI, api: FakeAPI, email: str = "cara@example.com", role: str = "user"):
    stub_sign_in(idp, api, email=email, role=role)
    return client.post("/login", data={"email": email, "password": "secret1"}, follow_redirects=False)
