"""
User session: who is signed in, their role, theme and catalog criteria.

A ``UserSession`` is loaded from the session store for each request and
handed explicitly to whatever needs it.
"""

import secrets
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from loguru import logger

from market.api.client import MarketAPIError, MarketClient
from market.api.identity_api import IdentityClient, IdentityUser, sign_in, sign_up, update_profile
from market.api.users_api import DEFAULT_ROLE, get_user, role_of, save_user, update_user
from market.catalog.state import CatalogState
from market.db.repos.sessions_repo import delete_session, get_session, upsert_session

THEMES = ("light", "dark")
DEFAULT_THEME = "light"

AVATAR_PLACEHOLDER = "https://ui-avatars.com/api/?background=random&color=fff&name="


@dataclass
class UserSession:
    session_id: str
    email: str = ""
    display_name: str = ""
    photo_url: str = ""
    id_token: str = ""
    role: str = ""
    theme: str = DEFAULT_THEME
    catalog: CatalogState = field(default_factory=CatalogState)
    reviewed: List[str] = field(default_factory=list)

    @property
    def signed_in(self) -> bool:
        return bool(self.email and self.id_token)

    @property
    def is_admin(self) -> bool:
        return self.signed_in and self.role == "admin"

    @property
    def name(self) -> str:
        if not self.signed_in:
            return ""
        return self.display_name or self.email.split("@")[0] or "User"

    @property
    def avatar_url(self) -> str:
        if self.photo_url:
            return self.photo_url
        return AVATAR_PLACEHOLDER + quote(self.name)

    def to_data(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "display_name": self.display_name,
            "photo_url": self.photo_url,
            "id_token": self.id_token,
            "role": self.role,
            "theme": self.theme,
            "catalog": self.catalog.to_dict(),
            "reviewed": list(self.reviewed),
        }

    @classmethod
    def from_data(cls, session_id: str, data: Optional[Dict[str, Any]]) -> "UserSession":
        d = data or {}
        theme = str(d.get("theme") or DEFAULT_THEME)
        return cls(
            session_id=session_id,
            email=str(d.get("email") or ""),
            display_name=str(d.get("display_name") or ""),
            photo_url=str(d.get("photo_url") or ""),
            id_token=str(d.get("id_token") or ""),
            role=str(d.get("role") or ""),
            theme=theme if theme in THEMES else DEFAULT_THEME,
            catalog=CatalogState.from_dict(d.get("catalog")),
            reviewed=[str(x) for x in (d.get("reviewed") or [])],
        )


class SessionStore:
    def __init__(self, db_conn: sqlite3.Connection) -> None:
        self._db = db_conn

    def new(self) -> UserSession:
        return UserSession(session_id=secrets.token_urlsafe(32))

    def load(self, session_id: Optional[str]) -> UserSession:
        if session_id:
            row = get_session(self._db, session_id)
            if row is not None:
                return UserSession.from_data(session_id, row["data"])
        return self.new()

    def save(self, session: UserSession) -> None:
        upsert_session(self._db, session.session_id, session.to_data())

    def drop(self, session: UserSession) -> None:
        delete_session(self._db, session.session_id)

    def rotate(self, session: UserSession) -> UserSession:
        """New id on sign-in/sign-out; the old row is removed."""
        self.drop(session)
        session.session_id = secrets.token_urlsafe(32)
        return session


def lookup_role(market: MarketClient, email: str) -> str:
    try:
        return role_of(get_user(market, email))
    except MarketAPIError as e:
        logger.warning("Role lookup failed for {}: {}", email, e)
        return DEFAULT_ROLE


def _remember(session: UserSession, user: IdentityUser, role: str) -> None:
    session.email = user.email
    session.display_name = user.display_name
    session.photo_url = user.photo_url
    session.id_token = user.id_token
    session.role = role


def _mirror_user(market: MarketClient, user: IdentityUser) -> None:
    # Best effort: sign-in must not fail because the API is down
    try:
        save_user(market, user.display_name, user.email, user.photo_url)
    except MarketAPIError as e:
        logger.warning("Saving user {} to API failed: {}", user.email, e)


def sign_in_with_password(
    identity: IdentityClient,
    market: MarketClient,
    session: UserSession,
    email: str,
    password: str,
) -> UserSession:
    email = (email or "").strip()
    if not email or not password:
        raise ValueError("Please fill in all fields")

    user = sign_in(identity, email, password)
    _mirror_user(market, user)
    _remember(session, user, lookup_role(market, user.email))
    logger.info("Signed in: {} (role={})", session.email, session.role)
    return session


def register(
    identity: IdentityClient,
    market: MarketClient,
    session: UserSession,
    name: str,
    email: str,
    photo_url: str,
    password: str,
    confirm_password: str,
) -> UserSession:
    email = (email or "").strip()
    if not email or not password:
        raise ValueError("Please fill in all fields")
    if password != confirm_password:
        raise ValueError("Passwords do not match")

    user = sign_up(identity, email, password, (name or "").strip(), (photo_url or "").strip())
    _mirror_user(market, user)
    _remember(session, user, lookup_role(market, user.email))
    logger.info("Registered: {}", session.email)
    return session


def update_my_profile(
    identity: IdentityClient,
    market: MarketClient,
    session: UserSession,
    display_name: str,
    photo_url: str,
) -> UserSession:
    if not session.signed_in:
        raise ValueError("You need to sign in to edit your profile.")

    user = update_profile(identity, session.id_token, (display_name or "").strip(), (photo_url or "").strip())
    session.display_name = user.display_name
    session.photo_url = user.photo_url
    session.id_token = user.id_token

    update_user(market, session.email, {"name": session.display_name, "photoURL": session.photo_url})
    return session


def sign_out(session: UserSession) -> UserSession:
    logger.info("Signed out: {}", session.email)
    session.email = ""
    session.display_name = ""
    session.photo_url = ""
    session.id_token = ""
    session.role = ""
    session.reviewed = []
    return session


def toggle_theme(session: UserSession) -> str:
    session.theme = "dark" if session.theme == "light" else "light"
    return session.theme
