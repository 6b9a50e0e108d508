"""
Identity provider (Firebase-compatible identity toolkit REST API).

POST {base}/accounts:signInWithPassword?key=...
POST {base}/accounts:signUp?key=...
POST {base}/accounts:update?key=...
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

_MESSAGES = {
    "EMAIL_NOT_FOUND": "No account found with this email address.",
    "INVALID_PASSWORD": "Incorrect password. Please try again.",
    "INVALID_LOGIN_CREDENTIALS": "Failed to sign in. Please check your credentials.",
    "INVALID_EMAIL": "Invalid email address.",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many failed attempts. Please try again later.",
    "EMAIL_EXISTS": "An account with this email address already exists.",
    "WEAK_PASSWORD": "Password should be at least 6 characters.",
}


class IdentityError(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = str(code or "")


@dataclass(frozen=True)
class IdentityUser:
    uid: str
    email: str
    display_name: str
    photo_url: str
    id_token: str


@dataclass
class IdentityClient:
    base_url: str
    api_key: str
    timeout_seconds: int
    transport: Optional[httpx.BaseTransport] = None

    def call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url.rstrip('/')}/accounts:{method}"
        with httpx.Client(timeout=self.timeout_seconds, transport=self.transport) as client:
            resp = client.post(url, params={"key": self.api_key}, json=payload)

        try:
            data = resp.json() if resp.content else {}
        except ValueError:
            data = {}

        if resp.status_code != 200:
            raise _error_from(data, resp.status_code)
        if not isinstance(data, dict):
            raise IdentityError("BAD_RESPONSE", "Unexpected response from identity provider.")
        return data


def _error_from(data: Any, status_code: int) -> IdentityError:
    raw = ""
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        raw = str(data["error"].get("message") or "")
    # "WEAK_PASSWORD : Password should be at least 6 characters"
    code = raw.split(":", 1)[0].strip()
    message = _MESSAGES.get(code) or raw or f"Identity request failed ({status_code})."
    return IdentityError(code, message)


def _user_from(data: Dict[str, Any], fallback_email: str = "") -> IdentityUser:
    token = str(data.get("idToken") or "")
    if not token:
        raise IdentityError("BAD_RESPONSE", "Identity provider did not return a token.")
    return IdentityUser(
        uid=str(data.get("localId") or ""),
        email=str(data.get("email") or fallback_email),
        display_name=str(data.get("displayName") or ""),
        photo_url=str(data.get("photoUrl") or ""),
        id_token=token,
    )


def sign_in(client: IdentityClient, email: str, password: str) -> IdentityUser:
    data = client.call(
        "signInWithPassword",
        {"email": email, "password": password, "returnSecureToken": True},
    )
    return _user_from(data, email)


def sign_up(client: IdentityClient, email: str, password: str, display_name: str = "", photo_url: str = "") -> IdentityUser:
    data = client.call("signUp", {"email": email, "password": password, "returnSecureToken": True})
    user = _user_from(data, email)
    if display_name or photo_url:
        user = update_profile(client, user.id_token, display_name, photo_url)
    return user


def update_profile(client: IdentityClient, id_token: str, display_name: str, photo_url: str) -> IdentityUser:
    data = client.call(
        "update",
        {
            "idToken": id_token,
            "displayName": display_name,
            "photoUrl": photo_url,
            "returnSecureToken": True,
        },
    )
    # accounts:update only returns a fresh idToken when the old one rotated
    data.setdefault("idToken", id_token)
    return _user_from(data)
