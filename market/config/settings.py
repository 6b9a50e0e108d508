"""
Application configuration loader.
"""

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    api_prefix: str

    identity_base_url: str
    identity_api_key: str

    app_env: str
    log_level: str

    sqlite_path: Path

    http_timeout_seconds: int

    # Web sessions
    session_cookie_name: str
    session_ttl_minutes: int
    cleanup_interval_seconds: int

    # Catalog
    catalog_page_size: int
    top_rated_limit: int

    web_enable: bool
    web_host: str
    web_port: int


def _bool(value: str) -> bool:
    return str(value).lower() in ("1", "true", "yes", "on")


def _int(value: str, default: int) -> int:
    try:
        return int(str(value).strip())
    except Exception:
        return default


def load_settings() -> Settings:
    load_dotenv()

    return Settings(
        api_base_url=os.getenv("MARKET_API_BASE_URL", "https://synvo-it-solutions-server.vercel.app"),
        api_prefix=os.getenv("MARKET_API_PREFIX", ""),

        identity_base_url=os.getenv("IDENTITY_BASE_URL", "https://identitytoolkit.googleapis.com/v1"),
        identity_api_key=os.getenv("IDENTITY_API_KEY", ""),

        app_env=os.getenv("APP_ENV", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),

        sqlite_path=Path(os.getenv("SQLITE_PATH", "./data/market.sqlite3")),

        http_timeout_seconds=_int(os.getenv("HTTP_TIMEOUT_SECONDS", "15"), 15),

        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "synvo_session"),
        session_ttl_minutes=_int(os.getenv("SESSION_TTL_MINUTES", str(60 * 24)), 60 * 24),
        cleanup_interval_seconds=_int(os.getenv("CLEANUP_INTERVAL_SECONDS", "300"), 300),

        catalog_page_size=max(1, _int(os.getenv("CATALOG_PAGE_SIZE", "9"), 9)),
        top_rated_limit=max(1, _int(os.getenv("TOP_RATED_LIMIT", "6"), 6)),

        web_enable=_bool(os.getenv("WEB_ENABLE", "true")),
        web_host=os.getenv("WEB_HOST", "127.0.0.1"),
        web_port=_int(os.getenv("WEB_PORT", "8010"), 8010),
    )
