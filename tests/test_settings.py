"""Tests for environment-driven settings."""

from pathlib import Path

from market.config.settings import load_settings


def test_defaults(monkeypatch):
    for name in ("MARKET_API_BASE_URL", "CATALOG_PAGE_SIZE", "WEB_ENABLE", "WEB_PORT", "SQLITE_PATH"):
        monkeypatch.delenv(name, raising=False)
    s = load_settings()
    assert s.api_base_url == "https://synvo-it-solutions-server.vercel.app"
    assert s.catalog_page_size == 9
    assert s.web_enable is True
    assert s.web_port == 8010
    assert s.sqlite_path == Path("./data/market.sqlite3")


def test_overrides(monkeypatch):
    monkeypatch.setenv("MARKET_API_BASE_URL", "http://localhost:5000")
    monkeypatch.setenv("CATALOG_PAGE_SIZE", "12")
    monkeypatch.setenv("WEB_ENABLE", "off")
    monkeypatch.setenv("WEB_PORT", "not-a-port")
    s = load_settings()
    assert s.api_base_url == "http://localhost:5000"
    assert s.catalog_page_size == 12
    assert s.web_enable is False
    assert s.web_port == 8010


def test_page_size_at_least_one(monkeypatch):
    monkeypatch.setenv("CATALOG_PAGE_SIZE", "0")
    assert load_settings().catalog_page_size == 1
