"""
Front constants shared by routes and templates.
"""

from pathlib import Path

TEMPLATES_DIR = Path(__file__).parent / "templates"

SORT_OPTIONS = [
    ("default", "Default"),
    ("price-low", "Price: Low to High"),
    ("price-high", "Price: High to Low"),
    ("name-asc", "Name: A to Z"),
    ("name-desc", "Name: Z to A"),
]

STATUS_BADGE = {
    "PENDING": "badge-warning",
    "CONFIRMED": "badge-info",
    "COMPLETED": "badge-success",
    "CANCELLED": "badge-error",
    "ACTIVE": "badge-success",
    "INACTIVE": "badge-ghost",
}


def norm_status(x) -> str:
    return str(x or "").strip().upper()


def status_badge(x) -> str:
    return STATUS_BADGE.get(norm_status(x)) or "badge-ghost"


def money(x) -> str:
    try:
        return f"${float(x):,.2f}"
    except (TypeError, ValueError):
        return "$0.00"
