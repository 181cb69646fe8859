# frontend/client.py
"""HTTP wrappers and form helpers for the Streamlit client. No Streamlit imports here."""
import html
import logging
import os
from typing import Dict, List, Optional

import requests
from pydantic import ValidationError

from backend.schemas import ArtisanCreate, InquiryCreate, ProductCreate, StoryCreate

logger = logging.getLogger(__name__)

BACKEND = os.getenv("BACKEND_URL") or os.getenv("BACKEND") or "http://127.0.0.1:8000"

CRAFT_OPTIONS = {
    "textiles": "Textiles & Weaving",
    "pottery": "Pottery & Ceramics",
    "woodwork": "Wood Carving & Furniture",
    "metalwork": "Metal Crafts & Jewelry",
    "painting": "Traditional Painting",
    "jewelry": "Jewelry",
    "other": "Other",
}

EXPERIENCE_OPTIONS = {
    "1-5": "1-5 years",
    "5-10": "5-10 years",
    "10-20": "10-20 years",
    "20+": "20+ years",
}

SORT_OPTIONS = {
    "relevance": "Most Relevant",
    "newest": "Newest First",
    "price-low": "Price: Low to High",
    "price-high": "Price: High to Low",
}

INQUIRY_STATUSES = ["pending", "replied", "closed"]

MAX_PORTFOLIO_FILES = 10
MAX_PRODUCT_FILES = 5


# -------------------------
# API wrappers
# -------------------------
def _url(path: str) -> str:
    return BACKEND.rstrip("/") + path


def api_get(path: str, params: dict = None, timeout: int = 20) -> Optional[requests.Response]:
    try:
        return requests.get(_url(path), params=params, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("GET %s failed: %s", path, e)
        return None


def api_post(path: str, data: dict = None, files: list = None, json: dict = None,
             timeout: int = 60) -> Optional[requests.Response]:
    try:
        return requests.post(_url(path), data=data, files=files, json=json, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("POST %s failed: %s", path, e)
        return None


def api_patch(path: str, json: dict = None, timeout: int = 30) -> Optional[requests.Response]:
    try:
        return requests.patch(_url(path), json=json, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("PATCH %s failed: %s", path, e)
        return None


def get_json(path: str, params: dict = None, default=None):
    resp = api_get(path, params=params)
    if resp is not None and resp.ok:
        return resp.json()
    return default


def error_message(resp: Optional[requests.Response], fallback: str = "Request failed") -> str:
    if resp is None:
        return "Could not reach the backend."
    try:
        body = resp.json()
    except ValueError:
        return f"{fallback} ({resp.status_code})"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"{fallback} ({resp.status_code})"


# -------------------------
# Validation (same schemas the API enforces)
# -------------------------
def _messages(schema, data: dict) -> List[str]:
    try:
        schema.model_validate(data)
    except ValidationError as e:
        out = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err["loc"])
            out.append(f"{loc}: {err['msg']}" if loc else err["msg"])
        return out
    return []


def validate_signup(data: dict) -> List[str]:
    return _messages(ArtisanCreate, data)


def validate_product(data: dict) -> List[str]:
    return _messages(ProductCreate, data)


def validate_story(data: dict) -> List[str]:
    return _messages(StoryCreate, data)


def validate_inquiry(data: dict) -> List[str]:
    return _messages(InquiryCreate, data)


# -------------------------
# Display helpers
# -------------------------
def to_abs(url: str) -> str:
    """
    If the API returned an absolute URL (starts with http), use it as-is.
    If it returned a relative path like /uploads/..., prefix BACKEND once.
    """
    if not url:
        return url
    if url.startswith("http"):
        return url
    return f"{BACKEND.rstrip('/')}/{url.lstrip('/')}"


def format_price(minor_units: int) -> str:
    rupees, paise = divmod(int(minor_units or 0), 100)
    return f"₹{rupees:,}" if not paise else f"₹{rupees:,}.{paise:02d}"


def to_minor_units(rupees: float) -> int:
    return int(round(float(rupees) * 100))


def full_name(artisan: Optional[dict]) -> str:
    if not artisan:
        return "Unknown artisan"
    return f"{artisan.get('firstName', '')} {artisan.get('lastName', '')}".strip()


def craft_label(value: str) -> str:
    return CRAFT_OPTIONS.get(value, value or "")


def filter_by_category(products: List[dict], category: str) -> List[dict]:
    if not category or category == "all":
        return list(products)
    return [p for p in products if p.get("category") == category]


def sort_products(products: List[dict], sort_by: str) -> List[dict]:
    if sort_by == "price-low":
        return sorted(products, key=lambda p: p.get("price", 0))
    if sort_by == "price-high":
        return sorted(products, key=lambda p: p.get("price", 0), reverse=True)
    if sort_by == "newest":
        # ISO-8601 timestamps from one server sort lexicographically
        return sorted(products, key=lambda p: str(p.get("createdAt") or ""), reverse=True)
    return list(products)


def dashboard_stats(products: List[dict], inquiries: List[dict], stories: List[dict]) -> Dict[str, int]:
    return {
        "products": len(products),
        "inquiries": len(inquiries),
        "pending": sum(1 for i in inquiries if i.get("status") == "pending"),
        "stories": len(stories),
    }


def story_html(text: str) -> str:
    """Stored and generated text is untrusted: escape it before it goes into the story block."""
    return f"<div class='story'>{html.escape(text or '')}</div>"
