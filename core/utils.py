"""
Utility functions for AniForge.

This module contains shared helper functions used by the providers and
extractors: URL handling, date parsing and chapter title formatting.
"""
import logging
import re
from typing import Optional
from urllib.parse import urlparse

import httpx

from models import FuzzyDate

logger = logging.getLogger(__name__)

MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

_AIR_DATE = re.compile(r'([A-Za-z]+)\s+(\d{1,2}),\s*(\d{4})')


def parse_air_date(text: Optional[str]) -> Optional[FuzzyDate]:
    """
    Parse an airing date such as "Jul 4, 2025".

    Args:
        text: Date string as displayed by the provider

    Returns:
        FuzzyDate, or None if the text does not look like a date
    """
    if not text:
        return None

    match = _AIR_DATE.search(text)
    if not match:
        return None

    month = MONTHS.get(match.group(1)[:3].lower())
    return FuzzyDate(year=int(match.group(3)), month=month, day=int(match.group(2)))


def origin_of(url: str) -> str:
    """
    Get the origin of a URL with a trailing slash.

    Args:
        url: Absolute URL

    Returns:
        e.g. "https://megacloud.blog/" for "https://megacloud.blog/embed-2/e-1/x"

    Raises:
        ValueError: If the URL has no scheme or host
    """
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Not an absolute URL: {url!r}")
    return f"{parsed.scheme}://{parsed.netloc}/"


def validate_url(url: str) -> bool:
    """
    Validate if a string is a valid URL.

    Args:
        url: URL string to validate

    Returns:
        True if valid URL, False otherwise
    """
    try:
        result = httpx.URL(url)
        return bool(result.scheme and result.host)
    except Exception:
        return False


def format_chapter_title(number: str, name: Optional[str]) -> str:
    """
    Build the display title of a chapter.

    Upstream names that are empty or just repeat "Chapter N" are dropped.
    """
    base = f"Chapter {number}"
    name = (name or "").strip()
    if not name or name.lower() == base.lower():
        return base
    return f"{base} — {name}"


def format_number(value) -> str:
    """Render a chapter number without a trailing ".0" (12.0 -> "12")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
