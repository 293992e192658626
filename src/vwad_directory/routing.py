"""Slug extraction from request paths and link building for entries."""

from __future__ import annotations

_APP_SEGMENT = "app/"
_HTML_SUFFIX = "html"


def extract_path_slug(pathname: str, fragment: str = "") -> str | None:
    """Find the entry slug addressed by a detail-page location.

    The component right after ``app/`` in ``pathname`` wins (a literal
    ``html`` there counts as absent). Otherwise the URL fragment, without
    its leading ``#``, is used. Returns None when neither yields a token.

    >>> extract_path_slug("/app/juice-shop/")
    'juice-shop'
    >>> extract_path_slug("/app/", "#dvwa")
    'dvwa'
    """
    parts = (pathname or "").split(_APP_SEGMENT)
    if len(parts) >= 2:
        after = parts[1].removesuffix("/").split("/")[0]
        if after and after != _HTML_SUFFIX:
            return after

    token = (fragment or "").removeprefix("#").strip()
    return token or None


def _prefix(base_url: str) -> str:
    base = base_url.rstrip("/")
    return f"{base}/" if base else ""


def detail_url(slug: str, base_url: str = "") -> str:
    """Link to an entry's detail view, e.g. ``app/#juice-shop``."""
    return f"{_prefix(base_url)}app/#{slug}"


def directory_url(base_url: str = "") -> str:
    """Link back to the directory root."""
    return _prefix(base_url) or "./"
