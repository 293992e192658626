"""Centralized exception hierarchy for the vwad-directory package.

All domain-specific exceptions inherit from ``DirectoryError`` so
callers can catch the entire family with a single ``except`` clause.
"""

from __future__ import annotations


class DirectoryError(Exception):
    """Base exception for all vwad-directory errors."""


# ---------------------------------------------------------------------------
# Catalog errors
# ---------------------------------------------------------------------------


class CatalogError(DirectoryError):
    """Base exception for catalog construction and loading."""


class CatalogLoadError(CatalogError):
    """Raised when the catalog source cannot be fetched or decoded."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load catalog from {source}: {reason}")


class CatalogValidationError(CatalogError):
    """Raised when a raw catalog record does not match the entry schema."""

    def __init__(self, index: int, detail: str) -> None:
        self.index = index
        self.detail = detail
        super().__init__(f"Invalid catalog record #{index}: {detail}")
