"""Shared pytest fixtures for the vwad-directory test suite."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
import structlog

from vwad_directory.models import Catalog

# Fixed reference time so recency bands are stable.
NOW = datetime(2025, 6, 1, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_records() -> list[dict[str, Any]]:
    """Return a small collection.json payload covering the common shapes."""
    return [
        {
            "name": "OWASP Juice Shop",
            "author": "Bjoern Kimminich",
            "description": "  Probably the most modern insecure web app.  ",
            "notes": "Node.js SPA with lots of CTF challenges",
            "url": "https://owasp.org/www-project-juice-shop/",
            "technology": ["Node.js", "Angular"],
            "categories": ["ctf", "guided-lessons"],
            "collection": ["online", "offline", "container"],
            "stars": 10500,
            "last_contributed": "2025-05-20T10:00:00Z",
            "references": [
                {"name": "guide", "url": "https://pwning.owasp-juice.shop"},
                {"name": "docker", "url": "https://hub.docker.com/r/bkimminich/juice-shop"},
            ],
        },
        {
            "name": "DVWA",
            "author": "Robin Wood",
            "notes": "PHP/MySQL web application that is damn vulnerable.",
            "url": "https://github.com/digininja/DVWA",
            "technology": ["PHP"],
            "categories": ["single-player"],
            "collection": ["offline"],
            "stars": 9000,
            "last_contributed": "2024-01-15",
            "references": [],
        },
        {
            "name": "Hackazon",
            "url": "https://github.com/rapid7/hackazon",
            "technology": ["PHP", "JavaScript"],
            "collection": ["offline"],
        },
        {
            "name": "WebGoat",
            "author": "OWASP",
            "url": "https://github.com/WebGoat/WebGoat",
            "technology": ["Java"],
            "categories": ["guided-lessons"],
            "collection": ["offline", "container"],
            "stars": 0,
            "last_contributed": "not a date",
            "references": [{"name": "Unknown", "url": "https://example.org"}],
        },
    ]


@pytest.fixture()
def catalog(sample_records: list[dict[str, Any]]) -> Catalog:
    """Return a Catalog built from ``sample_records``."""
    return Catalog(sample_records)


@pytest.fixture()
def collection_file(tmp_path: Path, sample_records: list[dict[str, Any]]) -> Path:
    """Write ``sample_records`` to a collection.json file and return its path."""
    path = tmp_path / "collection.json"
    path.write_text(json.dumps(sample_records), encoding="utf-8")
    return path


@pytest.fixture()
def now() -> datetime:
    """Return the fixed reference time used for recency bands."""
    return NOW


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Reset structlog state and root handlers between tests."""
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)
