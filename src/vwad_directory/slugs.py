"""Deterministic, collision-free slug assignment for catalog entries."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from vwad_directory.models import Entry

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_NON_SLUG_RUN_RE = re.compile(r"[^a-z0-9]+")

# Used when a name has no ASCII letters or digits at all.
PLACEHOLDER_SLUG = "app"


def slugify(name: str) -> str:
    """Lower-case ``name`` and collapse every run of non ``[a-z0-9]`` chars.

    Leading and trailing hyphens are trimmed, so the result is either empty
    or matches ``^[a-z0-9]+(-[a-z0-9]+)*$``.

    >>> slugify("OWASP Juice Shop!")
    'owasp-juice-shop'
    """
    return _NON_SLUG_RUN_RE.sub("-", name.lower()).strip("-")


def assign_slugs(entries: Iterable[Entry]) -> list[Entry]:
    """Return copies of ``entries`` carrying a unique ``slug`` and ``index``.

    Entries are processed in input order. The first entry with a given base
    slug keeps it; later ones get the first free ``-2``, ``-3``, ... suffix.
    Names that reduce to nothing use :data:`PLACEHOLDER_SLUG` as their base.
    """
    used: set[str] = set()
    assigned: list[Entry] = []
    for index, entry in enumerate(entries):
        base = slugify(entry.name) or PLACEHOLDER_SLUG
        slug = base
        n = 1
        while slug in used:
            n += 1
            slug = f"{base}-{n}"
        if n > 1:
            logger.debug("slug_collision", name=entry.name, slug=slug)
        used.add(slug)
        assigned.append(entry.model_copy(update={"slug": slug, "index": index}))
    return assigned
