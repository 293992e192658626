"""Catalog data model: entries, references, and the immutable catalog.

An :class:`Entry` mirrors one record of ``collection.json``. A
:class:`Catalog` validates the raw records once, attaches a unique slug
to every entry, and is read-only afterwards.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vwad_directory.exceptions import CatalogValidationError
from vwad_directory.slugs import assign_slugs

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class CollectionTag(StrEnum):
    """Fixed vocabulary of collection tags used by the directory."""

    ONLINE = "online"
    OFFLINE = "offline"
    MOBILE = "mobile"
    CONTAINER = "container"
    PLATFORM = "platform"


class Reference(BaseModel):
    """External link attached to an entry (guide, download, demo, ...)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str | None = None
    url: str = ""


class Entry(BaseModel):
    """One directory-listed application.

    ``slug`` and ``index`` are assigned by the catalog at construction time
    and are never part of the source document.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    author: str | None = None
    description: str | None = None
    notes: str | None = None
    url: str | None = None
    technology: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    collection: tuple[str, ...] = ()
    stars: int | None = Field(default=None, ge=0)
    last_contributed: str | None = None
    references: tuple[Reference, ...] = ()

    slug: str = ""
    index: int = -1

    @field_validator(
        "technology", "categories", "collection", "references", mode="before"
    )
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value


class Catalog:
    """Ordered, immutable sequence of slugged entries.

    Build one per loaded document and pass it explicitly to query, sort and
    render calls. Input order is preserved and determines slug collision
    resolution.
    """

    __slots__ = ("_by_slug", "_entries")

    def __init__(self, records: Iterable[Mapping[str, Any] | Entry] = ()) -> None:
        validated: list[Entry] = []
        for i, record in enumerate(records):
            if isinstance(record, Entry):
                validated.append(record)
                continue
            try:
                validated.append(Entry.model_validate(record))
            except ValidationError as exc:
                raise CatalogValidationError(i, str(exc)) from exc

        entries = tuple(assign_slugs(validated))
        object.__setattr__(self, "_entries", entries)
        object.__setattr__(self, "_by_slug", {e.slug: e for e in entries})
        logger.debug("catalog_built", entries=len(entries))

    def __setattr__(self, name: str, value: Any) -> None:
        msg = "Catalog is immutable"
        raise AttributeError(msg)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"Catalog(entries={len(self._entries)})"

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._entries

    def get_by_slug(self, slug: str) -> Entry | None:
        """Return the entry whose assigned slug equals ``slug``, else None."""
        return self._by_slug.get(slug)

    def technologies(self) -> list[str]:
        """Distinct technology tags across the catalog, sorted case-insensitively."""
        seen = {tag for entry in self._entries for tag in entry.technology}
        return sorted(seen, key=str.casefold)

    def collections(self) -> list[str]:
        """Distinct collection tags across the catalog, sorted."""
        return sorted({tag for entry in self._entries for tag in entry.collection})

    def categories(self) -> list[str]:
        """Distinct category tags across the catalog, sorted."""
        return sorted({tag for entry in self._entries for tag in entry.categories})
