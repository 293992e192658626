"""Free-text and facet filtering over catalog entries.

Matching is boolean: an entry either passes every active constraint or is
dropped. There is no ranking, and results keep catalog order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Iterable

    from vwad_directory.models import Entry


class Filter(BaseModel):
    """Transient query descriptor built per user interaction.

    An empty ``text`` or facet set places no constraint on results.
    """

    model_config = ConfigDict(frozen=True)

    text: str = ""
    collection_facets: frozenset[str] = Field(default_factory=frozenset)
    technology_facets: frozenset[str] = Field(default_factory=frozenset)

    @property
    def needle(self) -> str:
        """The trimmed, case-folded free-text query."""
        return self.text.strip().casefold()


def searchable_text(entry: Entry) -> str:
    """Case-folded haystack for free-text matching.

    Joins name, author, notes, technology, categories and collection tags
    with single spaces. Missing fields contribute an empty string.
    """
    parts = [
        entry.name,
        entry.author or "",
        entry.notes or "",
        " ".join(entry.technology),
        " ".join(entry.categories),
        " ".join(entry.collection),
    ]
    return " ".join(parts).casefold()


def matches(entry: Entry, query: Filter) -> bool:
    """Return True when ``entry`` satisfies every active part of ``query``."""
    if query.collection_facets and not query.collection_facets.intersection(
        entry.collection
    ):
        return False

    if query.technology_facets:
        wanted = {tag.casefold() for tag in query.technology_facets}
        if not wanted.intersection(tag.casefold() for tag in entry.technology):
            return False

    needle = query.needle
    if not needle:
        return True
    return needle in searchable_text(entry)


def filter_entries(
    entries: Iterable[Entry], query: Filter | None = None
) -> list[Entry]:
    """Return the entries matching ``query`` in their original order."""
    if query is None:
        return list(entries)
    return [entry for entry in entries if matches(entry, query)]
