"""Column sorting for catalog listings.

Sorting is stable in both directions, so entries that compare equal keep
their relative input order. Input sequences are never mutated.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from vwad_directory.recency import parse_timestamp

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from vwad_directory.models import Entry

_MISSING_STARS = -1
_MISSING_TIMESTAMP = 0.0


class SortField(StrEnum):
    """Sortable listing columns."""

    NAME = "name"
    STARS = "stars"
    UPDATED = "updated"


class SortDirection(StrEnum):
    """Sort order."""

    ASC = "asc"
    DESC = "desc"


class SortSpec(BaseModel):
    """Column plus direction; ``None`` in its place means catalog order."""

    model_config = ConfigDict(frozen=True)

    field: SortField
    direction: SortDirection = SortDirection.ASC


def _name_key(entry: Entry) -> str:
    return (entry.name or "").casefold()


def _stars_key(entry: Entry) -> int:
    return entry.stars if entry.stars is not None else _MISSING_STARS


def _updated_key(entry: Entry) -> float:
    parsed = parse_timestamp(entry.last_contributed)
    return parsed.timestamp() if parsed is not None else _MISSING_TIMESTAMP


_SORT_KEYS: dict[SortField, Callable[[Entry], Any]] = {
    SortField.NAME: _name_key,
    SortField.STARS: _stars_key,
    SortField.UPDATED: _updated_key,
}


def sort_entries(entries: Iterable[Entry], spec: SortSpec | None = None) -> list[Entry]:
    """Return a new list of ``entries`` ordered by ``spec``.

    Missing stars sort below zero stars and missing or unparseable
    contribution dates sort as the epoch. With no ``spec`` the result is a
    shallow copy in input order.
    """
    if spec is None:
        return list(entries)
    return sorted(
        entries,
        key=_SORT_KEYS[spec.field],
        reverse=spec.direction == SortDirection.DESC,
    )


def next_sort_state(current: SortSpec | None, column: SortField) -> SortSpec | None:
    """Advance the sort state after a click on ``column``'s header.

    A new column starts ascending, an ascending column flips to descending,
    and a descending column clears sorting.
    """
    if current is None or current.field != column:
        return SortSpec(field=column, direction=SortDirection.ASC)
    if current.direction == SortDirection.ASC:
        return SortSpec(field=column, direction=SortDirection.DESC)
    return None
