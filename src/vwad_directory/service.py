"""Directory facade over a loaded catalog.

:class:`DirectoryService` wires the loader, query, sort and view-model
layers together. Catalog failures never escape from here: an unavailable
catalog reads as "no results" or "not found".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

import structlog
from pydantic import BaseModel, Field

from vwad_directory.config import DEFAULT_STARS_BADGE_TEMPLATE
from vwad_directory.exceptions import CatalogLoadError
from vwad_directory.query import filter_entries
from vwad_directory.routing import extract_path_slug
from vwad_directory.sorting import SortSpec, sort_entries
from vwad_directory.views import (
    BackLink,
    EntryView,
    RenderOptions,
    TableRow,
    build_table_row,
    build_view_model,
    result_count_label,
)

if TYPE_CHECKING:
    from datetime import datetime

    from vwad_directory.config import Settings
    from vwad_directory.loader import CatalogLoader
    from vwad_directory.models import Catalog, Entry
    from vwad_directory.query import Filter

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")


class BrowseResult(BaseModel):
    """Filtered, sorted table contents plus the result count caption."""

    count: int
    count_label: str
    sort: SortSpec | None = None
    rows: list[TableRow] = Field(default_factory=list)


class LatestResult(Generic[T]):
    """Keeps only the result of the most recent input.

    Each input takes a ticket from :meth:`issue` before its work starts. A
    result is published only if no later ticket has published already, so
    a slow, stale computation cannot overwrite a newer one.
    """

    def __init__(self) -> None:
        self._issued = 0
        self._published = 0
        self.value: T | None = None

    def issue(self) -> int:
        self._issued += 1
        return self._issued

    def publish(self, ticket: int, value: T) -> bool:
        if ticket <= self._published:
            logger.debug("stale_result_dropped", ticket=ticket, latest=self._published)
            return False
        self._published = ticket
        self.value = value
        return True


class DirectoryService:
    """Search, lookup and rendering over one shared catalog."""

    def __init__(
        self,
        loader: CatalogLoader,
        *,
        base_url: str = "",
        badge_template: str = DEFAULT_STARS_BADGE_TEMPLATE,
    ) -> None:
        self._loader = loader
        self._base_url = base_url
        self._badge_template = badge_template

    @classmethod
    def from_settings(
        cls, settings: Settings, loader: CatalogLoader | None = None
    ) -> DirectoryService:
        from vwad_directory.loader import CatalogLoader

        return cls(
            loader or CatalogLoader.from_settings(settings),
            base_url=settings.site.base_url,
            badge_template=settings.site.stars_badge_template,
        )

    async def catalog(self) -> Catalog | None:
        """The loaded catalog, or None if it could not be loaded."""
        try:
            return await self._loader.load()
        except CatalogLoadError as exc:
            logger.warning("catalog_unavailable", source=exc.source, reason=exc.reason)
            return None

    async def get_by_slug(self, slug: str) -> Entry | None:
        catalog = await self.catalog()
        if catalog is None:
            return None
        return catalog.get_by_slug(slug)

    async def search(
        self, query: Filter | None = None, sort: SortSpec | None = None
    ) -> list[Entry]:
        catalog = await self.catalog()
        if catalog is None:
            return []
        return sort_entries(filter_entries(catalog, query), sort)

    async def browse(
        self,
        query: Filter | None = None,
        sort: SortSpec | None = None,
        now: datetime | None = None,
    ) -> BrowseResult:
        entries = await self.search(query, sort)
        return BrowseResult(
            count=len(entries),
            count_label=result_count_label(len(entries)),
            sort=sort,
            rows=[
                build_table_row(entry, base_url=self._base_url, now=now)
                for entry in entries
            ],
        )

    async def detail(
        self,
        slug: str,
        options: RenderOptions | None = None,
        now: datetime | None = None,
    ) -> EntryView | None:
        entry = await self.get_by_slug(slug)
        if entry is None:
            logger.info("entry_not_found", slug=slug)
            return None
        return self.render(entry, options, now=now)

    async def resolve(
        self,
        pathname: str,
        fragment: str = "",
        now: datetime | None = None,
    ) -> EntryView | None:
        """Render the entry addressed by a detail-page location, if any."""
        slug = extract_path_slug(pathname, fragment)
        if slug is None:
            return None
        return await self.detail(
            slug, RenderOptions(back_link=BackLink.PLAIN), now=now
        )

    def render(
        self,
        entry: Entry,
        options: RenderOptions | None = None,
        now: datetime | None = None,
    ) -> EntryView:
        return build_view_model(
            entry,
            options,
            base_url=self._base_url,
            badge_template=self._badge_template,
            now=now,
        )


class BrowseSession:
    """Re-runs the browse pipeline per user input, newest input wins."""

    def __init__(self, service: DirectoryService) -> None:
        self._service = service
        self._latest: LatestResult[BrowseResult] = LatestResult()

    @property
    def current(self) -> BrowseResult | None:
        return self._latest.value

    async def update(
        self, query: Filter | None = None, sort: SortSpec | None = None
    ) -> BrowseResult | None:
        """Browse with new input and return whatever is now the latest result."""
        ticket = self._latest.issue()
        result = await self._service.browse(query, sort)
        self._latest.publish(ticket, result)
        return self._latest.value
