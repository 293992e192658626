"""Unit tests for vwad_directory.service - the directory facade."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from vwad_directory.config import Settings
from vwad_directory.loader import CatalogLoader
from vwad_directory.query import Filter
from vwad_directory.service import (
    BrowseResult,
    BrowseSession,
    DirectoryService,
    LatestResult,
)
from vwad_directory.sorting import SortDirection, SortField, SortSpec
from vwad_directory.views import BACK_TO_DIRECTORY_TEXT, BackLink, RenderOptions

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path


@pytest.fixture()
def service(collection_file: Path) -> DirectoryService:
    return DirectoryService(CatalogLoader(collection_file))


@pytest.fixture()
def broken_service(tmp_path: Path) -> DirectoryService:
    return DirectoryService(CatalogLoader(tmp_path / "missing.json"))


# ---- Lookup ------------------------------------------------------------------


class TestLookup:
    """Catalog access and slug lookup."""

    @pytest.mark.asyncio()
    async def test_catalog_loaded(self, service: DirectoryService) -> None:
        catalog = await service.catalog()
        assert catalog is not None
        assert len(catalog) == 4

    @pytest.mark.asyncio()
    async def test_get_by_slug(self, service: DirectoryService) -> None:
        entry = await service.get_by_slug("hackazon")
        assert entry is not None
        assert entry.name == "Hackazon"

    @pytest.mark.asyncio()
    async def test_get_by_unknown_slug(self, service: DirectoryService) -> None:
        assert await service.get_by_slug("nope") is None

    @pytest.mark.asyncio()
    async def test_unavailable_catalog_reads_as_empty(
        self, broken_service: DirectoryService
    ) -> None:
        assert await broken_service.catalog() is None
        assert await broken_service.get_by_slug("dvwa") is None
        assert await broken_service.search(Filter(text="dvwa")) == []

    @pytest.mark.asyncio()
    async def test_undecodable_catalog_reads_as_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "collection.json"
        path.write_bytes(b'[{"name": "\xff\xfe bad"}]')
        service = DirectoryService(CatalogLoader(path))
        assert await service.search() == []
        assert await service.resolve("/app/bad/") is None


# ---- Search and browse -------------------------------------------------------


class TestBrowse:
    """Filtered and sorted listings."""

    @pytest.mark.asyncio()
    async def test_search_filters_then_sorts(self, service: DirectoryService) -> None:
        entries = await service.search(
            Filter(collection_facets=frozenset({"offline"})),
            SortSpec(field=SortField.STARS, direction=SortDirection.DESC),
        )
        assert [e.name for e in entries] == [
            "OWASP Juice Shop",
            "DVWA",
            "WebGoat",
            "Hackazon",
        ]

    @pytest.mark.asyncio()
    async def test_browse_result(self, service: DirectoryService, now: datetime) -> None:
        result = await service.browse(Filter(text="php"), now=now)
        assert result.count == 2
        assert result.count_label == "2 applications"
        assert result.sort is None
        assert [row.slug for row in result.rows] == ["dvwa", "hackazon"]

    @pytest.mark.asyncio()
    async def test_browse_single_result_label(self, service: DirectoryService) -> None:
        result = await service.browse(Filter(text="webgoat"))
        assert result.count_label == "1 application"

    @pytest.mark.asyncio()
    async def test_browse_unavailable(self, broken_service: DirectoryService) -> None:
        result = await broken_service.browse()
        assert result.count == 0
        assert result.rows == []

    @pytest.mark.asyncio()
    async def test_base_url_applied_to_rows(self, collection_file: Path) -> None:
        service = DirectoryService(
            CatalogLoader(collection_file), base_url="https://vwad.test"
        )
        result = await service.browse(Filter(text="dvwa"))
        assert result.rows[0].url == "https://vwad.test/app/#dvwa"


# ---- Detail and resolve ------------------------------------------------------


class TestDetail:
    """Entry detail views."""

    @pytest.mark.asyncio()
    async def test_detail(self, service: DirectoryService, now: datetime) -> None:
        view = await service.detail("dvwa", now=now)
        assert view is not None
        assert view.title == "DVWA"
        assert view.back_link is None

    @pytest.mark.asyncio()
    async def test_detail_with_options(self, service: DirectoryService) -> None:
        view = await service.detail("dvwa", RenderOptions(back_link=BackLink.SLUG))
        assert view is not None
        assert view.back_link is not None
        assert view.back_link.url == "app/#dvwa"

    @pytest.mark.asyncio()
    async def test_detail_not_found(self, service: DirectoryService) -> None:
        assert await service.detail("nope") is None

    @pytest.mark.asyncio()
    async def test_resolve_path(self, service: DirectoryService) -> None:
        view = await service.resolve("/app/webgoat/")
        assert view is not None
        assert view.slug == "webgoat"
        assert view.back_link is not None
        assert view.back_link.text == BACK_TO_DIRECTORY_TEXT

    @pytest.mark.asyncio()
    async def test_resolve_fragment(self, service: DirectoryService) -> None:
        view = await service.resolve("/app/", "#owasp-juice-shop")
        assert view is not None
        assert view.title == "OWASP Juice Shop"

    @pytest.mark.asyncio()
    async def test_resolve_nothing(self, service: DirectoryService) -> None:
        assert await service.resolve("/app/", "") is None

    @pytest.mark.asyncio()
    async def test_resolve_unavailable(self, broken_service: DirectoryService) -> None:
        assert await broken_service.resolve("/app/dvwa/") is None

    @pytest.mark.asyncio()
    async def test_custom_badge_template(self, collection_file: Path) -> None:
        service = DirectoryService.from_settings(
            Settings(
                site={"stars_badge_template": "https://badge.test/{stars}"},
                catalog={"source": str(collection_file)},
            )
        )
        view = await service.detail("dvwa")
        assert view is not None
        assert view.stars is not None
        assert view.stars.image_url == "https://badge.test/9000"


# ---- Last writer wins --------------------------------------------------------


class TestLatestResult:
    """Only the newest ticket's result is kept."""

    def test_in_order_publishes(self) -> None:
        latest: LatestResult[str] = LatestResult()
        first = latest.issue()
        assert latest.publish(first, "a")
        second = latest.issue()
        assert latest.publish(second, "b")
        assert latest.value == "b"

    def test_stale_result_dropped(self) -> None:
        latest: LatestResult[str] = LatestResult()
        older = latest.issue()
        newer = latest.issue()
        assert latest.publish(newer, "new")
        assert not latest.publish(older, "old")
        assert latest.value == "new"

    def test_empty_until_published(self) -> None:
        latest: LatestResult[int] = LatestResult()
        latest.issue()
        assert latest.value is None


class _SlowFirstService(DirectoryService):
    """Browse takes longer for the first call than for the second."""

    def __init__(self, loader: CatalogLoader) -> None:
        super().__init__(loader)
        self._calls = 0

    async def browse(
        self,
        query: Filter | None = None,
        sort: SortSpec | None = None,
        now: datetime | None = None,
    ) -> BrowseResult:
        self._calls += 1
        delay = 0.05 if self._calls == 1 else 0.0
        result = await super().browse(query, sort, now)
        await asyncio.sleep(delay)
        return result


class TestBrowseSession:
    """Out-of-order completions never overwrite newer results."""

    @pytest.mark.asyncio()
    async def test_update_sets_current(self, service: DirectoryService) -> None:
        session = BrowseSession(service)
        assert session.current is None
        result = await session.update(Filter(text="dvwa"))
        assert result is not None
        assert session.current is result
        assert result.count == 1

    @pytest.mark.asyncio()
    async def test_slow_stale_update_dropped(self, collection_file: Path) -> None:
        session = BrowseSession(_SlowFirstService(CatalogLoader(collection_file)))
        await asyncio.gather(
            session.update(Filter(text="juice")),
            session.update(Filter(text="php")),
        )
        assert session.current is not None
        assert [row.slug for row in session.current.rows] == ["dvwa", "hackazon"]
