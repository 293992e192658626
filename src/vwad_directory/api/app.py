"""FastAPI application exposing directory search, detail and routing."""

from __future__ import annotations

from typing import Annotated

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from vwad_directory import __version__
from vwad_directory.api.models import FacetsResponse, FacetValue, ResolveResponse
from vwad_directory.config import Settings
from vwad_directory.loader import CatalogLoader
from vwad_directory.models import CollectionTag
from vwad_directory.query import Filter
from vwad_directory.routing import extract_path_slug
from vwad_directory.service import BrowseResult, DirectoryService
from vwad_directory.sorting import SortDirection, SortField, SortSpec
from vwad_directory.views import (
    CATEGORY_LABELS,
    CATEGORY_TOOLTIPS,
    COLLECTION_TOOLTIPS,
    BackLink,
    EntryView,
    RenderOptions,
    TitleLink,
)


def create_app(
    settings: Settings | None = None, loader: CatalogLoader | None = None
) -> FastAPI:
    """Create and configure the directory API app."""
    app_settings = settings or Settings.load()
    service = DirectoryService.from_settings(app_settings, loader)

    app = FastAPI(title="vwad-directory API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.api.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.state.settings = app_settings
    app.state.service = service

    @app.get("/health")
    async def health() -> dict[str, str]:
        catalog = await service.catalog()
        state = "loaded" if catalog is not None else "unavailable"
        return {"status": "ok", "catalog": state}

    @app.get("/api/apps", response_model=BrowseResult)
    async def list_apps(
        q: str = "",
        collection: Annotated[list[str] | None, Query()] = None,
        technology: Annotated[list[str] | None, Query()] = None,
        sort: SortField | None = None,
        direction: Annotated[SortDirection, Query(alias="dir")] = SortDirection.ASC,
    ) -> BrowseResult:
        query = Filter(
            text=q,
            collection_facets=frozenset(collection or ()),
            technology_facets=frozenset(technology or ()),
        )
        spec = SortSpec(field=sort, direction=direction) if sort else None
        return await service.browse(query, spec)

    @app.get("/api/apps/{slug}", response_model=EntryView)
    async def get_app(
        slug: str,
        back_link: BackLink = BackLink.NONE,
        title_link: TitleLink = TitleLink.NONE,
    ) -> EntryView:
        view = await service.detail(
            slug, RenderOptions(back_link=back_link, title_link=title_link)
        )
        if view is None:
            raise HTTPException(status_code=404, detail="Application not found")
        return view

    @app.get("/api/facets", response_model=FacetsResponse)
    async def facets() -> FacetsResponse:
        catalog = await service.catalog()
        collections = [
            FacetValue(
                value=tag.value,
                label=tag.value,
                tooltip=COLLECTION_TOOLTIPS.get(tag.value),
            )
            for tag in CollectionTag
        ]
        if catalog is None:
            return FacetsResponse(collections=collections)
        return FacetsResponse(
            collections=collections,
            technologies=catalog.technologies(),
            categories=[
                FacetValue(
                    value=tag,
                    label=CATEGORY_LABELS.get(tag, tag),
                    tooltip=CATEGORY_TOOLTIPS.get(tag),
                )
                for tag in catalog.categories()
            ],
        )

    @app.get("/api/resolve", response_model=ResolveResponse)
    async def resolve(path: str = "", fragment: str = "") -> ResolveResponse:
        slug = extract_path_slug(path, fragment)
        if slug is None:
            return ResolveResponse()
        return ResolveResponse(
            slug=slug, found=await service.get_by_slug(slug) is not None
        )

    return app
