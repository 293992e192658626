"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class FacetValue(BaseModel):
    """A filterable tag and its tooltip, if the directory defines one."""

    value: str
    label: str
    tooltip: str | None = None


class FacetsResponse(BaseModel):
    """Filter vocabularies for building search controls."""

    collections: list[FacetValue] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    categories: list[FacetValue] = Field(default_factory=list)


class ResolveResponse(BaseModel):
    """Slug found in a detail-page location, if any."""

    slug: str | None = None
    found: bool = False
