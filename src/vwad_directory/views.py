"""Renderer-agnostic view models for catalog entries.

:func:`build_view_model` turns an :class:`~vwad_directory.models.Entry`
into the structured description a detail page or featured card consumes.
:func:`build_table_row` does the same for one row of the browse table.
All text is emitted raw; escaping belongs to whatever renders the model.

Lookup tables (tooltips, label overrides, reference icons) are plain
read-only mappings so new tags only need a data change.
"""

from __future__ import annotations

import re
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from vwad_directory.config import DEFAULT_STARS_BADGE_TEMPLATE
from vwad_directory.recency import RecencyBand, classify_recency, format_date
from vwad_directory.routing import detail_url, directory_url

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from vwad_directory.models import Entry, Reference

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

COLLECTION_TOOLTIPS: Mapping[str, str] = MappingProxyType(
    {
        "online": "Hosted online; use over the internet",
        "offline": "Download and run locally",
        "mobile": "Mobile app (e.g. Android, iOS)",
        "container": "Containerized (Docker, VMs, ISOs)",
        "platform": "Platform or multi-app environment",
    }
)

CATEGORY_TOOLTIPS: Mapping[str, str] = MappingProxyType(
    {
        "ctf": "Capture the Flag challenge",
        "code-review": "Code review practice",
        "single-player": "Single-player",
        "multi-player": "Multi-player",
        "guided-lessons": "Guided lessons",
        "free-form": "Free-form practice",
        "scanner-test": "Scanner or tool testing",
    }
)

CATEGORY_LABELS: Mapping[str, str] = MappingProxyType({"ctf": "CTF"})

# Keys are lower-case reference names; values are icon identifiers.
REFERENCE_ICONS: Mapping[str, str] = MappingProxyType(
    {
        "guide": "guide",
        "download": "download",
        "downloads": "download",
        "docker": "docker",
        "announcement": "announcement",
        "live": "live",
        "demo": "demo",
        "preview": "preview",
    }
)

FALLBACK_ICON = "fallback"
PRIMARY_ICON = "link"
PRIMARY_LABEL = "Link"
MISSING_URL = "#"
BACK_TO_DIRECTORY_TEXT = "← Back to directory"
VIEW_DETAILS_TEXT = "View full details"
NO_VALUE = "-"

_WORD_START_RE = re.compile(r"\b\w", re.ASCII)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class BackLink(StrEnum):
    """Trailing navigation link under an entry."""

    NONE = "none"
    PLAIN = "plain"  # back to the directory root
    SLUG = "slug"  # forward to the entry's own detail view


class TitleLink(StrEnum):
    """Whether the title links to the detail view."""

    NONE = "none"
    SLUG = "slug"


class RenderOptions(BaseModel):
    """Recognized rendering options and their effects."""

    model_config = ConfigDict(frozen=True)

    back_link: BackLink = BackLink.NONE
    title_link: TitleLink = TitleLink.NONE


# ---------------------------------------------------------------------------
# View models
# ---------------------------------------------------------------------------


class PillKind(StrEnum):
    COLLECTION = "collection"
    TECHNOLOGY = "technology"
    CATEGORY = "category"
    UPDATED = "updated"


class Pill(BaseModel):
    """Small tag badge with an optional hover tooltip."""

    kind: PillKind
    text: str
    tooltip: str | None = None
    key: str | None = None


class StarsBadge(BaseModel):
    count: int
    image_url: str
    alt: str


class LastContribution(BaseModel):
    date: str
    display_date: str
    band: RecencyBand | None = None


class Action(BaseModel):
    """Outbound link button."""

    label: str
    url: str
    icon: str
    primary: bool = False


class NavLink(BaseModel):
    text: str
    url: str


class EntryView(BaseModel):
    """Everything a template needs to render one entry."""

    slug: str
    title: str
    title_url: str | None = None
    description: str | None = None
    collections: list[Pill] = Field(default_factory=list)
    technologies: list[Pill] = Field(default_factory=list)
    categories: list[Pill] = Field(default_factory=list)
    author: str | None = None
    stars: StarsBadge | None = None
    last_contribution: LastContribution | None = None
    actions: list[Action] = Field(default_factory=list)
    notes: str | None = None
    back_link: NavLink | None = None


class TableRow(BaseModel):
    """One row of the browse table."""

    slug: str
    name: str
    url: str
    collections: list[Pill] = Field(default_factory=list)
    technologies: list[Pill] = Field(default_factory=list)
    categories: list[Pill] = Field(default_factory=list)
    stars: str = NO_VALUE
    updated: Pill | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def title_case(text: str | None) -> str:
    """Upper-case the first character of every word."""
    if not text:
        return ""
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), str(text))


def reference_icon(name: str | None) -> str:
    """Icon identifier for a reference name, case-insensitive."""
    if not name:
        return FALLBACK_ICON
    return REFERENCE_ICONS.get(str(name).lower(), FALLBACK_ICON)


def stars_badge_url(stars: int, template: str = DEFAULT_STARS_BADGE_TEMPLATE) -> str:
    return template.format(stars=quote(str(stars), safe=""))


def collection_pills(tags: Iterable[str]) -> list[Pill]:
    return [
        Pill(kind=PillKind.COLLECTION, text=tag, tooltip=COLLECTION_TOOLTIPS.get(tag))
        for tag in tags
    ]


def technology_pills(tags: Iterable[str]) -> list[Pill]:
    return [Pill(kind=PillKind.TECHNOLOGY, text=tag) for tag in tags]


def category_pills(tags: Iterable[str]) -> list[Pill]:
    return [
        Pill(
            kind=PillKind.CATEGORY,
            text=CATEGORY_LABELS.get(tag, tag),
            tooltip=CATEGORY_TOOLTIPS.get(tag),
        )
        for tag in tags
    ]


def recency_pill(band: RecencyBand, tooltip: str | None = None) -> Pill:
    return Pill(kind=PillKind.UPDATED, text=band.label, key=band.key, tooltip=tooltip)


def _reference_action(ref: Reference) -> Action:
    return Action(
        label=title_case(ref.name),
        url=ref.url,
        icon=reference_icon(ref.name),
    )


def result_count_label(count: int) -> str:
    """``"1 application"`` / ``"N applications"``."""
    return f"{count} application{'' if count == 1 else 's'}"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_view_model(
    entry: Entry,
    options: RenderOptions | None = None,
    *,
    base_url: str = "",
    badge_template: str = DEFAULT_STARS_BADGE_TEMPLATE,
    now: datetime | None = None,
) -> EntryView:
    """Describe ``entry`` for a detail page or a featured card.

    Args:
        entry: A slugged catalog entry.
        options: Title and back-link behaviour; defaults to neither.
        base_url: Prefix for generated directory/detail links.
        badge_template: Stars badge image URL with a ``{stars}`` placeholder.
        now: Reference time for the recency band.

    Returns:
        The populated :class:`EntryView`.
    """
    opts = options or RenderOptions()

    title_url = None
    if opts.title_link == TitleLink.SLUG and entry.slug:
        title_url = detail_url(entry.slug, base_url)

    description = (entry.description or "").strip() or None

    stars = None
    if entry.stars is not None:
        stars = StarsBadge(
            count=entry.stars,
            image_url=stars_badge_url(entry.stars, badge_template),
            alt=f"{entry.stars} stars",
        )

    last_contribution = None
    if entry.last_contributed:
        last_contribution = LastContribution(
            date=entry.last_contributed,
            display_date=format_date(entry.last_contributed),
            band=classify_recency(entry.last_contributed, now),
        )

    actions = [
        Action(
            label=PRIMARY_LABEL,
            url=entry.url or MISSING_URL,
            icon=PRIMARY_ICON,
            primary=True,
        ),
    ]
    actions.extend(_reference_action(ref) for ref in entry.references)

    back_link = None
    if opts.back_link == BackLink.PLAIN:
        back_link = NavLink(text=BACK_TO_DIRECTORY_TEXT, url=directory_url(base_url))
    elif opts.back_link == BackLink.SLUG and entry.slug:
        back_link = NavLink(
            text=VIEW_DETAILS_TEXT, url=detail_url(entry.slug, base_url)
        )

    return EntryView(
        slug=entry.slug,
        title=entry.name,
        title_url=title_url,
        description=description,
        collections=collection_pills(entry.collection),
        technologies=technology_pills(entry.technology),
        categories=category_pills(entry.categories),
        author=entry.author or None,
        stars=stars,
        last_contribution=last_contribution,
        actions=actions,
        notes=entry.notes or None,
        back_link=back_link,
    )


def build_table_row(
    entry: Entry, *, base_url: str = "", now: datetime | None = None
) -> TableRow:
    """Describe ``entry`` as one row of the browse table."""
    band = classify_recency(entry.last_contributed, now)
    return TableRow(
        slug=entry.slug,
        name=entry.name,
        url=detail_url(entry.slug, base_url),
        collections=collection_pills(entry.collection),
        technologies=technology_pills(entry.technology),
        categories=category_pills(entry.categories),
        stars=str(entry.stars) if entry.stars is not None else NO_VALUE,
        updated=recency_pill(band, "Last contribution") if band else None,
    )
