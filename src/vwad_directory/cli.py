"""Typer CLI entry point for the directory."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from vwad_directory import __version__
from vwad_directory.api.server import run_server
from vwad_directory.config import Settings, format_validation_error
from vwad_directory.logging import configure_logging
from vwad_directory.query import Filter
from vwad_directory.routing import extract_path_slug
from vwad_directory.service import BrowseResult, DirectoryService
from vwad_directory.sorting import SortDirection, SortField, SortSpec
from vwad_directory.views import BackLink, EntryView, Pill, RenderOptions

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="vwad",
    help="Browse the Vulnerable Web Applications Directory catalog.",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config YAML file."),
]
SourceOption = Annotated[
    str | None,
    typer.Option("--source", "-s", help="Catalog JSON path or URL."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable verbose logging."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Print the view model as JSON."),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings(
    config_path: Path | None = None,
    source: str | None = None,
    verbose: bool = False,
    **overrides: Any,
) -> Settings:
    """Load settings, configure logging, and report config errors nicely."""
    from pydantic import ValidationError

    if source:
        overrides["catalog"] = {"source": source}
    if verbose:
        overrides["logging"] = {"level": "DEBUG"}

    try:
        settings = Settings.load(config_path=config_path, **overrides)
    except ValidationError as exc:
        err_console.print(
            Panel(
                format_validation_error(exc),
                title="Configuration Error",
                border_style="red",
            )
        )
        raise typer.Exit(code=1) from exc

    configure_logging(
        level=settings.logging.level,
        fmt=settings.logging.format,
        log_file=settings.logging.file,
    )
    return settings


def _pill_text(pills: list[Pill]) -> str:
    return " ".join(escape(pill.text) for pill in pills)


def _display_rows(result: BrowseResult) -> None:
    """Render the browse table with Rich."""
    table = Table(title=result.count_label, show_lines=False)
    table.add_column("Name", style="bold cyan")
    table.add_column("Collections", style="magenta")
    table.add_column("Tech & categories")
    table.add_column("Stars", justify="right")
    table.add_column("Updated", justify="center")

    for row in result.rows:
        tags = " ".join(
            part
            for part in (_pill_text(row.technologies), _pill_text(row.categories))
            if part
        )
        table.add_row(
            f"{escape(row.name)}\n[dim]{row.slug}[/dim]",
            _pill_text(row.collections),
            tags,
            row.stars,
            row.updated.text if row.updated else "-",
        )

    console.print(table)


def _display_detail(view: EntryView) -> None:
    """Render an entry view as a Rich panel."""
    lines: list[str] = []
    if view.description:
        lines.extend([escape(view.description), ""])
    if view.collections:
        lines.append(f"[bold]Collections[/bold] {_pill_text(view.collections)}")
    if view.technologies:
        lines.append(f"[bold]Technology[/bold] {_pill_text(view.technologies)}")
    if view.categories:
        lines.append(f"[bold]Categories[/bold] {_pill_text(view.categories)}")
    if view.author:
        lines.append(f"[bold]Author[/bold] {escape(view.author)}")
    if view.stars:
        lines.append(f"[bold]Stars[/bold] {view.stars.count}")
    if view.last_contribution:
        contribution = view.last_contribution
        band = f" ({contribution.band.label})" if contribution.band else ""
        lines.append(
            f"[bold]Last contribution[/bold] {contribution.display_date}{band}"
        )

    lines.append("")
    for action in view.actions:
        lines.append(f"[cyan]{escape(action.label)}[/cyan] {escape(action.url)}")

    if view.notes:
        lines.extend(["", "[bold]Notes[/bold]", escape(view.notes)])
    if view.back_link:
        back = f"{view.back_link.text}: {view.back_link.url}"
        lines.extend(["", f"[dim]{escape(back)}[/dim]"])

    console.print(
        Panel(
            "\n".join(lines),
            title=escape(view.title),
            subtitle=view.slug,
            border_style="blue",
        )
    )


def _not_found(slug: str) -> None:
    err_console.print(f"[red]Application not found:[/red] {escape(slug)}")
    raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Version callback
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]vwad-directory[/bold] {__version__}")
        raise typer.Exit


@app.callback()
def common(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """vwad-directory global options."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def search(
    query: Annotated[
        str, typer.Argument(help="Free-text query (name, author, notes, tags).")
    ] = "",
    collection: Annotated[
        list[str] | None,
        typer.Option("--collection", "-C", help="Collection facet (repeatable)."),
    ] = None,
    technology: Annotated[
        list[str] | None,
        typer.Option("--technology", "-t", help="Technology facet (repeatable)."),
    ] = None,
    sort: Annotated[
        SortField | None,
        typer.Option("--sort", help="Sort column."),
    ] = None,
    desc: Annotated[
        bool,
        typer.Option("--desc", help="Sort descending."),
    ] = False,
    as_json: JsonOption = False,
    config: ConfigOption = None,
    source: SourceOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Search and filter the catalog."""
    settings = _load_settings(config, source, verbose)
    service = DirectoryService.from_settings(settings)

    query_filter = Filter(
        text=query,
        collection_facets=frozenset(collection or ()),
        technology_facets=frozenset(technology or ()),
    )
    spec = None
    if sort is not None:
        spec = SortSpec(
            field=sort, direction=SortDirection.DESC if desc else SortDirection.ASC
        )

    result = asyncio.run(service.browse(query_filter, spec))

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return
    if not result.rows:
        console.print("[yellow]No applications match.[/yellow]")
        return
    _display_rows(result)


@app.command()
def show(
    slug: Annotated[str, typer.Argument(help="Application slug, e.g. juice-shop.")],
    as_json: JsonOption = False,
    config: ConfigOption = None,
    source: SourceOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show one application's details."""
    settings = _load_settings(config, source, verbose)
    service = DirectoryService.from_settings(settings)

    view = asyncio.run(
        service.detail(slug, RenderOptions(back_link=BackLink.PLAIN))
    )
    if view is None:
        _not_found(slug)
        return

    if as_json:
        typer.echo(view.model_dump_json(indent=2))
        return
    _display_detail(view)


@app.command()
def resolve(
    path: Annotated[str, typer.Argument(help="Request path, e.g. /app/juice-shop/.")],
    fragment: Annotated[
        str,
        typer.Option("--hash", help="URL fragment, e.g. '#dvwa'."),
    ] = "",
    as_json: JsonOption = False,
    config: ConfigOption = None,
    source: SourceOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Resolve a detail-page location to the application it shows."""
    settings = _load_settings(config, source, verbose)
    service = DirectoryService.from_settings(settings)

    slug = extract_path_slug(path, fragment)
    if slug is None:
        err_console.print(
            f"[red]No application in this location:[/red] {escape(path + fragment)}"
        )
        raise typer.Exit(code=1)

    view = asyncio.run(service.resolve(path, fragment))
    if view is None:
        _not_found(slug)
        return

    if as_json:
        typer.echo(view.model_dump_json(indent=2))
        return
    _display_detail(view)


@app.command()
def serve(
    port: Annotated[
        int,
        typer.Option("--port", help="Port to bind the API server."),
    ] = 8000,
    host: Annotated[
        str,
        typer.Option("--host", help="Host/interface to bind the API server."),
    ] = "127.0.0.1",
    config: ConfigOption = None,
    source: SourceOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Run the directory API server."""
    settings = _load_settings(
        config,
        source,
        verbose,
        api={"port": port, "host": host},
    )
    logger.info("api_starting", host=host, port=port, source=settings.catalog.source)
    run_server(settings)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
