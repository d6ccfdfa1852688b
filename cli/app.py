"""
Main CLI application for AniForge.

Typer commands over the Resolver facade, with Rich tables for output.
Every data command accepts ``--json`` to print machine-readable output
instead of tables.
"""
import json
import logging
from dataclasses import asdict
from typing import Any, Optional

import typer
import yaml
from rich.console import Console

from core.base_provider import ProviderError, ProviderNotFoundError
from core.config import Config
from core.resolver import Resolver
from models import FuzzyDate, MediaTitles, SearchQuery
from .tables import (
    display_providers, display_matches, display_episodes, display_episode_server,
    display_manga_results, display_chapters_table, display_pages,
)

logger = logging.getLogger(__name__)
console = Console()

app = typer.Typer(
    name="aniforge",
    help="Resolve anime and manga titles to episodes, streams and chapters.",
    no_args_is_help=True,
)


def create_resolver(config: Config) -> Resolver:
    """Build the resolver used by the commands."""
    return Resolver(config=config)


def _resolver(ctx: typer.Context) -> Resolver:
    return ctx.obj["resolver"]


def _deadline(ctx: typer.Context) -> Optional[float]:
    return ctx.obj["config"].deadline


def _print_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _fail(message: str, code: int = 1) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(code)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to settings.yaml"),
):
    """AniForge provider resolution engine."""
    config = Config(config_path)
    resolver = create_resolver(config)
    ctx.obj = {"config": config, "resolver": resolver}
    ctx.call_on_close(resolver.close)


@app.command("providers")
def list_providers(ctx: typer.Context):
    """List the registered providers."""
    manager = _resolver(ctx).provider_manager
    display_providers([manager.get_provider_info(pid) for pid in manager.list_providers()])


@app.command()
def search(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Query string sent to the provider"),
    provider: str = typer.Option("hianime", "--provider", "-p"),
    romaji: Optional[str] = typer.Option(None, help="Canonical romaji title (defaults to TITLE)"),
    english: Optional[str] = typer.Option(None, help="Canonical English title"),
    year: Optional[int] = typer.Option(None, help="Start year"),
    month: Optional[int] = typer.Option(None, help="Start month"),
    dub: bool = typer.Option(False, "--dub", help="Match the dubbed track"),
    as_json: bool = typer.Option(False, "--json"),
):
    """Match a title against a provider's catalog."""
    start = FuzzyDate(year=year, month=month) if year else None
    query = SearchQuery(title, dub, MediaTitles(romaji or title, english, start))

    try:
        matches = _resolver(ctx).search_title(provider, query, timeout=_deadline(ctx))
    except ProviderNotFoundError as e:
        _fail(str(e), 2)

    if as_json:
        _print_json([asdict(match) for match in matches])
    elif not matches:
        console.print("[yellow]No results found.[/yellow]")
    else:
        display_matches(matches, provider)


@app.command()
def episodes(
    ctx: typer.Context,
    catalog_id: str = typer.Argument(..., help="Match ID such as 18330/sub"),
    provider: str = typer.Option("hianime", "--provider", "-p"),
    as_json: bool = typer.Option(False, "--json"),
):
    """List the episodes of a matched title."""
    try:
        items = _resolver(ctx).list_episodes(provider, catalog_id, timeout=_deadline(ctx))
    except ProviderNotFoundError as e:
        _fail(str(e), 2)

    if as_json:
        _print_json([asdict(episode) for episode in items])
    elif not items:
        console.print("[yellow]No episodes found.[/yellow]")
    else:
        display_episodes(items)


@app.command()
def lookup(
    ctx: typer.Context,
    title: str = typer.Argument(...),
    provider: str = typer.Option("hianime", "--provider", "-p"),
    romaji: Optional[str] = typer.Option(None),
    english: Optional[str] = typer.Option(None),
    year: Optional[int] = typer.Option(None),
    month: Optional[int] = typer.Option(None),
    as_json: bool = typer.Option(False, "--json"),
):
    """Resolve sub and dub episode lists for a title in one go."""
    start = FuzzyDate(year=year, month=month) if year else None
    try:
        data = _resolver(ctx).fetch_episodes(provider, title, romaji, english, start,
                                             timeout=_deadline(ctx))
    except ProviderNotFoundError as e:
        _fail(str(e), 2)

    if as_json:
        _print_json(asdict(data))
        return

    display_episodes(data.sub, f"Sub - {data.provider_id}")
    display_episodes(data.dub, f"Dub - {data.provider_id}")


@app.command()
def source(
    ctx: typer.Context,
    episode_id: str = typer.Argument(..., help="Episode ID from the episodes command"),
    provider: str = typer.Option("hianime", "--provider", "-p"),
    server: Optional[str] = typer.Option(None, "--server", "-s"),
    number: Optional[int] = typer.Option(None, "--number", "-n", help="Episode number"),
    as_json: bool = typer.Option(False, "--json"),
):
    """Resolve a playable stream for an episode."""
    try:
        result = _resolver(ctx).resolve_episode_source(
            provider, episode_id, server=server, episode_number=number, timeout=_deadline(ctx)
        )
    except ProviderNotFoundError as e:
        _fail(str(e), 2)
    except ValueError as e:
        _fail(str(e), 2)
    except ProviderError as e:
        logger.error(f"Source resolution failed for {episode_id}: {e}")
        _fail(f"No stream found: {e}")

    if as_json:
        _print_json(result.to_source_payload())
    else:
        display_episode_server(result)


@app.command("manga-search")
def manga_search(
    ctx: typer.Context,
    query: str = typer.Argument(...),
    provider: str = typer.Option("comix", "--provider", "-p"),
    as_json: bool = typer.Option(False, "--json"),
):
    """Search a manga provider by keyword."""
    try:
        results = _resolver(ctx).search_manga(provider, query, timeout=_deadline(ctx))
    except ProviderNotFoundError as e:
        _fail(str(e), 2)

    if as_json:
        _print_json([asdict(result) for result in results])
    elif not results:
        console.print("[yellow]No results found.[/yellow]")
    else:
        display_manga_results(results)


@app.command()
def chapters(
    ctx: typer.Context,
    manga_id: str = typer.Argument(..., help="Manga ID such as 93q1r|the-summoner"),
    provider: str = typer.Option("comix", "--provider", "-p"),
    as_json: bool = typer.Option(False, "--json"),
):
    """List the chapters of a manga, newest first."""
    try:
        items = _resolver(ctx).list_chapters(provider, manga_id, timeout=_deadline(ctx))
    except ProviderNotFoundError as e:
        _fail(str(e), 2)

    if as_json:
        _print_json([asdict(chapter) for chapter in items])
    elif not items:
        console.print("[yellow]No chapters found.[/yellow]")
    else:
        display_chapters_table(items)


@app.command()
def pages(
    ctx: typer.Context,
    chapter_id: str = typer.Argument(...),
    provider: str = typer.Option("comix", "--provider", "-p"),
    as_json: bool = typer.Option(False, "--json"),
):
    """List the image pages of a chapter."""
    try:
        items = _resolver(ctx).list_chapter_pages(provider, chapter_id, timeout=_deadline(ctx))
    except ProviderNotFoundError as e:
        _fail(str(e), 2)

    if as_json:
        _print_json([asdict(page) for page in items])
    elif not items:
        console.print("[yellow]No pages found.[/yellow]")
    else:
        display_pages(items)


@app.command("config")
def config_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Setting in dot notation, e.g. matching.similarity_threshold"),
    value: Optional[str] = typer.Argument(None, help="New value (YAML syntax); omit to show the current one"),
):
    """Show a setting, or change it and save the settings file."""
    config = ctx.obj["config"]
    if value is None:
        _print_json(config.get(key))
        return

    try:
        config.set(key, yaml.safe_load(value))
    except yaml.YAMLError as e:
        _fail(f"Invalid value for {key}: {e}", 2)

    try:
        config.save()
    except OSError as e:
        _fail(f"Could not save settings: {e}")
    console.print(f"[green]✓ {key} saved to {config.config_path}[/green]")
