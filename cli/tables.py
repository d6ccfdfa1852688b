"""
Table formatting for AniForge CLI.

This module handles all Rich table displays: matches, episodes, resolved
streams, manga search results, chapters and pages.
"""
from typing import Dict, List

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

from models import MatchResult, Episode, EpisodeServer, MangaSearchResult, MangaChapter, MangaPage

console = Console()


def _truncate(text: str, width: int) -> str:
    if len(text) > width:
        return text[:width - 3] + "..."
    return text


def _panel(table: Table, title: str) -> Panel:
    return Panel(
        table,
        title=f"[bold blue]{title}[/bold blue]",
        border_style="blue",
        padding=(0, 1)
    )


def display_providers(providers: List[Dict]) -> None:
    """Display registered providers and their capabilities."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Type", style="green", justify="center")
    table.add_column("Base URL", style="dim")
    table.add_column("Servers", style="yellow")

    for info in providers:
        servers = info['settings'].get('episode_servers', [])
        table.add_row(
            info['id'],
            info['name'],
            info['media_type'],
            info['base_url'],
            ", ".join(servers) if servers else "-",
        )

    console.print(_panel(table, "Providers"))


def display_matches(matches: List[MatchResult], provider_id: str) -> None:
    """
    Display catalog matches best-first.

    Args:
        matches: Matches returned by the resolver
        provider_id: Provider the matches came from
    """
    table = Table(title=f"Matches - {provider_id}", show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan", width=4, justify="center")
    table.add_column("ID", style="green")
    table.add_column("Title", style="white", max_width=40)
    table.add_column("Track", style="yellow", justify="center")
    table.add_column("URL", style="dim", max_width=40)

    for i, match in enumerate(matches, 1):
        table.add_row(str(i), match.id, _truncate(match.title, 40), match.sub_or_dub, match.url)

    console.print(_panel(table, "Search Results"))


def display_episodes(episodes: List[Episode], title: str = "Episodes") -> None:
    """Display an episode list."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("No.", style="cyan", width=5, justify="right")
    table.add_column("ID", style="green")
    table.add_column("Title", style="white", max_width=50)

    for episode in episodes:
        table.add_row(str(episode.number), episode.id, _truncate(episode.title or "-", 50))

    console.print(_panel(table, title))


def display_episode_server(server: EpisodeServer) -> None:
    """Display a resolved stream with its headers and subtitles."""
    info_table = Table(show_header=False, show_edge=False, pad_edge=False)
    info_table.add_column("Field", style="cyan", width=12)
    info_table.add_column("Value", style="white")

    info_table.add_row("Server:", server.server)
    for source in server.video_sources:
        info_table.add_row("Stream:", escape(f"[{source.type}] {source.url}"))
        for subtitle in source.subtitles:
            default = " (default)" if subtitle.is_default else ""
            info_table.add_row("Subtitle:", f"{subtitle.language}{default} {subtitle.url}")
    for name, value in server.headers.items():
        info_table.add_row(f"{name}:", value)
    if server.intro:
        info_table.add_row("Intro:", f"{server.intro.start:g}s - {server.intro.end:g}s")
    if server.outro:
        info_table.add_row("Outro:", f"{server.outro.start:g}s - {server.outro.end:g}s")

    console.print(Panel(info_table, title="[bold green]Stream[/bold green]", border_style="green"))


def display_manga_results(results: List[MangaSearchResult]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan", width=4, justify="center")
    table.add_column("ID", style="green")
    table.add_column("Title", style="white", max_width=40)
    table.add_column("Also known as", style="dim", max_width=40)

    for i, result in enumerate(results, 1):
        table.add_row(str(i), result.id, _truncate(result.title, 40),
                      _truncate(", ".join(result.synonyms), 40) or "-")

    console.print(_panel(table, "Manga Results"))


def display_chapters_table(chapters: List[MangaChapter]) -> None:
    """
    Display chapters newest first.

    Args:
        chapters: Chapters as returned by the resolver
    """
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan", width=5, justify="right")
    table.add_column("Chapter", style="white", max_width=40)
    table.add_column("Lang", style="yellow", width=5, justify="center")
    table.add_column("Scanlator", style="magenta", max_width=18)
    table.add_column("ID", style="dim")

    for chapter in chapters:
        table.add_row(
            str(chapter.index),
            _truncate(chapter.title, 40),
            chapter.language.upper() if chapter.language else "-",
            _truncate(chapter.scanlator or "-", 18),
            chapter.id,
        )

    console.print(_panel(table, "Chapter List"))


def display_pages(pages: List[MangaPage]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Page", style="cyan", width=5, justify="right")
    table.add_column("URL", style="white")

    for page in pages:
        table.add_row(str(page.index + 1), page.url)

    console.print(_panel(table, "Pages"))
