"""
HiAnime provider for AniForge.

hianime.to serves its catalog through ajax endpoints that return JSON
objects wrapping an HTML fragment (``{"html": "..."}``). Each fragment is
parsed by a dedicated parse_* function so markup changes only touch
those functions.

Episode IDs are per-episode: ``"{episode_data_id}/{sub_or_dub}"``.
"""
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from core.base_provider import AnimeProvider, ProviderError, ServerNotFoundError, NoStreamFoundError
from core.config import Config
from core.fallback import StreamResolver, PLAYBACK_HEADERS
from core.matcher import CatalogMatcher
from core.titles import fix_escaped_ampersands
from core.utils import parse_air_date, validate_url
from models import SearchQuery, MatchResult, CatalogCandidate, Episode, EpisodeServer, split_catalog_id

logger = logging.getLogger(__name__)

_TRAILING_ID = re.compile(r"-(\d+)$")


def _fragment(payload: Any) -> str:
    """Pull the HTML fragment out of an ajax response."""
    if isinstance(payload, dict):
        return str(payload.get("html") or "")
    return ""


def parse_suggestions(html: str, base_url: str) -> List[CatalogCandidate]:
    """
    Parse the search-suggest fragment.

    Each suggestion links to "/{slug}-{id}" and shows the English title,
    the romaji title (``data-jname``) and the airing date.
    """
    soup = BeautifulSoup(html, "html.parser")
    candidates: List[CatalogCandidate] = []

    for item in soup.select("a.nav-item"):
        page_url = str(item.get("href", "")).lstrip("/")
        # The last link is "View all results"
        if not page_url or page_url.startswith("search?"):
            continue

        name = item.select_one(".film-name")
        if not name:
            continue

        info = item.select_one(".film-infor span")
        id_match = _TRAILING_ID.search(page_url)

        candidates.append(
            CatalogCandidate(
                id=id_match.group(1) if id_match else page_url,
                page_url=page_url,
                url=f"{base_url}/{page_url}",
                title=fix_escaped_ampersands(name.get_text(strip=True)),
                title_native=fix_escaped_ampersands(str(name.get("data-jname", ""))),
                start_date=parse_air_date(info.get_text(strip=True)) if info else None,
            )
        )

    return candidates


def parse_search_page(html: str, base_url: str) -> List[CatalogCandidate]:
    """Parse the full search results page (no dates available)."""
    soup = BeautifulSoup(html, "html.parser")
    candidates: List[CatalogCandidate] = []

    for item in soup.select("div.flw-item"):
        poster = item.select_one("a[data-id][href^='/watch/']")
        if not poster:
            continue

        page_url = str(poster["href"])[len("/watch/"):].split("?")[0]
        name_link = item.select_one("h3.film-name a")
        title = str(poster.get("title") or (name_link.get_text(strip=True) if name_link else ""))

        candidates.append(
            CatalogCandidate(
                id=str(poster["data-id"]),
                page_url=page_url,
                url=f"{base_url}/{page_url}",
                title=fix_escaped_ampersands(title),
                title_native=fix_escaped_ampersands(str(name_link.get("data-jname", ""))) if name_link else "",
            )
        )

    return candidates


def parse_episode_list(html: str, sub_or_dub: str, base_url: str) -> List[Episode]:
    """Parse the episode list fragment into episodes keyed by their data-id."""
    soup = BeautifulSoup(html, "html.parser")
    episodes: List[Episode] = []

    for item in soup.select("a.ep-item"):
        episode_id = item.get("data-id")
        try:
            number = int(str(item.get("data-number", "")))
        except ValueError:
            continue
        if not episode_id:
            continue

        name = item.select_one(".ep-name")
        title = None
        if name:
            title = str(name.get("title") or name.get_text(strip=True)) or None

        episodes.append(
            Episode(
                id=f"{episode_id}/{sub_or_dub}",
                number=number,
                url=urljoin(base_url, str(item.get("href", ""))),
                title=title,
            )
        )

    return episodes


def parse_server_id(html: str, server_name: str, sub_or_dub: str) -> str:
    """
    Find the ID of a named server in the servers fragment.

    Raises:
        ServerNotFoundError: If no server of that name serves the track
    """
    soup = BeautifulSoup(html, "html.parser")
    wanted = server_name.strip().lower()

    for item in soup.select("div.server-item"):
        if item.get("data-type") != sub_or_dub:
            continue
        link = item.select_one("a")
        if link and link.get_text(strip=True).lower() == wanted and item.get("data-id"):
            return str(item["data-id"])

    raise ServerNotFoundError(f'Server "{server_name}" ({sub_or_dub}) not found')


class HiAnimeProvider(AnimeProvider):
    """Provider for hianime.to."""

    provider_id = "hianime"
    provider_name = "HiAnime"
    base_url = "https://hianime.to"
    episode_servers = ["HD-1", "HD-2"]
    default_server = "HD-1"

    AJAX_HEADERS = {"X-Requested-With": "XMLHttpRequest"}
    PLAYBACK_HEADERS = {
        **PLAYBACK_HEADERS,
        "User-Agent": PLAYBACK_HEADERS["User-Agent"] + " Edg/139.0.0.0",
    }

    def __init__(self, client: Optional[httpx.Client] = None, config: Optional[Config] = None,
                 matcher: Optional[CatalogMatcher] = None,
                 stream_resolver: Optional[StreamResolver] = None):
        super().__init__(client, config)
        self.matcher = matcher or CatalogMatcher(self.config.similarity_threshold)
        self.stream_resolver = stream_resolver or StreamResolver.from_config(self.session, self.config)

    # ──────────────────────────────────────────────────────────────────
    #  Search
    # ──────────────────────────────────────────────────────────────────

    def search(self, query: SearchQuery) -> List[MatchResult]:
        try:
            payload = self._get_json(
                f"{self.base_url}/ajax/search/suggest",
                params={"keyword": query.query},
                headers=self.AJAX_HEADERS,
            )
        except ProviderError as e:
            logger.warning("HiAnime search failed for '%s': %s", query.query, e)
            return []

        candidates = parse_suggestions(_fragment(payload), self.base_url)
        results = self.matcher.match(query, candidates, fallback=lambda: self._search_page(query.query))
        logger.info("HiAnime search '%s' (%s): %d matches", query.query, query.sub_or_dub, len(results))
        return results

    def _search_page(self, keyword: str) -> List[CatalogCandidate]:
        try:
            html = self._get_text(f"{self.base_url}/search", params={"keyword": keyword})
        except ProviderError as e:
            logger.warning("HiAnime search page failed for '%s': %s", keyword, e)
            return []
        return parse_search_page(html, self.base_url)

    # ──────────────────────────────────────────────────────────────────
    #  Episodes
    # ──────────────────────────────────────────────────────────────────

    def find_episodes(self, catalog_id: str) -> List[Episode]:
        anime_id, sub_or_dub = split_catalog_id(catalog_id)

        try:
            payload = self._get_json(
                f"{self.base_url}/ajax/v2/episode/list/{anime_id}",
                headers=self.AJAX_HEADERS,
            )
        except ProviderError as e:
            logger.warning("HiAnime episode list failed for %s: %s", anime_id, e)
            return []

        episodes = parse_episode_list(_fragment(payload), sub_or_dub, self.base_url)
        logger.info("HiAnime find_episodes %s returned %d episodes", anime_id, len(episodes))
        return episodes

    # ──────────────────────────────────────────────────────────────────
    #  Servers
    # ──────────────────────────────────────────────────────────────────

    def find_episode_server(self, episode: Episode, server: str = "default") -> EpisodeServer:
        episode_id, sub_or_dub = split_catalog_id(episode.id)
        server_name = server if server and server != "default" else self.default_server

        try:
            servers = self._get_json(
                f"{self.base_url}/ajax/v2/episode/servers",
                params={"episodeId": episode_id},
                headers=self.AJAX_HEADERS,
            )
            server_id = parse_server_id(_fragment(servers), server_name, sub_or_dub)

            sources = self._get_json(
                f"{self.base_url}/ajax/v2/episode/sources",
                params={"id": server_id},
                headers=self.AJAX_HEADERS,
            )
        except ServerNotFoundError:
            raise
        except ProviderError as e:
            raise NoStreamFoundError(f"No stream found for {server_name}: {e}") from e

        embed_url = sources.get("link") if isinstance(sources, dict) else None
        if not embed_url or not validate_url(embed_url):
            raise NoStreamFoundError(f"No embed link for {server_name}")

        return self.stream_resolver.resolve(embed_url, server_name, self.PLAYBACK_HEADERS)

    def get_headers(self) -> Dict[str, str]:
        headers = super().get_headers()
        headers["Accept"] = "application/json, text/javascript, text/html, */*; q=0.01"
        return headers
