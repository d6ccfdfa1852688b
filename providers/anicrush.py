"""
AniCrush provider for AniForge.

Fully API-based provider using the api.anicrush.to shared/v2 JSON API.
The API only answers requests that carry the site's own Referer, Origin
and X-Site headers.

Episode IDs are anime-level (``"{movie_id}/{sub_or_dub}"``); the episode
is picked by number when its sources are requested.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from core.base_provider import AnimeProvider, ProviderError, NoStreamFoundError
from core.config import Config
from core.fallback import StreamResolver
from core.matcher import CatalogMatcher
from core.utils import parse_air_date, validate_url
from models import SearchQuery, MatchResult, CatalogCandidate, Episode, EpisodeServer, split_catalog_id

logger = logging.getLogger(__name__)

API_BASE = "https://api.anicrush.to/shared/v2"

# Caller-facing server name -> API server number
SERVER_IDS = {
    "Southcloud-1": 4,
    "Southcloud-2": 1,
    "Southcloud-3": 6,
}
DEFAULT_SERVER = "Southcloud-1"


def parse_movies(payload: Any, base_url: str) -> List[CatalogCandidate]:
    """Convert a movie/list response into catalog candidates."""
    result = payload.get("result") if isinstance(payload, dict) else None
    movies = result.get("movies") if isinstance(result, dict) else None
    candidates: List[CatalogCandidate] = []

    for movie in movies or []:
        if not isinstance(movie, dict) or movie.get("id") is None:
            continue
        name = movie.get("name") or ""
        slug = movie.get("slug") or ""
        movie_id = str(movie["id"])

        candidates.append(
            CatalogCandidate(
                id=movie_id,
                page_url=slug,
                url=f"{base_url}/detail/{slug}.{movie_id}",
                title=movie.get("name_english") or name,
                title_native=name,
                supports_dub=bool(movie.get("has_dub")),
                start_date=parse_air_date(movie.get("aired_from")),
            )
        )

    return candidates


def flatten_episode_groups(payload: Any) -> List[Dict[str, Any]]:
    """
    Flatten the episode list response.

    Episodes come grouped by range (``{"1-100": [...], "101-200": [...]}``);
    groups are concatenated in the order received.
    """
    groups = payload.get("result") if isinstance(payload, dict) else None
    if isinstance(groups, dict):
        groups = list(groups.values())
    if not isinstance(groups, list):
        return []

    flat: List[Dict[str, Any]] = []
    for group in groups:
        if isinstance(group, list):
            flat.extend(item for item in group if isinstance(item, dict))
    return flat


class AniCrushProvider(AnimeProvider):
    """Provider for anicrush.to."""

    provider_id = "anicrush"
    provider_name = "AniCrush"
    base_url = "https://anicrush.to"
    episode_servers = list(SERVER_IDS)
    per_episode_ids = False

    def __init__(self, client: Optional[httpx.Client] = None, config: Optional[Config] = None,
                 matcher: Optional[CatalogMatcher] = None,
                 stream_resolver: Optional[StreamResolver] = None):
        super().__init__(client, config)
        self.matcher = matcher or CatalogMatcher(self.config.similarity_threshold)
        self.stream_resolver = stream_resolver or StreamResolver.from_config(self.session, self.config)

    def search(self, query: SearchQuery) -> List[MatchResult]:
        try:
            payload = self._get_json(
                f"{API_BASE}/movie/list",
                params={"keyword": query.query, "limit": 48, "page": 1},
            )
        except ProviderError as e:
            logger.warning("AniCrush search failed for '%s': %s", query.query, e)
            return []

        results = self.matcher.match(query, parse_movies(payload, self.base_url))
        logger.info("AniCrush search '%s' (%s): %d matches", query.query, query.sub_or_dub, len(results))
        return results

    def find_episodes(self, catalog_id: str) -> List[Episode]:
        movie_id, sub_or_dub = split_catalog_id(catalog_id)

        try:
            payload = self._get_json(f"{API_BASE}/episode/list", params={"_movieId": movie_id})
        except ProviderError as e:
            logger.warning("AniCrush episode list failed for %s: %s", movie_id, e)
            return []

        episodes: List[Episode] = []
        for item in flatten_episode_groups(payload):
            try:
                number = int(item["number"])
            except (KeyError, TypeError, ValueError):
                continue
            episodes.append(
                Episode(
                    id=f"{movie_id}/{sub_or_dub}",
                    number=number,
                    title=item.get("name_english") or None,
                    url="",
                )
            )

        logger.info("AniCrush find_episodes %s returned %d episodes", movie_id, len(episodes))
        return episodes

    def find_episode_server(self, episode: Episode, server: str = "default") -> EpisodeServer:
        movie_id, sub_or_dub = split_catalog_id(episode.id)
        server_name = server if server and server != "default" else DEFAULT_SERVER
        server_id = SERVER_IDS.get(server_name, SERVER_IDS[DEFAULT_SERVER])

        try:
            payload = self._get_json(
                f"{API_BASE}/episode/sources",
                params={"_movieId": movie_id, "ep": episode.number, "sv": server_id, "sc": sub_or_dub},
            )
        except ProviderError as e:
            raise NoStreamFoundError(f"No stream found for {server_name}: {e}") from e

        result = payload.get("result") if isinstance(payload, dict) else None
        embed_url = result.get("link") if isinstance(result, dict) else None
        if not embed_url or not validate_url(embed_url):
            raise NoStreamFoundError(f"Missing encrypted iframe link for {server_name}")

        return self.stream_resolver.resolve(embed_url, server_name)

    def get_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": "Mozilla/5.0",
            "Accept": "application/json",
            "Referer": self.base_url + "/",
            "Origin": self.base_url,
            "X-Site": "anicrush",
        }
