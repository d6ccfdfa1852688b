"""
Base provider abstract classes for AniForge.

This module defines the abstract base classes that all anime and manga
providers must implement, together with the exception hierarchy used
across the resolution engine.

Not finding something is never an error: searches and listings return
empty lists. Exceptions are reserved for extraction and playback
failures, which callers must be able to tell apart from "no results".
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TYPE_CHECKING
import httpx
import logging

from models import (
    SearchQuery, MatchResult, Episode, EpisodeServer,
    MangaSearchResult, MangaChapter, MangaPage,
)

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/139.0.0.0 Safari/537.36'
)


class BaseProvider(ABC):
    """
    Abstract base class for all providers.

    Provider implementations should:
    - Set provider_id, provider_name, and base_url as class attributes
    - Implement all abstract methods of AnimeProvider or MangaProvider
    - Fetch through _get_text/_get_json so failures surface as ProviderError
    - Use logging instead of print statements

    Args:
        client: Shared HTTP client (a private one is created when omitted)
        config: Configuration (defaults are loaded when omitted)
    """

    # Provider metadata (set in subclass)
    provider_id: str = ""        # e.g., "hianime"
    provider_name: str = ""      # e.g., "HiAnime"
    base_url: str = ""           # e.g., "https://hianime.to"
    media_type: str = ""         # "anime" or "manga"

    def __init__(self, client: Optional[httpx.Client] = None, config: Optional['Config'] = None):
        """Initialize the provider with HTTP client."""
        if not self.provider_id or not self.provider_name or not self.base_url:
            raise ValueError("Provider must set provider_id, provider_name, and base_url")

        if config is None:
            from .config import Config
            config = Config()
        self.config = config

        self.session = client or httpx.Client(
            timeout=self.config.network_timeout,
            follow_redirects=True
        )
        logger.info(f"Initialized provider: {self.provider_name} ({self.provider_id})")

    def _request(self, url: str, params: Optional[Dict[str, Any]] = None,
                 headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        merged = self.get_headers()
        if headers:
            merged.update(headers)

        try:
            logger.debug(f"GET {url} params={params}")
            response = self.session.get(url, params=params, headers=merged)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            logger.warning(f"{self.provider_name} request failed {url}: {e}")
            raise ProviderError(f"Request to {url} failed: {e}") from e

    def _get_text(self, url: str, params: Optional[Dict[str, Any]] = None,
                  headers: Optional[Dict[str, str]] = None) -> str:
        """GET a page and return its body."""
        return self._request(url, params, headers).text

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None,
                  headers: Optional[Dict[str, str]] = None) -> Any:
        """
        GET a JSON endpoint.

        Raises:
            ProviderError: If the request fails or the body is not JSON
        """
        response = self._request(url, params, headers)
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"Invalid JSON from {url}: {e}") from e

    def get_headers(self) -> Dict[str, str]:
        """
        Return HTTP headers for requests.

        Override this method if the provider needs special headers
        like site markers, referers or custom user agents.

        Returns:
            Dictionary of HTTP headers
        """
        return {
            'User-Agent': self.config.get('network.user_agent', DEFAULT_USER_AGENT),
            'Referer': self.base_url + '/',
            'Accept': 'text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        }

    def close(self):
        """Close the underlying HTTP client."""
        self.session.close()

    def __str__(self) -> str:
        """String representation of the provider."""
        return f"{self.provider_name} ({self.provider_id})"

    def __repr__(self) -> str:
        """Detailed string representation."""
        return f"{self.__class__.__name__}(id='{self.provider_id}', name='{self.provider_name}', url='{self.base_url}')"


class AnimeProvider(BaseProvider):
    """Contract for streaming providers: search, list episodes, resolve a server."""

    media_type = "anime"
    episode_servers: List[str] = []
    supports_dub: bool = True
    # False when episode IDs are anime-level and the episode is picked by number
    per_episode_ids: bool = True

    @abstractmethod
    def search(self, query: SearchQuery) -> List[MatchResult]:
        """
        Find the catalog entries matching a title.

        Args:
            query: Search query with canonical titles and start date

        Returns:
            Matches ordered best-first (empty if nothing matches)
        """
        pass

    @abstractmethod
    def find_episodes(self, catalog_id: str) -> List[Episode]:
        """
        Get all episodes for a matched catalog entry.

        Args:
            catalog_id: Composite ID from MatchResult.id

        Returns:
            Episodes in provider order (empty on failure)
        """
        pass

    @abstractmethod
    def find_episode_server(self, episode: Episode, server: str = "default") -> EpisodeServer:
        """
        Resolve a playable stream for an episode.

        Args:
            episode: Episode to play (ID and number)
            server: Caller-facing server name or "default"

        Returns:
            EpisodeServer with playback headers and video sources

        Raises:
            ServerNotFoundError: If the server is not offered for the episode
            NoStreamFoundError: If no extractor produced a playable stream
        """
        pass

    def get_settings(self) -> Dict[str, Any]:
        return {
            'episode_servers': list(self.episode_servers),
            'supports_dub': self.supports_dub,
        }


class MangaProvider(BaseProvider):
    """Contract for manga providers: search, list chapters, list pages."""

    media_type = "manga"
    supports_multi_scanlator: bool = False

    @abstractmethod
    def search(self, query: str) -> List[MangaSearchResult]:
        """Search manga by keyword (empty on failure)."""
        pass

    @abstractmethod
    def find_chapters(self, manga_id: str) -> List[MangaChapter]:
        """
        Get all chapters for a manga.

        Returns:
            Chapters sorted newest first with dense ``index`` values
        """
        pass

    @abstractmethod
    def find_chapter_pages(self, chapter_id: str) -> List[MangaPage]:
        """Get the image pages of a chapter in reading order."""
        pass

    def get_settings(self) -> Dict[str, Any]:
        return {'supports_multi_scanlator': self.supports_multi_scanlator}


# Exception classes for provider errors
class ProviderError(Exception):
    """Base exception for provider-related errors."""
    pass


class ProviderNotFoundError(ProviderError):
    """Exception raised when a provider ID is not registered."""
    pass


class ExtractionError(ProviderError):
    """Exception raised when an embed extractor cannot recover sources."""
    pass


class ServerNotFoundError(ProviderError):
    """Exception raised when the requested server is not offered."""
    pass


class NoStreamFoundError(ProviderError):
    """Exception raised when no extractor produced a playable stream."""
    pass
