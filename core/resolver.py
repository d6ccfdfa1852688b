"""
Resolution facade for AniForge.

The Resolver is what the surrounding application talks to. It looks up
providers by ID (or source alias), fans sub and dub lookups out
concurrently and applies caller-supplied deadlines.

A listing that misses its deadline is treated like any other miss and
returns an empty result. A source resolution that misses its deadline is
a playback failure and raises NoStreamFoundError.

A timed-out call cannot be interrupted: its worker keeps running until
the provider's HTTP timeout (``network.timeout``) ends the request.
Single deadline-bound calls and the sub/dub fan-out therefore use
separate pools, so slow upstreams on one side do not starve the other.
"""
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Callable, List, Optional, TypeVar

from models import (
    FuzzyDate, MediaTitles, SearchQuery, MatchResult, Episode, EpisodeData,
    EpisodeServer, MangaSearchResult, MangaChapter, MangaPage,
)
from .base_provider import NoStreamFoundError
from .config import Config
from .provider_manager import ProviderManager

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Resolver:
    """
    Entry point for title, episode, source and chapter resolution.

    Args:
        provider_manager: Manager holding the providers (created if omitted)
        config: Configuration (taken from the manager if omitted)
        max_workers: Size of each worker pool
    """

    def __init__(self, provider_manager: Optional[ProviderManager] = None,
                 config: Optional[Config] = None, max_workers: int = 8):
        if config is None:
            config = provider_manager.config if provider_manager else Config()
        self.config = config
        self.provider_manager = provider_manager or ProviderManager(config=config)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="aniforge")
        self._fanout = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="aniforge-fanout")

    # ──────────────────────────────────────────────────────────────────
    #  Deadline helpers
    # ──────────────────────────────────────────────────────────────────

    @staticmethod
    def _deadline(timeout: Optional[float]) -> Optional[float]:
        return time.monotonic() + timeout if timeout is not None else None

    @staticmethod
    def _wait(future: Future, deadline: Optional[float]) -> T:
        """Wait for a future until the deadline; raises FutureTimeoutError."""
        if deadline is None:
            return future.result()
        return future.result(timeout=max(0.0, deadline - time.monotonic()))

    def _call(self, func: Callable[[], T], timeout: Optional[float], default: T, label: str) -> T:
        """Run a listing call under a deadline, returning ``default`` on timeout."""
        if timeout is None:
            return func()

        future = self._executor.submit(func)
        try:
            return self._wait(future, self._deadline(timeout))
        except FutureTimeoutError:
            future.cancel()
            logger.warning(f"{label} timed out after {timeout}s")
            return default

    # ──────────────────────────────────────────────────────────────────
    #  Anime
    # ──────────────────────────────────────────────────────────────────

    def search_title(self, provider_id: str, query: SearchQuery,
                     timeout: Optional[float] = None) -> List[MatchResult]:
        """Match a title against one provider's catalog, best match first."""
        provider = self.provider_manager.get_anime_provider(provider_id)
        return self._call(lambda: provider.search(query), timeout, [], f"{provider_id} search")

    def list_episodes(self, provider_id: str, catalog_id: str,
                      timeout: Optional[float] = None) -> List[Episode]:
        """List the episodes of a matched catalog entry."""
        provider = self.provider_manager.get_anime_provider(provider_id)
        return self._call(lambda: provider.find_episodes(catalog_id), timeout, [],
                          f"{provider_id} episode list")

    def fetch_episodes(self, provider_id: str, title: str,
                       romaji_title: Optional[str] = None,
                       english_title: Optional[str] = None,
                       start_date: Optional[FuzzyDate] = None,
                       timeout: Optional[float] = None) -> EpisodeData:
        """
        Resolve sub and dub episode lists for a title on one provider.

        Sub and dub searches run concurrently; the best match of each is
        then listed concurrently. Missing episode titles become
        "Episode N".

        Args:
            provider_id: Provider ID or source alias
            title: Query string sent to the provider search
            romaji_title: Canonical romaji title (defaults to ``title``)
            english_title: Canonical English title
            start_date: Start date of the work
            timeout: Overall deadline in seconds (None = wait indefinitely)

        Returns:
            EpisodeData; tracks that fail or time out are empty
        """
        provider = self.provider_manager.get_anime_provider(provider_id)
        media = MediaTitles(romaji_title=romaji_title or title, english_title=english_title,
                            start_date=start_date)
        deadline = self._deadline(timeout)
        data = EpisodeData(provider_id=provider.provider_id)

        searches = {
            track: self._fanout.submit(provider.search, SearchQuery(title, track == "dub", media))
            for track in ("sub", "dub")
        }
        listings = {}
        for track, future in searches.items():
            try:
                matches = self._wait(future, deadline)
            except FutureTimeoutError:
                logger.warning(f"{provider_id} {track} search timed out")
                continue
            if matches:
                listings[track] = self._fanout.submit(provider.find_episodes, matches[0].id)

        for track, future in listings.items():
            try:
                episodes = self._wait(future, deadline)
            except FutureTimeoutError:
                logger.warning(f"{provider_id} {track} episode list timed out")
                continue
            for episode in episodes:
                episode.title = episode.title or f"Episode {episode.number}"
            setattr(data, track, episodes)

        logger.info(f"{provider_id} episodes for '{title}': {len(data.sub)} sub, {len(data.dub)} dub")
        return data

    def resolve_episode_source(self, provider_id: str, episode_id: str,
                               server: Optional[str] = None,
                               episode_number: Optional[int] = None,
                               timeout: Optional[float] = None) -> EpisodeServer:
        """
        Resolve a playable stream for an episode.

        Args:
            provider_id: Provider ID or source alias
            episode_id: Episode ID from list_episodes
            server: Server name (provider default when omitted)
            episode_number: Episode number, required by providers whose
                episode IDs are anime-level
            timeout: Deadline in seconds

        Raises:
            ValueError: If the provider needs an episode number and none was given
            ServerNotFoundError: If the server is not offered
            NoStreamFoundError: If no stream could be resolved in time
        """
        provider = self.provider_manager.get_anime_provider(provider_id)
        if episode_number is None and not provider.per_episode_ids:
            raise ValueError(f"{provider.provider_name} selects episodes by number; episode_number is required")

        episode = Episode(id=episode_id, number=episode_number or 0)
        server = server or self.config.default_server

        if timeout is None:
            return provider.find_episode_server(episode, server)

        future = self._executor.submit(provider.find_episode_server, episode, server)
        try:
            return self._wait(future, self._deadline(timeout))
        except FutureTimeoutError as e:
            future.cancel()
            raise NoStreamFoundError(f"Timed out resolving {episode_id} on {server}") from e

    # ──────────────────────────────────────────────────────────────────
    #  Manga
    # ──────────────────────────────────────────────────────────────────

    def search_manga(self, provider_id: str, query: str,
                     timeout: Optional[float] = None) -> List[MangaSearchResult]:
        provider = self.provider_manager.get_manga_provider(provider_id)
        return self._call(lambda: provider.search(query), timeout, [], f"{provider_id} manga search")

    def list_chapters(self, provider_id: str, manga_id: str,
                      timeout: Optional[float] = None) -> List[MangaChapter]:
        provider = self.provider_manager.get_manga_provider(provider_id)
        return self._call(lambda: provider.find_chapters(manga_id), timeout, [],
                          f"{provider_id} chapter list")

    def list_chapter_pages(self, provider_id: str, chapter_id: str,
                           timeout: Optional[float] = None) -> List[MangaPage]:
        provider = self.provider_manager.get_manga_provider(provider_id)
        return self._call(lambda: provider.find_chapter_pages(chapter_id), timeout, [],
                          f"{provider_id} chapter pages")

    def close(self):
        """Stop the worker pool and close provider clients."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._fanout.shutdown(wait=False, cancel_futures=True)
        self.provider_manager.close()

    def __enter__(self) -> 'Resolver':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
