"""
Stream resolution with extractor fallback for AniForge.

StreamResolver turns an embed URL into an EpisodeServer. It tries the
primary extractor once and, if that raises or yields no sources, the
fallback extractor exactly once. Failure of both is terminal and is
raised as NoStreamFoundError so callers can tell it apart from an empty
listing.
"""
import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import httpx

from models import EpisodeServer, SkipTime, Subtitle, VideoSource
from .base_provider import ExtractionError, NoStreamFoundError
from .extractors import (
    PLAYABLE_TYPES, EmbedExtractor, ExtractedSources, MegaCloudExtractor, RelayExtractor,
)

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)

# Required by the playback CDN whichever extractor found the stream
PLAYBACK_HEADERS = {
    "Referer": "https://megacloud.club/",
    "Origin": "https://megacloud.club",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/139.0.0.0 Safari/537.36"
    ),
}

STREAM_PREFERENCE = PLAYABLE_TYPES


def select_stream(sources: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Pick the preferred source: HLS first, then MP4.

    Raises:
        NoStreamFoundError: If no HLS or MP4 source has a file URL
    """
    for stream_type in STREAM_PREFERENCE:
        for source in sources:
            if source.get("type") == stream_type and source.get("file"):
                return source
    raise NoStreamFoundError("No valid stream file found")


def build_subtitles(tracks: List[Dict[str, Any]]) -> List[Subtitle]:
    """Convert caption tracks; IDs are positional since upstream rarely has any."""
    captions = [track for track in tracks if track.get("kind") == "captions"]
    return [
        Subtitle(
            id=f"sub-{index}",
            language=track.get("label") or "Unknown",
            url=track.get("file", ""),
            is_default=bool(track.get("default")),
        )
        for index, track in enumerate(captions)
    ]


class StreamResolver:
    """
    Primary-then-fallback extractor coordinator.

    Args:
        primary: Extractor tried first
        fallback: Extractor tried once if the primary fails (optional)
    """

    def __init__(self, primary: EmbedExtractor, fallback: Optional[EmbedExtractor] = None):
        self.primary = primary
        self.fallback = fallback

    @classmethod
    def from_config(cls, client: httpx.Client, config: 'Config') -> 'StreamResolver':
        """MegaCloud key exchange first, then the configured decrypt relay."""
        fallback = None
        if config.fallback_extractor_url:
            fallback = RelayExtractor(client, config.fallback_extractor_url)
        return cls(MegaCloudExtractor(client), fallback)

    def resolve(self, embed_url: str, server_name: str,
                playback_headers: Optional[Dict[str, str]] = None) -> EpisodeServer:
        """
        Resolve an embed URL into a playable EpisodeServer.

        Args:
            embed_url: Embed page URL returned by the provider
            server_name: Caller-facing server name echoed in the result
            playback_headers: Headers the player must send (defaults to
                PLAYBACK_HEADERS)

        Returns:
            EpisodeServer with a single preferred video source

        Raises:
            NoStreamFoundError: If neither extractor yields a playable stream
        """
        data = self.extract(embed_url)
        stream = select_stream(data.sources)

        return EpisodeServer(
            server=server_name,
            headers=dict(playback_headers or PLAYBACK_HEADERS),
            video_sources=[
                VideoSource(
                    url=stream["file"],
                    type=stream["type"],
                    quality="auto",
                    subtitles=build_subtitles(data.tracks),
                )
            ],
            intro=SkipTime.from_dict(data.intro),
            outro=SkipTime.from_dict(data.outro),
        )

    def extract(self, embed_url: str) -> ExtractedSources:
        """Run the primary extractor, falling back once on failure or empty output."""
        try:
            data = self.primary.extract(embed_url)
            if data.usable:
                return data
            logger.warning(f"Primary extractor '{self.primary.name}' returned no playable sources")
        except ExtractionError as e:
            logger.warning(f"Primary extractor '{self.primary.name}' failed: {e}")

        if self.fallback is None:
            raise NoStreamFoundError("No video sources from any decrypter")

        logger.warning(f"Trying fallback extractor '{self.fallback.name}' for {embed_url}")
        try:
            return self.fallback.extract(embed_url)
        except ExtractionError as e:
            logger.error(f"Fallback extractor '{self.fallback.name}' failed: {e}")
            raise NoStreamFoundError(f"No video sources from any decrypter: {e}") from e
