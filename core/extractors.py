"""
Embed extractors for AniForge.

Streaming sites hand out an embed page URL instead of the media itself.
An extractor turns that URL into the raw source/track lists.

- MegaCloudExtractor performs the key exchange directly: it reads the file
  ID and nonce from the embed page and calls the player's getSources
  endpoint.
- RelayExtractor asks an external decrypt-relay service to do the same.

Extractors make a single attempt and raise ExtractionError on failure.
Choosing between them is the job of core.fallback.StreamResolver.
"""
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .base_provider import ExtractionError
from .utils import origin_of

logger = logging.getLogger(__name__)

MOBILE_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 10; K) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/137.0.0.0 Mobile Safari/537.36"
)

_FILE_ID = re.compile(r"<title>\s*File\s+#([a-zA-Z0-9]+)\s*-", re.IGNORECASE)
_NONCE_48 = re.compile(r"\b[a-zA-Z0-9]{48}\b")
_NONCE_16 = re.compile(r"[\"']([A-Za-z0-9]{16})[\"']")

# Stream types a player can use, in order of preference
PLAYABLE_TYPES = ("hls", "mp4")


@dataclass
class ExtractedSources:
    """Raw player payload: ``sources`` entries carry ``file`` and ``type``."""
    sources: List[Dict[str, Any]] = field(default_factory=list)
    tracks: List[Dict[str, Any]] = field(default_factory=list)
    intro: Optional[Dict[str, Any]] = None
    outro: Optional[Dict[str, Any]] = None
    server: Optional[Any] = None

    @property
    def usable(self) -> bool:
        """True when at least one HLS or MP4 source has a file URL."""
        return any(
            source.get("type") in PLAYABLE_TYPES and source.get("file")
            for source in self.sources
        )

    @classmethod
    def from_payload(cls, payload: Any) -> "ExtractedSources":
        """
        Build from a getSources-shaped JSON object.

        Raises:
            ExtractionError: If the payload is not a JSON object
        """
        if not isinstance(payload, dict):
            raise ExtractionError(f"Unexpected sources payload: {type(payload).__name__}")

        sources = payload.get("sources")
        tracks = payload.get("tracks")
        return cls(
            sources=[s for s in sources if isinstance(s, dict)] if isinstance(sources, list) else [],
            tracks=[t for t in tracks if isinstance(t, dict)] if isinstance(tracks, list) else [],
            intro=payload.get("intro") or None,
            outro=payload.get("outro") or None,
            server=payload.get("server"),
        )


class EmbedExtractor(ABC):
    """Base class for extractors sharing an HTTP client."""

    name: str = ""

    def __init__(self, client: httpx.Client):
        self.session = client

    @abstractmethod
    def extract(self, embed_url: str) -> ExtractedSources:
        """
        Recover sources for an embed page.

        Raises:
            ExtractionError: If the sources cannot be recovered
        """
        pass

    def _get(self, url: str, headers: Optional[Dict[str, str]] = None,
             params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            response = self.session.get(url, headers=headers, params=params)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            raise ExtractionError(f"{self.name}: request to {url} failed: {e}") from e

    def _get_json(self, url: str, headers: Optional[Dict[str, str]] = None,
                  params: Optional[Dict[str, Any]] = None) -> Any:
        response = self._get(url, headers, params)
        try:
            return response.json()
        except ValueError as e:
            raise ExtractionError(f"{self.name}: invalid JSON from {url}") from e


def parse_file_id(html: str) -> str:
    """
    Read the file ID from the embed page title ("File #abc123 - ...").

    Raises:
        ExtractionError: If the title does not carry a file ID
    """
    match = _FILE_ID.search(html)
    if not match:
        raise ExtractionError("file_id not found in embed page")
    return match.group(1)


def parse_nonce(html: str) -> str:
    """
    Read the getSources nonce from the embed page.

    The nonce appears either as one 48-character token or split into
    three quoted 16-character tokens, concatenated in document order.

    Raises:
        ExtractionError: If neither form is present
    """
    match = _NONCE_48.search(html)
    if match:
        return match.group(0)

    parts = _NONCE_16.findall(html)
    if len(parts) >= 3:
        return "".join(parts[:3])

    raise ExtractionError("nonce not found")


class MegaCloudExtractor(EmbedExtractor):
    """Key-exchange extractor for MegaCloud-style embed players."""

    name = "megacloud"
    sources_path = "embed-2/v3/e-1/getSources"

    def extract(self, embed_url: str) -> ExtractedSources:
        try:
            base = origin_of(embed_url)
        except ValueError as e:
            raise ExtractionError(str(e)) from e

        headers = {
            "Accept": "*/*",
            "X-Requested-With": "XMLHttpRequest",
            "Referer": base,
            "User-Agent": MOBILE_USER_AGENT,
        }

        html = self._get(embed_url, headers=headers).text
        file_id = parse_file_id(html)
        nonce = parse_nonce(html)
        logger.debug(f"MegaCloud file_id={file_id} nonce={nonce[:8]}...")

        payload = self._get_json(
            f"{base}{self.sources_path}",
            headers=headers,
            params={"id": file_id, "_k": nonce},
        )
        return ExtractedSources.from_payload(payload)


class RelayExtractor(EmbedExtractor):
    """
    Decrypt-relay fallback.

    Args:
        client: HTTP client
        endpoint: Relay URL taking the embed URL as ``embedUrl``
    """

    name = "relay"

    def __init__(self, client: httpx.Client, endpoint: str):
        super().__init__(client)
        self.endpoint = endpoint

    def extract(self, embed_url: str) -> ExtractedSources:
        if not self.endpoint:
            raise ExtractionError("No relay endpoint configured")

        payload = self._get_json(self.endpoint, params={"embedUrl": embed_url})
        return ExtractedSources.from_payload(payload)
