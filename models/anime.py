"""
Anime data models for AniForge.

This module contains the data structures used to describe a title lookup,
the catalog candidates a provider returns, and the episode and stream
information resolved for playback.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class FuzzyDate:
    """Partial date as used by AniList (any component may be missing)."""
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["FuzzyDate"]:
        if not data:
            return None
        return cls(year=data.get("year"), month=data.get("month"), day=data.get("day"))


@dataclass(frozen=True)
class MediaTitles:
    """Canonical titles and start date of the work being looked up."""
    romaji_title: str
    english_title: Optional[str] = None
    start_date: Optional[FuzzyDate] = None


@dataclass(frozen=True)
class SearchQuery:
    """
    A single catalog lookup.

    ``query`` is the raw string sent to the provider's search endpoint,
    ``media`` carries the canonical titles used for matching.
    """
    query: str
    dub: bool
    media: MediaTitles

    @property
    def sub_or_dub(self) -> str:
        return "dub" if self.dub else "sub"

    @property
    def start_year(self) -> Optional[int]:
        start = self.media.start_date
        return start.year if start else None

    @property
    def start_month(self) -> Optional[int]:
        start = self.media.start_date
        return start.month if start else None


@dataclass
class CatalogCandidate:
    """
    One search result from a provider's own catalog.

    The loose-normalized forms of both titles are computed once at
    construction so the matcher can compare them repeatedly.
    """
    id: str               # Provider-internal ID
    page_url: str         # Slug or path on the provider site
    url: str              # Absolute URL to the title page
    title: str            # Translated (usually English) title
    title_native: str = ""
    supports_dub: bool = True
    start_date: Optional[FuzzyDate] = None
    norm_title: str = field(init=False, repr=False)
    norm_title_native: str = field(init=False, repr=False)

    def __post_init__(self):
        from core.titles import normalize_loose

        self.norm_title = normalize_loose(self.title)
        self.norm_title_native = normalize_loose(self.title_native)

    @property
    def start_year(self) -> Optional[int]:
        return self.start_date.year if self.start_date else None

    @property
    def start_month(self) -> Optional[int]:
        return self.start_date.month if self.start_date else None


@dataclass
class MatchResult:
    """Catalog entry selected for a query."""
    id: str               # "{provider_internal_id}/{sub_or_dub}"
    title: str
    url: str
    sub_or_dub: str

    def split_id(self) -> Tuple[str, str]:
        """Recover the provider-internal ID and the sub/dub marker."""
        return split_catalog_id(self.id)

    def __str__(self) -> str:
        return f"{self.title} [{self.sub_or_dub}]"


def split_catalog_id(catalog_id: str) -> Tuple[str, str]:
    """
    Split a composite ``"{id}/{sub_or_dub}"`` key.

    A key without a marker is treated as ``sub``.
    """
    internal_id, _, sub_or_dub = catalog_id.partition("/")
    return internal_id, sub_or_dub or "sub"


@dataclass
class Episode:
    """
    Episode information for an anime.

    For some providers ``id`` is the anime-level composite ID and the episode
    is selected by ``number`` when the source is requested.
    """
    id: str
    number: int
    title: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    img: Optional[str] = None

    def __str__(self) -> str:
        return f"Episode {self.number}: {self.title or ''}".rstrip(": ")


@dataclass
class EpisodeData:
    """Sub and dub episode lists resolved from a single provider."""
    provider_id: str
    sub: List[Episode] = field(default_factory=list)
    dub: List[Episode] = field(default_factory=list)
    mapped: bool = True


@dataclass
class Subtitle:
    id: str
    language: str
    url: str
    is_default: bool = False


@dataclass
class VideoSource:
    url: str
    type: str             # "hls" or "mp4"
    quality: str = "auto"
    subtitles: List[Subtitle] = field(default_factory=list)


@dataclass
class SkipTime:
    start: float
    end: float

    @classmethod
    def from_dict(cls, data: Any) -> Optional["SkipTime"]:
        if not isinstance(data, dict):
            return None
        try:
            return cls(start=float(data["start"]), end=float(data["end"]))
        except (KeyError, TypeError, ValueError):
            return None


@dataclass
class EpisodeServer:
    """Playable stream resolved for one episode on one server."""
    server: str
    headers: Dict[str, str]
    video_sources: List[VideoSource]
    intro: Optional[SkipTime] = None
    outro: Optional[SkipTime] = None

    def to_source_payload(self) -> Dict[str, Any]:
        """
        Flatten into the shape the watch page consumes.

        Returns:
            Dictionary with ``sources``, ``subtitles``, ``headers``,
            ``intro`` and ``outro`` keys
        """
        subtitles = self.video_sources[0].subtitles if self.video_sources else []
        return {
            "sources": [
                {"url": source.url, "quality": source.quality}
                for source in self.video_sources
            ],
            "subtitles": [{"url": sub.url, "lang": sub.language} for sub in subtitles],
            "headers": dict(self.headers),
            "intro": {"start": self.intro.start, "end": self.intro.end} if self.intro else None,
            "outro": {"start": self.outro.start, "end": self.outro.end} if self.outro else None,
        }
