"""
Models package for AniForge.

This package contains all data models used throughout the application.
"""
from .anime import (
    FuzzyDate, MediaTitles, SearchQuery, CatalogCandidate, MatchResult,
    Episode, EpisodeData, Subtitle, VideoSource, SkipTime, EpisodeServer,
    split_catalog_id,
)
from .manga import MangaSearchResult
from .chapter import MangaChapter, MangaPage

__all__ = [
    'FuzzyDate', 'MediaTitles', 'SearchQuery', 'CatalogCandidate', 'MatchResult',
    'Episode', 'EpisodeData', 'Subtitle', 'VideoSource', 'SkipTime', 'EpisodeServer',
    'split_catalog_id', 'MangaSearchResult', 'MangaChapter', 'MangaPage',
]
