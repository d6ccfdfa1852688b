"""
Core package for AniForge.

This package contains the provider resolution engine: the base provider
contracts, title normalization and matching, embed extraction with
fallback, provider management and the Resolver facade.
"""
from .base_provider import (
    BaseProvider, AnimeProvider, MangaProvider,
    ProviderError, ProviderNotFoundError, ExtractionError,
    ServerNotFoundError, NoStreamFoundError,
)
from .titles import normalize_loose, normalize_strict
from .similarity import similarity, edit_distance
from .matcher import CatalogMatcher
from .extractors import MegaCloudExtractor, RelayExtractor, ExtractedSources
from .fallback import StreamResolver
from .provider_manager import ProviderManager
from .resolver import Resolver
from .config import Config

__all__ = [
    'BaseProvider', 'AnimeProvider', 'MangaProvider',
    'ProviderError', 'ProviderNotFoundError', 'ExtractionError',
    'ServerNotFoundError', 'NoStreamFoundError',
    'normalize_loose', 'normalize_strict', 'similarity', 'edit_distance',
    'CatalogMatcher', 'MegaCloudExtractor', 'RelayExtractor', 'ExtractedSources',
    'StreamResolver', 'ProviderManager', 'Resolver', 'Config',
]
