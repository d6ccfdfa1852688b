"""
Provider manager for AniForge.

This module handles auto-discovery and management of all anime and manga
providers. It automatically finds and loads all provider classes from the
providers/ directory without manual registration.

Providers are constructed explicitly with the manager's configuration and,
when given, a shared HTTP client, so tests can inject a fake transport.
"""
import importlib
import inspect
import logging
from typing import Dict, List, Optional
from pathlib import Path

import httpx

from .base_provider import BaseProvider, AnimeProvider, MangaProvider, ProviderNotFoundError
from .config import Config

logger = logging.getLogger(__name__)


class ProviderManager:
    """
    Auto-discovers and manages all providers.

    This class automatically scans the providers/ directory for any
    concrete classes that inherit from BaseProvider and makes the enabled
    ones available for use.

    Args:
        config: Configuration passed to every provider
        client: Optional HTTP client shared by every provider
    """

    def __init__(self, config: Optional[Config] = None, client: Optional[httpx.Client] = None):
        """Initialize the provider manager and auto-discover providers."""
        self.config = config or Config()
        self.client = client
        self.providers: Dict[str, BaseProvider] = {}
        self._auto_discover_providers()
        logger.info(f"Loaded {len(self.providers)} providers: {list(self.providers.keys())}")

    def _auto_discover_providers(self):
        """
        Automatically find and load all provider classes.

        Scans the providers/ directory for Python files, imports them,
        and looks for classes that inherit from BaseProvider.
        """
        providers_dir = Path(__file__).parent.parent / 'providers'

        if not providers_dir.exists():
            logger.warning(f"Providers directory not found: {providers_dir}")
            return

        enabled = self.config.enabled_providers

        # Scan all Python files in providers directory
        for provider_file in sorted(providers_dir.glob('*.py')):
            if provider_file.name == '__init__.py':
                continue

            try:
                module = importlib.import_module(f"providers.{provider_file.stem}")
            except ImportError as e:
                logger.error(f"Failed to import provider module {provider_file.name}: {e}")
                continue

            # Find all concrete classes in the module that inherit from BaseProvider
            for name, obj in inspect.getmembers(module, inspect.isclass):
                if (not issubclass(obj, BaseProvider) or
                        inspect.isabstract(obj) or
                        not obj.provider_id):
                    continue

                if enabled and obj.provider_id not in enabled:
                    logger.debug(f"Provider '{obj.provider_id}' is disabled in config")
                    continue

                # Check if provider_id is already registered
                if obj.provider_id in self.providers:
                    if not isinstance(self.providers[obj.provider_id], obj):
                        logger.warning(f"Duplicate provider ID '{obj.provider_id}' found in {provider_file.name}. Skipping.")
                    continue

                self.providers[obj.provider_id] = obj(client=self.client, config=self.config)
                logger.debug(f"Loaded provider: {obj.provider_name} ({obj.provider_id})")

    def resolve_id(self, provider_id: str) -> str:
        """
        Map a source alias such as 'source1', or a site URL such as
        'https://comix.to/title/...', to its provider ID.
        """
        if "://" in provider_id:
            provider = self.get_provider_from_url(provider_id)
            return provider.provider_id if provider else provider_id
        return self.config.provider_aliases.get(provider_id, provider_id)

    def get_provider(self, provider_id: str) -> BaseProvider:
        """
        Get a provider instance by ID or alias.

        Args:
            provider_id: Provider ID, source alias or site URL

        Returns:
            BaseProvider instance

        Raises:
            ProviderNotFoundError: If provider is not found
        """
        provider_id = self.resolve_id(provider_id)
        if provider_id not in self.providers:
            available = ', '.join(self.providers.keys())
            raise ProviderNotFoundError(f"Provider '{provider_id}' not found. Available providers: {available}")

        return self.providers[provider_id]

    def get_anime_provider(self, provider_id: str) -> AnimeProvider:
        provider = self.get_provider(provider_id)
        if not isinstance(provider, AnimeProvider):
            raise ProviderNotFoundError(f"Provider '{provider_id}' is not an anime provider")
        return provider

    def get_manga_provider(self, provider_id: str) -> MangaProvider:
        provider = self.get_provider(provider_id)
        if not isinstance(provider, MangaProvider):
            raise ProviderNotFoundError(f"Provider '{provider_id}' is not a manga provider")
        return provider

    def list_providers(self, media_type: Optional[str] = None) -> List[str]:
        """
        List available provider IDs.

        Args:
            media_type: Only list "anime" or "manga" providers

        Returns:
            List of provider ID strings
        """
        return [
            provider_id for provider_id, provider in self.providers.items()
            if media_type is None or provider.media_type == media_type
        ]

    def get_provider_from_url(self, url: str) -> Optional[BaseProvider]:
        """
        Detect provider from URL.

        Args:
            url: URL to analyze

        Returns:
            BaseProvider instance if URL matches a provider, None otherwise
        """
        for provider in self.providers.values():
            if provider.base_url in url:
                return provider
        return None

    def get_provider_info(self, provider_id: str) -> Optional[Dict]:
        """
        Get detailed information about a provider.

        Args:
            provider_id: The provider ID to get info for

        Returns:
            Dictionary with provider information or None if not found
        """
        provider_id = self.resolve_id(provider_id)
        if provider_id not in self.providers:
            return None

        provider = self.providers[provider_id]
        return {
            'id': provider.provider_id,
            'name': provider.provider_name,
            'base_url': provider.base_url,
            'media_type': provider.media_type,
            'class': provider.__class__.__name__,
            'settings': provider.get_settings(),
        }

    def close(self):
        """Close every provider's HTTP client (the shared client is left to its owner)."""
        if self.client is None:
            for provider in self.providers.values():
                provider.close()

    def __len__(self) -> int:
        """Return the number of loaded providers."""
        return len(self.providers)

    def __contains__(self, provider_id: str) -> bool:
        """Check if a provider ID is loaded."""
        return self.resolve_id(provider_id) in self.providers

    def __iter__(self):
        """Iterate over all providers."""
        return iter(self.providers.values())
