"""
Configuration management for AniForge.

This module handles loading and managing application settings from
YAML configuration files with proper defaults.
"""
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional

import yaml

logger = logging.getLogger(__name__)


class Config:
    """
    Configuration manager for AniForge.

    This class loads settings from YAML files and provides
    easy access to configuration values with proper defaults.

    Features:
    - YAML configuration file loading
    - Recursive merge over built-in defaults
    - Dot-notation access ('network.timeout')
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, uses default locations.
        """
        self.config_path = self._find_config_file(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _find_config_file(self, config_path: Optional[str] = None) -> Path:
        """
        Find the configuration file to load.

        Args:
            config_path: Explicit path to config file

        Returns:
            Path to the configuration file to use
        """
        if config_path:
            path = Path(config_path)
            if path.exists():
                return path
            else:
                logger.warning(f"Config file not found: {path}")

        # Try default locations
        search_paths = [
            Path.cwd() / 'config' / 'settings.yaml',
            Path.cwd() / 'settings.yaml',
            Path.home() / '.aniforge' / 'settings.yaml',
        ]

        for path in search_paths:
            if path.exists():
                logger.debug(f"Found config file: {path}")
                return path

        # Return default path even if it doesn't exist
        return Path.cwd() / 'config' / 'settings.yaml'

    def _load_config(self):
        """Load configuration from file."""
        if not self.config_path.exists():
            logger.debug(f"Config file not found: {self.config_path}. Using defaults.")
            self._config = self._get_default_config()
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f) or {}

            # Merge with defaults
            self._config = self._merge_configs(self._get_default_config(), file_config)

            logger.info(f"Loaded configuration from {self.config_path}")

        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config file: {e}. Using defaults.")
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            'network': {
                'timeout': 30,
                'deadline': 8,
                'user_agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/139.0.0.0 Safari/537.36',
            },
            'matching': {
                'similarity_threshold': 0.7,
            },
            'extractors': {
                'fallback_url': 'https://ac-api.ofchaos.com/api/anime/embed/convert/v2',
            },
            'providers': {
                'enabled': ['hianime', 'anicrush', 'comix'],
                'default_server': 'default',
                'aliases': {
                    'source1': 'hianime',
                    'source2': 'anicrush',
                },
            },
            'logging': {
                'level': 'INFO',
                'file': str(Path.cwd() / 'logs' / 'aniforge.log'),
            }
        }

    def _merge_configs(self, defaults: Dict[str, Any], user_config: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge user config with defaults."""
        result = defaults.copy()

        for key, value in user_config.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key (dot notation: 'network.timeout')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self._config

        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        """
        Set a configuration value.

        Args:
            key: Configuration key (dot notation: 'network.timeout')
            value: Value to set
        """
        keys = key.split('.')
        config = self._config

        # Navigate to the parent of the target key
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        # Set the value
        config[keys[-1]] = value

    def save(self):
        """Save current configuration to file."""
        try:
            # Ensure directory exists
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.dump(self._config, f, default_flow_style=False, indent=2)

            logger.info(f"Saved configuration to {self.config_path}")

        except Exception as e:
            logger.error(f"Failed to save configuration: {e}")
            raise

    # Convenience properties for commonly used settings
    @property
    def network_timeout(self) -> float:
        """Get per-request network timeout in seconds."""
        return self.get('network.timeout', 30)

    @property
    def deadline(self) -> Optional[float]:
        """Get the default overall deadline for a resolution call (None = no deadline)."""
        return self.get('network.deadline')

    @property
    def similarity_threshold(self) -> float:
        """Get the fuzzy title similarity cutoff."""
        return self.get('matching.similarity_threshold', 0.7)

    @property
    def fallback_extractor_url(self) -> str:
        """Get the decrypt-relay endpoint used when the embed extractor fails."""
        return self.get('extractors.fallback_url', '')

    @property
    def enabled_providers(self) -> List[str]:
        """Get list of enabled provider IDs."""
        return self.get('providers.enabled', [])

    @property
    def default_server(self) -> str:
        """Get the server name used when none is requested."""
        return self.get('providers.default_server', 'default')

    @property
    def provider_aliases(self) -> Dict[str, str]:
        """Get source aliases (e.g. 'source1') mapped to provider IDs."""
        return self.get('providers.aliases', {})

    @property
    def log_level(self) -> str:
        return self.get('logging.level', 'INFO')

    @property
    def log_file(self) -> Path:
        return Path(self.get('logging.file'))

    def __str__(self) -> str:
        """String representation of configuration."""
        return f"Config(path={self.config_path})"

    def __repr__(self) -> str:
        """Detailed string representation."""
        return f"Config(config_path='{self.config_path}', keys={list(self._config.keys())})"
