"""
Configuration management for TaskTree.

Loads settings from config/settings.ini with environment variable overrides.
Provides centralized configuration for the database and display defaults.
"""

import configparser
import os
from pathlib import Path
from typing import Optional, Dict, Any

from tasktree.logging_config import get_logger

logger = get_logger(__name__)

_DEFAULT_DB_PATH = Path.home() / ".tasktree" / "tasktree.db"
DEFAULT_DATABASE_URL = f"sqlite+aiosqlite:///{_DEFAULT_DB_PATH}"


def _env_bool(name: str) -> Optional[bool]:
    """Read a boolean environment variable, None when unset or empty."""
    value = os.getenv(name, "").strip().lower()
    if not value:
        return None
    return value in ("1", "true", "yes", "on")


class Config:
    """Application configuration manager."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config file, defaults to config/settings.ini
        """
        self.config_path = config_path or self._default_config_path()
        self._config = configparser.ConfigParser()
        self._load()

    def _default_config_path(self) -> Path:
        """Get default config path."""
        project_root = Path(__file__).parent.parent
        return project_root / "config" / "settings.ini"

    def _load(self) -> None:
        """Load configuration from file."""
        if self.config_path.exists():
            try:
                self._config.read(self.config_path)
                logger.info(f"Loaded configuration from {self.config_path}")
            except configparser.Error as e:
                logger.warning(f"Failed to read config file: {e}. Using defaults.")
        else:
            logger.debug(f"Config file not found at {self.config_path}. Using defaults.")

    def get_database_config(self) -> Dict[str, Any]:
        """
        Get database configuration with environment overrides.

        Environment variables take precedence over config file:
        - TASKTREE_DATABASE_URL

        Returns:
            Dictionary with database configuration
        """
        config = {
            'url': os.getenv('TASKTREE_DATABASE_URL') or
                   self._config.get('database', 'url', fallback=DEFAULT_DATABASE_URL),
        }

        logger.debug(f"Database config: url={config['url']}")

        return config

    def get_display_config(self) -> Dict[str, Any]:
        """
        Get display configuration with environment overrides.

        Environment variables take precedence over config file:
        - TASKTREE_SORT_BY
        - TASKTREE_SORT_DIRECTION
        - TASKTREE_SHOW_COMPLETED

        Returns:
            Dictionary with display configuration
        """
        show_completed = _env_bool('TASKTREE_SHOW_COMPLETED')
        if show_completed is None:
            show_completed = self._config.getboolean('display', 'show_completed', fallback=True)

        config = {
            'sort_by': os.getenv('TASKTREE_SORT_BY') or
                       self._config.get('display', 'sort_by', fallback='created_at'),
            'sort_direction': os.getenv('TASKTREE_SORT_DIRECTION') or
                              self._config.get('display', 'sort_direction', fallback='desc'),
            'show_completed': show_completed,
        }

        logger.debug(f"Display config: sort_by={config['sort_by']}, "
                     f"sort_direction={config['sort_direction']}, "
                     f"show_completed={config['show_completed']}")

        return config

    def get(self, section: str, key: str, fallback: Any = None) -> Any:
        """
        Get configuration value with fallback.

        Args:
            section: Config section name
            key: Config key name
            fallback: Default value if not found

        Returns:
            Configuration value or fallback
        """
        return self._config.get(section, key, fallback=fallback)

    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        """Get boolean configuration value."""
        return self._config.getboolean(section, key, fallback=fallback)

    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """Get integer configuration value."""
        return self._config.getint(section, key, fallback=fallback)

    def has_section(self, section: str) -> bool:
        """Check if config section exists."""
        return self._config.has_section(section)

    def sections(self) -> list:
        """Get list of all configuration sections."""
        return self._config.sections()
