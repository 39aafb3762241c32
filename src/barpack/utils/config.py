"""
Configuration management for the bar-pack application.

This module handles:
- Base directory selection (development vs. production)
- Database path configuration
- Export and upload directories used by the data-pack engine
- The running application version stamped into archive manifests
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import APP_NAME, APP_VERSION, DATABASE_FILENAME

logger = logging.getLogger(__name__)


class Config:
    """
    Application configuration manager.

    Handles all configuration settings including database paths,
    data-pack directories and environment settings.
    """

    def __init__(self, environment: str = "production", base_dir: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
            base_dir: Optional explicit base directory (overrides BARPACK_HOME)
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = os.environ.get("BARPACK_VERSION", APP_VERSION)

        if base_dir is not None:
            self._base_dir = Path(base_dir)
        elif os.environ.get("BARPACK_HOME"):
            self._base_dir = Path(os.environ["BARPACK_HOME"])
        elif environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME
        self._exports_dir = self._base_dir / "exports"
        self._uploads_dir = self._base_dir / "uploads"

    def _get_project_data_dir(self) -> Path:
        """
        Get the project's data directory for development.

        Returns:
            Path to project data/ directory
        """
        project_root = Path(__file__).parent.parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """
        Get the per-user data directory for production.

        Returns:
            Path to ~/.barpack
        """
        return Path.home() / ".barpack"

    def ensure_directories(self) -> None:
        """Create the base, exports and uploads directories if missing."""
        for directory in (self._base_dir, self._exports_dir, self._uploads_dir):
            directory.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version, written to every archive manifest."""
        return self._app_version

    @property
    def base_dir(self) -> Path:
        """Root directory for application data."""
        return self._base_dir

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def exports_dir(self) -> Path:
        """Directory where export archives are written, one subdirectory per bar."""
        return self._exports_dir

    @property
    def uploads_dir(self) -> Path:
        """Directory holding stored image files."""
        return self._uploads_dir

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            Database URL string for SQLAlchemy
        """
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(environment='{self.environment}', base_dir='{self._base_dir}')"


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    BARPACK_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get("BARPACK_ENV", "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton."
        )

    return _config_instance


def set_config(config: Config) -> None:
    """
    Replace the global configuration instance.

    Useful for testing and for embedding applications.
    """
    global _config_instance
    _config_instance = config


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None
