# src/perf_enhancer/core/utils/path_utils.py
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class PathUtils:
    """
    A central utility for reliably retrieving important package and user paths.
    """

    @staticmethod
    def get_package_root() -> Path:
        """Returns the directory of the installed `perf_enhancer` package."""
        return Path(__file__).resolve().parent.parent.parent

    @staticmethod
    def get_default_settings_file() -> Path:
        """The settings.json shipped with the package."""
        return PathUtils.get_package_root() / "settings.json"

    @staticmethod
    def get_user_config_dir() -> Path:
        """
        Returns the path to the user's config directory.
        (e.g., ~/.perf_enhancer/)
        """
        return Path.home() / ".perf_enhancer"

    @staticmethod
    def get_user_settings_file() -> Path:
        """Optional per-user overrides (e.g., ~/.perf_enhancer/settings.json)."""
        return PathUtils.get_user_config_dir() / "settings.json"
