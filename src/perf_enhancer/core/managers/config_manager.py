# src/perf_enhancer/core/managers/config_manager.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from perf_enhancer.core.utils.path_utils import PathUtils
from perf_enhancer.model import EnhancerData, EnhancerSettings, HostFeatures, PatternSets

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    A singleton class to manage the application's configuration.
    It loads settings from a JSON file, allows for in-memory modifications
    and builds the immutable records the pipeline consumes.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Loads the configuration from the default file."""
        self._config: Dict[str, Any] = {}
        self._config_path: Optional[Path] = None
        self.reset()
        logger.debug("ConfigManager initialized.")

    @property
    def config_path(self) -> Optional[Path]:
        return self._config_path

    def get_all(self) -> Dict[str, Any]:
        """Returns the entire current configuration dictionary."""
        return self._config

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """
        Safely retrieves a nested value from the configuration.
        e.g., 'enhancer.ttl_homepage'.
        """
        keys = key_path.split('.')
        value = self._config
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return default
        return value if value is not None else default

    def set_nested(self, key_path: str, value: Any) -> bool:
        """
        Sets a nested value in the in-memory configuration.
        e.g., 'enhancer.ttl_inner', '300'
        """
        keys = key_path.split('.')
        d = self._config
        # Navigate to the second-to-last dictionary
        for key in keys[:-1]:
            d = d.setdefault(key, {})
            if not isinstance(d, dict):
                logger.error("Cannot set value: '%s' is not a dictionary.", key)
                return False

        original_value = d.get(keys[-1])
        if original_value is not None and not isinstance(original_value, (dict, list)):
            value = self._cast_like(original_value, value, key_path)
        elif isinstance(original_value, list) and isinstance(value, str):
            value = [v.strip() for v in value.split(",") if v.strip()]

        d[keys[-1]] = value
        logger.info("Configuration updated: %s = %s", key_path, value)
        return True

    @staticmethod
    def _cast_like(original_value: Any, value: Any, key_path: str) -> Any:
        """Casts a new value to the type of the value it replaces."""
        if isinstance(original_value, bool) and isinstance(value, str):
            # bool("false") would be True
            return value.strip().lower() in ("1", "true", "yes", "on")
        try:
            return type(original_value)(value)
        except (ValueError, TypeError):
            logger.warning(
                "Could not cast new value for '%s' to type %s. Storing as string.",
                key_path, type(original_value).__name__
            )
            return value

    def reset(self, config_path: Optional[Union[str, Path]] = None) -> None:
        """
        (Re)loads the in-memory configuration from a settings file.
        Defaults to the package's settings.json; a user file in
        ~/.perf_enhancer/settings.json takes precedence when present.
        """
        if config_path is not None:
            path = Path(config_path)
        else:
            user_file = PathUtils.get_user_settings_file()
            path = user_file if user_file.exists() else PathUtils.get_default_settings_file()

        self._config_path = path
        try:
            if not path.exists():
                logger.warning("settings.json not found at %s. Using empty config.", path)
                self._config = {}
                return
            with open(path, "r", encoding="utf-8") as f:
                self._config = json.load(f)
            logger.info("Configuration has been (re)loaded from %s.", path)
        except Exception as e:
            logger.error("Failed to load %s: %s", path, e, exc_info=True)
            self._config = {}

    def save(self, config_path: Optional[Union[str, Path]] = None) -> Path:
        """
        Writes the in-memory configuration to a settings file, by default the
        user file that `reset()` prefers on the next run.
        """
        path = Path(config_path) if config_path is not None else PathUtils.get_user_settings_file()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._config, f, indent=2)
        logger.info("Configuration saved to %s.", path)
        return path

    def clear_user_settings(self) -> bool:
        """Deletes the user settings file and reloads the shipped defaults."""
        user_file = PathUtils.get_user_settings_file()
        removed = user_file.exists()
        if removed:
            user_file.unlink()
            logger.info("Removed user settings file %s.", user_file)
        self.reset()
        return removed

    # --- Builders ---

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.get_nested(name, {})
        if not isinstance(section, dict):
            logger.warning("Config section '%s' is not an object, ignoring it.", name)
            return {}
        return section

    def build_settings(self) -> EnhancerSettings:
        """Builds the settings record; invalid values fall back to defaults."""
        section = self._section("enhancer")
        known = {k: v for k, v in section.items() if k in EnhancerSettings.model_fields}
        unknown = set(section) - set(known)
        if unknown:
            logger.warning("Ignoring unknown enhancer settings: %s", ", ".join(sorted(unknown)))
        try:
            return EnhancerSettings(**known)
        except ValidationError as e:
            logger.error("Invalid enhancer settings, using defaults: %s", e)
            return EnhancerSettings()

    def build_patterns(self) -> PatternSets:
        """
        Builds the pattern sets: 'pattern_overrides' replaces a default list,
        'patterns' appends to it.
        """
        overrides = {
            k: v for k, v in self._section("pattern_overrides").items() if k in PatternSets.model_fields
        }
        extra = {
            k: v for k, v in self._section("patterns").items() if k in PatternSets.model_fields and v
        }
        try:
            patterns = PatternSets(**overrides)
            return patterns.extend(**extra) if extra else patterns
        except (ValidationError, KeyError) as e:
            logger.error("Invalid pattern configuration, using defaults: %s", e)
            return PatternSets()

    def build_features(self) -> HostFeatures:
        section = self._section("features")
        return HostFeatures(**{k: v for k, v in section.items() if k in HostFeatures.model_fields})

    def build_data(self) -> EnhancerData:
        section = self._section("data")
        return EnhancerData(**{k: v for k, v in section.items() if k in EnhancerData.model_fields})

    def build_controller(self):
        """Returns an EnhanceController wired with the current configuration."""
        from perf_enhancer.controllers.enhance_controller import EnhanceController

        return EnhanceController(
            settings=self.build_settings(),
            patterns=self.build_patterns(),
            features=self.build_features(),
            data=self.build_data(),
        )


# The global singleton instance that the entire application will use.
config_manager = ConfigManager()
