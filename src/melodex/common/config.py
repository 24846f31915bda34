"""Configuration loader with multi-source support."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Generic, Optional, Type, TypeVar

import platformdirs
import toml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)

# MELODEX_LIBRARY__MUSIC_ROOTS -> library.music_roots
ENV_SECTION_SEPARATOR = "__"


class ConfigLoader(Generic[T]):
    """Loads configuration from multiple sources with priority.

    Priority (lowest to highest):
    1. defaults.toml (explicit path, ./config/defaults.toml)
    2. system config (/etc/<app>/config.toml or %PROGRAMDATA%)
    3. user config (platformdirs user config dir)
    4. environment variables (``MELODEX_SECTION__KEY``)
    """

    def __init__(self, app_name: str = "melodex", config_class: Optional[Type[T]] = None) -> None:
        self.app_name = app_name
        self.config_class = config_class
        self._config: Optional[T] = None

    def load(self, defaults_path: Optional[Path] = None) -> T:
        """Load configuration from all sources.

        Args:
            defaults_path: Optional path to a defaults.toml file

        Returns:
            Validated configuration object (or raw dict without config_class)
        """
        config_dict = self._load_defaults(defaults_path)

        for source in (self._load_system_config(), self._load_user_config()):
            if source:
                config_dict = self._deep_merge(config_dict, source)

        config_dict = self._apply_env_overrides(config_dict)

        if self.config_class:
            self._config = self.config_class(**config_dict)
        else:
            self._config = config_dict

        return self._config

    def _load_defaults(self, defaults_path: Optional[Path] = None) -> Dict[str, Any]:
        """Load default configuration shipped with app."""
        if defaults_path and defaults_path.exists():
            logger.debug(f"Loading defaults: {{'path': {str(defaults_path)!r}}}")
            return toml.load(defaults_path)

        candidate = Path.cwd() / "config" / "defaults.toml"
        if candidate.exists():
            return toml.load(candidate)

        return {}

    def _load_system_config(self) -> Optional[Dict[str, Any]]:
        """Load system-wide configuration."""
        if os.name == "nt":
            system_path = (
                Path(os.environ.get("PROGRAMDATA", "C:\\ProgramData"))
                / self.app_name
                / "config.toml"
            )
        else:
            system_path = Path(f"/etc/{self.app_name}/config.toml")

        if system_path.exists():
            return toml.load(system_path)

        return None

    def user_config_path(self) -> Path:
        """Location of the per-user config.toml."""
        user_config_dir = platformdirs.user_config_dir(appname=self.app_name, appauthor=False)
        return Path(user_config_dir) / "config.toml"

    def _load_user_config(self) -> Optional[Dict[str, Any]]:
        """Load user-specific configuration."""
        user_config_path = self.user_config_path()

        logger.debug(f"Looking for user config: {{'path': {str(user_config_path)!r}, 'exists': {user_config_path.exists()}}}")

        if user_config_path.exists():
            return toml.load(user_config_path)

        return None

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Override config with environment variables.

        Sections are separated by a double underscore so that keys may
        themselves contain underscores.
        """
        prefix = f"{self.app_name.upper().replace('-', '_')}_"

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(prefix):
                continue

            key_path = env_key[len(prefix):].lower().split(ENV_SECTION_SEPARATOR)

            current = config
            for part in key_path[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]

            current[key_path[-1]] = self._convert_env_value(env_value)

        return config

    def _convert_env_value(self, value: str) -> Any:
        """Convert string environment variable to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        # Path lists use the platform separator (":" on POSIX, ";" on Windows)
        if os.pathsep in value:
            return [v.strip() for v in value.split(os.pathsep) if v.strip()]
        if "," in value:
            return [v.strip() for v in value.split(",") if v.strip()]

        return value

    def save_user_config(self, config: BaseModel) -> None:
        """Save user configuration."""
        user_config_path = self.user_config_path()
        user_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(user_config_path, "w") as f:
            toml.dump(config.model_dump(), f)

    @property
    def config(self) -> T:
        """Get loaded configuration."""
        if self._config is None:
            self._config = self.load()
        return self._config
