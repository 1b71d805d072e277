"""
Configuration management for nixfind.

This module provides the ConfigurationManager class for loading the YAML
configuration file, applying environment variable overrides and exposing the
result as a NixfindConfig.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from nixfind.core.exceptions import ConfigurationError
from nixfind.core.interfaces import DEFAULT_STORE_ROOT


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_DIR = "~/.nixfind"
DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_INDEX_NAME = "index.sqlite"


@dataclass
class IndexSettings:
    """Where the index lives and where built packages are looked up."""
    path: str = f"{DEFAULT_CONFIG_DIR}/{DEFAULT_INDEX_NAME}"
    store_root: str = DEFAULT_STORE_ROOT


@dataclass
class SearchSettings:
    """Defaults for the search command."""
    limit: int = 30
    filter_built: bool = False


@dataclass
class GeneratorSettings:
    """How the registry generator is invoked."""
    command: str = "nix-env"
    nixpkgs: Optional[str] = None
    nixpkgs_config: Optional[str] = None


@dataclass
class NixfindConfig:
    """
    Complete nixfind configuration.
    """
    index: IndexSettings = field(default_factory=IndexSettings)
    search: SearchSettings = field(default_factory=SearchSettings)
    generator: GeneratorSettings = field(default_factory=GeneratorSettings)

    @property
    def index_path(self) -> Path:
        return Path(self.index.path).expanduser()

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {
            "index": {
                "path": self.index.path,
                "store_root": self.index.store_root,
            },
            "search": {
                "limit": self.search.limit,
                "filter_built": self.search.filter_built,
            },
            "generator": {
                "command": self.generator.command,
                "nixpkgs": self.generator.nixpkgs,
                "nixpkgs_config": self.generator.nixpkgs_config,
            },
        }


# section -> key -> accepted types
_SCHEMA = {
    "index": {"path": (str,), "store_root": (str,)},
    "search": {"limit": (int,), "filter_built": (bool,)},
    "generator": {"command": (str,), "nixpkgs": (str, type(None)), "nixpkgs_config": (str, type(None))},
}

_SECTION_TYPES = {
    "index": IndexSettings,
    "search": SearchSettings,
    "generator": GeneratorSettings,
}


def default_config_path() -> Path:
    """Return the configuration path, honouring NIXFIND_CONFIG."""
    env_path = os.getenv("NIXFIND_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path(DEFAULT_CONFIG_DIR).expanduser() / DEFAULT_CONFIG_FILE


class ConfigurationManager:
    """
    Loads nixfind configuration.

    Values are resolved in this order, later ones winning:
    - built-in defaults
    - the YAML configuration file, if it exists
    - NIXFIND_INDEX and NIXFIND_STORE_ROOT environment variables
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the YAML configuration file. If None, uses
                NIXFIND_CONFIG or ~/.nixfind/config.yaml.
        """
        if config_path is None:
            self.config_path = default_config_path()
        else:
            self.config_path = Path(config_path).expanduser()

        self._config_cache: Optional[NixfindConfig] = None

    def load_raw(self) -> Dict[str, Any]:
        """
        Load the raw configuration mapping from the YAML file.

        Returns:
            The parsed mapping, or an empty dict if the file does not exist.

        Raises:
            ConfigurationError: If the file cannot be read or parsed.
        """
        if not self.config_path.exists():
            logger.debug(f"No configuration file at {self.config_path}, using defaults")
            return {}

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing configuration YAML {self.config_path}: {e}")
        except IOError as e:
            raise ConfigurationError(f"Error reading configuration file {self.config_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {self.config_path} must contain a mapping")

        logger.debug(f"Loaded configuration from {self.config_path}")
        return data

    def load(self) -> NixfindConfig:
        """
        Load and validate the configuration.

        Returns:
            NixfindConfig with file values and environment overrides applied.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        if self._config_cache is not None:
            return self._config_cache

        raw = self.load_raw()
        sections = {}
        for section, keys in _SCHEMA.items():
            values = raw.get(section) or {}
            if not isinstance(values, dict):
                raise ConfigurationError(f"Configuration section '{section}' must be a mapping")

            for key, value in values.items():
                if key not in keys:
                    logger.warning(f"Ignoring unknown configuration key '{section}.{key}'")
                    continue
                # bool is a subclass of int
                if not isinstance(value, keys[key]) or (bool not in keys[key] and isinstance(value, bool)):
                    raise ConfigurationError(
                        f"Configuration key '{section}.{key}' has invalid value {value!r}"
                    )

            known = {k: v for k, v in values.items() if k in keys}
            sections[section] = _SECTION_TYPES[section](**known)

        for section in raw:
            if section not in _SCHEMA:
                logger.warning(f"Ignoring unknown configuration section '{section}'")

        config = NixfindConfig(**sections)
        self._apply_environment(config)

        if config.search.limit < 1:
            raise ConfigurationError("Configuration key 'search.limit' must be at least 1")

        self._config_cache = config
        return config

    def _apply_environment(self, config: NixfindConfig) -> None:
        index_path = os.getenv("NIXFIND_INDEX")
        if index_path:
            config.index.path = index_path

        store_root = os.getenv("NIXFIND_STORE_ROOT")
        if store_root:
            config.index.store_root = store_root

    def write_default(self, force: bool = False) -> Path:
        """
        Write a default configuration file.

        Args:
            force: Overwrite an existing file.

        Returns:
            Path of the configuration file.

        Raises:
            ConfigurationError: If the file exists and force is not set, or
                the file cannot be written.
        """
        if self.config_path.exists() and not force:
            raise ConfigurationError(f"Configuration already exists at {self.config_path}")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.dump(NixfindConfig().to_dict(), f, default_flow_style=False, sort_keys=False)
        except IOError as e:
            raise ConfigurationError(f"Error writing configuration file {self.config_path}: {e}")

        self._config_cache = None
        return self.config_path
