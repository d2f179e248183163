"""Configuration management for Strata.

Reads and writes INI-style configuration at two levels, the user's global
file and the repository's own file, with environment variables on top.
"""

import os
import configparser
from pathlib import Path
from typing import Optional, Dict, Tuple

DEFAULTS = {
    ('core', 'commitretries'): '3',
    ('core', 'defaultbranch'): 'main',
    ('core', 'loglevel'): 'WARNING',
}


class Config:
    """
    Manages Strata configuration files.

    - Global config: ~/.strataconfig
    - Repository config: .strata/config

    Priority (highest first): STRATA_<SECTION>_<KEY> environment variables,
    repository config, global config, built-in defaults.
    """

    GLOBAL_CONFIG_PATH = Path.home() / '.strataconfig'

    def __init__(self, repo_config_path: Optional[Path] = None, global_config_path: Optional[Path] = None):
        self.repo_config_path = repo_config_path
        self.global_config_path = global_config_path or self.GLOBAL_CONFIG_PATH
        self._global_config = None
        self._repo_config = None

    @staticmethod
    def _load(path: Optional[Path]) -> configparser.ConfigParser:
        parser = configparser.ConfigParser()
        if path is not None and path.exists():
            parser.read(path)
        return parser

    @property
    def global_config(self) -> configparser.ConfigParser:
        if self._global_config is None:
            self._global_config = self._load(self.global_config_path)
        return self._global_config

    @property
    def repo_config(self) -> Optional[configparser.ConfigParser]:
        if self._repo_config is None and self.repo_config_path:
            self._repo_config = self._load(self.repo_config_path)
        return self._repo_config

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """Get a configuration value, falling back to built-in defaults."""
        env_value = os.environ.get(f"STRATA_{section.upper()}_{key.upper()}")
        if env_value is not None:
            return env_value

        if self.repo_config and self.repo_config.has_option(section, key):
            return self.repo_config.get(section, key)

        if self.global_config.has_option(section, key):
            return self.global_config.get(section, key)

        if fallback is not None:
            return fallback
        return DEFAULTS.get((section, key))

    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """
        Get an integer value.

        Raises:
            ValueError: If the configured value is not an integer
        """
        value = self.get(section, key)
        if value is None:
            return fallback
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"{section}.{key} must be an integer, got {value!r}") from None

    def _target(self, global_config: bool) -> Tuple[configparser.ConfigParser, Path]:
        if global_config:
            return self.global_config, self.global_config_path
        if not self.repo_config_path:
            raise ValueError("No repository config path available")
        if self._repo_config is None:
            self._repo_config = self._load(self.repo_config_path)
        return self._repo_config, self.repo_config_path

    def set(self, section: str, key: str, value: str, global_config: bool = False) -> None:
        """Set a value in the repository (or global) config file."""
        config, config_path = self._target(global_config)
        if not config.has_section(section):
            config.add_section(section)
        config.set(section, key, value)

        with open(config_path, 'w') as f:
            config.write(f)

    def unset(self, section: str, key: str, global_config: bool = False) -> bool:
        """
        Remove a configuration value.

        Returns:
            True if value was removed, False if it didn't exist
        """
        config, config_path = self._target(global_config)
        if not config.has_option(section, key):
            return False

        config.remove_option(section, key)
        if not config.options(section):
            config.remove_section(section)

        with open(config_path, 'w') as f:
            config.write(f)
        return True

    def list_all(self) -> Dict[str, str]:
        """Effective 'section.key' -> value for every configured key."""
        result = {}
        for parser in (self.global_config, self.repo_config):
            if parser is None:
                continue
            for section in parser.sections():
                for key, value in parser.items(section):
                    result[f"{section}.{key}"] = value
        return dict(sorted(result.items()))

    def get_user_identity(self) -> Tuple[Optional[str], Optional[str]]:
        """(name, email) for commits; either may be None."""
        return self.get('user', 'name'), self.get('user', 'email')

    def author(self) -> Optional[str]:
        """Author string 'Name <email>', or None if either part is unset."""
        name, email = self.get_user_identity()
        if not name or not email:
            return None
        return f"{name} <{email}>"


def split_key(dotted: str) -> Tuple[str, str]:
    """
    Split 'section.key' into its parts.

    Raises:
        ValueError: If the key has no section
    """
    section, _, key = dotted.partition('.')
    if not section or not key:
        raise ValueError(f"Key must be in the form section.key: {dotted}")
    return section, key
