"""Configuration management for the backup archiver."""

import copy
import os
import yaml
from typing import Dict, Any, Optional
from .config_validator import ConfigValidator


class ConfigManager:
    """Manages configuration loading and validation for backup archiving."""

    DEFAULT_CONFIG_LOCATIONS = [
        "config.yaml",
        "config.yml",
        os.path.expanduser("~/.backup-archiver/config.yaml"),
        os.path.expanduser("~/.backup-archiver/config.yml"),
        "/etc/backup-archiver/config.yaml",
        "/etc/backup-archiver/config.yml"
    ]

    DEFAULTS = {
        'archive': {
            'destination': 'archive',
            'format': 'zip',
            'compression_level': 6
        },
        'database': {
            'path': './db'
        },
        'monitoring': {
            'interval_seconds': 10,
            'max_workers': 1
        },
        'logging': {
            'level': 'INFO',
            'file': None,
            'max_size_mb': 10,
            'backup_count': 5
        }
    }

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config file. If not provided,
                        will search in default locations.
        """
        self.config_path = config_path
        self.config_file: Optional[str] = None
        self.config_data: Dict[str, Any] = {}
        self.validator = ConfigValidator()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file.

        Built-in defaults are used when no file is given and none exists in
        the default locations.

        Returns:
            Dictionary containing configuration data.

        Raises:
            FileNotFoundError: If an explicitly given config file is missing.
            ValueError: If config file is invalid.
        """
        self.config_file = self._find_config_file()
        self.config_data = {}

        if self.config_file:
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    self.config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in config file {self.config_file}: {e}")
            except OSError as e:
                raise ValueError(f"Error reading config file {self.config_file}: {e}")

        # Validate configuration
        self.validator.validate(self.config_data)

        # Set defaults
        self._set_defaults()

        return self.config_data

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in default locations.

        Returns:
            Path to configuration file, or None if none was found.

        Raises:
            FileNotFoundError: If the explicitly given file does not exist.
        """
        if self.config_path:
            if os.path.exists(self.config_path):
                return self.config_path
            else:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location

        return None

    def _set_defaults(self):
        """Set default values for optional configuration parameters."""
        for section, section_defaults in self.DEFAULTS.items():
            if section not in self.config_data or self.config_data[section] is None:
                self.config_data[section] = {}
            for key, value in section_defaults.items():
                if key not in self.config_data[section]:
                    self.config_data[section][key] = copy.deepcopy(value)

    def apply_overrides(self, section: str, **overrides) -> None:
        """Override configuration values, typically from command-line flags.

        Values of None are ignored so unset flags keep the configured value.
        """
        section_data = self.config_data.setdefault(section, {})
        for key, value in overrides.items():
            if value is not None:
                section_data[key] = value
        self.validator.validate(self.config_data)

    def get_archive_config(self) -> Dict[str, Any]:
        """Get archive configuration.

        Returns:
            Archive configuration dictionary.
        """
        return self.config_data.get('archive', {})

    def get_database_config(self) -> Dict[str, Any]:
        """Get path record database configuration."""
        return self.config_data.get('database', {})

    def get_monitoring_config(self) -> Dict[str, Any]:
        """Get monitoring configuration.

        Returns:
            Monitoring configuration dictionary.
        """
        return self.config_data.get('monitoring', {})

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.config_data.get('logging', {})
