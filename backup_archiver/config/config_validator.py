"""Configuration validation for backup archiver."""

from typing import Dict, Any

from ..core.archiver import ARCHIVERS


class ConfigValidator:
    """Validates backup archiver configuration."""

    KNOWN_SECTIONS = ['archive', 'database', 'monitoring', 'logging']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.

        Args:
            config: Configuration dictionary to validate.

        Raises:
            ValueError: If configuration is invalid.
        """
        self._validate_structure(config)

        if config.get('archive'):
            self._validate_archive_config(config['archive'])
        if config.get('database'):
            self._validate_database_config(config['database'])
        if config.get('monitoring'):
            self._validate_monitoring_config(config['monitoring'])
        if config.get('logging'):
            self._validate_logging_config(config['logging'])

    def _validate_structure(self, config: Dict[str, Any]) -> None:
        """Validate basic configuration structure.

        Raises:
            ValueError: If the config or one of its sections is not a mapping,
                or an unknown section is present.
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a mapping")

        unknown_sections = [section for section in config if section not in self.KNOWN_SECTIONS]
        if unknown_sections:
            raise ValueError(f"Unknown configuration sections: {unknown_sections}")

        for section, value in config.items():
            if value is not None and not isinstance(value, dict):
                raise ValueError(f"Configuration section '{section}' must be a mapping")

    def _validate_archive_config(self, archive_config: Dict[str, Any]) -> None:
        """Validate archive configuration.

        Raises:
            ValueError: If the destination, format or compression level is invalid.
        """
        if 'destination' in archive_config and not archive_config['destination']:
            raise ValueError("Archive destination cannot be empty")

        archive_format = archive_config.get('format', 'zip')
        if not isinstance(archive_format, str) or archive_format.lower() not in ARCHIVERS:
            raise ValueError(
                f"Archive format must be one of {sorted(ARCHIVERS)}, got: {archive_format}"
            )

        if 'compression_level' in archive_config:
            level = archive_config['compression_level']
            if not isinstance(level, int) or isinstance(level, bool) or not (0 <= level <= 9):
                raise ValueError(f"Archive compression_level must be between 0 and 9, got: {level}")

    def _validate_database_config(self, database_config: Dict[str, Any]) -> None:
        if 'path' in database_config and not database_config['path']:
            raise ValueError("Database path cannot be empty")

    def _validate_monitoring_config(self, monitoring_config: Dict[str, Any]) -> None:
        """Validate monitoring configuration.

        Raises:
            ValueError: If the interval or worker count is invalid.
        """
        if 'interval_seconds' in monitoring_config:
            try:
                interval = float(monitoring_config['interval_seconds'])
                if interval <= 0:
                    raise ValueError()
            except (ValueError, TypeError):
                raise ValueError(
                    f"Monitoring interval_seconds must be a positive number: "
                    f"{monitoring_config['interval_seconds']}"
                )

        if 'max_workers' in monitoring_config:
            workers = monitoring_config['max_workers']
            if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
                raise ValueError(f"Monitoring max_workers must be a positive integer: {workers}")

    def _validate_logging_config(self, logging_config: Dict[str, Any]) -> None:
        level = logging_config.get('level', 'INFO')
        if not isinstance(level, str) or level.upper() not in self.LOG_LEVELS:
            raise ValueError(f"Invalid log level: {level}")
