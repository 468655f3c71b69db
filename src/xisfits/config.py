"""
Configuration management for xisfits.

Provides environment-aware configuration with validation and type safety.
"""

import os
import configparser
from typing import Optional
from dataclasses import dataclass, field
from enum import Enum

from .exceptions import ConfigurationError


class LogLevel(Enum):
    """Enumeration for log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: LogLevel = LogLevel.INFO
    file_path: Optional[str] = None
    console_output: bool = True
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class ConversionConfig:
    """Conversion configuration settings."""
    overwrite: bool = True
    warn_on_clip: bool = True


@dataclass
class XisfitsConfig:
    """Main application configuration."""
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    conversion: ConversionConfig = field(default_factory=ConversionConfig)


_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}", error_code="BAD_BOOLEAN")


def _parse_level(value: str) -> LogLevel:
    try:
        return LogLevel(value.strip().upper())
    except ValueError:
        raise ConfigurationError(f"Invalid log level: {value!r}", error_code="BAD_LOG_LEVEL")


class ConfigManager:
    """Configuration manager with environment support."""

    def __init__(self, config_file: Optional[str] = None, env_prefix: str = "XISFITS"):
        self.config_file = config_file or self._find_config_file()
        self.env_prefix = env_prefix
        self._config: Optional[XisfitsConfig] = None

    def _find_config_file(self) -> str:
        """Find configuration file in standard locations."""
        possible_paths = [
            "xisfits.ini",
            os.path.expanduser("~/.xisfits/config.ini"),
            os.path.expanduser("~/.config/xisfits.ini"),
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        # Return default path if none found
        return "xisfits.ini"

    def load_config(self) -> XisfitsConfig:
        """Load configuration from file and environment variables."""
        if self._config is not None:
            return self._config

        config = XisfitsConfig()

        if os.path.exists(self.config_file):
            self._load_from_file(config)

        self._load_from_env(config)
        self._validate_config(config)

        self._config = config
        return config

    def _load_from_file(self, config: XisfitsConfig):
        """Load configuration from INI file."""
        parser = configparser.ConfigParser()
        try:
            parser.read(self.config_file)
        except configparser.Error as e:
            raise ConfigurationError(f"Cannot parse {self.config_file}: {e}", error_code="BAD_CONFIG_FILE")

        if parser.has_section("logging"):
            log_section = parser["logging"]
            if "level" in log_section:
                config.logging.level = _parse_level(log_section["level"])
            if log_section.get("file_path"):
                config.logging.file_path = log_section["file_path"]
            if "console_output" in log_section:
                config.logging.console_output = _parse_bool("console_output", log_section["console_output"])
            if log_section.get("format", raw=True):
                config.logging.format = log_section.get("format", raw=True)

        if parser.has_section("conversion"):
            conv_section = parser["conversion"]
            if "overwrite" in conv_section:
                config.conversion.overwrite = _parse_bool("overwrite", conv_section["overwrite"])
            if "warn_on_clip" in conv_section:
                config.conversion.warn_on_clip = _parse_bool("warn_on_clip", conv_section["warn_on_clip"])

    def _load_from_env(self, config: XisfitsConfig):
        """Load configuration from environment variables."""
        if env_val := os.getenv(f"{self.env_prefix}_LOG_LEVEL"):
            config.logging.level = _parse_level(env_val)
        if env_val := os.getenv(f"{self.env_prefix}_LOG_FILE"):
            config.logging.file_path = env_val
        if env_val := os.getenv(f"{self.env_prefix}_OVERWRITE"):
            config.conversion.overwrite = _parse_bool(f"{self.env_prefix}_OVERWRITE", env_val)

    def _validate_config(self, config: XisfitsConfig):
        """Validate configuration settings."""
        validate_config(config)


def validate_config(config: XisfitsConfig):
    """
    Validate configuration settings.

    Raises:
        ConfigurationError: If the log file directory is missing or the log format is empty
    """
    if config.logging.file_path:
        log_dir = os.path.dirname(os.path.abspath(config.logging.file_path))
        if not os.path.isdir(log_dir):
            raise ConfigurationError(f"Log directory does not exist: {log_dir}", error_code="BAD_LOG_FILE")

    if not config.logging.format:
        raise ConfigurationError("Logging format must not be empty", error_code="BAD_LOG_FORMAT")


def get_config(config_file: Optional[str] = None) -> XisfitsConfig:
    """Load the configuration from the given or default INI file and the environment."""
    return ConfigManager(config_file).load_config()
