"""Configuration management for the notification pipeline."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, validate_config_file
from .models import (
    ApiConfig,
    AppConfig,
    BrokerConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    MailboxConfig,
    PublisherConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "BrokerConfig",
    "PublisherConfig",
    "MailboxConfig",
    "LoggingConfig",
    "ApiConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
