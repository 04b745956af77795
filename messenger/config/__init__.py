"""Configuration management for the DingTalk messenger."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config
from .models import (
    AppConfig,
    DingTalkConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    MailConfig,
)

__all__ = [
    "load_config",
    "load_environment_config",
    "AppConfig",
    "DingTalkConfig",
    "MailConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
]
