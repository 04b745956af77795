"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# DingTalk access tokens live for two hours on the platform side
PLATFORM_TOKEN_LIFETIME_SECONDS = 7200


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class DingTalkConfig(BaseModel):
    """DingTalk open API and token cache settings."""

    api_base_url: str = Field(
        "https://oapi.dingtalk.com", description="Base URL of the DingTalk open API"
    )
    client_base_url: str = Field(
        "dingtalk://dingtalkclient", description="Scheme used for in-app deep links"
    )
    request_timeout: float = Field(
        3, gt=0, le=60, description="Timeout for authenticated open API calls (seconds)"
    )
    token_ttl: int = Field(
        7000, gt=0, description="How long a cached access token is served (seconds)"
    )
    token_cleanup_interval: int = Field(
        7200, gt=0, description="Interval between sweeps of expired tokens (seconds)"
    )

    @field_validator("api_base_url", "client_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalise base URLs so paths can be appended directly."""
        stripped = v.strip().rstrip("/")
        if not stripped:
            raise ValueError("Base URL cannot be empty")
        return stripped

    @model_validator(mode="after")
    def check_cleanup_interval(self):
        """The sweep interval cannot be shorter than the TTL itself."""
        if self.token_cleanup_interval < self.token_ttl:
            raise ValueError(
                f"token_cleanup_interval ({self.token_cleanup_interval}) must be "
                f">= token_ttl ({self.token_ttl})"
            )
        return self


class MailConfig(BaseModel):
    """Mail delivery settings."""

    use_tls: bool = Field(True, description="Use STARTTLS on non-465 ports")
    default_from_alias: str = Field(
        "DingTalk Messenger", description="Display name used when no alias is given"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="json or key-value")

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object."""

    dingtalk: DingTalkConfig = Field(default_factory=DingTalkConfig)
    mail: MailConfig = Field(default_factory=MailConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    environment: Optional[str] = Field(None, description="Environment label for logs")
