"""Environment variable loading and validation."""

import os
from typing import Dict, List, Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Attribute name -> environment variable, used for error messages
ENV_VARS: Dict[str, str] = {
    "app_key": "DINGTALK_APP_KEY",
    "app_secret": "DINGTALK_APP_SECRET",
    "agent_id": "DINGTALK_AGENT_ID",
    "corp_id": "DINGTALK_CORP_ID",
    "robot_token": "DINGTALK_ROBOT_TOKEN",
    "smtp_host": "SMTP_HOST",
    "smtp_port": "SMTP_PORT",
    "smtp_account": "SMTP_ACCOUNT",
    "smtp_password": "SMTP_PASSWORD",
}


class EnvironmentConfig:
    """Secrets and endpoints taken from the environment.

    Every field is optional at load time. Each command asks for the fields
    it needs through require(), so sending a robot message does not demand
    SMTP settings and vice versa.
    """

    def __init__(
        self,
        app_key: Optional[str] = None,
        app_secret: Optional[str] = None,
        agent_id: Optional[str] = None,
        corp_id: Optional[str] = None,
        robot_token: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_account: Optional[str] = None,
        smtp_password: Optional[str] = None,
        log_level: Optional[str] = None,
    ):
        self.app_key = app_key
        self.app_secret = app_secret
        self.agent_id = agent_id
        self.corp_id = corp_id
        self.robot_token = robot_token
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_account = smtp_account
        self.smtp_password = smtp_password
        self.log_level = log_level

    def require(self, *fields: str) -> None:
        """Check that the named fields are set.

        Raises:
            ConfigurationError: Listing every missing environment variable
        """
        missing = [ENV_VARS[name] for name in fields if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                "Missing required environment variables",
                errors=[f"Missing required environment variable: {var}" for var in missing],
                suggestions=[
                    "Copy .env.example to .env and fill in your credentials",
                    "Export the variables in the shell that runs the command",
                ],
            )


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Recognised variables:
    - DINGTALK_APP_KEY / DINGTALK_APP_SECRET: open API application credential
    - DINGTALK_AGENT_ID / DINGTALK_CORP_ID: used for workbench deep links
    - DINGTALK_ROBOT_TOKEN: access_token of the chat robot webhook
    - SMTP_HOST / SMTP_PORT: mail server (port 1-65535)
    - SMTP_ACCOUNT / SMTP_PASSWORD: mail login, also used as the From address
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL

    Returns:
        EnvironmentConfig with whatever was set

    Raises:
        ConfigurationError: If a variable is set to an invalid value
    """
    errors: List[str] = []

    def _get(name: str) -> Optional[str]:
        value = os.getenv(name)
        if value is None:
            return None
        return value.strip() or None

    smtp_port_str = _get("SMTP_PORT")
    smtp_account = _get("SMTP_ACCOUNT")
    smtp_password = _get("SMTP_PASSWORD")
    log_level = _get("LOG_LEVEL")

    smtp_port = None
    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if not 1 <= smtp_port <= 65535:
                errors.append(f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535.")
        except ValueError:
            errors.append(f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer.")

    if smtp_account:
        try:
            smtp_account = validate_email(smtp_account, check_deliverability=False).normalized
        except EmailNotValidError as e:
            errors.append(f"Invalid SMTP_ACCOUNT: '{smtp_account}' - {e}")

    if smtp_password and not smtp_account:
        errors.append("SMTP_PASSWORD is set but SMTP_ACCOUNT is not.")

    if log_level:
        if log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )
        else:
            log_level = log_level.upper()

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Verify SMTP_PORT is a number between 1 and 65535",
                "SMTP_ACCOUNT must be a full email address",
            ],
        )

    return EnvironmentConfig(
        app_key=_get("DINGTALK_APP_KEY"),
        app_secret=_get("DINGTALK_APP_SECRET"),
        agent_id=_get("DINGTALK_AGENT_ID"),
        corp_id=_get("DINGTALK_CORP_ID"),
        robot_token=_get("DINGTALK_ROBOT_TOKEN"),
        smtp_host=_get("SMTP_HOST"),
        smtp_port=smtp_port,
        smtp_account=smtp_account,
        smtp_password=smtp_password,
        log_level=log_level,
    )
