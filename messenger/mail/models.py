"""Mail data models and exceptions."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from messenger.config.environment import EnvironmentConfig
from messenger.exceptions import MessageError


class SMTPDeliveryError(MessageError):
    """Raised when connecting, authenticating or delivering over SMTP fails."""


def split_addresses(value: str) -> List[str]:
    """Split a comma-separated address string.

    No validation and no filtering: an empty string gives [""], so an
    empty Cc still produces one (empty) Cc entry.
    """
    return [part.strip() for part in value.split(",")]


@dataclass(frozen=True)
class MailSettings:
    """SMTP server and account used for every message a sender delivers.

    Attributes:
        host: SMTP server hostname
        port: SMTP port; 465 means implicit TLS
        account: Login name, also used as the From address
        password: Login password
        use_tls: STARTTLS on ports other than 465
    """

    host: str
    port: int
    account: str
    password: Optional[str] = None
    use_tls: bool = True

    @classmethod
    def from_environment(cls, env_config: EnvironmentConfig, use_tls: bool = True) -> "MailSettings":
        env_config.require("smtp_host", "smtp_port", "smtp_account")
        return cls(
            host=env_config.smtp_host,
            port=env_config.smtp_port,
            account=env_config.smtp_account,
            password=env_config.smtp_password,
            use_tls=use_tls,
        )


@dataclass
class MailMessage:
    """A plain-text mail before it is turned into a MIME message."""

    subject: str
    from_alias: str
    to: List[str]
    cc: List[str]
    body: str
    attachments: List[Path] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        subject: str,
        from_alias: str,
        to_str: str,
        cc_str: str,
        body: str,
        file_paths: Iterable[str] = (),
    ) -> "MailMessage":
        """Build a message from comma-separated To/Cc strings."""
        return cls(
            subject=subject,
            from_alias=from_alias,
            to=split_addresses(to_str),
            cc=split_addresses(cc_str),
            body=body,
            attachments=[Path(p) for p in file_paths],
        )
