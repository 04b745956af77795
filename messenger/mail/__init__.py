"""SMTP mail delivery."""

from .models import MailMessage, MailSettings, SMTPDeliveryError, split_addresses
from .sender import MailSender
from .smtp_client import SMTPClient

__all__ = [
    "MailSender",
    "MailMessage",
    "MailSettings",
    "SMTPClient",
    "SMTPDeliveryError",
    "split_addresses",
]
