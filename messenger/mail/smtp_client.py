"""SMTP client wrapper for mail delivery.

Thin layer over smtplib handling implicit TLS vs STARTTLS, optional login
and connection cleanup.
"""

import smtplib
import ssl
from email.message import EmailMessage
from email.utils import getaddresses
from typing import Callable, List, Optional

from messenger.logging import get_logger

from .models import MailSettings, SMTPDeliveryError

logger = get_logger(__name__, component="mail")

IMPLICIT_TLS_PORT = 465


def envelope_recipients(message: EmailMessage) -> List[str]:
    """Addresses from To, Cc and Bcc, skipping blank entries such as an empty Cc."""
    fields = [str(v) for name in ("To", "Cc", "Bcc") for v in message.get_all(name, [])]
    return [addr for _, addr in getaddresses(fields) if addr]


class SMTPClient:
    """Opens one SMTP session per message.

    Connection classes are injectable so tests never touch the network.
    """

    def __init__(
        self,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(self, message: EmailMessage, settings: MailSettings) -> None:
        """Deliver message using the server and account in settings.

        Raises:
            SMTPDeliveryError: If connecting, authenticating or sending fails
        """
        smtp = None
        try:
            if settings.port == IMPLICIT_TLS_PORT:
                logger.debug(f"Connecting to {settings.host}:{settings.port} with implicit TLS")
                smtp = self.smtp_ssl_factory(
                    settings.host, settings.port, context=ssl.create_default_context()
                )
            else:
                logger.debug(f"Connecting to {settings.host}:{settings.port}")
                smtp = self.smtp_factory(settings.host, settings.port)
                if settings.use_tls:
                    smtp.starttls(context=ssl.create_default_context())

            if settings.account and settings.password:
                smtp.login(settings.account, settings.password)
            else:
                logger.debug("No SMTP password configured, sending without auth")

            smtp.send_message(message, to_addrs=envelope_recipients(message))

        except smtplib.SMTPException as e:
            logger.error(
                f"SMTP error during delivery: {e}",
                extra={"event": "mail.send.failed", "error_type": type(e).__name__},
            )
            raise SMTPDeliveryError(f"SMTP error during message delivery: {e}") from e
        except OSError as e:
            logger.error(
                f"Network error during SMTP connection: {e}",
                extra={"event": "mail.send.failed", "error_type": type(e).__name__},
            )
            raise SMTPDeliveryError(f"Network error during SMTP connection: {e}") from e
        except Exception as e:
            # e.g. UnicodeEncodeError from login() with a non-ASCII password
            logger.error(
                f"Unexpected error during SMTP delivery: {e}",
                extra={"event": "mail.send.failed", "error_type": type(e).__name__},
            )
            raise SMTPDeliveryError(f"Unexpected error during SMTP delivery: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except Exception as e:
                    logger.warning(f"Error closing SMTP connection: {e}")
