"""Plain-text mail sender with optional attachments."""

import mimetypes
from email.message import EmailMessage
from email.utils import formataddr
from typing import Iterable, Optional

from messenger.exceptions import MessageError
from messenger.logging import get_logger

from .models import MailMessage, MailSettings
from .smtp_client import SMTPClient

logger = get_logger(__name__, component="mail")


class MailSender:
    """Sends text mail from the configured account.

    The From header shows from_alias as the display name in front of the
    account address. To and Cc take comma-separated strings. Bodies are
    sent as UTF-8 with base64 transfer encoding so non-ASCII text survives
    any relay.
    """

    def __init__(self, settings: MailSettings, smtp_client: Optional[SMTPClient] = None):
        self.settings = settings
        self.smtp_client = smtp_client or SMTPClient()

    def send_text(
        self, subject: str, from_alias: str, to_str: str, cc_str: str, body: str
    ) -> None:
        """Send a plain-text mail.

        Raises:
            MessageError: If delivery fails
        """
        self.send(MailMessage.create(subject, from_alias, to_str, cc_str, body))

    def send_text_with_attachments(
        self,
        subject: str,
        from_alias: str,
        to_str: str,
        cc_str: str,
        body: str,
        file_paths: Iterable[str],
    ) -> None:
        """Send a plain-text mail with files read from local paths attached.

        Raises:
            MessageError: If an attachment cannot be read or delivery fails
        """
        self.send(MailMessage.create(subject, from_alias, to_str, cc_str, body, file_paths))

    def send(self, mail: MailMessage) -> None:
        message = self.build_message(mail)
        self.smtp_client.send(message, self.settings)
        logger.info(
            "Mail sent",
            extra={
                "event": "mail.send.succeeded",
                "to_count": len(mail.to),
                "cc_count": len(mail.cc),
                "attachment_count": len(mail.attachments),
            },
        )

    def build_message(self, mail: MailMessage) -> EmailMessage:
        """Turn a MailMessage into a MIME message ready for smtplib.

        Attachments are read here, before any SMTP connection is opened.
        """
        message = EmailMessage()
        try:
            message["From"] = formataddr((mail.from_alias, self.settings.account))
            message["To"] = ", ".join(mail.to)
            message["Subject"] = mail.subject
            message["Cc"] = ", ".join(mail.cc)
        except ValueError as e:
            # Raised for CR or LF in a header value
            raise MessageError(f"Invalid mail header: {e}") from e
        message.set_content(mail.body, subtype="plain", charset="utf-8", cte="base64")

        for path in mail.attachments:
            try:
                data = path.read_bytes()
            except OSError as e:
                raise MessageError(f"Cannot read attachment {path}: {e}") from e

            mime_type, encoding = mimetypes.guess_type(path.name)
            if mime_type is None or encoding is not None:
                mime_type = "application/octet-stream"
            maintype, subtype = mime_type.split("/", 1)
            message.add_attachment(data, maintype=maintype, subtype=subtype, filename=path.name)

        return message
