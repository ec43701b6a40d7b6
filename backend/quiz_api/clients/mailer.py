"""SMTP notifier that emails quiz results to the participant."""

import html
import logging
import smtplib
from email.message import EmailMessage

from .. import config
from ..errors import NotificationError

logger = logging.getLogger(__name__)

_notifier = None  # module-level cache

SUBJECT = "Your Quiz Results"

_HTML_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; color: #333;">
  <p>Dear {name},</p>
  <p>Thank you for completing the quiz. Please find attached your quiz results.</p>
  <p><a href="{url}">Download your results</a></p>
  <p>Best regards,<br/>Quiz Team</p>
  <footer style="margin-top: 20px; font-size: 12px; color: #777;">
    <p>This is an automated message, please do not reply.</p>
  </footer>
</div>
"""

_TEXT_TEMPLATE = """\
Dear {name},

Thank you for completing the quiz. Please find attached your quiz results.
You can also download them here: {url}

Best regards,
Quiz Team

This is an automated message, please do not reply.
"""


def build_message(
    sender: str,
    address: str,
    display_name: str,
    document_name: str,
    document_url: str,
    document: bytes | None = None,
) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = SUBJECT
    message["From"] = sender
    message["To"] = address
    message.set_content(_TEXT_TEMPLATE.format(name=display_name, url=document_url))
    message.add_alternative(
        _HTML_TEMPLATE.format(name=html.escape(display_name), url=html.escape(document_url, quote=True)),
        subtype="html",
    )
    if document is not None:
        message.add_attachment(document, maintype="application", subtype="pdf", filename=document_name)
    return message


class SmtpNotifier:
    def __init__(self, host: str, port: int, username: str = "", password: str = "", timeout: float = 20.0):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    def notify(
        self,
        address: str,
        display_name: str,
        document_name: str,
        document_url: str,
        document: bytes | None = None,
    ) -> None:
        """Send the results email; the PDF is attached when its bytes are given."""
        message = build_message(self.username, address, display_name, document_name, document_url, document)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"Could not email results to {address}: {exc}") from exc

        logger.info("Results email sent to %s", address)


def get_notifier() -> SmtpNotifier:
    global _notifier  # noqa: PLW0603

    if _notifier is None:
        _notifier = SmtpNotifier(
            config.SMTP_HOST,
            config.SMTP_PORT,
            config.EMAIL_USER,
            config.EMAIL_PASS,
            timeout=config.NOTIFY_TIMEOUT_SECONDS,
        )
        if not config.EMAIL_USER:
            logger.warning("EMAIL_USER is not set; results emails will be sent unauthenticated.")
    return _notifier
