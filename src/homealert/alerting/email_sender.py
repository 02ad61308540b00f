"""
Email delivery through SMTP or the Resend API.

Both senders expose ``send(...) -> delivery_id`` and raise DeliveryError on
any failure. Nothing here retries.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

import resend

from homealert.config import EmailSettings, SmtpSettings
from homealert.errors import ConfigurationError, DeliveryError

logger = logging.getLogger(__name__)


class SmtpEmailSender:
    """Handles SMTP email sending with optional STARTTLS."""

    def __init__(self, smtp_config: SmtpSettings):
        self.config = smtp_config

    def send(
        self,
        sender: str,
        to: str,
        subject: str,
        text: str,
        html: str | None = None,
    ) -> str:
        """
        Send an email via SMTP.

        Args:
            sender: From address
            to: Recipient email address
            subject: Email subject line
            text: Plain text email body
            html: Optional HTML email body

        Returns:
            The Message-ID of the sent message

        Raises:
            DeliveryError: If the SMTP conversation fails
        """
        msg = MIMEMultipart("alternative")
        msg["From"] = sender
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid(domain="homealert")
        msg.attach(MIMEText(text, "plain"))
        if html:
            msg.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(self.config.host, self.config.port) as server:
                if self.config.use_tls:
                    server.starttls()
                server.login(self.config.username, self.config.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP delivery to {to} failed: {e}") from e

        logger.info(f"Email sent via SMTP to {to}")
        return msg["Message-ID"]


class ResendEmailSender:
    """Handles email sending through the Resend API."""

    def __init__(self, api_key: str):
        resend.api_key = api_key

    def send(
        self,
        sender: str,
        to: str,
        subject: str,
        text: str,
        html: str | None = None,
    ) -> str | None:
        """
        Send an email via Resend.

        Returns:
            The Resend email id, or None if the response carried none

        Raises:
            DeliveryError: On auth, rate-limit, validation or network failures
        """
        params = {
            "from": sender,
            "to": [to],
            "subject": subject,
            "text": text,
        }
        if html:
            params["html"] = html

        try:
            result = resend.Emails.send(params)
        except Exception as e:
            raise DeliveryError(f"Resend delivery to {to} failed: {e}") from e

        delivery_id = result.get("id") if isinstance(result, dict) else getattr(result, "id", None)
        logger.info(f"Email sent via Resend to {to} (id: {delivery_id})")
        return str(delivery_id) if delivery_id is not None else None


def get_email_sender(config: EmailSettings):
    """
    Factory function to create the configured email sender.

    Raises:
        ConfigurationError: If the chosen provider has no credentials
    """
    if config.provider == "resend":
        if not config.resend_api_key:
            raise ConfigurationError("Resend API key missing.")
        return ResendEmailSender(config.resend_api_key)
    elif config.provider == "smtp":
        if config.smtp is None:
            raise ConfigurationError("SMTP settings missing.")
        return SmtpEmailSender(config.smtp)
    else:
        raise ValueError(f"Unknown email provider: {config.provider}")
