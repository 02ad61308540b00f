"""Tests for alerting functionality."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from homealert.alerting import Notifier, ResendEmailSender, SmtpEmailSender, get_email_sender
from homealert.alerting.templates import format_alert_email, format_greeting
from homealert.config import EmailSettings, SmtpSettings
from homealert.errors import ConfigurationError, DeliveryError, RecipientNotFoundError
from homealert.models import Alert, ResolvedRecipient

SENDER = "Smart Home Alerts <notifications@example.com>"


@pytest.fixture
def smtp_config() -> SmtpSettings:
    return SmtpSettings(
        host="smtp.example.com",
        port=587,
        username="user",
        password="pass",
    )


class TestSmtpEmailSender:
    """Test SmtpEmailSender class."""

    @patch("homealert.alerting.email_sender.smtplib.SMTP")
    def test_send_success(self, mock_smtp, smtp_config):
        """A successful send returns the Message-ID and uses STARTTLS."""
        server = mock_smtp.return_value.__enter__.return_value

        delivery_id = SmtpEmailSender(smtp_config).send(
            sender=SENDER,
            to="family@example.com",
            subject="Smart Home Alert",
            text="body",
            html="<p>body</p>",
        )

        mock_smtp.assert_called_once_with("smtp.example.com", 587)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user", "pass")
        msg = server.send_message.call_args[0][0]
        assert msg["To"] == "family@example.com"
        assert msg["Subject"] == "Smart Home Alert"
        assert delivery_id == msg["Message-ID"]

    @patch("homealert.alerting.email_sender.smtplib.SMTP")
    def test_send_without_tls(self, mock_smtp, smtp_config):
        smtp_config.use_tls = False
        server = mock_smtp.return_value.__enter__.return_value

        SmtpEmailSender(smtp_config).send(SENDER, "a@example.com", "s", "t")

        server.starttls.assert_not_called()

    @patch("homealert.alerting.email_sender.smtplib.SMTP")
    def test_send_failure_raises(self, mock_smtp, smtp_config):
        """SMTP failures surface as DeliveryError instead of being swallowed."""
        server = mock_smtp.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        with pytest.raises(DeliveryError, match="a@example.com"):
            SmtpEmailSender(smtp_config).send(SENDER, "a@example.com", "s", "t")

    @patch("homealert.alerting.email_sender.smtplib.SMTP")
    def test_connection_failure_raises(self, mock_smtp, smtp_config):
        mock_smtp.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(DeliveryError):
            SmtpEmailSender(smtp_config).send(SENDER, "a@example.com", "s", "t")


class TestResendEmailSender:
    """Test ResendEmailSender class."""

    @patch("homealert.alerting.email_sender.resend")
    def test_send_success(self, mock_resend):
        mock_resend.Emails.send.return_value = {"id": "email_123"}

        sender = ResendEmailSender("re_test")
        delivery_id = sender.send(SENDER, "family@example.com", "Smart Home Alert", "body", "<p>b</p>")

        assert mock_resend.api_key == "re_test"
        assert delivery_id == "email_123"
        mock_resend.Emails.send.assert_called_once_with(
            {
                "from": SENDER,
                "to": ["family@example.com"],
                "subject": "Smart Home Alert",
                "text": "body",
                "html": "<p>b</p>",
            }
        )

    @patch("homealert.alerting.email_sender.resend")
    def test_send_without_html(self, mock_resend):
        mock_resend.Emails.send.return_value = {"id": "email_123"}

        ResendEmailSender("re_test").send(SENDER, "a@example.com", "s", "t")

        assert "html" not in mock_resend.Emails.send.call_args[0][0]

    @patch("homealert.alerting.email_sender.resend")
    def test_send_response_without_id(self, mock_resend):
        mock_resend.Emails.send.return_value = {}

        assert ResendEmailSender("re_test").send(SENDER, "a@example.com", "s", "t") is None

    @patch("homealert.alerting.email_sender.resend")
    def test_send_failure_raises(self, mock_resend):
        mock_resend.Emails.send.side_effect = RuntimeError("rate limit exceeded")

        with pytest.raises(DeliveryError, match="rate limit exceeded"):
            ResendEmailSender("re_test").send(SENDER, "a@example.com", "s", "t")


class TestGetEmailSender:
    """Test the email sender factory."""

    def test_resend(self):
        sender = get_email_sender(EmailSettings(provider="resend", resend_api_key="re_x"))
        assert isinstance(sender, ResendEmailSender)

    def test_smtp(self, smtp_config):
        sender = get_email_sender(EmailSettings(provider="smtp", smtp=smtp_config))
        assert isinstance(sender, SmtpEmailSender)

    def test_missing_resend_key(self):
        with pytest.raises(ConfigurationError, match="Resend API key missing"):
            get_email_sender(EmailSettings(provider="resend"))

    def test_missing_smtp_settings(self):
        with pytest.raises(ConfigurationError, match="SMTP settings missing"):
            get_email_sender(EmailSettings(provider="smtp"))


class TestEmailTemplates:
    """Test email template formatting."""

    def test_greeting_with_name(self):
        assert format_greeting("Alice") == "Hi Alice,"

    def test_greeting_without_name(self):
        assert format_greeting(None) == "Hi there,"
        assert format_greeting("") == "Hi there,"

    def test_format_alert_email(self):
        text, html = format_alert_email("Water leak detected in basement", 42, "Alice")

        assert text.startswith("Hi Alice,")
        assert "Water leak detected in basement" in text
        assert "Alert ID: 42" in text
        assert "Smart Home Team" in text
        assert "Water leak detected in basement" in html
        assert "<b>42</b>" in html

    def test_html_escapes_message(self):
        text, html = format_alert_email("<script>alert(1)</script>", "a1")

        assert "<script>" in text
        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestNotifier:
    """Test Notifier class."""

    def test_notify_sends_alert_email(self):
        email_sender = MagicMock()
        email_sender.send.return_value = "delivery-9"
        alert = Alert(id=7, home_id="h1", message="Front door opened")

        delivery_id = Notifier(email_sender, SENDER).notify(
            ResolvedRecipient(email="family@example.com", display_name=None), alert
        )

        assert delivery_id == "delivery-9"
        kwargs = email_sender.send.call_args.kwargs
        assert kwargs["sender"] == SENDER
        assert kwargs["to"] == "family@example.com"
        assert kwargs["subject"] == "Smart Home Alert"
        assert kwargs["text"].startswith("Hi there,")
        assert "Front door opened" in kwargs["text"]
        assert "Alert ID: 7" in kwargs["text"]
        assert kwargs["html"]

    def test_notify_propagates_delivery_error(self):
        email_sender = MagicMock()
        email_sender.send.side_effect = DeliveryError("auth failed")

        with pytest.raises(DeliveryError):
            Notifier(email_sender, SENDER).notify(
                ResolvedRecipient(email="a@example.com"), Alert(id=1, message="m")
            )

    def test_notify_without_email(self):
        email_sender = MagicMock()

        with pytest.raises(RecipientNotFoundError):
            Notifier(email_sender, SENDER).notify(ResolvedRecipient(), Alert(id=1, message="m"))
        email_sender.send.assert_not_called()
