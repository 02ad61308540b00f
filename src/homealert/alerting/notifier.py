"""
Formats one alert and hands it to the email sender.
"""

import logging

from homealert.alerting.templates import ALERT_SUBJECT, format_alert_email
from homealert.errors import RecipientNotFoundError
from homealert.models import Alert, ResolvedRecipient

logger = logging.getLogger(__name__)


class Notifier:
    """Sends the alert email for a resolved recipient."""

    def __init__(self, email_sender, sender_address: str):
        """
        Args:
            email_sender: Object with ``send(sender, to, subject, text, html)``
            sender_address: From address for alert emails
        """
        self.email_sender = email_sender
        self.sender_address = sender_address

    def notify(self, recipient: ResolvedRecipient, alert: Alert) -> str | None:
        """
        Send one alert email. Delivery errors propagate to the caller.

        Returns:
            Delivery id reported by the email sender
        """
        if not recipient.email:
            raise RecipientNotFoundError(f"No recipient email for alert {alert.id}")

        body_text, body_html = format_alert_email(alert.message, alert.id, recipient.display_name)
        delivery_id = self.email_sender.send(
            sender=self.sender_address,
            to=recipient.email,
            subject=ALERT_SUBJECT,
            text=body_text,
            html=body_html,
        )
        logger.debug(f"Alert {alert.id} dispatched (delivery id: {delivery_id})")
        return delivery_id
