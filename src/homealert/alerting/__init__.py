"""
Email alerting for homealert.

Provides:
- Alert email templates (plain text + HTML)
- SMTP and Resend email senders
- The Notifier that ties a resolved recipient to a sender
"""

from homealert.alerting.email_sender import ResendEmailSender, SmtpEmailSender, get_email_sender
from homealert.alerting.notifier import Notifier

__all__ = ["Notifier", "ResendEmailSender", "SmtpEmailSender", "get_email_sender"]
