"""
Email content templates for alerts.
"""

from __future__ import annotations

from html import escape

ALERT_SUBJECT = "Smart Home Alert"
SIGNATURE = "Smart Home Team"


def format_greeting(display_name: str | None) -> str:
    """``'Hi Alice,'`` when a display name is known, else ``'Hi there,'``."""
    return f"Hi {display_name}," if display_name else "Hi there,"


def format_alert_email(
    message: str, alert_id: int | str, display_name: str | None = None
) -> tuple[str, str]:
    """
    Format one alert into email content.

    Args:
        message: Alert body published by the device
        alert_id: Store id of the alert, included for traceability
        display_name: Recipient's first name, if the identity provider knows it

    Returns:
        Tuple of (plain_text, html) email content
    """
    greeting = format_greeting(display_name)

    text_lines = [
        greeting,
        "",
        "This is a notification regarding your smart home system:",
        "",
        message,
        "",
        f"Alert ID: {alert_id}",
        "",
        "--",
        SIGNATURE,
        "",
    ]
    plain_text = "\n".join(text_lines)

    html = f"""
<div style="font-family: Arial, sans-serif; background: #f7f7f9; padding: 32px 0;">
  <table width="100%" cellpadding="0" cellspacing="0" style="max-width: 480px; margin: 0 auto; background: #fff; border-radius: 8px;">
    <tr>
      <td style="background: #2d7ff9; color: #fff; padding: 24px 32px 16px 32px; border-radius: 8px 8px 0 0; text-align: center;">
        <h1 style="margin: 0; font-size: 1.6em;">{ALERT_SUBJECT}</h1>
      </td>
    </tr>
    <tr>
      <td style="padding: 24px 32px 8px 32px;">
        <p style="font-size: 1.1em; margin: 0 0 16px 0;">{escape(greeting)}</p>
        <p style="color: #222; margin: 0 0 18px 0;">This is a notification regarding your smart home system:</p>
        <div style="background: #f1f6ff; border-left: 4px solid #2d7ff9; padding: 16px; margin-bottom: 18px; border-radius: 4px;">
          {escape(message)}
        </div>
        <p style="color: #888; margin: 0 0 8px 0;">Alert ID: <b>{escape(str(alert_id))}</b></p>
      </td>
    </tr>
    <tr>
      <td style="padding: 0 32px 24px 32px;">
        <p style="color: #888; margin: 0;">If you have any questions, please contact our support team.<br><br>--<br>{SIGNATURE}</p>
      </td>
    </tr>
  </table>
</div>
"""

    return plain_text, html
