"""
Data contracts shared by the store, the pipeline and the ingress adapters.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Any

from homealert.errors import InvalidPayloadError

MISSING_FIELDS_MESSAGE = "Invalid message payload: missing required fields"


class SentStatus(IntEnum):
    """Delivery state of an alert. Only ever moves from UNSENT to SENT."""

    UNSENT = 0
    SENT = 1


@dataclass
class Alert:
    """One notification event raised by a device."""

    id: int | str
    message: str
    home_id: str | None = None
    user_id: str | None = None
    device_id: str | None = None
    sent_status: SentStatus = SentStatus.UNSENT
    created_at: datetime | str | None = None


@dataclass
class HomeUserLink:
    """Association between a home and a user with an optional email override."""

    home_id: str
    user_id: str | None = None
    email: str | None = None


@dataclass
class ResolvedRecipient:
    email: str | None = None
    display_name: str | None = None


@dataclass
class BatchResult:
    """Summary of one batch invocation, returned to the invoking adapter."""

    processed: int = 0
    successful: int = 0
    failed: int = 0
    message: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "message": self.message,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class AlertPayload:
    """Validated alert submission from the HTTP or broker ingress."""

    home_id: str
    device_id: str
    message: str


def parse_payload(data: Any) -> AlertPayload:
    """
    Validate a decoded ingress payload.

    Args:
        data: Decoded JSON value

    Returns:
        AlertPayload with the three required fields

    Raises:
        InvalidPayloadError: If data is not an object or a required field is missing or empty
    """
    if not isinstance(data, dict):
        raise InvalidPayloadError(MISSING_FIELDS_MESSAGE)

    home_id = data.get("home_id")
    device_id = data.get("device_id")
    message = data.get("message")
    if not home_id or not device_id or not message:
        raise InvalidPayloadError(MISSING_FIELDS_MESSAGE)

    return AlertPayload(home_id=str(home_id), device_id=str(device_id), message=str(message))
