"""
Exception hierarchy for homealert.

Only configuration errors and batch-level fetch errors end a pipeline
invocation early. Everything else is contained per alert or per message.
"""


class HomeAlertError(Exception):
    """Base class for all homealert errors."""


class ConfigurationError(HomeAlertError):
    """A required credential or setting is missing."""


class InvalidPayloadError(HomeAlertError):
    """An ingress payload is missing required fields or is not a JSON object."""


class RecipientNotFoundError(HomeAlertError):
    """Neither a home override nor an identity email could be resolved."""


class DeliveryError(HomeAlertError):
    """The email provider rejected or failed to accept a message."""
