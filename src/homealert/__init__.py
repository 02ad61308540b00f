"""
homealert - Email notifications for smart-home device alerts.

This package receives device alerts over HTTP or a message broker, stores
them, resolves who should hear about each one, and emails them in small,
failure-tolerant batches.
"""

__version__ = "0.1.0"

from homealert.config import Settings
from homealert.database import Database, get_database
from homealert.models import Alert, BatchResult, SentStatus
from homealert.pipeline import BatchPipeline

__all__ = [
    "__version__",
    "Alert",
    "BatchPipeline",
    "BatchResult",
    "Database",
    "SentStatus",
    "Settings",
    "get_database",
]
