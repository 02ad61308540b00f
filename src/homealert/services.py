"""
Composition root: builds the long-lived clients once per process.
"""

import logging
from dataclasses import dataclass

from homealert.alerting import get_email_sender
from homealert.config import Settings
from homealert.database import get_database
from homealert.identity import IdentityClient
from homealert.pipeline import BatchPipeline

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Clients shared by every ingress adapter for the life of the process."""

    store: object
    identity_client: IdentityClient
    email_sender: object
    pipeline: BatchPipeline

    def close(self) -> None:
        self.identity_client.session.close()
        self.store.close()


def create_store(settings: Settings):
    """Create the alert store for the configured backend."""
    if settings.store.backend == "sqlite":
        store = get_database("sqlite", db_path=str(settings.store.db_path))
        logger.info(f"Using SQLite alert store: {settings.store.db_path}")
    elif settings.store.backend == "firestore":
        store = get_database(
            "firestore",
            project_id=settings.store.firestore_project,
            alerts_collection=settings.store.alerts_collection,
            homes_collection=settings.store.homes_collection,
        )
        logger.info(
            f"Using Firestore alert store: project={settings.store.firestore_project}, "
            f"collection={settings.store.alerts_collection}"
        )
    else:
        raise ValueError(f"Unknown store backend: {settings.store.backend}")
    return store


def build_services(settings: Settings) -> Services:
    """
    Build the store, identity client, email sender and pipeline.

    Credentials are checked before anything connects.

    Raises:
        ConfigurationError: If a required credential is missing
    """
    settings.require_credentials()

    email_sender = get_email_sender(settings.email)
    identity_client = IdentityClient(settings.identity)
    store = create_store(settings)
    pipeline = BatchPipeline(
        store,
        identity_client,
        email_sender,
        sender_address=settings.email.sender,
        batch_size=settings.batch_size,
    )
    return Services(
        store=store,
        identity_client=identity_client,
        email_sender=email_sender,
        pipeline=pipeline,
    )
