"""
Alert processing pipeline.

``run_batch`` drains up to one batch of unsent alerts, oldest first. Alerts
are processed one at a time and each alert's failure is counted and logged
without stopping the rest of the batch. An alert is only marked sent after
its own email went out; anything that fails stays unsent and is picked up by
the next invocation.
"""

import logging

from homealert.alerting.notifier import Notifier
from homealert.errors import RecipientNotFoundError
from homealert.models import Alert, AlertPayload, BatchResult, parse_payload
from homealert.resolver import RecipientResolver

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


class BatchPipeline:
    """Fetches, notifies and marks alerts using injected store, identity and email clients."""

    def __init__(
        self,
        store,
        identity_client,
        email_sender,
        sender_address: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        """
        Initialize the pipeline.

        Args:
            store: Alert store (Database or FirestoreDatabase)
            identity_client: IdentityClient used for fallback recipient lookup
            email_sender: SmtpEmailSender or ResendEmailSender
            sender_address: From address for alert emails
            batch_size: Maximum alerts fetched per run_batch() call
        """
        self.store = store
        self.batch_size = batch_size
        self.resolver = RecipientResolver(store, identity_client)
        self.notifier = Notifier(email_sender, sender_address)

    def process_alert(self, alert: Alert) -> str | None:
        """
        Resolve, notify and mark a single alert as sent.

        Returns:
            Delivery id of the sent email

        Raises:
            RecipientNotFoundError: If no address could be resolved
            DeliveryError: If the email could not be sent
        """
        recipient = self.resolver.resolve(alert.home_id, alert.user_id)
        if not recipient.email:
            raise RecipientNotFoundError(
                f"No recipient for alert {alert.id} (home={alert.home_id}, user={alert.user_id})"
            )

        delivery_id = self.notifier.notify(recipient, alert)

        try:
            self.store.mark_sent(alert.id)
        except Exception:
            # The email already went out; the next batch will send it again.
            logger.error(
                f"Alert {alert.id} was emailed but could not be marked sent; "
                "it may be delivered again on retry"
            )
            raise

        logger.info(f"Alert {alert.id} sent to {recipient.email}")
        return delivery_id

    def store_alert(self, payload: AlertPayload) -> Alert:
        """
        Insert a new unsent alert, attributed to the user linked to its home.

        Returns:
            The stored Alert (user_id is None when the home has no linked user)
        """
        link = self.store.get_home_link(payload.home_id)
        user_id = link.user_id if link else None
        alert_id = self.store.insert_alert(payload.home_id, user_id, payload.device_id, payload.message)
        logger.info(f"Stored alert {alert_id} from device {payload.device_id} (home {payload.home_id})")
        return Alert(
            id=alert_id,
            home_id=payload.home_id,
            user_id=user_id,
            device_id=payload.device_id,
            message=payload.message,
        )

    def ingest(self, payload: AlertPayload | dict) -> int | str:
        """
        Store a new alert and immediately run the single-alert path.

        Args:
            payload: AlertPayload, or a decoded JSON dict to validate

        Returns:
            Id of the inserted alert

        Raises:
            InvalidPayloadError: Before any store call, if the payload is incomplete
            RecipientNotFoundError, DeliveryError: After the insert; the alert stays
                unsent for the next batch
        """
        if not isinstance(payload, AlertPayload):
            payload = parse_payload(payload)

        alert = self.store_alert(payload)
        self.process_alert(alert)
        return alert.id

    def run_batch(self) -> BatchResult:
        """
        Process one batch of pending alerts.

        Returns:
            BatchResult with processed/successful/failed counts. ``error`` is set
            only when fetching the batch itself failed.
        """
        processed = 0
        successful = 0
        failed = 0

        try:
            alerts = self.store.fetch_pending(self.batch_size)
            if not alerts:
                logger.debug("No pending alerts to process")
                return BatchResult(message="No alerts to process.")

            processed = len(alerts)
            for alert in alerts:
                try:
                    self.process_alert(alert)
                    successful += 1
                except RecipientNotFoundError as e:
                    failed += 1
                    logger.warning(f"Skipping alert {alert.id}: {e}")
                except Exception as e:
                    failed += 1
                    logger.error(f"Failed to process alert {alert.id}: {e}")
        except Exception as e:
            logger.error(f"Batch aborted: {e}")
            return BatchResult(
                processed=processed,
                successful=successful,
                failed=processed - successful,
                message="Batch aborted.",
                error=str(e),
            )

        message = (
            f"Batch complete. Processed: {processed}, "
            f"Successful: {successful}, Failed: {failed}"
        )
        logger.info(message)
        return BatchResult(
            processed=processed,
            successful=successful,
            failed=failed,
            message=message,
        )
