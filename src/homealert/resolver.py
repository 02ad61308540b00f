"""
Recipient resolution: home override first, identity provider second.
"""

import logging

from homealert.identity import LookupStatus
from homealert.models import ResolvedRecipient

logger = logging.getLogger(__name__)


class RecipientResolver:
    """Picks the single best email address for an alert."""

    def __init__(self, store, identity_client):
        """
        Args:
            store: Alert store providing get_home_override_email()
            identity_client: IdentityClient (or compatible) providing get_user()
        """
        self.store = store
        self.identity_client = identity_client

    def resolve(self, home_id: str | None, user_id: str | None) -> ResolvedRecipient:
        """
        Resolve the recipient for an alert.

        Precedence: a non-empty home override email, then the identity
        provider's primary email, else no address. The display name only ever
        comes from the identity provider. Lookup failures never raise here.

        Args:
            home_id: Home that raised the alert
            user_id: Responsible user in the identity provider

        Returns:
            ResolvedRecipient (email is None when nothing resolved)
        """
        identity_email = None
        display_name = None
        if user_id:
            result = self.identity_client.get_user(user_id)
            if result.status is LookupStatus.FOUND:
                identity_email = result.email
                display_name = result.first_name
            elif result.status is LookupStatus.NOT_FOUND:
                logger.warning(f"No identity record for user {user_id}")
            else:
                logger.error(f"Identity lookup failed for user {user_id}: {result.error}")

        override_email = None
        if home_id:
            try:
                override_email = self.store.get_home_override_email(home_id)
            except Exception as e:
                logger.error(f"Error fetching home email for {home_id}: {e}")

        email = override_email or identity_email or None
        if email is None:
            logger.warning(f"No recipient email resolved (home={home_id}, user={user_id})")
        return ResolvedRecipient(email=email, display_name=display_name)
