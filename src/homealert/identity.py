"""
Identity provider lookups against the Clerk Backend API.

Lookups never raise: every outcome is reported as a LookupResult so the
recipient resolver can degrade to "no identity address" while operators can
still tell a missing user apart from a provider outage in the logs.
"""

import logging
from dataclasses import dataclass
from enum import Enum

import requests

from homealert.config import IdentitySettings
from homealert.utils.retry import RetryConfig, with_retry

logger = logging.getLogger(__name__)


class LookupStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class UserProfile:
    """The parts of an identity record used for notifications."""

    user_id: str
    first_name: str | None
    primary_email: str | None


@dataclass
class LookupResult:
    status: LookupStatus
    profile: UserProfile | None = None
    error: str | None = None

    @property
    def email(self) -> str | None:
        return self.profile.primary_email if self.profile else None

    @property
    def first_name(self) -> str | None:
        return self.profile.first_name if self.profile else None


def parse_user(data: dict) -> UserProfile:
    """
    Extract the profile from a Clerk user object.

    The primary address is the entry in ``email_addresses`` whose id matches
    ``primary_email_address_id``.
    """
    primary_id = data.get("primary_email_address_id")
    primary_email = None
    for address in data.get("email_addresses") or []:
        if address.get("id") == primary_id:
            primary_email = address.get("email_address") or None
            break
    return UserProfile(
        user_id=data.get("id", ""),
        first_name=data.get("first_name") or None,
        primary_email=primary_email,
    )


class IdentityClient:
    """Looks up users in Clerk by id."""

    def __init__(
        self,
        config: IdentitySettings,
        session: requests.Session | None = None,
        retry: RetryConfig | None = None,
    ):
        """
        Initialize identity client.

        Args:
            config: Identity provider settings (secret key, API URL, timeout)
            session: Optional requests session (shared connection pool)
            retry: Retry policy for 429/5xx and network errors
        """
        self.config = config
        self.session = session or requests.Session()
        self._fetch = with_retry(retry or RetryConfig())(self._fetch_user)

    def _fetch_user(self, user_id: str) -> dict:
        response = self.session.get(
            f"{self.config.api_url.rstrip('/')}/users/{user_id}",
            headers={"Authorization": f"Bearer {self.config.secret_key}"},
            timeout=self.config.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    def get_user(self, user_id: str | None) -> LookupResult:
        """
        Look up a user's first name and primary email.

        Args:
            user_id: Clerk user id

        Returns:
            LookupResult with status FOUND, NOT_FOUND or ERROR
        """
        if not user_id:
            logger.warning("get_user called with no user_id")
            return LookupResult(LookupStatus.NOT_FOUND)

        try:
            data = self._fetch(user_id)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                logger.warning(f"User {user_id} not found in identity provider")
                return LookupResult(LookupStatus.NOT_FOUND)
            logger.error(f"Error fetching user {user_id} from identity provider: {e}")
            return LookupResult(LookupStatus.ERROR, error=str(e))
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching user {user_id} from identity provider: {e}")
            return LookupResult(LookupStatus.ERROR, error=str(e))

        if not isinstance(data, dict):
            error = f"Unexpected user object type: {type(data).__name__}"
            logger.error(f"Error fetching user {user_id} from identity provider: {error}")
            return LookupResult(LookupStatus.ERROR, error=error)

        try:
            profile = parse_user(data)
        except (AttributeError, TypeError) as e:
            logger.error(f"Malformed user object for {user_id}: {e}")
            return LookupResult(LookupStatus.ERROR, error=f"Malformed user object: {e}")

        return LookupResult(LookupStatus.FOUND, profile=profile)
