"""
Licensing / expiry gate.

Translation features are available only while the configured expiry date has
not passed and at least one provider has an API key. An operator marks
delivery complete (which starts the expiry countdown), may extend the expiry
once, and may trigger an emergency stop that wipes keys and expiry state.
Keys purged by expiry or an emergency stop stay revoked across restarts,
environment keys included, until an operator stores a new key.
"""

from __future__ import annotations
import logging
import math
from datetime import datetime, date
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from blocktrans.core.exceptions import ExtensionAlreadyUsedError, NoExpiryError
from blocktrans.storage.base import CredentialStore, open_cache

logger = logging.getLogger(__name__)

DAY_SECONDS = 86400
EXTENSION_DAYS = 30

DELIVERY_DATE_KEY = "delivery_date"
EXPIRY_DATE_KEY = "expiry_date"
EXTENSION_USED_KEY = "extension_used"
QUEUE_KEY = "queue"
PROCESSING_KEY = "processing"
REVOKED_KEY = "revoked_providers"


def parse_expiry(value: Any) -> Optional[float]:
    """Accept a timestamp, a date/datetime or an ISO date string."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).timestamp()
    return datetime.fromisoformat(str(value)).timestamp()


class LicenseGate:
    """Expiry state persisted in a disk cache, plus the credential check."""

    def __init__(
        self,
        directory: Union[str, Path],
        credentials: CredentialStore,
        expiry_preset_days: int = 30,
        initial_expiry: Any = None,
        clock: Optional[Callable[[], float]] = None
    ):
        self.state = open_cache(directory)
        self.credentials = credentials
        self.expiry_preset_days = expiry_preset_days
        self.clock = clock or (lambda: datetime.now().timestamp())

        initial = parse_expiry(initial_expiry)
        if initial is not None:
            # Only seeds an unset expiry; operator actions win afterwards
            self.state.add(EXPIRY_DATE_KEY, initial)

        for provider in self.state.get(REVOKED_KEY, []):
            self.credentials.revoke(provider)

    @property
    def expiry_date(self) -> Optional[float]:
        return self.state.get(EXPIRY_DATE_KEY)

    def is_expired(self) -> bool:
        expiry = self.expiry_date
        if not expiry:
            return False
        return self.clock() > expiry

    def is_feature_available(self) -> bool:
        if self.is_expired():
            return False
        return self.credentials.has_key()

    def remaining_days(self) -> Optional[int]:
        """Whole days left (rounded up), or None when no expiry is set."""
        expiry = self.expiry_date
        if not expiry:
            return None
        return math.ceil((expiry - self.clock()) / DAY_SECONDS)

    def mark_delivery_completed(self, preset_days: Optional[int] = None) -> float:
        """Record delivery now and start the expiry countdown. Returns the new expiry."""
        days = preset_days if preset_days is not None else self.expiry_preset_days
        delivered = self.clock()
        expiry = delivered + days * DAY_SECONDS
        self.state.set(DELIVERY_DATE_KEY, delivered)
        self.state.set(EXPIRY_DATE_KEY, expiry)
        logger.info(f"Delivery completed; features expire in {days} days")
        return expiry

    def extend_expiry(self) -> float:
        """
        Push the expiry back by 30 days. Allowed once.

        Raises:
            ExtensionAlreadyUsedError: the extension was already consumed
            NoExpiryError: no expiry date is set
        """
        if self.state.get(EXTENSION_USED_KEY):
            raise ExtensionAlreadyUsedError()
        expiry = self.expiry_date
        if not expiry:
            raise NoExpiryError()

        new_expiry = expiry + EXTENSION_DAYS * DAY_SECONDS
        self.state.set(EXPIRY_DATE_KEY, new_expiry)
        self.state.set(EXTENSION_USED_KEY, True)
        logger.info(f"Expiry extended by {EXTENSION_DAYS} days")
        return new_expiry

    def check_expiry(self) -> bool:
        """Purge keys and expiry state once the expiry has passed. Returns True if purged."""
        if not self.is_expired():
            return False
        logger.warning("License expired; deleting API keys and expiry state")
        self._revoke_all()
        for key in (DELIVERY_DATE_KEY, EXPIRY_DATE_KEY, EXTENSION_USED_KEY, QUEUE_KEY, PROCESSING_KEY):
            self.state.delete(key)
        return True

    def emergency_stop(self) -> None:
        """Delete every API key, the expiry state and the queued work marker."""
        self._revoke_all()
        for key in (DELIVERY_DATE_KEY, EXPIRY_DATE_KEY, QUEUE_KEY):
            self.state.delete(key)
        logger.warning("Emergency stop: API keys and expiry state deleted")

    def restore_provider(self, provider: str) -> None:
        """Lift a persisted revocation for ``provider``; called when a new key is stored."""
        with self.state.transact():
            revoked = [name for name in self.state.get(REVOKED_KEY, []) if name != provider]
            if revoked:
                self.state.set(REVOKED_KEY, revoked)
            else:
                self.state.delete(REVOKED_KEY)

    def _revoke_all(self) -> None:
        self.credentials.delete_all()
        self.state.set(REVOKED_KEY, list(self.credentials.providers()))

    def get_expiry_info(self) -> Dict[str, Any]:
        return {
            "delivery_date": self.state.get(DELIVERY_DATE_KEY),
            "expiry_date": self.expiry_date,
            "extension_used": bool(self.state.get(EXTENSION_USED_KEY)),
            "remaining_days": self.remaining_days(),
            "is_expired": self.is_expired(),
        }

    def close(self) -> None:
        self.state.close()
