"""Daily / monthly translation quota counters."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from blocktrans.core.models import UsageStats
from blocktrans.core.exceptions import DailyLimitExceededError, MonthlyLimitExceededError
from blocktrans.storage.base import open_cache

logger = logging.getLogger(__name__)

# Keys carry their period, so counters reset when the day or month changes.
DAILY_TTL = 2 * 86400
MONTHLY_TTL = 32 * 86400

Reservation = Tuple[str, str]


class UsageCounterStore:
    """
    Quota counters shared by every process using the same directory.

    ``reserve`` checks both limits and increments both counters inside one
    cache transaction; ``refund`` gives a reservation back when the remote
    call it was made for fails.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        daily_limit: int = 100,
        monthly_limit: int = 3000,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.cache = open_cache(directory)
        self.daily_limit = daily_limit
        self.monthly_limit = monthly_limit
        self.clock = clock or datetime.now

    def _period_keys(self) -> Reservation:
        now = self.clock()
        return f"daily:{now:%Y-%m-%d}", f"monthly:{now:%Y-%m}"

    def reserve(self) -> Reservation:
        """
        Take one translation slot.

        Raises:
            DailyLimitExceededError: daily counter already at the limit
            MonthlyLimitExceededError: monthly counter already at the limit
        """
        daily_key, monthly_key = self._period_keys()
        with self.cache.transact():
            daily = self.cache.get(daily_key, 0)
            monthly = self.cache.get(monthly_key, 0)

            if daily >= self.daily_limit:
                logger.info(f"Daily limit reached ({daily}/{self.daily_limit})")
                raise DailyLimitExceededError(daily, self.daily_limit)
            if monthly >= self.monthly_limit:
                logger.info(f"Monthly limit reached ({monthly}/{self.monthly_limit})")
                raise MonthlyLimitExceededError(monthly, self.monthly_limit)

            self.cache.set(daily_key, daily + 1, expire=DAILY_TTL)
            self.cache.set(monthly_key, monthly + 1, expire=MONTHLY_TTL)

        return daily_key, monthly_key

    def refund(self, reservation: Reservation) -> None:
        """Return a slot taken by :meth:`reserve`."""
        daily_key, monthly_key = reservation
        with self.cache.transact():
            for key, ttl in ((daily_key, DAILY_TTL), (monthly_key, MONTHLY_TTL)):
                value = self.cache.get(key, 0)
                if value > 0:
                    self.cache.set(key, value - 1, expire=ttl)

    def get_usage_stats(self) -> UsageStats:
        daily_key, monthly_key = self._period_keys()
        return UsageStats(
            daily_usage=self.cache.get(daily_key, 0),
            daily_limit=self.daily_limit,
            monthly_usage=self.cache.get(monthly_key, 0),
            monthly_limit=self.monthly_limit,
        )

    def close(self) -> None:
        self.cache.close()
