"""Expiring storage for A/B comparisons."""

import logging
import time
from pathlib import Path
from typing import Optional, Union

from blocktrans.core.models import Comparison
from blocktrans.storage.base import open_cache

logger = logging.getLogger(__name__)


class ComparisonStore:
    """Comparisons keyed by id; entries expire ``ttl`` seconds after they are first saved."""

    def __init__(self, directory: Union[str, Path], ttl: int = 86400):
        self.cache = open_cache(directory)
        self.ttl = ttl

    def save(self, comparison: Comparison) -> None:
        """Store ``comparison``; re-saving an existing entry keeps its original expiry."""
        key = comparison.comparison_id
        with self.cache.transact():
            _, expire_time = self.cache.get(key, expire_time=True)
            expire = self.ttl if expire_time is None else max(expire_time - time.time(), 0)
            self.cache.set(key, comparison.to_dict(), expire=expire)
        logger.debug(f"Saved comparison {key} (expires in {expire:.0f}s)")

    def get(self, comparison_id: str) -> Optional[Comparison]:
        data = self.cache.get(comparison_id)
        if data is None:
            return None
        return Comparison.from_dict(data)

    def delete(self, comparison_id: str) -> bool:
        return self.cache.delete(comparison_id)

    def close(self) -> None:
        self.cache.close()
