"""Pending and approved translations per document."""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from blocktrans.core.models import PendingApproval
from blocktrans.storage.base import open_cache

logger = logging.getLogger(__name__)


class ApprovalStore:
    """
    One pending record per document (overwritten by each new run) and one
    approved record per document and target language.
    """

    def __init__(self, directory: Union[str, Path]):
        self.cache = open_cache(directory)

    @staticmethod
    def _pending_key(document_id: Any) -> str:
        return f"pending:{document_id}"

    @staticmethod
    def _approved_key(document_id: Any, target_language: str) -> str:
        return f"approved:{document_id}:{target_language}"

    def set_pending(self, document_id: Any, pending: PendingApproval) -> None:
        self.cache.set(self._pending_key(document_id), pending.to_dict())

    def get_pending(self, document_id: Any) -> Optional[PendingApproval]:
        data = self.cache.get(self._pending_key(document_id))
        return PendingApproval.from_dict(data) if data is not None else None

    def delete_pending(self, document_id: Any) -> bool:
        return self.cache.delete(self._pending_key(document_id))

    def set_approved(self, document_id: Any, target_language: str, approved: PendingApproval) -> None:
        self.cache.set(self._approved_key(document_id, target_language), approved.to_dict())

    def get_approved(self, document_id: Any, target_language: str) -> Optional[PendingApproval]:
        data = self.cache.get(self._approved_key(document_id, target_language))
        return PendingApproval.from_dict(data) if data is not None else None

    def close(self) -> None:
        self.cache.close()
