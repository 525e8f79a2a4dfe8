"""
Collaborator interfaces for the stores the pipeline depends on.

The translation core only talks to these ABCs; concrete stores are wired in
by :class:`blocktrans.core.pipeline.TranslationPipeline`.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Union
import logging

import diskcache

from blocktrans.core.models import Document

logger = logging.getLogger(__name__)


def open_cache(directory: Union[str, Path]) -> diskcache.Cache:
    """Open (creating if needed) a disk cache rooted at ``directory``."""
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Opening disk cache at {path}")
    return diskcache.Cache(str(path))


class DocumentStore(ABC):
    """Source of documents to translate."""

    @abstractmethod
    def get_document(self, document_id: Any) -> Document:
        """
        Fetch a document.

        Raises:
            PostNotFoundError: when no document exists for the id
        """
        pass


class CredentialStore(ABC):
    """Per-provider API key lookup."""

    @abstractmethod
    def get_key(self, provider: str) -> Optional[str]:
        """Return a usable key for ``provider`` or None."""
        pass

    def has_key(self, provider: Optional[str] = None) -> bool:
        """True when ``provider`` (or, without a provider, any provider) has a key."""
        if provider:
            return bool(self.get_key(provider))
        return any(self.get_key(name) for name in self.providers())

    def providers(self):
        return ()

    def delete_all(self) -> None:
        """Remove every stored key."""
        pass

    def revoke(self, provider: str) -> None:
        """Hide any key for ``provider`` until a new one is set."""
        pass


class PageGenerator(ABC):
    """Downstream publisher of approved translations."""

    @abstractmethod
    def create_translated_page(self, document_id: Any, target_language: str, approved: Any) -> Any:
        pass
