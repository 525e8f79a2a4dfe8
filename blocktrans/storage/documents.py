"""Document stores."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from blocktrans.core.models import Document
from blocktrans.core.exceptions import PostNotFoundError
from blocktrans.storage.base import DocumentStore

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed store for embedding and tests."""

    def __init__(self, documents: Dict[Any, Document] = None):
        self._documents: Dict[str, Document] = {
            str(key): document for key, document in (documents or {}).items()
        }

    def add_document(self, document: Document) -> None:
        self._documents[str(document.document_id)] = document

    def get_document(self, document_id: Any) -> Document:
        document = self._documents.get(str(document_id))
        if document is None:
            raise PostNotFoundError(document_id)
        return document


class DirectoryDocumentStore(DocumentStore):
    """
    Reads documents from a directory.

    ``<id>.json`` holds ``{"title": ..., "content": ...}``; ``<id>.html`` holds
    the block document alone (empty title).
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def get_document(self, document_id: Any) -> Document:
        json_path = self.directory / f"{document_id}.json"
        html_path = self.directory / f"{document_id}.html"

        if json_path.exists():
            with open(json_path, "r", encoding="utf-8") as f:
                try:
                    data = json.load(f)
                except json.JSONDecodeError as e:
                    logger.warning(f"Unreadable document file {json_path}: {e}")
                    raise PostNotFoundError(document_id) from e
            return Document(
                document_id=document_id,
                title=data.get("title", ""),
                content=data.get("content", ""),
            )

        if html_path.exists():
            return Document(
                document_id=document_id,
                title="",
                content=html_path.read_text(encoding="utf-8"),
            )

        raise PostNotFoundError(document_id)

    def save_document(self, document: Document) -> Path:
        """Write a document as ``<id>.json``."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / f"{document.document_id}.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"title": document.title, "content": document.content}, f, ensure_ascii=False, indent=2)
        return path
