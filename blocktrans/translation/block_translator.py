"""
Structure-preserving translation of block trees and block documents.

Each block is translated in pre-order: its own HTML fragment, then its
whitelisted attributes, then its children. The input tree is deep-copied
first and the copy keeps the exact shape of the original. The first
translator failure aborts the whole operation.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from blocktrans.core.models import (
    Block, ChangeLogEntry, BlockTranslationResult, DocumentTranslationResult
)
from blocktrans.core.exceptions import (
    BlockTransError, InvalidBlockStructureError, NoBlocksFoundError
)
from blocktrans.core.block_parser import parse_blocks, serialize_blocks
from blocktrans.storage.base import DocumentStore
from blocktrans.translation.html_walker import HtmlTextWalker, TranslateFn, is_skippable_text
from blocktrans.translation.translator import Translator

logger = logging.getLogger(__name__)

TRANSLATABLE_ATTRIBUTES = ("content", "citation", "value", "placeholder", "title", "caption", "alt")

TRANSLATABLE_BLOCKS = frozenset({
    "paragraph", "heading", "list", "list-item", "quote", "pullquote", "verse",
    "preformatted", "button", "buttons", "cover", "media-text", "group",
    "columns", "column", "table",
})

# Stands in for child blocks while a parent's HTML chunks are walked together
SLOT_MARKER = "<!--blocktrans:slot-->"


def is_translatable_block(name: Optional[str]) -> bool:
    """True for whitelisted block names, with or without the ``core/`` namespace."""
    if not name:
        return False
    if name.startswith("core/"):
        name = name[len("core/"):]
    return name in TRANSLATABLE_BLOCKS


def validate_block_structure(blocks: Sequence[Any]) -> bool:
    """
    Check that every entry of a block list (recursively) is a block.

    Accepts :class:`Block` instances or mappings carrying a name key and an
    HTML key in either parser or snake_case form.

    Raises:
        InvalidBlockStructureError: on the first malformed entry
    """
    if not isinstance(blocks, (list, tuple)):
        raise InvalidBlockStructureError("Block list must be a list")

    for index, block in enumerate(blocks):
        if isinstance(block, Block):
            if block.slot_count != len(block.children):
                raise InvalidBlockStructureError(
                    f"Block {block.name} has {block.slot_count} child slots for {len(block.children)} children",
                    details={"index": index}
                )
            validate_block_structure(block.children)
        elif isinstance(block, Mapping):
            has_name = "blockName" in block or "name" in block
            has_html = "innerHTML" in block or "inner_html" in block
            if not (has_name and has_html):
                raise InvalidBlockStructureError(
                    "Block is missing its name or HTML",
                    details={"index": index}
                )
            validate_block_structure(block.get("innerBlocks", block.get("children")) or [])
        else:
            raise InvalidBlockStructureError(
                f"Unexpected block entry of type {type(block).__name__}",
                details={"index": index}
            )
    return True


def compare_blocks(original: Block, translated: Block) -> Dict[str, Any]:
    """Describe what differs between two versions of a block."""
    changes: Dict[str, Any] = {
        "inner_html_changed": original.inner_html != translated.inner_html,
        "attributes_changed": {},
    }
    for key in set(original.attributes) | set(translated.attributes):
        before = original.attributes.get(key)
        after = translated.attributes.get(key)
        if before != after:
            changes["attributes_changed"][key] = {"original": before, "new": after}
    return changes


class BlockTranslator:
    """Translates single blocks and whole block documents."""

    def __init__(
        self,
        translator: Translator,
        document_store: Optional[DocumentStore] = None,
        walker: Optional[HtmlTextWalker] = None,
        translatable_blocks_only: bool = False
    ):
        self.translator = translator
        self.document_store = document_store
        self.walker = walker or HtmlTextWalker()
        self.translatable_blocks_only = translatable_blocks_only

    # Public API

    def translate_block(self, block: Any, target_language: str, provider: Optional[str] = None) -> BlockTranslationResult:
        """
        Translate one block subtree into ``target_language``.

        The caller's block is never mutated.
        """
        validate_block_structure([block])
        original = block if isinstance(block, Block) else Block.from_dict(block)
        translated = original.copy()
        change_log: List[ChangeLogEntry] = []

        self._translate_tree(translated, target_language, provider, change_log, self._forward)

        return BlockTranslationResult(
            original_block=original,
            translated_block=translated,
            change_log=change_log,
        )

    # Kept for callers that re-run a block after editing it
    retranslate_block = translate_block

    def translate_post_blocks(
        self,
        document_id: Any,
        target_language: str,
        provider: Optional[str] = None
    ) -> DocumentTranslationResult:
        """
        Translate a stored document's title and blocks.

        Raises:
            PostNotFoundError: unknown document id
            NoBlocksFoundError: the document has no blocks
            BlockTransError: the first block translation failure
        """
        if self.document_store is None:
            raise BlockTransError("No document store configured", recoverable=False)

        document = self.document_store.get_document(document_id)
        blocks = parse_blocks(document.content)
        if not blocks:
            raise NoBlocksFoundError(details={"document_id": document_id})
        validate_block_structure(blocks)

        translated_title = None
        if document.title:
            try:
                translated_title = self.translator.translate(document.title, target_language, provider).translated_text
            except BlockTransError as e:
                logger.warning(f"Title translation failed for document {document_id}: {e.message}")

        change_log: List[ChangeLogEntry] = []
        translated_blocks: List[Block] = []
        for block in blocks:
            working = block.copy()
            if self.translatable_blocks_only and not is_translatable_block(block.name):
                translated_blocks.append(working)
                continue
            self._translate_tree(working, target_language, provider, change_log, self._forward)
            translated_blocks.append(working)

        logger.info(
            f"Translated document {document_id} into {target_language}: "
            f"{len(translated_blocks)} blocks, {len(change_log)} changes"
        )

        return DocumentTranslationResult(
            original_content=document.content,
            translated_content=serialize_blocks(translated_blocks),
            translated_title=translated_title,
            blocks=translated_blocks,
            change_log=change_log,
            target_language=target_language,
            provider=provider or self.translator.default_provider,
            document_id=document_id,
        )

    def retranslate_content(
        self,
        content: str,
        source_language: str,
        provider: Optional[str] = None
    ) -> Tuple[str, List[ChangeLogEntry]]:
        """
        Back-translate a translated block document into ``source_language``.

        Only whitelisted top-level blocks are walked; others pass through.
        """
        blocks = parse_blocks(content)
        change_log: List[ChangeLogEntry] = []
        for block in blocks:
            if is_translatable_block(block.name):
                self._translate_tree(block, source_language, provider, change_log, self._backward)
        return serialize_blocks(blocks), change_log

    # Internals

    def _forward(self, text: str, language: str, provider: Optional[str]) -> str:
        return self.translator.translate(text, language, provider).translated_text

    def _backward(self, text: str, language: str, provider: Optional[str]) -> str:
        return self.translator.back_translate(text, language, provider).back_translated_text

    def _translate_tree(
        self,
        block: Block,
        language: str,
        provider: Optional[str],
        change_log: List[ChangeLogEntry],
        translate_fn: TranslateFn
    ) -> None:
        if block.is_leaf:
            block.inner_html = self.walker.translate_text_nodes(
                block.inner_html, language, provider, change_log, block.name, translate_fn
            )
            block.inner_content = [block.inner_html] if block.inner_html else []
        else:
            self._translate_parent_fragment(block, language, provider, change_log, translate_fn)

        for attribute in TRANSLATABLE_ATTRIBUTES:
            value = block.attributes.get(attribute)
            if not isinstance(value, str) or is_skippable_text(value):
                continue
            translated = translate_fn(value, language, provider)
            block.attributes[attribute] = translated
            change_log.append(ChangeLogEntry(
                original=value,
                translated=translated,
                block_type=block.name,
                attribute=attribute
            ))

        for child in block.children:
            self._translate_tree(child, language, provider, change_log, translate_fn)

    def _translate_parent_fragment(
        self,
        block: Block,
        language: str,
        provider: Optional[str],
        change_log: List[ChangeLogEntry],
        translate_fn: TranslateFn
    ) -> None:
        # Group string chunks into the segments between child slots
        segments: List[List[str]] = [[]]
        for chunk in block.inner_content:
            if chunk is None:
                segments.append([])
            else:
                segments[-1].append(chunk)

        joined = SLOT_MARKER.join("".join(segment) for segment in segments)
        walked = self.walker.translate_text_nodes(
            joined, language, provider, change_log, block.name, translate_fn
        )
        if walked == joined:
            return

        parts = walked.split(SLOT_MARKER)
        if len(parts) != len(segments):
            raise InvalidBlockStructureError(
                f"Child slots of {block.name} were lost while translating its HTML",
                details={"expected": len(segments) - 1, "found": len(parts) - 1}
            )

        inner_content: List[Optional[str]] = []
        for index, part in enumerate(parts):
            if segments[index] or part:
                inner_content.append(part)
            if index < len(parts) - 1:
                inner_content.append(None)
        block.inner_content = inner_content
        block.sync_inner_html()
