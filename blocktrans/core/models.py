"""
Core data models for blocktrans.

This module defines the records that flow through the translation pipeline:
the block tree parsed from a block document, the per-call translation units,
the change-log written while walking a tree, and the comparison / approval
records kept by the stores.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Optional, Any
from datetime import datetime
import copy


def _now() -> float:
    return datetime.now().timestamp()


@dataclass
class Block:
    """
    One node of a block tree.

    ``inner_content`` is the serialization source: HTML chunks interleaved with
    ``None`` slots, one slot per child in order. ``inner_html`` is always the
    concatenation of the string chunks.
    """
    name: Optional[str] = None  # e.g. "core/paragraph"; None for freeform HTML
    inner_html: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)
    children: List[Block] = field(default_factory=list)
    inner_content: Optional[List[Optional[str]]] = None

    def __post_init__(self):
        if self.inner_content is None:
            self.inner_content = [self.inner_html] if self.inner_html else []
            self.inner_content.extend([None] * len(self.children))

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def slot_count(self) -> int:
        return sum(1 for chunk in self.inner_content if chunk is None)

    def sync_inner_html(self) -> None:
        """Rebuild ``inner_html`` from the string chunks of ``inner_content``."""
        self.inner_html = "".join(chunk for chunk in self.inner_content if chunk is not None)

    def copy(self) -> Block:
        """Deep copy of the whole subtree."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the block parser's key names."""
        return {
            "blockName": self.name,
            "attrs": copy.deepcopy(self.attributes),
            "innerBlocks": [child.to_dict() for child in self.children],
            "innerHTML": self.inner_html,
            "innerContent": list(self.inner_content),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Block:
        """Build a block from either parser-style or snake_case keys."""
        name = data["blockName"] if "blockName" in data else data.get("name")
        inner_html = data["innerHTML"] if "innerHTML" in data else data.get("inner_html", "")
        attributes = data.get("attrs", data.get("attributes")) or {}
        children_data = data.get("innerBlocks", data.get("children")) or []
        inner_content = data.get("innerContent", data.get("inner_content"))
        children = [child if isinstance(child, Block) else cls.from_dict(child) for child in children_data]
        return cls(
            name=name,
            inner_html=inner_html or "",
            attributes=dict(attributes),
            children=children,
            inner_content=list(inner_content) if inner_content is not None else None,
        )


@dataclass(frozen=True)
class TranslationUnit:
    """Result of a single forward translation call."""
    original_text: str
    translated_text: str
    target_language: str
    provider: str
    timestamp: float = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_text": self.original_text,
            "translated_text": self.translated_text,
            "target_language": self.target_language,
            "provider": self.provider,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TranslationUnit:
        return cls(**data)


@dataclass(frozen=True)
class BackTranslationResult:
    """Result of translating a text back into the source language."""
    translated_text: str
    back_translated_text: str
    source_language: str
    provider: str
    timestamp: float = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "translated_text": self.translated_text,
            "back_translated_text": self.back_translated_text,
            "source_language": self.source_language,
            "provider": self.provider,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BackTranslationResult:
        return cls(**data)


@dataclass(frozen=True)
class ChangeLogEntry:
    """One replaced text node or attribute value."""
    original: str
    translated: str
    block_type: Optional[str]
    attribute: Optional[str] = None  # None for text nodes

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "original": self.original,
            "translated": self.translated,
            "block_type": self.block_type,
        }
        if self.attribute is not None:
            data["attribute"] = self.attribute
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ChangeLogEntry:
        return cls(
            original=data["original"],
            translated=data["translated"],
            block_type=data.get("block_type"),
            attribute=data.get("attribute"),
        )


@dataclass
class BlockTranslationResult:
    """Translated copy of a block subtree plus its change-log."""
    original_block: Block
    translated_block: Block
    change_log: List[ChangeLogEntry] = field(default_factory=list)


@dataclass
class DocumentTranslationResult:
    """Whole-document translation output."""
    original_content: str
    translated_content: str
    blocks: List[Block]
    change_log: List[ChangeLogEntry]
    target_language: str
    provider: Optional[str]
    translated_title: Optional[str] = None
    document_id: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "original_content": self.original_content,
            "translated_content": self.translated_content,
            "translated_title": self.translated_title,
            "blocks": [block.to_dict() for block in self.blocks],
            "change_log": [entry.to_dict() for entry in self.change_log],
            "target_language": self.target_language,
            "provider": self.provider,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DocumentTranslationResult:
        return cls(
            original_content=data["original_content"],
            translated_content=data["translated_content"],
            translated_title=data.get("translated_title"),
            blocks=[Block.from_dict(b) for b in data.get("blocks", [])],
            change_log=[ChangeLogEntry.from_dict(e) for e in data.get("change_log", [])],
            target_language=data["target_language"],
            provider=data.get("provider"),
            document_id=data.get("document_id"),
        )


@dataclass
class QualityReport:
    """Back-translation plus the heuristic score derived from it."""
    back_translation: Dict[str, Any]
    quality_score: float
    length_ratio: Optional[float] = None
    similarity: float = 0.0
    structure_preserved: Optional[bool] = None
    back_translation_error: Optional[str] = None

    @property
    def back_translated_text(self) -> str:
        return self.back_translation.get("back_translated_text", "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "back_translation": self.back_translation,
            "quality_score": self.quality_score,
            "length_ratio": self.length_ratio,
            "similarity": self.similarity,
            "structure_preserved": self.structure_preserved,
            "back_translation_error": self.back_translation_error,
        }


@dataclass
class ProviderResult:
    """Outcome of one provider's run inside a comparison."""
    provider_name: str
    translation: Optional[Dict[str, Any]] = None
    back_translation: Optional[Dict[str, Any]] = None
    quality_score: Optional[float] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    timestamp: float = field(default_factory=_now)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.is_error:
            return {
                "provider_name": self.provider_name,
                "error": self.error,
                "error_code": self.error_code,
                "timestamp": self.timestamp,
            }
        return {
            "provider_name": self.provider_name,
            "translation": self.translation,
            "back_translation": self.back_translation,
            "quality_score": self.quality_score,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ProviderResult:
        return cls(
            provider_name=data["provider_name"],
            translation=data.get("translation"),
            back_translation=data.get("back_translation"),
            quality_score=data.get("quality_score"),
            error=data.get("error"),
            error_code=data.get("error_code"),
            timestamp=data.get("timestamp", _now()),
        )


class ComparisonStatus(str, Enum):
    """Lifecycle of an A/B comparison."""
    PENDING = "pending_selection"
    SELECTED = "selected"


@dataclass
class Comparison:
    """A/B comparison across two providers for one document."""
    comparison_id: str
    document_id: Any
    target_language: str
    providers: List[str]
    results: Dict[str, ProviderResult] = field(default_factory=dict)
    status: ComparisonStatus = ComparisonStatus.PENDING
    selected_provider: Optional[str] = None
    created_at: float = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comparison_id": self.comparison_id,
            "document_id": self.document_id,
            "target_language": self.target_language,
            "providers": list(self.providers),
            "results": {key: result.to_dict() for key, result in self.results.items()},
            "status": self.status.value,
            "selected_provider": self.selected_provider,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Comparison:
        return cls(
            comparison_id=data["comparison_id"],
            document_id=data["document_id"],
            target_language=data["target_language"],
            providers=list(data.get("providers", [])),
            results={k: ProviderResult.from_dict(v) for k, v in data.get("results", {}).items()},
            status=ComparisonStatus(data.get("status", ComparisonStatus.PENDING.value)),
            selected_provider=data.get("selected_provider"),
            created_at=data.get("created_at", _now()),
        )


@dataclass
class PendingApproval:
    """Latest translation awaiting operator approval for a document."""
    translation_result: Dict[str, Any]
    back_translation: Optional[Dict[str, Any]]
    provider: Optional[str]
    quality_score: Optional[float]
    comparison_id: Optional[str] = None
    timestamp: float = field(default_factory=_now)

    @property
    def target_language(self) -> Optional[str]:
        return self.translation_result.get("target_language")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "translation_result": self.translation_result,
            "back_translation": self.back_translation,
            "provider": self.provider,
            "quality_score": self.quality_score,
            "comparison_id": self.comparison_id,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PendingApproval:
        return cls(
            translation_result=data["translation_result"],
            back_translation=data.get("back_translation"),
            provider=data.get("provider"),
            quality_score=data.get("quality_score"),
            comparison_id=data.get("comparison_id"),
            timestamp=data.get("timestamp", _now()),
        )


@dataclass
class UsageStats:
    """Current quota counters."""
    daily_usage: int
    daily_limit: int
    monthly_usage: int
    monthly_limit: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "daily_usage": self.daily_usage,
            "daily_limit": self.daily_limit,
            "monthly_usage": self.monthly_usage,
            "monthly_limit": self.monthly_limit,
        }


@dataclass
class Document:
    """A stored document: title plus the flat block document string."""
    document_id: Any
    title: str = ""
    content: str = ""
