"""
blocktrans: block-structure-preserving content translation with LLMs

Translates block documents (comment-delimited blocks around HTML) through
pluggable LLM providers while keeping markup, nesting and non-text attributes
intact, scores each translation with a back-translation loop, and compares
providers side by side.

Usage:
    from blocktrans import TranslationPipeline
    from blocktrans.utils import load_config

    pipeline = TranslationPipeline.from_config(load_config())
    forward, report = pipeline.translate_with_quality("42", "en")
"""

__version__ = "1.0.0"
__license__ = "MIT"

from blocktrans.core.models import (
    Block,
    Document,
    TranslationUnit,
    BackTranslationResult,
    ChangeLogEntry,
    BlockTranslationResult,
    DocumentTranslationResult,
    QualityReport,
    Comparison,
    ComparisonStatus,
    ProviderResult,
    PendingApproval,
    UsageStats,
)
from blocktrans.core.exceptions import BlockTransError
from blocktrans.core.block_parser import parse_blocks, serialize_blocks
from blocktrans.core.pipeline import TranslationPipeline, PipelineConfig

__all__ = [
    "__version__",
    "Block",
    "Document",
    "TranslationUnit",
    "BackTranslationResult",
    "ChangeLogEntry",
    "BlockTranslationResult",
    "DocumentTranslationResult",
    "QualityReport",
    "Comparison",
    "ComparisonStatus",
    "ProviderResult",
    "PendingApproval",
    "UsageStats",
    "BlockTransError",
    "parse_blocks",
    "serialize_blocks",
    "TranslationPipeline",
    "PipelineConfig",
]
