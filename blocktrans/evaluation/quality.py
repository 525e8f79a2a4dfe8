"""
Back-translation quality loop.

A forward translation is translated back into the source language and the
result is compared with the original text. The score is a cheap heuristic
for ranking providers and flagging suspicious output; it is advisory only.
"""

from __future__ import annotations
import logging
from typing import List, Optional, Union

from rapidfuzz.distance import Levenshtein

from blocktrans.core.models import (
    Block, TranslationUnit, DocumentTranslationResult, BackTranslationResult, QualityReport
)
from blocktrans.core.exceptions import BlockTransError
from blocktrans.core.block_parser import parse_blocks

logger = logging.getLogger(__name__)

BASE_SCORE = 50.0
SIMILARITY_WEIGHT = 40.0
STRUCTURE_BONUS = 10.0
STRUCTURE_PENALTY = 15.0
BACK_TRANSLATION_FAILED = "Back-translation failed: {message}"

ForwardResult = Union[TranslationUnit, DocumentTranslationResult]


def text_similarity(text1: str, text2: str) -> float:
    """Case-insensitive normalized Levenshtein similarity in [0, 1]."""
    text1 = (text1 or "").strip().lower()
    text2 = (text2 or "").strip().lower()
    if not text1 or not text2:
        return 0.0
    distance = Levenshtein.distance(text1, text2)
    similarity = 1.0 - distance / max(len(text1), len(text2))
    return max(0.0, min(1.0, similarity))


def length_ratio(original: str, translated: str) -> Optional[float]:
    """Character length ratio translated/original, or None for an empty original."""
    if not original:
        return None
    return len(translated) / len(original)


def length_penalty(ratio: Optional[float]) -> float:
    if ratio is None:
        return 0.0
    if ratio < 0.3 or ratio > 3.0:
        return 20.0
    if ratio < 0.5 or ratio > 2.0:
        return 10.0
    return 0.0


def structure_preserved(original_content: str, blocks: List[Block]) -> Optional[bool]:
    """
    Compare the original document's top-level blocks with the translated ones.

    Returns None when the original cannot be parsed (check not applicable).
    """
    try:
        original_blocks = parse_blocks(original_content)
    except BlockTransError:
        return None
    if len(original_blocks) != len(blocks):
        return False
    return all(a.name == b.name for a, b in zip(original_blocks, blocks))


def calculate_quality_score(
    original: str,
    translated: str,
    back_translated: str,
    structure: Optional[bool] = None
) -> float:
    """
    Heuristic quality score in [0, 100].

    Starts at 50, loses up to 20 points for an implausible length ratio,
    moves by up to 20 points with back-translation similarity, and gains 10
    or loses 15 points depending on whether the block structure survived.
    """
    score = BASE_SCORE
    score -= length_penalty(length_ratio(original, translated))
    score += (text_similarity(original, back_translated) - 0.5) * SIMILARITY_WEIGHT
    if structure is True:
        score += STRUCTURE_BONUS
    elif structure is False:
        score -= STRUCTURE_PENALTY
    return max(0.0, min(100.0, score))


class QualityEvaluator:
    """Runs the back-translation loop for units and whole documents."""

    def __init__(self, translator, block_translator, source_language: str = "ja"):
        self.translator = translator
        self.block_translator = block_translator
        self.source_language = source_language

    def evaluate(self, forward: ForwardResult, provider: Optional[str] = None) -> QualityReport:
        """
        Back-translate ``forward`` and score it.

        A failing back-translation does not raise: the report carries a
        placeholder text plus ``back_translation_error`` and is still scored.
        """
        provider = provider or forward.provider

        if isinstance(forward, DocumentTranslationResult):
            original = forward.original_content
            translated = forward.translated_content
            structure = structure_preserved(original, forward.blocks)
        else:
            original = forward.original_text
            translated = forward.translated_text
            structure = None

        error = None
        try:
            back = self._back_translate(forward, translated, provider)
            back_data = back.to_dict()
        except BlockTransError as e:
            logger.warning(f"Back-translation with {provider} failed: {e.message}")
            error = e.message
            back_data = {
                "translated_text": translated,
                "back_translated_text": BACK_TRANSLATION_FAILED.format(message=e.message),
                "source_language": self.source_language,
                "provider": provider,
            }

        # A failed back-translation contributes no similarity
        back_text = "" if error else back_data["back_translated_text"]
        ratio = length_ratio(original, translated)
        similarity = text_similarity(original, back_text)
        score = calculate_quality_score(original, translated, back_text, structure)

        logger.debug(f"Quality score {score:.1f} (ratio={ratio}, similarity={similarity:.2f}, structure={structure})")

        return QualityReport(
            back_translation=back_data,
            quality_score=score,
            length_ratio=ratio,
            similarity=similarity,
            structure_preserved=structure,
            back_translation_error=error,
        )

    def _back_translate(self, forward: ForwardResult, translated: str, provider: Optional[str]) -> BackTranslationResult:
        if isinstance(forward, DocumentTranslationResult):
            back_content, _ = self.block_translator.retranslate_content(
                translated, self.source_language, provider
            )
            return BackTranslationResult(
                translated_text=translated,
                back_translated_text=back_content,
                source_language=self.source_language,
                provider=provider,
            )
        return self.translator.back_translate(translated, self.source_language, provider)
