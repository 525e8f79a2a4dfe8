"""Unit tests for the back-translation quality loop."""

import pytest

from blocktrans.core.block_parser import parse_blocks
from blocktrans.core.exceptions import ApiError
from blocktrans.evaluation import (
    calculate_quality_score, text_similarity, structure_preserved
)
from blocktrans.evaluation.quality import length_ratio, length_penalty


class TestSimilarity:

    def test_identical(self):
        assert text_similarity("Hello", "Hello") == 1.0

    def test_case_insensitive(self):
        assert text_similarity("Hello World", "hello world") == 1.0

    def test_empty(self):
        assert text_similarity("", "Hello") == 0.0
        assert text_similarity("Hello", "   ") == 0.0

    def test_partial(self):
        # One substitution in five characters
        assert text_similarity("hello", "hallo") == pytest.approx(0.8)


class TestScore:

    def test_perfect_round_trip_without_structure_check(self):
        assert calculate_quality_score("Hello", "Bonjour", "Hello") == pytest.approx(70.0)

    def test_structure_bonus_and_penalty(self):
        assert calculate_quality_score("Hello", "Bonjour", "Hello", True) == pytest.approx(80.0)
        assert calculate_quality_score("Hello", "Bonjour", "Hello", False) == pytest.approx(55.0)

    def test_length_penalties(self):
        assert length_penalty(length_ratio("a" * 10, "b" * 2)) == 20.0
        assert length_penalty(length_ratio("a" * 10, "b" * 4)) == 10.0
        assert length_penalty(length_ratio("a" * 10, "b" * 25)) == 10.0
        assert length_penalty(length_ratio("a" * 10, "b" * 31)) == 20.0
        assert length_penalty(length_ratio("a" * 10, "b" * 10)) == 0.0

    def test_empty_original_has_no_length_penalty(self):
        assert length_ratio("", "anything") is None
        # 50 + (0 - 0.5) * 40
        assert calculate_quality_score("", "anything", "") == pytest.approx(30.0)

    def test_score_is_clamped_at_zero(self):
        # 50 - 20 - 20 - 15 would be negative
        assert calculate_quality_score("a" * 10, "b", "", False) == 0.0

    @pytest.mark.parametrize("original,translated,back,structure", [
        ("", "", "", None),
        ("x", "y" * 100, "x", True),
        ("Hello world", "", "", False),
        ("同じ", "same", "同じ", True),
        ("a" * 1000, "b", "c" * 1000, False),
    ])
    def test_score_bounds(self, original, translated, back, structure):
        score = calculate_quality_score(original, translated, back, structure)
        assert 0.0 <= score <= 100.0


class TestStructurePreserved:

    def test_same_top_level_blocks(self):
        content = "<!-- wp:paragraph --><p>a</p><!-- /wp:paragraph --><!-- wp:separator /-->"
        assert structure_preserved(content, parse_blocks(content)) is True

    def test_different_blocks(self):
        original = "<!-- wp:paragraph --><p>a</p><!-- /wp:paragraph -->"
        translated = parse_blocks("<!-- wp:heading --><h2>a</h2><!-- /wp:heading -->")
        assert structure_preserved(original, translated) is False

    def test_unparseable_original(self):
        assert structure_preserved("<!-- /wp:paragraph -->", []) is None


class TestEvaluator:

    def test_unit_round_trip_scores_at_least_seventy(self, make_pipeline, translations):
        translations.update({"Hello": "Bonjour", "Bonjour": "Hello"})
        pipeline = make_pipeline()

        unit = pipeline.translate("Hello", "fr")
        report = pipeline.evaluate(unit)

        assert report.back_translated_text == "Hello"
        assert report.similarity == 1.0
        assert report.structure_preserved is None
        assert report.quality_score >= 70
        assert report.back_translation_error is None

    def test_document_round_trip(self, pipeline):
        forward = pipeline.translate_post_blocks("1", "en")

        report = pipeline.evaluate(forward)

        assert report.back_translated_text == forward.original_content
        assert report.structure_preserved is True
        assert report.quality_score == pytest.approx(80.0)
        assert report.back_translation["source_language"] == "ja"
        assert report.back_translation["provider"] == "openai"

    def test_back_translation_is_not_charged(self, pipeline):
        forward = pipeline.translate_post_blocks("1", "en")
        used = pipeline.get_usage_stats().daily_usage

        pipeline.evaluate(forward)

        assert pipeline.get_usage_stats().daily_usage == used

    def test_failed_back_translation_still_scores(self, pipeline, stub_backends):
        unit = pipeline.translate("こんにちは", "en")
        stub_backends["openai"].fail_with = ApiError("openai", "Service unavailable", 503)

        report = pipeline.evaluate(unit)

        assert report.back_translation_error == "Service unavailable"
        assert report.back_translated_text == "Back-translation failed: Service unavailable"
        assert report.similarity == 0.0
        assert 0.0 <= report.quality_score <= 100.0
