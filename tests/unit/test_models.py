"""Unit tests for core models and errors."""

import pytest

from blocktrans.core.models import (
    Block, ChangeLogEntry, DocumentTranslationResult, ProviderResult, Comparison,
    ComparisonStatus, PendingApproval, QualityReport, TranslationUnit
)
from blocktrans.core.exceptions import (
    BlockTransError, NoApiKeyError, InvalidProviderError, FeatureUnavailableError, ApiError
)


def test_block_defaults():
    """A block built by hand gets one chunk plus a slot per child."""
    child = Block(name="core/paragraph", inner_html="<p>x</p>")
    parent = Block(name="core/group", inner_html="<div></div>", children=[child])

    assert child.is_leaf
    assert child.inner_content == ["<p>x</p>"]
    assert not parent.is_leaf
    assert parent.slot_count == 1
    assert Block().inner_content == []


def test_block_copy_is_deep():
    block = Block(
        name="core/group", inner_html="<div></div>", attributes={"style": {"color": "red"}},
        children=[Block(name="core/paragraph", inner_html="<p>x</p>")]
    )
    clone = block.copy()
    clone.attributes["style"]["color"] = "blue"
    clone.children[0].inner_html = "<p>y</p>"

    assert block.attributes["style"]["color"] == "red"
    assert block.children[0].inner_html == "<p>x</p>"


def test_block_dict_keys():
    block = Block(name="core/paragraph", inner_html="<p>x</p>", attributes={"align": "left"})

    data = block.to_dict()

    assert data == {
        "blockName": "core/paragraph",
        "attrs": {"align": "left"},
        "innerBlocks": [],
        "innerHTML": "<p>x</p>",
        "innerContent": ["<p>x</p>"],
    }
    assert Block.from_dict(data) == block


def test_block_from_snake_case():
    block = Block.from_dict({
        "name": "core/list",
        "inner_html": "<ul></ul>",
        "children": [{"name": "core/list-item", "inner_html": "<li>a</li>"}],
        "inner_content": ["<ul>", None, "</ul>"],
    })

    assert block.children[0].name == "core/list-item"
    assert block.slot_count == 1


def test_sync_inner_html():
    block = Block(name="core/quote", inner_content=["<blockquote>", None, "<cite>c</cite></blockquote>"])
    block.sync_inner_html()
    assert block.inner_html == "<blockquote><cite>c</cite></blockquote>"


def test_change_log_entry_dict():
    text_entry = ChangeLogEntry("a", "b", "core/paragraph")
    attr_entry = ChangeLogEntry("a", "b", "core/image", attribute="alt")

    assert "attribute" not in text_entry.to_dict()
    assert attr_entry.to_dict()["attribute"] == "alt"
    assert ChangeLogEntry.from_dict(attr_entry.to_dict()) == attr_entry


def test_translation_unit_is_immutable():
    unit = TranslationUnit("こんにちは", "Hello", "en", "openai")
    with pytest.raises(AttributeError):
        unit.translated_text = "Hi"
    assert TranslationUnit.from_dict(unit.to_dict()) == unit


def test_document_result_round_trip():
    result = DocumentTranslationResult(
        original_content="<!-- wp:separator /-->",
        translated_content="<!-- wp:separator /-->",
        blocks=[Block(name="core/separator")],
        change_log=[ChangeLogEntry("a", "b", None)],
        target_language="en",
        provider="openai",
        translated_title="T",
        document_id="9",
    )

    assert DocumentTranslationResult.from_dict(result.to_dict()) == result


def test_provider_result_error_entry():
    result = ProviderResult(provider_name="claude", error="down", error_code="api_error")

    assert result.is_error
    assert set(result.to_dict()) == {"provider_name", "error", "error_code", "timestamp"}


def test_comparison_round_trip():
    comparison = Comparison(
        comparison_id="ab_1",
        document_id="1",
        target_language="en",
        providers=["openai", "claude"],
        results={
            "openai": ProviderResult(provider_name="openai", translation={"x": 1}, quality_score=70.0),
            "claude": ProviderResult(provider_name="claude", error="down", error_code="api_error"),
        },
    )

    data = comparison.to_dict()
    assert data["status"] == "pending_selection"

    restored = Comparison.from_dict(data)
    assert restored.status is ComparisonStatus.PENDING
    assert restored.to_dict() == data


def test_pending_target_language():
    pending = PendingApproval({"target_language": "fr"}, None, "openai", 50.0)
    assert pending.target_language == "fr"
    assert PendingApproval.from_dict(pending.to_dict()).to_dict() == pending.to_dict()


def test_quality_report_text():
    report = QualityReport(back_translation={"back_translated_text": "hi"}, quality_score=42.0)
    assert report.back_translated_text == "hi"
    assert report.to_dict()["quality_score"] == 42.0


class TestErrors:

    def test_base_error_dict(self):
        error = BlockTransError("broken", details={"a": 1}, suggestion="fix it")

        assert error.to_dict() == {
            "error_type": "BlockTransError",
            "code": "blocktrans_error",
            "message": "broken",
            "details": {"a": 1},
            "recoverable": True,
            "suggestion": "fix it",
        }
        assert str(error) == "broken\nSuggestion: fix it"

    def test_default_messages(self):
        assert FeatureUnavailableError().message == "Translation features are currently unavailable"
        assert ApiError("openai").message == "openai API error"

    def test_provider_errors(self):
        error = NoApiKeyError("claude")
        assert error.code == "no_api_key"
        assert error.details == {"provider": "claude"}

        invalid = InvalidProviderError("x", ["openai", "claude"])
        assert invalid.suggestion == "Valid providers: openai, claude"
