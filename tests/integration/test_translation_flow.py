"""End-to-end tests: document in, reviewed translation out."""

import json

import pytest

from blocktrans.core.models import Document
from blocktrans.core.block_parser import parse_blocks
from blocktrans.core.exceptions import PendingNotFoundError, FeatureUnavailableError
from blocktrans.core.pipeline import PipelineConfig
from blocktrans.storage import InMemoryDocumentStore, PageGenerator


ARTICLE = (
    '<!-- wp:heading {"level":2} --><h2 class="wp-block-heading">世界</h2><!-- /wp:heading -->\n\n'
    '<!-- wp:paragraph --><p>こんにちは <a href="https://example.com">世界</a></p><!-- /wp:paragraph -->\n\n'
    '<!-- wp:image {"id":12,"sizeSlug":"large"} --><figure class="wp-block-image size-large">'
    '<img src="https://example.com/cat.jpg" alt="猫" class="wp-image-12"/></figure><!-- /wp:image -->\n\n'
    '<!-- wp:quote --><blockquote class="wp-block-quote">'
    '<!-- wp:paragraph --><p>名言</p><!-- /wp:paragraph -->'
    '<cite>著者</cite></blockquote><!-- /wp:quote -->\n\n'
    '<!-- wp:paragraph --><p>2024</p><!-- /wp:paragraph -->'
)


class RecordingPageGenerator(PageGenerator):

    def __init__(self):
        self.pages = []

    def create_translated_page(self, document_id, target_language, approved):
        self.pages.append((document_id, target_language, approved))
        return f"{document_id}-{target_language}"


@pytest.fixture
def article_store(document_store):
    document_store.add_document(Document(document_id="42", title="タイトル", content=ARTICLE))
    return document_store


def test_single_paragraph_document(pipeline):
    """こんにちは becomes Hello with exactly one change-log entry."""
    result = pipeline.translate_post_blocks("1", "en")

    assert result.translated_content == "<!-- wp:paragraph --><p>Hello</p><!-- /wp:paragraph -->"
    assert len(result.change_log) == 1
    entry = result.change_log[0]
    assert (entry.original, entry.translated, entry.block_type) == ("こんにちは", "Hello", "core/paragraph")


def test_article_keeps_its_structure(make_pipeline, article_store, stub_backends):
    pipeline = make_pipeline(document_store=article_store)

    result = pipeline.translate_post_blocks("42", "en")

    assert result.translated_content == (
        '<!-- wp:heading {"level":2} --><h2 class="wp-block-heading">World</h2><!-- /wp:heading -->\n\n'
        '<!-- wp:paragraph --><p>Hello <a href="https://example.com">World</a></p><!-- /wp:paragraph -->\n\n'
        '<!-- wp:image {"id":12,"sizeSlug":"large"} --><figure class="wp-block-image size-large">'
        '<img src="https://example.com/cat.jpg" alt="Cat" class="wp-image-12"></figure><!-- /wp:image -->\n\n'
        '<!-- wp:quote --><blockquote class="wp-block-quote">'
        '<!-- wp:paragraph --><p>Quote</p><!-- /wp:paragraph -->'
        '<cite>Author</cite></blockquote><!-- /wp:quote -->\n\n'
        '<!-- wp:paragraph --><p>2024</p><!-- /wp:paragraph -->'
    )
    assert [b.name for b in parse_blocks(result.translated_content)] == [b.name for b in parse_blocks(ARTICLE)]
    assert result.translated_title == "Title"
    # Numbers and URLs never reach the provider
    assert "2024" not in stub_backends["openai"].texts
    assert not any(text.startswith("http") for text in stub_backends["openai"].texts)


def test_quality_review_and_approval(make_pipeline, article_store):
    publisher = RecordingPageGenerator()
    pipeline = make_pipeline(document_store=article_store, page_generator=publisher)

    forward, report = pipeline.translate_with_quality("42", "en")

    assert report.structure_preserved is True
    assert 0 <= report.quality_score <= 100
    pending = pipeline.get_pending("42")
    assert pending.provider == "openai"
    assert pending.quality_score == report.quality_score
    assert pending.translation_result["translated_content"] == forward.translated_content

    approved = pipeline.approve_translation("42")

    assert approved.target_language == "en"
    assert pipeline.get_pending("42") is None
    assert pipeline.get_approved("42", "en").to_dict() == approved.to_dict()
    assert publisher.pages[0][:2] == ("42", "en")

    with pytest.raises(PendingNotFoundError):
        pipeline.approve_translation("42")


def test_failed_page_creation_keeps_pending(make_pipeline):
    class FailingPageGenerator(PageGenerator):

        def create_translated_page(self, document_id, target_language, approved):
            raise RuntimeError("page creation failed")

    pipeline = make_pipeline(page_generator=FailingPageGenerator())
    pipeline.translate_with_quality("1", "en")

    with pytest.raises(RuntimeError):
        pipeline.approve_translation("1")

    assert pipeline.get_pending("1") is not None
    assert pipeline.get_approved("1", "en") is None


def test_approval_for_another_language_is_refused(pipeline):
    pipeline.translate_with_quality("1", "en")

    with pytest.raises(PendingNotFoundError):
        pipeline.approve_translation("1", "fr")

    assert pipeline.get_pending("1") is not None


def test_new_run_replaces_pending(pipeline):
    pipeline.translate_with_quality("1", "en")
    pipeline.translate_with_quality("1", "fr", provider="claude")

    pending = pipeline.get_pending("1")
    assert pending.target_language == "fr"
    assert pending.provider == "claude"


def test_ab_comparison_to_approval(make_pipeline, article_store):
    pipeline = make_pipeline(document_store=article_store)

    comparison = pipeline.run_ab_comparison("42", "en")
    pipeline.select_ab_result(comparison.comparison_id, "claude")
    approved = pipeline.approve_translation("42", "en")

    assert approved.provider == "claude"
    assert approved.comparison_id == comparison.comparison_id


def test_usage_counts_every_forward_call(pipeline):
    pipeline.translate_with_quality("1", "en")

    # Title and one paragraph; back-translation is free
    assert pipeline.get_usage_stats().daily_usage == 2


def test_directory_documents(make_pipeline, tmp_path):
    documents = tmp_path / "documents"
    documents.mkdir()
    (documents / "7.json").write_text(
        json.dumps({"title": "", "content": "<!-- wp:paragraph --><p>世界</p><!-- /wp:paragraph -->"}),
        encoding="utf-8"
    )
    config = PipelineConfig(storage_dir=tmp_path / "state", documents_dir=documents)
    pipeline = make_pipeline(config=config, document_store=None)

    result = pipeline.translate_post_blocks("7", "en")

    assert result.translated_content == "<!-- wp:paragraph --><p>World</p><!-- /wp:paragraph -->"
    assert result.translated_title is None


def test_state_survives_restart(make_pipeline, pipeline_config):
    first = make_pipeline()
    first.translate_with_quality("1", "en")
    first.close()

    second = make_pipeline(config=pipeline_config)

    assert second.get_pending("1") is not None
    assert second.get_usage_stats().daily_usage == 2


def test_emergency_stop_blocks_everything(pipeline):
    pipeline.emergency_stop()

    with pytest.raises(FeatureUnavailableError):
        pipeline.translate_post_blocks("1", "en")
    with pytest.raises(FeatureUnavailableError):
        pipeline.run_ab_comparison("1", "en")
    assert pipeline.get_available_providers() == {}
