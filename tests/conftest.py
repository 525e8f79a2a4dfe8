"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from blocktrans.core.models import Document
from blocktrans.core.pipeline import TranslationPipeline, PipelineConfig
from blocktrans.storage import ConfigCredentialStore, InMemoryDocumentStore
from blocktrans.translation.base import TranslationBackend, TranslationResponse


SIMPLE_CONTENT = "<!-- wp:paragraph --><p>こんにちは</p><!-- /wp:paragraph -->"


class DictionaryBackend(TranslationBackend):
    """
    Offline backend for tests.

    Looks the request text up in ``mapping`` (unknown text comes back as
    ``"[<lang>] <text>"``), records every request, and raises the error
    registered in ``failures`` for a text, or ``fail_with`` for every call.
    """

    def __init__(self, provider, mapping=None, failures=None, fail_with=None):
        super().__init__(api_key="test-key", model="dictionary")
        self.provider = provider
        self.mapping = mapping if mapping is not None else {}
        self.failures = failures if failures is not None else {}
        self.fail_with = fail_with
        self.requests = []

    @property
    def texts(self):
        return [request.text for request in self.requests]

    def translate(self, request):
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if request.text in self.failures:
            raise self.failures[request.text]
        text = self.mapping.get(request.text, f"[{request.target_language}] {request.text}")
        return TranslationResponse(text=text, backend=self.provider, model=self.model)


@pytest.fixture
def translations():
    """Both directions of the words used across the tests."""
    return {
        "こんにちは": "Hello",
        "Hello": "こんにちは",
        "世界": "World",
        "World": "世界",
        "名言": "Quote",
        "Quote": "名言",
        "著者": "Author",
        "Author": "著者",
        "猫": "Cat",
        "Cat": "猫",
        "タイトル": "Title",
        "Title": "タイトル",
    }


@pytest.fixture
def stub_backends(translations):
    """One dictionary backend per registered provider."""
    return {
        name: DictionaryBackend(name, translations)
        for name in ("openai", "claude", "deepseek")
    }


@pytest.fixture
def backend_factory(stub_backends):
    def factory(provider, api_key, **kwargs):
        return stub_backends[provider]
    return factory


@pytest.fixture
def credentials():
    """Keys for OpenAI and Claude only; the real environment is ignored."""
    return ConfigCredentialStore(
        {"api_keys": {"openai": "sk-openai-test-key", "claude": "sk-claude-test-key"}},
        environ={}
    )


@pytest.fixture
def document_store():
    return InMemoryDocumentStore({
        "1": Document(document_id="1", title="タイトル", content=SIMPLE_CONTENT),
    })


@pytest.fixture
def pipeline_config(tmp_path):
    return PipelineConfig(storage_dir=tmp_path / "store")


@pytest.fixture
def make_pipeline(pipeline_config, credentials, document_store, backend_factory):
    """Build pipelines over tmp stores; every one built is closed afterwards."""
    built = []

    def make(**kwargs):
        kwargs.setdefault("credentials", credentials)
        kwargs.setdefault("document_store", document_store)
        kwargs.setdefault("backend_factory", backend_factory)
        config = kwargs.pop("config", pipeline_config)
        pipeline = TranslationPipeline(config, **kwargs)
        built.append(pipeline)
        return pipeline

    yield make

    for pipeline in built:
        pipeline.close()


@pytest.fixture
def pipeline(make_pipeline):
    return make_pipeline()
