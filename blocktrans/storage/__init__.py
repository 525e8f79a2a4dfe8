"""Stores used by the translation pipeline."""

from .base import DocumentStore, CredentialStore, PageGenerator, open_cache
from .documents import InMemoryDocumentStore, DirectoryDocumentStore
from .credentials import ConfigCredentialStore
from .usage import UsageCounterStore
from .comparisons import ComparisonStore
from .approvals import ApprovalStore

__all__ = [
    'DocumentStore',
    'CredentialStore',
    'PageGenerator',
    'open_cache',
    'InMemoryDocumentStore',
    'DirectoryDocumentStore',
    'ConfigCredentialStore',
    'UsageCounterStore',
    'ComparisonStore',
    'ApprovalStore',
]
