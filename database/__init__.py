"""Database package public API."""

from .connection import SQLitePool
from .document_store import (
    Document,
    DocumentStore,
    InMemoryDocumentStore,
    SQLiteDocumentStore,
    create_document_store,
)
from .migrations import run_migrations
from .repositories import SubmissionStore

__all__ = [
    "SQLitePool",
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
    "create_document_store",
    "run_migrations",
    "SubmissionStore",
]
