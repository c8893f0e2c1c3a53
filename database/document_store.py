"""Keyed-collection document store.

Records are schemaless JSON documents grouped by collection name. Two
engines share the ``DocumentStore`` interface: ``SQLiteDocumentStore`` for
deployments and ``InMemoryDocumentStore`` for tests and throwaway runs.

Every method hands out fresh copies, so callers never share a mutable
document with the store or with each other.
"""

from __future__ import annotations

import copy
import json
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

from core import get_logger
from core.exceptions import ConfigurationError, StorageFailure

from .connection import SQLitePool
from .migrations import run_migrations

logger = get_logger(__name__)


def new_document_id() -> str:
    return uuid.uuid4().hex[:20]


@dataclass
class Document:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, **self.data}


class DocumentStore(ABC):
    """Async keyed-collection store."""

    backend = "abstract"

    async def initialize(self) -> None:
        """Prepare the engine; safe to call more than once."""

    async def close(self) -> None:
        """Release engine resources."""

    @abstractmethod
    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        """Insert a document and return its generated id."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def get_all(
        self,
        collection: str,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        """All documents, in insertion order unless ``order_by`` is given."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing id is not an error."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool:
        """Merge ``fields`` into a document. Returns False if it does not exist."""

    @abstractmethod
    async def update_if(
        self,
        collection: str,
        doc_id: str,
        expected: Mapping[str, Any],
        fields: Mapping[str, Any],
    ) -> bool:
        """Merge ``fields`` only if every ``expected`` key still holds its value.

        A missing key compares equal to ``None``. The check and the write are
        atomic with respect to other writers of the same document.
        """

    @abstractmethod
    async def query(
        self,
        collection: str,
        field_name: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """Documents whose ``field_name`` equals ``value``, in insertion order."""

    async def first(self, collection: str, field_name: str, value: Any) -> Optional[Document]:
        matches = await self.query(collection, field_name, value, limit=1)
        return matches[0] if matches else None

    async def add_many(self, collection: str, records: List[Mapping[str, Any]]) -> List[str]:
        return [await self.add(collection, record) for record in records]


def _matches(data: Mapping[str, Any], expected: Mapping[str, Any]) -> bool:
    return all(data.get(key) == value for key, value in expected.items())


def _sort_key(value: Any) -> tuple:
    # None sorts first; mixed types compare by their string form
    return (value is not None, str(value) if value is not None else "")


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed store. Not shared between processes."""

    backend = "memory"

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = new_document_id()
        self._collection(collection)[doc_id] = copy.deepcopy(dict(data))
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        data = self._collection(collection).get(doc_id)
        if data is None:
            return None
        return Document(doc_id, copy.deepcopy(data))

    async def get_all(
        self,
        collection: str,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        docs = [
            Document(doc_id, copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
        ]
        if order_by:
            docs.sort(key=lambda doc: _sort_key(doc.data.get(order_by)), reverse=descending)
        return docs

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool:
        data = self._collection(collection).get(doc_id)
        if data is None:
            return False
        data.update(copy.deepcopy(dict(fields)))
        return True

    async def update_if(
        self,
        collection: str,
        doc_id: str,
        expected: Mapping[str, Any],
        fields: Mapping[str, Any],
    ) -> bool:
        data = self._collection(collection).get(doc_id)
        if data is None or not _matches(data, expected):
            return False
        data.update(copy.deepcopy(dict(fields)))
        return True

    async def query(
        self,
        collection: str,
        field_name: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[Document]:
        matches: List[Document] = []
        for doc_id, data in self._collection(collection).items():
            if data.get(field_name) == value:
                matches.append(Document(doc_id, copy.deepcopy(data)))
                if limit is not None and len(matches) >= limit:
                    break
        return matches


def _json_path(field_name: str) -> str:
    if not field_name.replace("_", "").isalnum():
        raise ValueError(f"Unsupported field name: {field_name!r}")
    return f"$.{field_name}"


def _sql_value(value: Any) -> Any:
    # json_extract returns JSON booleans as 0/1
    if isinstance(value, bool):
        return int(value)
    return value


class SQLiteDocumentStore(DocumentStore):
    """Documents stored as JSON text in a single SQLite table."""

    backend = "sqlite"

    def __init__(self, pool: SQLitePool) -> None:
        self.pool = pool
        self._ready = False

    async def initialize(self) -> None:
        if self._ready:
            return
        await self.pool.init_pool()
        await run_migrations(self.pool)
        self._ready = True

    async def close(self) -> None:
        await self.pool.close()
        self._ready = False

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[Any]:
        if not self._ready:
            await self.initialize()
        try:
            async with self.pool.connection() as conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"Document store operation failed: {e}", exc_info=True)
            raise StorageFailure(str(e)) from e

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = new_document_id()
        async with self._connection() as conn:
            await conn.execute(
                "INSERT INTO documents (id, collection, data) VALUES (?, ?, ?)",
                (doc_id, collection, json.dumps(dict(data), ensure_ascii=False)),
            )
            await conn.commit()
        return doc_id

    async def add_many(self, collection: str, records: List[Mapping[str, Any]]) -> List[str]:
        rows = [
            (new_document_id(), collection, json.dumps(dict(record), ensure_ascii=False))
            for record in records
        ]
        if not rows:
            return []
        async with self._connection() as conn:
            await conn.execute("BEGIN")
            try:
                await conn.executemany(
                    "INSERT INTO documents (id, collection, data) VALUES (?, ?, ?)", rows
                )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
        return [row[0] for row in rows]

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        async with self._connection() as conn:
            cursor = await conn.execute(
                "SELECT id, data FROM documents WHERE collection=? AND id=?",
                (collection, doc_id),
            )
            row = await cursor.fetchone()
        return Document(row[0], json.loads(row[1])) if row else None

    async def get_all(
        self,
        collection: str,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        query = "SELECT id, data FROM documents WHERE collection=?"
        params: list[Any] = [collection]
        if order_by:
            query += f" ORDER BY json_extract(data, ?) {'DESC' if descending else 'ASC'}, rowid"
            params.append(_json_path(order_by))
        else:
            query += " ORDER BY rowid"
        async with self._connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
        return [Document(row[0], json.loads(row[1])) for row in rows]

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self._connection() as conn:
            await conn.execute(
                "DELETE FROM documents WHERE collection=? AND id=?", (collection, doc_id)
            )
            await conn.commit()

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool:
        return await self.update_if(collection, doc_id, {}, fields)

    async def update_if(
        self,
        collection: str,
        doc_id: str,
        expected: Mapping[str, Any],
        fields: Mapping[str, Any],
    ) -> bool:
        async with self._connection() as conn:
            # IMMEDIATE takes the write lock before the read, so no other
            # writer can slip in between the check and the update
            await conn.execute("BEGIN IMMEDIATE")
            try:
                cursor = await conn.execute(
                    "SELECT data FROM documents WHERE collection=? AND id=?",
                    (collection, doc_id),
                )
                row = await cursor.fetchone()
                if row is None:
                    await conn.rollback()
                    return False
                data = json.loads(row[0])
                if not _matches(data, expected):
                    await conn.rollback()
                    return False
                data.update(fields)
                await conn.execute(
                    "UPDATE documents SET data=?, updated_at=CURRENT_TIMESTAMP "
                    "WHERE collection=? AND id=?",
                    (json.dumps(data, ensure_ascii=False), collection, doc_id),
                )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
        return True

    async def query(
        self,
        collection: str,
        field_name: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[Document]:
        path = _json_path(field_name)
        if value is None:
            query = "SELECT id, data FROM documents WHERE collection=? AND json_extract(data, ?) IS NULL"
            params: list[Any] = [collection, path]
        else:
            query = "SELECT id, data FROM documents WHERE collection=? AND json_extract(data, ?) = ?"
            params = [collection, path, _sql_value(value)]
        query += " ORDER BY rowid"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        async with self._connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
        return [Document(row[0], json.loads(row[1])) for row in rows]


def create_document_store(backend: str, database_path: str, pool_size: int = 5,
                          busy_timeout_ms: int = 5000) -> DocumentStore:
    """Build the store selected by ``STORAGE_BACKEND``."""
    if backend == "memory":
        logger.warning("Using in-memory document store; data is lost on restart")
        return InMemoryDocumentStore()
    if backend == "sqlite":
        return SQLiteDocumentStore(
            SQLitePool(database_path, pool_size=pool_size, busy_timeout_ms=busy_timeout_ms)
        )
    raise ConfigurationError(f"Unknown storage backend: {backend}")
