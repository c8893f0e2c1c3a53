"""Database schema migrations."""

from __future__ import annotations

from core import get_logger

from .connection import SQLitePool

logger = get_logger(__name__)


SCHEMA_SQL: tuple[str, ...] = (
    # rowid is kept (no WITHOUT ROWID) and gives insertion order for
    # first-match queries
    """
    CREATE TABLE IF NOT EXISTS documents (
        id TEXT PRIMARY KEY,
        collection TEXT NOT NULL,
        data TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection);",
    """
    CREATE INDEX IF NOT EXISTS idx_documents_seat_number
        ON documents(collection, json_extract(data, '$.seatNumber'));
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_documents_phone
        ON documents(collection, json_extract(data, '$.phone'));
    """,
)


async def run_migrations(pool: SQLitePool) -> None:
    async with pool.connection() as conn:
        await conn.execute("BEGIN")
        try:
            for statement in SCHEMA_SQL:
                await conn.execute(statement)
        except Exception:
            await conn.rollback()
            raise
        else:
            await conn.commit()
    logger.info("Document schema is up to date")
