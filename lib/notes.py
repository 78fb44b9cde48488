"""
Notes data access - every SQL statement touching the notes table lives here.
All functions take an already-acquired connection.
"""
from typing import List

import asyncpg
from pydantic import ValidationError

from lib.logging import get_logger
from lib.models import Note

logger = get_logger("notes")

RECENT_NOTES_LIMIT = 20

CREATE_NOTES_TABLE = """
    CREATE TABLE IF NOT EXISTS notes (
        id SERIAL PRIMARY KEY,
        content TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT NOW()
    )
"""


async def fetch_server_version(conn: asyncpg.Connection) -> str:
    return await conn.fetchval("SELECT version()")


async def notes_table_exists(conn: asyncpg.Connection) -> bool:
    exists = await conn.fetchval("""
        SELECT EXISTS(
            SELECT 1 FROM information_schema.tables
            WHERE table_name = 'notes'
        )
    """)
    return bool(exists)


async def list_recent_notes(
    conn: asyncpg.Connection,
    limit: int = RECENT_NOTES_LIMIT
) -> List[Note]:
    """
    Newest notes first (id descending), at most `limit`.

    Best-effort read: a row that cannot be turned into a Note is skipped
    and the rest are still returned.
    """
    rows = await conn.fetch("""
        SELECT id, content, created_at::text AS created_at
        FROM notes
        ORDER BY id DESC
        LIMIT $1
    """, limit)

    notes = []
    for row in rows:
        try:
            notes.append(Note.model_validate(dict(row)))
        except ValidationError as e:
            logger.debug(f"Skipping unreadable note row: {e.errors()}")
    return notes


async def create_notes_table(conn: asyncpg.Connection):
    """Idempotent; safe to call repeatedly"""
    await conn.execute(CREATE_NOTES_TABLE)


async def insert_note(conn: asyncpg.Connection, content: str):
    await conn.execute("INSERT INTO notes (content) VALUES ($1)", content)
