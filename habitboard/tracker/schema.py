"""Table definitions for the four logical tables.

Habits are never deleted, so tracking rows keep a plain foreign key with no
cascade. ``daily_score`` is keyed by date; writers upsert on it.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS habits (
        id BIGSERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        priority_score INTEGER NOT NULL DEFAULT 0 CHECK (priority_score >= 0),
        color_tag TEXT NOT NULL,
        active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS habit_tracking (
        id BIGSERIAL PRIMARY KEY,
        habit_id BIGINT NOT NULL REFERENCES habits(id),
        date DATE NOT NULL,
        completed BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    "CREATE INDEX IF NOT EXISTS habit_tracking_date_idx ON habit_tracking (date)",
    "CREATE INDEX IF NOT EXISTS habit_tracking_habit_date_idx ON habit_tracking (habit_id, date)",
    """
    CREATE TABLE IF NOT EXISTS daily_score (
        date DATE PRIMARY KEY,
        habit_score_total INTEGER NOT NULL DEFAULT 0,
        daily_note TEXT,
        note_points INTEGER NOT NULL DEFAULT 0 CHECK (note_points >= 0),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS conversations (
        id BIGSERIAL PRIMARY KEY,
        session_id TEXT NOT NULL,
        user_id TEXT NOT NULL DEFAULT 'anonymous',
        message TEXT NOT NULL,
        response TEXT NOT NULL,
        tokens_used INTEGER NOT NULL DEFAULT 0,
        model_used TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    "CREATE INDEX IF NOT EXISTS conversations_session_idx ON conversations (user_id, session_id)",
)


async def ensure_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        for stmt in SCHEMA_STATEMENTS:
            await conn.execute(text(stmt))
    logger.info("Schema ensured (%d statements)", len(SCHEMA_STATEMENTS))
