"""SQLite schema bootstrap (code-first approach)."""

import logging

from questlist.core import db_client


logger = logging.getLogger(__name__)


TABLE_SCHEMAS: dict[str, str] = {
    "tasks": """CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL DEFAULT (datetime('now')),
        updated TEXT NOT NULL DEFAULT (datetime('now')),
        owner_id TEXT NOT NULL,
        title TEXT NOT NULL CHECK (length(trim(title)) > 0),
        done INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        done_at TEXT,
        priority TEXT NOT NULL DEFAULT 'MID' CHECK (priority IN ('HIGH', 'MID', 'LOW')),
        due_date TEXT,
        tags TEXT NOT NULL DEFAULT '[]',
        estimate_minutes INTEGER CHECK (estimate_minutes IS NULL OR estimate_minutes BETWEEN 0 AND 9999),
        CHECK ((done = 1) = (done_at IS NOT NULL))
    )""",
    "settings": """CREATE TABLE IF NOT EXISTS settings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL DEFAULT (datetime('now')),
        updated TEXT NOT NULL DEFAULT (datetime('now')),
        owner_id TEXT NOT NULL UNIQUE,
        daily_goal_xp INTEGER NOT NULL DEFAULT 60 CHECK (daily_goal_xp BETWEEN 10 AND 500),
        bonus_xp INTEGER NOT NULL DEFAULT 0 CHECK (bonus_xp >= 0),
        claimed TEXT NOT NULL DEFAULT '{}'
    )""",
}

INDEXES: list[str] = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner_id ON tasks (owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner_done ON tasks (owner_id, done)",
]


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes if they do not exist yet."""
    conn = await db_client.get_connection(db_path=db_path)
    for name, ddl in TABLE_SCHEMAS.items():
        await conn.execute(ddl)
        logger.debug("Ensured table %s", name)
    for index in INDEXES:
        await conn.execute(index)
    await conn.commit()
    logger.info("Schema initialized", extra={"tables": list(TABLE_SCHEMAS)})
