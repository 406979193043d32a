"""questlist - a to-do list with XP, levels, quests and loot."""

import asyncio
import logging
import sys

from questlist.core import db_client
from questlist.core.config import settings
from questlist.core.logging import configure_logfire
from questlist.services.session_service import PlayerSession


logger = logging.getLogger(__name__)

DEFAULT_OWNER_ID = "local"


async def open_session(owner_id: str = DEFAULT_OWNER_ID) -> PlayerSession:
    """Initialise the record store and load a session for ``owner_id``.

    A failed load is logged and leaves the session on default settings with no tasks.
    """
    await db_client.init_db()
    session = PlayerSession(owner_id)
    result = await session.load()
    if not result.ok:
        logger.warning("startup_load", extra={"owner_id": owner_id, "error_code": result.error_code})
    return session


async def _summary(owner_id: str) -> None:
    session = await open_session(owner_id)
    try:
        stats = session.stats()
        logger.info(
            "session_summary",
            extra={
                "owner_id": owner_id,
                "level": stats.level.level,
                "title": stats.level.title,
                "total_xp": stats.total_xp,
                "active": stats.active_count,
                "streak": stats.streak,
                "unlocked_quests": [q.id for q in session.quests() if q.unlocked],
            },
        )
    finally:
        await db_client.close_connection()


def main() -> None:
    """Configure logging, open the store and log the owner's progress summary."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    configure_logfire()
    owner_id = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_OWNER_ID
    logger.info("startup", extra={"db_path": settings.sqlite_db_path, "environment": settings.environment})
    asyncio.run(_summary(owner_id))


if __name__ == "__main__":
    main()
