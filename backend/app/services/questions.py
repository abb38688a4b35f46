"""
Questions Database Service

Bulk insertion of committed import rows into the exam question table.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from prisma import Prisma

logger = logging.getLogger(__name__)


class QuestionsService:
    """Service for writing exam questions to the database"""

    def __init__(self, db: "Prisma"):
        self.db = db

    async def insert_questions(self, rows: List[Dict[str, str]]) -> int:
        """
        Insert sanitized question rows in a single statement.

        The insert is atomic for the whole set: either every row is written
        or the call raises and nothing is.

        Returns:
            Number of rows written
        """
        if not rows:
            return 0

        logger.info(f"Inserting {len(rows)} questions into database")
        inserted = await self.db.question.create_many(data=rows)
        logger.info(f"Question insertion complete: {inserted} new")
        return inserted


# Global service instance
questions_service: Optional[QuestionsService] = None


async def init_questions_service():
    """Initialize the global questions service"""
    global questions_service
    from app.core.database import get_db

    db = await get_db()
    questions_service = QuestionsService(db)
    logger.info("Questions service initialized")


async def get_questions_service() -> QuestionsService:
    """Get the questions service instance, binding it to the database on first use"""
    if questions_service is None:
        await init_questions_service()
    return questions_service
