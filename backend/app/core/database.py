from prisma import Prisma
import structlog
import asyncio
from app.core.config import settings

logger = structlog.get_logger()

CONNECT_ATTEMPTS = 3
CONNECT_TIMEOUT = 30.0
PING_TIMEOUT = 5.0

# Shared client; Prisma reads DATABASE_URL from the environment
db = Prisma()


async def _connect_with_retry():
    """Connect with exponential backoff; the last failure is re-raised"""
    for attempt in range(1, CONNECT_ATTEMPTS + 1):
        try:
            await asyncio.wait_for(db.connect(), timeout=CONNECT_TIMEOUT)
            await db.execute_raw("SELECT 1")
            return
        except Exception as e:
            logger.warning(
                "Database connection attempt failed",
                attempt=attempt,
                max_attempts=CONNECT_ATTEMPTS,
                error=str(e)[:100] or type(e).__name__
            )
            if attempt == CONNECT_ATTEMPTS:
                raise
            await asyncio.sleep(2 ** (attempt - 1))


async def init_db():
    """Connect the question store at startup"""
    logger.info("Connecting to question store", database_url_configured=bool(settings.DATABASE_URL))
    try:
        await _connect_with_retry()
        logger.info("Question store connected")
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        logger.warning("Continuing without database connection (imports can be previewed but not committed)")


async def close_db():
    """Close database connection"""
    if not db.is_connected():
        return
    try:
        await db.disconnect()
        logger.info("Database connection closed")
    except Exception as e:
        logger.error("Error closing database connection", error=str(e))


async def get_db() -> Prisma:
    """Return the shared client, reconnecting if startup could not"""
    if not db.is_connected():
        logger.warning("Question store not connected, reconnecting before commit")
        await db.connect()
    return db


async def health_check() -> dict:
    """Report connection state and the number of stored questions"""
    if not db.is_connected():
        return {"status": "disconnected", "message": "Database not connected"}

    try:
        await asyncio.wait_for(db.execute_raw("SELECT 1"), timeout=PING_TIMEOUT)
    except asyncio.TimeoutError:
        return {"status": "timeout", "message": "Database query timeout"}
    except Exception as e:
        return {"status": "error", "message": f"Database error: {str(e)}"}

    status = {"status": "healthy", "message": "Database connection active"}
    try:
        status["stats"] = {"questions": await db.question.count()}
    except Exception as e:
        # questions table missing until the first migration
        logger.warning("Could not count stored questions", error=str(e))
    return status
