from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from contextlib import asynccontextmanager
import logging
import structlog

from app.core.config import settings, validate_settings
from app.core.database import init_db, close_db, health_check
from app.services.question_import.file_parser import FILE_TYPES

__version__ = "1.0.0"

logging.basicConfig(format="%(message)s", level=settings.LOG_LEVEL)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if not settings.DEBUG else structlog.dev.ConsoleRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the question store on startup, release it on shutdown"""
    logger.info(
        "Starting question import service",
        version=__version__,
        extraction_mode=settings.EXTRACTION_MODE,
        max_file_size=settings.MAX_FILE_SIZE
    )

    try:
        validate_settings()
    except ValueError as e:
        # Previews still work without a database or OpenAI key
        logger.error("Configuration validation failed", error=str(e))

    await init_db()

    from app.services.questions import init_questions_service
    try:
        await init_questions_service()
    except Exception as e:
        logger.warning("Questions service unavailable until first commit", error=str(e))

    yield

    from app.services.question_import import question_import_service
    logger.info(
        "Shutting down question import service",
        open_imports=len(question_import_service.get_all_sessions())
    )
    await close_db()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Upload exam question banks, correct the preview, commit to the question store",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,  # Only expose docs in debug mode
    redoc_url="/api/redoc" if settings.DEBUG else None
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.ALLOWED_HOSTS
)

# Include routers
from app.api.routes import imports

app.include_router(imports.router, prefix="/api/imports", tags=["imports"])


@app.get("/", tags=["root"])
async def root():
    return {
        "message": settings.PROJECT_NAME,
        "version": __version__,
        "supported_files": sorted(FILE_TYPES),
        "docs": "/api/docs" if settings.DEBUG else "disabled",
        "endpoints": {
            "health": "/health",
            "imports": "/api/imports/{exam_id}"
        }
    }


@app.get("/health", tags=["health"])
async def health_check_endpoint():
    """Database status plus the number of imports awaiting review"""
    from app.services.question_import import question_import_service
    from app.services.questions import questions_service

    db_health = await health_check()
    sessions = question_import_service.get_all_sessions()

    return {
        "status": "healthy" if db_health["status"] == "healthy" else "degraded",
        "database": db_health,
        "imports": {
            "open": len(sessions),
            "rows_pending": sum(len(session.rows) for session in sessions),
            "extraction_mode": settings.EXTRACTION_MODE
        },
        "questions_service": "initialized" if questions_service else "not_initialized"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
