"""
CrimeWatch - FastAPI Application Entrypoint

This module initializes the FastAPI application with:
- CORS, security and identity middleware
- Authentication, report and admin routes
- Database and session store lifecycle management
- Domain exception handlers

Run with:
    uvicorn crimewatch.app:app
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from crimewatch.admin.routes import router as admin_router
from crimewatch.auth.reset_tokens import purge_expired_tokens
from crimewatch.auth.routes import router as auth_router
from crimewatch.auth.sessions import build_session_store
from crimewatch.config import settings
from crimewatch.database import get_engine, get_session_factory, init_db
from crimewatch.errors import ConfigurationError, register_exception_handlers
from crimewatch.gateway.middleware import IdentityMiddleware, SecurityMiddleware, SESSION_HEADER
from crimewatch.logging_config import configure_logging
from crimewatch.reports.routes import router as reports_router
from crimewatch.services.notifications import EmailNotifier


VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Validate configuration; a broken database setup is fatal
        - Create tables, select the session store, purge stale sessions/tokens
        - Build the email notifier

    Shutdown:
        - Dispose the database engine
    """
    configure_logging(settings.ENVIRONMENT, settings.LOG_LEVEL)

    try:
        engine = get_engine(settings.DATABASE_URL)
        init_db(engine)
        session_factory = get_session_factory(engine)
        session_store = build_session_store(
            settings.SESSION_STORE,
            session_factory,
            expire_days=settings.SESSION_EXPIRE_DAYS,
        )
    except ConfigurationError as e:
        logger.critical(f"FATAL: {e}")
        raise SystemExit(1)
    except SQLAlchemyError as e:
        logger.critical(f"FATAL: database initialization failed: {e!r}")
        raise SystemExit(1)

    app.state.db_engine = engine
    app.state.db_session_factory = session_factory
    app.state.session_store = session_store
    app.state.notifier = EmailNotifier.from_settings(settings)

    if not session_store.durable:
        logger.warning("Using in-memory session store: sessions are lost on restart")

    purged = session_store.purge_expired()
    with session_factory() as db:
        purged_tokens = purge_expired_tokens(db)
    logger.info(
        f"CrimeWatch {VERSION} started (session store: {settings.SESSION_STORE}, "
        f"purged {purged} session(s), {purged_tokens} reset token(s))"
    )

    yield

    engine.dispose()
    logger.info("CrimeWatch stopped")


app = FastAPI(
    title="CrimeWatch",
    description="Crime incident reporting and triage API",
    version=VERSION,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Last added runs first: CORS -> Security -> Identity -> routes
app.add_middleware(IdentityMiddleware)
app.add_middleware(SecurityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=[SESSION_HEADER, "X-Request-ID"],
)

app.include_router(auth_router, prefix="/api")
app.include_router(reports_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.options("/{full_path:path}", include_in_schema=False)
async def options_fallback(full_path: str):
    """OPTIONS that CORSMiddleware did not treat as a preflight still gets 200."""
    return Response(status_code=200)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for local dev tooling.
    Returns service status and connection states.
    """
    database_healthy = True
    try:
        with app.state.db_engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        database_healthy = False

    return {
        "status": "healthy" if database_healthy else "degraded",
        "version": VERSION,
        "services": {
            "database": database_healthy,
            "session_store": "database" if app.state.session_store.durable else "memory",
        },
    }
