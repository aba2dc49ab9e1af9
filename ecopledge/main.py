from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text

from ecopledge.db.base import get_db
from ecopledge.core.config import settings
from ecopledge.core.logging import configure_logging
from ecopledge.routers import commitments as commitments_router
from ecopledge.routers import progress as progress_router
from ecopledge.routers import notifications as notifications_router
from ecopledge.routers import users as users_router
from ecopledge.routers import wall as wall_router
from ecopledge.routers import challenges as challenges_router
from ecopledge.routers import moderation as moderation_router
from ecopledge.core.errors import (
    EcoPledgeException,
    ecopledge_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

configure_logging()

app = FastAPI(
    title="EcoPledge API",
    description=(
        "**Sustainability commitments with carbon estimates and gamification**\n\n"
        "Free-text commitments are interpreted and estimated by a language-model "
        "oracle (with deterministic fallbacks), broken into milestones, and tracked "
        "through progress updates that drive levels, badges and notifications.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(EcoPledgeException, ecopledge_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(commitments_router.router)
app.include_router(progress_router.router)
app.include_router(notifications_router.router)
app.include_router(users_router.router)
app.include_router(wall_router.router)
app.include_router(challenges_router.router)
app.include_router(moderation_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable, HTTP 503 otherwise. `oracle` reports whether a model key
    is configured; without one every commitment uses the fallbacks.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {
        "status": "ok",
        "db": "ok",
        "oracle": "configured" if settings.oracle_enabled else "fallback",
        "env": settings.APP_ENV,
    }
