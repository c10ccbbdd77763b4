"""
TOPAZ 2.0 Scoring - FastAPI server

JSON API for competition setup, judge scoring, results, medals and exports,
plus a websocket change feed per competition.

Data source: Supabase
"""
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from topaz import __version__
from topaz.config import app_config, realtime_config, supabase_config
from database.supabase_client import DatabaseError, RecordNotFoundError
from ranking.calculator import ScoreValidationError
from change_feed.events import get_publisher
from change_feed.supabase_feed import SupabaseChangeFeed
from app.routers import all_routers

# FastAPI app
app = FastAPI(
    title=app_config.title,
    description="Dance competition scoring: judges, rankings, medal program",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for _router in all_routers:
    app.include_router(_router)

_change_feed: Optional[SupabaseChangeFeed] = None


# ==================== Error handlers ====================

@app.exception_handler(RecordNotFoundError)
async def not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ScoreValidationError)
async def score_validation_handler(request: Request, exc: ScoreValidationError):
    return JSONResponse(status_code=400, content={"detail": "Invalid scores", "errors": exc.errors})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(DatabaseError)
async def database_error_handler(request: Request, exc: DatabaseError):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": "Database request failed"})


# ==================== Lifecycle ====================

@app.on_event("startup")
async def startup_event():
    """Start the Supabase relay when it is the configured change source"""
    global _change_feed

    if realtime_config.source == "supabase":
        _change_feed = SupabaseChangeFeed(get_publisher())
        try:
            await _change_feed.start()
        except Exception as e:
            logger.error(f"Supabase change feed unavailable, local events only: {e}")
            _change_feed = None

    logger.info(f"Server started - change feed: {realtime_config.source}")


@app.on_event("shutdown")
async def shutdown_event():
    global _change_feed

    if _change_feed:
        await _change_feed.stop()
        _change_feed = None
    logger.info("Server stopped")


# ==================== Status ====================

@app.get("/api/status")
async def api_status():
    """Service status"""
    publisher = get_publisher()
    return {
        "service": app_config.title,
        "version": __version__,
        "supabase_configured": bool(supabase_config.supabase_url and supabase_config.supabase_key),
        "realtime_source": "supabase" if _change_feed else "local",
        "websocket_clients": publisher.subscription_count,
    }
