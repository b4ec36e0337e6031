"""
CineChat — FastAPI Application

REST endpoints for the chat client: /respond runs the recommendation
pipeline, /title proxies a single TMDB title with credits.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

import httpx
from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from cinechat import __version__
from cinechat.clients import tmdb
from cinechat.config import settings
from cinechat.genres import genre_directory
from cinechat.models import MEDIA_KINDS, RespondRequest, RespondResponse
from cinechat.pipeline import EmptyConversationError, run_pipeline

logger = logging.getLogger(__name__)


# ── Lifespan: startup/shutdown ────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the genre refresh task and tear down shared resources."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    )
    logger.info("CineChat starting up…")
    logger.info("   Model: %s", settings.openai_model)
    logger.info("   TMDB: %s", settings.tmdb_base_url)

    refresher = asyncio.create_task(
        genre_directory.run_periodic(settings.genre_refresh_interval_seconds)
    )

    yield  # app runs here

    logger.info("CineChat shutting down…")
    refresher.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await refresher
    await tmdb.close_client()


# ── App instance ──────────────────────────────────────────

app = FastAPI(
    title="CineChat",
    version=__version__,
    description="Conversational movie & TV recommendations",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Logging middleware ────────────────────────────────────


@app.middleware("http")
async def log_requests(request: Request, call_next):
    t0 = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - t0) * 1000
    logger.info(
        "%s %s → %d (%.0f ms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    return response


router = APIRouter()


# ── Health endpoint ───────────────────────────────────────


@router.get("/health")
async def health() -> Dict[str, Any]:
    """Reports whether the genre directory has been populated."""
    snapshot = genre_directory.snapshot
    return {
        "status": "degraded" if snapshot.is_empty else "ok",
        "model": settings.openai_model,
        "movie_genres": len(snapshot.movie),
        "tv_genres": len(snapshot.tv),
    }


# ── Main conversation endpoint ────────────────────────────


@router.post("/respond", response_model=RespondResponse, response_model_exclude_none=True)
async def respond(body: RespondRequest):
    """Answer the latest message, with TMDB cards for recommendation requests."""
    try:
        return await run_pipeline(body.messages)
    except EmptyConversationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception:
        logger.exception("Pipeline failed")
        raise HTTPException(status_code=500, detail="Failed to complete the response.")


# ── Title detail passthrough ──────────────────────────────


@router.get("/title/{kind}/{title_id}")
async def title_details(kind: str, title_id: str):
    """Full TMDB record for one movie or show, with credits."""
    if kind not in MEDIA_KINDS:
        raise HTTPException(status_code=400, detail="Invalid type. Must be 'movie' or 'tv'.")

    try:
        return await tmdb.get_title_details(kind, title_id)
    except httpx.HTTPStatusError as exc:
        logger.error("Error fetching %s %s details: %s", kind, title_id, exc)
        try:
            payload = exc.response.json()
        except ValueError:
            payload = None
        message = payload.get("status_message") if isinstance(payload, dict) else None
        raise HTTPException(
            status_code=exc.response.status_code,
            detail=message or f"Failed to fetch {kind} details.",
        )
    except httpx.HTTPError as exc:
        logger.error("Error fetching %s %s details: %s", kind, title_id, exc)
        raise HTTPException(status_code=500, detail=f"Failed to fetch {kind} details.")


# The chat client calls the /api paths; the bare paths stay for direct use
app.include_router(router)
app.include_router(router, prefix="/api")
