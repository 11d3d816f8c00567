"""
FastAPI Web Application for the Setlist Agent

Endpoints:
  GET  /health                 - Liveness check
  POST /api/setlist/generate   - Run one conversation turn

The conversation state travels in the request body and comes back in the
response; the server keeps none of it.
"""

import math
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError

from .agent import TurnResolver
from .config import Settings, configure_logging
from .errors import LibraryFetchError, MalformedModelOutput, SetlistValidationError
from .library_client import fetch_user_library
from .llm import AnthropicModelClient
from .models import TurnRequest
from .validation import turn_input_problem
from .youtube import make_youtube_lookup

# ---------------------------------------------------------------------------
# Singletons
# ---------------------------------------------------------------------------

settings = Settings.from_env()
resolver: Optional[TurnResolver] = None


def build_resolver(cfg: Settings) -> TurnResolver:
    model = AnthropicModelClient(
        api_key=cfg.anthropic_api_key, model=cfg.model, max_tokens=cfg.max_tokens
    )
    video_lookup = make_youtube_lookup(cfg.youtube_api_key) if cfg.youtube_api_key else None
    return TurnResolver(model=model, video_lookup=video_lookup)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    global resolver

    if resolver is None:
        resolver = build_resolver(settings)
    if not settings.anthropic_api_key:
        logger.warning("No ANTHROPIC_API_KEY set. Model calls will fail.")
    if settings.youtube_api_key:
        logger.info("YOUTUBE_API_KEY found. Video links enabled.")
    if settings.library_api_url:
        logger.info(f"Library service: {settings.library_api_url}")

    logger.info("Setlist agent ready.")
    yield


app = FastAPI(title="Setlist Agent", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Boundary validation
# ---------------------------------------------------------------------------

def _error(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": error, **extra}, status_code=status_code)


def _target_minutes(value: Any) -> Optional[float]:
    """Positive finite minutes, or None for anything else."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(minutes) or minutes <= 0:
        return None
    return minutes


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def _turn_request(body: Dict[str, Any]) -> TurnRequest:
    refinement = body.get("refinement")
    return TurnRequest.model_validate({
        "prompt": body["prompt"].strip(),
        "targetDurationMinutes": _target_minutes(body.get("targetDurationMinutes")),
        "refinement": refinement.strip() if refinement else None,
        "previousSetlist": body.get("previousSetlist"),
        "regenerate": bool(body.get("regenerate")),
        "userId": body.get("userId"),
        "libraryTracks": body.get("libraryTracks"),
        "fitToDuration": bool(body.get("fitToDuration")),
        "state": body.get("state") or {},
    })


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    return {"status": "ok", "service": "setlist-agent"}


@app.post("/api/setlist/generate")
async def generate_setlist(request: Request):
    """Run one conversation turn and return the result with the next state."""
    if resolver is None:
        return _error(503, "Agent not initialized")

    try:
        body = await request.json()
    except ValueError:
        return _error(400, "Request body must be valid JSON")

    problem = turn_input_problem(body)
    if problem:
        return _error(400, problem)

    try:
        turn = _turn_request(body)
    except ValidationError as e:
        return _error(400, "Invalid request", message=str(e))

    try:
        if turn.library_tracks is None and settings.library_api_url:
            library = await fetch_user_library(
                settings.library_api_url,
                user_id=turn.user_id,
                auth_token=_bearer_token(request),
            )
            turn = turn.model_copy(update={"library_tracks": library})

        result = await resolver.run_turn(turn)
    except LibraryFetchError as e:
        logger.error(f"Library fetch error: {e}")
        return _error(502, "Failed to fetch library", message=str(e))
    except (MalformedModelOutput, SetlistValidationError) as e:
        logger.error(f"Agent error: {e}")
        return _error(502, "Failed to generate setlist", message=str(e))
    except Exception as e:
        logger.exception(f"Unexpected agent error: {e}")
        return _error(500, "Failed to generate setlist", message=str(e))

    return JSONResponse(result.model_dump(by_alias=True, mode="json"))


@app.exception_handler(404)
async def not_found(request: Request, exc):
    return _error(404, "Route not found")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    configure_logging(settings.log_level)
    logger.info(f"Starting Setlist Agent on port {settings.port}")
    uvicorn.run(
        "setlist_agent.app:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
