"""
FastMCP Server for the Setlist Agent

Exposes one conversation turn as an MCP tool. The client keeps the
conversation state: pass the ``state`` returned by one call into the next.

To run over stdio (e.g. Claude Desktop):
  python -m setlist_agent.mcp_server

To run over HTTP (SSE):
  python -m setlist_agent.mcp_server --transport sse [--host 127.0.0.1] [--port 8000]
"""

from typing import Any, Dict, List, Optional

from fastmcp import FastMCP
from loguru import logger
from pydantic import ValidationError

from .agent import TurnResolver
from .config import Settings, configure_logging
from .errors import AgentError
from .library_client import fetch_user_library
from .models import TurnRequest
from .validation import turn_input_problem

mcp = FastMCP("Setlist Agent")

settings = Settings.from_env()
resolver: Optional[TurnResolver] = None


def _ensure_initialized() -> TurnResolver:
    """Lazy-initialize the resolver on first tool call."""
    global resolver
    if resolver is None:
        from .app import build_resolver
        logger.info("Initializing setlist agent MCP server...")
        resolver = build_resolver(settings)
    return resolver


async def setlist_turn(
    prompt: str,
    state: Optional[Dict[str, Any]] = None,
    refinement: Optional[str] = None,
    previous_setlist: Optional[Dict[str, Any]] = None,
    regenerate: bool = False,
    target_duration_minutes: Optional[float] = None,
    library_tracks: Optional[List[Dict[str, Any]]] = None,
    user_id: Optional[str] = None,
    fit_to_duration: bool = False,
) -> Dict[str, Any]:
    """
    Run one setlist conversation turn.

    Args:
        prompt: What the setlist is for (event, genre, duration...).
        state: The ``state`` object returned by the previous call, if any.
        refinement: One edit instruction for ``previous_setlist`` (one per setlist).
        previous_setlist: The setlist to refine.
        regenerate: Ask for a different setlist for the same request.
        target_duration_minutes: Desired total length. Optional.
        library_tracks: The user's songs; fetched from LIBRARY_API_URL when omitted.
        user_id: Library owner. Optional.
        fit_to_duration: Trim or extend the set toward the target duration.

    Returns:
        Either {"type": "clarify", "question", "state"} or
        {"type": "setlist", "setlist", "followUp", "totalSongs",
         "totalDurationSeconds", "sourcesBreakdown", "state"},
        or {"error": ...} when the turn failed.
    """
    problem = turn_input_problem({"prompt": prompt, "refinement": refinement})
    if problem:
        return {"error": problem}

    agent = _ensure_initialized()

    try:
        if library_tracks is None and settings.library_api_url:
            library_tracks = await fetch_user_library(settings.library_api_url, user_id=user_id)

        request = TurnRequest(
            prompt=prompt.strip(),
            state=state or {},
            refinement=refinement.strip() if refinement else None,
            previous_setlist=previous_setlist,
            regenerate=regenerate,
            target_duration_minutes=target_duration_minutes,
            library_tracks=library_tracks,
            user_id=user_id,
            fit_to_duration=fit_to_duration,
        )
        result = await agent.run_turn(request)
    except ValidationError as e:
        return {"error": "Invalid request", "message": str(e)}
    except AgentError as e:
        logger.error(f"Setlist turn failed: {e}")
        return {"error": "Failed to generate setlist", "message": str(e)}

    return result.model_dump(by_alias=True, mode="json")


mcp.tool()(setlist_turn)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    """Run the MCP server."""
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument("--transport", default="stdio", choices=["stdio", "sse"])
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    configure_logging(settings.log_level)
    logger.info("Starting Setlist Agent MCP Server...")

    if args.transport == "sse":
        mcp.run(transport="sse", host=args.host, port=args.port)
    else:
        mcp.run()


if __name__ == "__main__":
    main()
