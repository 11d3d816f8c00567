"""
Error taxonomy for the setlist agent.

Every error is scoped to a single turn. The HTTP and MCP boundaries turn
these into reported failures; nothing here is fatal to the process.
"""

from typing import Optional


class AgentError(Exception):
    """Base class for all setlist agent failures."""


class MalformedModelOutput(AgentError):
    """Model text could not be parsed as JSON, even after the brace-slice fallback."""


class SetlistValidationError(AgentError, ValueError):
    """Parsed model output violates the setlist contract."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class LibraryFetchError(AgentError):
    """The library service answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        message = f"Failed to fetch library tracks ({status_code})."
        if body:
            message = f"{message} {body}"
        super().__init__(message)


class VideoLookupError(AgentError):
    """The video search service answered with an error."""

    def __init__(self, status_code: int, reason: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason or "YouTube API error"
        super().__init__(f"YouTube error: {status_code} {self.reason}")
