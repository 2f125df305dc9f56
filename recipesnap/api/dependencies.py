"""FastAPI dependencies for AI services and page sessions."""
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status

from recipesnap.services.ai_service import ClaudeService
from recipesnap.services.session_store import SessionRegistry
from recipesnap.services.snap_controller import SnapController

# Sent by htmx (hx-headers on <body>) and by the page script on every request
SESSION_HEADER = "X-Snap-Session"


claude_service = ClaudeService()
snap_sessions = SessionRegistry(lambda: SnapController(get_ai_service()))


@dataclass
class SnapSession:
    session_id: str
    controller: SnapController


def get_ai_service() -> ClaudeService:
    """The ClaudeService used by new sessions and the JSON flow endpoints."""
    return claude_service


def get_session_registry() -> SessionRegistry:
    return snap_sessions


async def get_snap_session(
    request: Request,
    registry: SessionRegistry = Depends(get_session_registry),
) -> SnapSession:
    """
    Get the SnapController of the page that sent this request.

    Sessions are only created by loading the page. A missing, unknown or
    expired id raises 401 with HX-Refresh so htmx reloads the page.
    """
    session_id = request.headers.get(SESSION_HEADER)
    controller = registry.get(session_id) if session_id else None

    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired, please reload the page",
            headers={"HX-Refresh": "true"},
        )

    return SnapSession(session_id, controller)
