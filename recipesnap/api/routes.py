"""Main application routes."""

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from recipesnap.api.dependencies import SESSION_HEADER, get_session_registry
from recipesnap.services.session_store import SessionRegistry

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """RecipeSnap page. Every page load starts its own session."""
    session_id, controller = registry.create()

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "view": controller.view(),
            "session_id": session_id,
            "session_header": SESSION_HEADER,
        },
    )
