"""
htmx endpoints for the RecipeSnap page.

Every action endpoint re-renders the #snap-app partial. Notices and camera
release commands ride along in the HX-Trigger header so the page script can
show toasts and stop MediaStream tracks.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from recipesnap.api.dependencies import (
    SESSION_HEADER,
    SnapSession,
    get_session_registry,
    get_snap_session,
)
from recipesnap.services.camera import BrowserCameraHandle, CameraAccessError
from recipesnap.services.session_store import SessionRegistry
from recipesnap.services.snap_state import InputMode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snap", tags=["snap"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def render_snap(request: Request, snap: SnapSession) -> HTMLResponse:
    """Render the app partial and attach pending notices and camera releases."""
    controller = snap.controller
    response = templates.TemplateResponse(
        request, "partials/snap_app.html", {"view": controller.view()}
    )

    triggers = {}
    notices = controller.drain_notices()
    if notices:
        triggers["notices"] = {"items": [notice.to_dict() for notice in notices]}

    streams = [
        handle.stream_id
        for handle in controller.drain_released_handles()
        if isinstance(handle, BrowserCameraHandle)
    ]
    if streams:
        triggers["camera-release"] = {"streams": streams}

    if triggers:
        response.headers["HX-Trigger"] = json.dumps(triggers)

    return response


@router.post("/upload", response_class=HTMLResponse)
async def upload_image(
    request: Request,
    image: UploadFile = File(...),
    snap: SnapSession = Depends(get_snap_session),
):
    """Load an uploaded photo into the session."""
    await snap.controller.select_file(image)
    return render_snap(request, snap)


@router.post("/mode", response_class=HTMLResponse)
async def switch_mode(
    request: Request,
    mode: str = Form(...),
    snap: SnapSession = Depends(get_snap_session),
):
    """Switch between the upload and camera tabs."""
    try:
        input_mode = InputMode(mode)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid mode: {mode}")

    snap.controller.switch_mode(input_mode)
    return render_snap(request, snap)


@router.post("/camera/permission", response_class=HTMLResponse)
async def camera_permission(
    request: Request,
    outcome: str = Form(...),
    stream_id: Optional[str] = Form(None),
    track_count: int = Form(1),
    reason: Optional[str] = Form(None),
    snap: SnapSession = Depends(get_snap_session),
):
    """
    Report the result of the browser's getUserMedia call.

    outcome is "granted" (with the stream's id and track count) or "denied".
    """
    if outcome == "granted":
        if not stream_id:
            raise HTTPException(status_code=400, detail="stream_id is required")
        snap.controller.camera_access_granted(
            BrowserCameraHandle(stream_id=stream_id, track_count=track_count)
        )
    elif outcome == "denied":
        snap.controller.camera_access_denied(
            CameraAccessError(reason or "Camera permission denied")
        )
    else:
        raise HTTPException(status_code=400, detail=f"Invalid outcome: {outcome}")

    return render_snap(request, snap)


@router.post("/camera/capture", response_class=HTMLResponse)
async def capture_photo(
    request: Request,
    frame: Optional[UploadFile] = File(None),
    snap: SnapSession = Depends(get_snap_session),
):
    """Use the posted video frame as the session's image."""
    data = await frame.read() if frame else b""
    snap.controller.capture(data)
    return render_snap(request, snap)


@router.post("/camera/cancel", response_class=HTMLResponse)
async def cancel_camera(request: Request, snap: SnapSession = Depends(get_snap_session)):
    snap.controller.cancel_camera()
    return render_snap(request, snap)


@router.post("/clear", response_class=HTMLResponse)
async def clear_image(request: Request, snap: SnapSession = Depends(get_snap_session)):
    snap.controller.clear()
    return render_snap(request, snap)


@router.post("/identify", response_class=HTMLResponse)
async def identify_food(request: Request, snap: SnapSession = Depends(get_snap_session)):
    """Identify the food items in the session's image."""
    await snap.controller.identify()
    return render_snap(request, snap)


@router.post("/recipe", response_class=HTMLResponse)
async def generate_recipe(request: Request, snap: SnapSession = Depends(get_snap_session)):
    """Generate a recipe for the session's image."""
    await snap.controller.generate_recipe()
    return render_snap(request, snap)


@router.post("/teardown", status_code=204)
async def teardown_session(
    request: Request,
    session_id: Optional[str] = Form(None),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Page is going away: release the camera and forget the session."""
    # sendBeacon cannot set headers, so the page posts the id as a form field
    session_id = session_id or request.headers.get(SESSION_HEADER)
    if session_id:
        registry.discard(session_id)
    return Response(status_code=204)
