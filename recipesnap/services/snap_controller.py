"""
Presentation controller for one RecipeSnap session.

Every user action goes through a SnapController method. The controller feeds
events into snap_state.reduce(), calls the AI service, and turns every
failure into a user-visible Notice instead of letting it escape.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile

from recipesnap.services.ai_schemas import Recipe
from recipesnap.services.ai_service import MalformedResponseError
from recipesnap.services.camera import (
    CameraAccessError,
    CameraHandle,
    CameraPermission,
    CaptureNotReadyError,
)
from recipesnap.services.image_service import (
    ImageService,
    InvalidImageError,
    image_service as default_image_service,
)
from recipesnap.services.snap_state import (
    CameraCancelled,
    CameraDenied,
    CameraGranted,
    CameraRequested,
    Cleared,
    FileRead,
    FileReadFailed,
    FileSelected,
    FrameCaptured,
    IdentifyFailed,
    IdentifyStarted,
    IdentifySucceeded,
    InputMode,
    ModeSwitched,
    Phase,
    RecipeFailed,
    RecipeStarted,
    RecipeSucceeded,
    RequestTag,
    SessionState,
    TornDown,
    is_current,
    reduce,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """A toast shown to the user. variant is "default" or "destructive"."""

    title: str
    description: str
    variant: str = "default"

    def to_dict(self) -> dict:
        return {"title": self.title, "description": self.description, "variant": self.variant}


def ensure_complete_recipe(result: Optional[dict]) -> Recipe:
    """
    Accept a recipe response only if name, ingredients and instructions are all present.

    Raises:
        MalformedResponseError: If any of the three is missing
    """
    if (
        not result
        or not result.get("recipe_name")
        or result.get("ingredients") is None
        or result.get("instructions") is None
    ):
        raise MalformedResponseError("Invalid recipe format received from AI.")

    return Recipe(
        name=result["recipe_name"],
        ingredients=tuple(result["ingredients"]),
        instructions=tuple(result["instructions"]),
    )


class SnapController:
    """Owns the SessionState of one browser session."""

    def __init__(self, ai_service, image_service: Optional[ImageService] = None):
        self.ai_service = ai_service
        self.image_service = image_service or default_image_service
        self.state = SessionState()
        self._notices: list[Notice] = []
        self._released: list[CameraHandle] = []
        self._request_seq = itertools.count(1)

    # =========================================================================
    # STATE PLUMBING
    # =========================================================================

    def _dispatch(self, event) -> SessionState:
        """
        Apply one event and release any camera handle the new state dropped.

        This is the only place camera handles are released.
        """
        previous = self.state
        self.state = reduce(previous, event)

        for handle in (previous.camera, getattr(event, "handle", None)):
            if handle is not None and handle is not self.state.camera:
                handle.release()
                if handle not in self._released:
                    self._released.append(handle)

        return self.state

    def _notify(self, title: str, description: str, variant: str = "default"):
        self._notices.append(Notice(title, description, variant))

    def drain_notices(self) -> list[Notice]:
        """Return and forget the notices raised since the last call."""
        notices, self._notices = self._notices, []
        return notices

    def drain_released_handles(self) -> list[CameraHandle]:
        """Return and forget the camera handles released since the last call."""
        released, self._released = self._released, []
        return released

    def _require_image(self):
        if self.state.image is None:
            raise NoImageError("Please upload an image or take a photo first.")
        return self.state.image

    # =========================================================================
    # IMAGE ACQUISITION
    # =========================================================================

    async def select_file(self, file: UploadFile):
        """Read an uploaded file into the session's image."""
        self._dispatch(FileSelected())

        try:
            image = await self.image_service.encode_upload(file)
        except InvalidImageError as e:
            self._dispatch(FileReadFailed())
            self._notify("Invalid Image", str(e), "destructive")
            return

        self._dispatch(FileRead(image))
        logger.info("Image %s loaded from upload", image.image_id)

    def enter_camera_mode(self):
        """Switch to camera input; the page then asks the browser for access."""
        if self.state.camera_permission == CameraPermission.DENIED:
            self._notify(
                "Camera Access Denied",
                "Please enable camera permissions in your browser settings to use this feature.",
                "destructive",
            )
        self._dispatch(CameraRequested())

    def camera_access_granted(self, handle: CameraHandle):
        self._dispatch(CameraGranted(handle))

    def camera_access_denied(self, error: CameraAccessError):
        logger.warning("Camera access denied: %s", error)
        self._dispatch(CameraDenied())
        self._notify(
            "Camera Access Denied",
            "Could not access the camera. Please ensure permissions are granted and reload.",
            "destructive",
        )

    def capture(self, frame: bytes):
        """Turn the current video frame into the session's image."""
        try:
            if self.state.phase != Phase.CAMERA_ACTIVE or self.state.camera is None:
                raise CaptureNotReadyError("No live camera stream")
            image = self.image_service.encode_frame(frame)
        except CaptureNotReadyError as e:
            logger.info("Capture rejected: %s", e)
            self._notify(
                "Camera Not Ready",
                "Please wait for the camera feed to load.",
                "destructive",
            )
            return

        self._dispatch(FrameCaptured(image))
        logger.info("Image %s captured from camera", image.image_id)

    def cancel_camera(self):
        self._dispatch(CameraCancelled())

    def switch_mode(self, mode: InputMode):
        """Change input tab. Selecting the tab that is already active does nothing."""
        if mode == self.state.input_mode:
            return
        if mode == InputMode.CAMERA:
            self.enter_camera_mode()
        else:
            self._dispatch(ModeSwitched(mode))

    def clear(self):
        self._dispatch(Cleared())
        self._notify("Image Cleared", "Image and results have been reset.")

    def teardown(self):
        self._dispatch(TornDown())

    # =========================================================================
    # AI ACTIONS
    # =========================================================================

    async def identify(self):
        """Identify the food items in the current image."""
        try:
            image = self._require_image()
        except NoImageError as e:
            self._notify("No Image", str(e), "destructive")
            return

        tag = RequestTag(seq=next(self._request_seq), image_id=image.image_id)
        self._dispatch(IdentifyStarted(tag))

        food_items: Optional[tuple[str, ...]] = None
        try:
            result = await self.ai_service.identify_food_items(image.data_uri)
            food_items = tuple(result.get("food_items") or ())
        except Exception:
            logger.exception("Error identifying food")
        finally:
            live = self.state.identify_tag == tag and is_current(self.state, tag)
            if food_items is None:
                self._dispatch(IdentifyFailed(tag))
            else:
                self._dispatch(IdentifySucceeded(tag, food_items))

        if not live:
            logger.warning("Discarding identify response for stale image %s", tag.image_id)
            return

        if food_items is None:
            self._notify(
                "Identification Error", "Failed to identify food items.", "destructive"
            )
        elif not food_items:
            self._notify(
                "No Food Found", "Could not identify any food items in the image."
            )

    async def generate_recipe(self):
        """Generate a recipe for the current image."""
        try:
            image = self._require_image()
        except NoImageError:
            self._notify(
                "No Image Data",
                "Cannot generate recipe without image data.",
                "destructive",
            )
            return

        tag = RequestTag(seq=next(self._request_seq), image_id=image.image_id)
        self._dispatch(RecipeStarted(tag))

        recipe: Optional[Recipe] = None
        try:
            result = await self.ai_service.generate_recipe(image.data_uri)
            recipe = ensure_complete_recipe(result)
        except Exception:
            logger.exception("Error generating recipe")
        finally:
            live = self.state.recipe_tag == tag and is_current(self.state, tag)
            if recipe is None:
                self._dispatch(RecipeFailed(tag))
            else:
                self._dispatch(RecipeSucceeded(tag, recipe))

        if not live:
            logger.warning("Discarding recipe response for stale image %s", tag.image_id)
            return

        if recipe is None:
            self._notify(
                "Recipe Generation Error", "Failed to generate recipe.", "destructive"
            )

    # =========================================================================
    # RENDERING
    # =========================================================================

    def view(self) -> dict:
        """Template context describing what the page should show."""
        state = self.state
        camera_mode = state.input_mode == InputMode.CAMERA
        camera_live = state.phase == Phase.CAMERA_ACTIVE

        if not state.has_image:
            items_placeholder = "Upload an image or capture a photo to start."
            recipe_placeholder = "Upload an image or capture a photo first."
        else:
            items_placeholder = 'No items identified yet. Click "Identify Food".'
            if not state.food_items:
                recipe_placeholder = 'Identify food items first, then click "Generate Recipe".'
            else:
                recipe_placeholder = 'Click "Generate Recipe" to get cooking instructions.'

        return {
            "state": state,
            "image_src": state.image.data_uri if state.image else None,
            "camera_mode": camera_mode,
            "show_camera_controls": camera_mode and camera_live,
            "show_preview": camera_mode
            and camera_live
            and state.camera is not None
            and state.camera_permission == CameraPermission.GRANTED,
            "request_camera": camera_mode
            and camera_live
            and state.camera is None
            and state.camera_permission != CameraPermission.DENIED,
            "awaiting_permission": camera_mode
            and camera_live
            and state.camera_permission == CameraPermission.UNKNOWN,
            "access_required": camera_mode
            and state.camera_permission == CameraPermission.DENIED,
            "can_capture": camera_live
            and state.camera is not None
            and state.camera_permission == CameraPermission.GRANTED,
            "can_identify": state.has_image and not state.busy,
            "can_generate": state.has_image and not state.busy,
            "can_clear": state.has_image and not state.busy,
            "items_placeholder": items_placeholder,
            "recipe_placeholder": recipe_placeholder,
        }


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class NoImageError(Exception):
    """An action needs an image but the session has none."""

    pass
