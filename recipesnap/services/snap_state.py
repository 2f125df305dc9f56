"""
Session state for one RecipeSnap page and its pure transitions.

reduce(state, event) never performs I/O and never touches the camera: it
only returns the next SessionState. Releasing a camera handle that the new
state no longer holds is the caller's job (see SnapController._dispatch).
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union

from recipesnap.services.ai_schemas import Recipe
from recipesnap.services.camera import CameraHandle, CameraPermission
from recipesnap.services.image_service import EncodedImage


class InputMode(str, Enum):
    UPLOAD = "upload"
    CAMERA = "camera"


class Phase(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    CAMERA_ACTIVE = "camera_active"
    IMAGE_READY = "image_ready"


@dataclass(frozen=True)
class RequestTag:
    """Identifies one in-flight AI request and the image it was issued for."""

    seq: int
    image_id: str


@dataclass(frozen=True)
class SessionState:
    image: Optional[EncodedImage] = None
    food_items: Optional[tuple[str, ...]] = None
    recipe: Optional[Recipe] = None
    input_mode: InputMode = InputMode.UPLOAD
    phase: Phase = Phase.IDLE
    identify_in_flight: bool = False
    recipe_in_flight: bool = False
    identify_tag: Optional[RequestTag] = None
    recipe_tag: Optional[RequestTag] = None
    camera_permission: CameraPermission = CameraPermission.UNKNOWN
    camera: Optional[CameraHandle] = field(default=None, compare=False)
    # Bumped whenever the file input must be rendered empty again
    file_input_token: int = 0

    @property
    def has_image(self) -> bool:
        return self.image is not None

    @property
    def busy(self) -> bool:
        return self.identify_in_flight or self.recipe_in_flight


# =============================================================================
# EVENTS
# =============================================================================


@dataclass(frozen=True)
class FileSelected:
    pass


@dataclass(frozen=True)
class FileRead:
    image: EncodedImage


@dataclass(frozen=True)
class FileReadFailed:
    pass


@dataclass(frozen=True)
class CameraRequested:
    pass


@dataclass(frozen=True)
class CameraGranted:
    handle: CameraHandle


@dataclass(frozen=True)
class CameraDenied:
    pass


@dataclass(frozen=True)
class FrameCaptured:
    image: EncodedImage


@dataclass(frozen=True)
class CameraCancelled:
    pass


@dataclass(frozen=True)
class ModeSwitched:
    mode: InputMode


@dataclass(frozen=True)
class Cleared:
    pass


@dataclass(frozen=True)
class TornDown:
    pass


@dataclass(frozen=True)
class IdentifyStarted:
    tag: RequestTag


@dataclass(frozen=True)
class IdentifySucceeded:
    tag: RequestTag
    food_items: tuple[str, ...]


@dataclass(frozen=True)
class IdentifyFailed:
    tag: RequestTag


@dataclass(frozen=True)
class RecipeStarted:
    tag: RequestTag


@dataclass(frozen=True)
class RecipeSucceeded:
    tag: RequestTag
    recipe: Recipe


@dataclass(frozen=True)
class RecipeFailed:
    tag: RequestTag


Event = Union[
    FileSelected,
    FileRead,
    FileReadFailed,
    CameraRequested,
    CameraGranted,
    CameraDenied,
    FrameCaptured,
    CameraCancelled,
    ModeSwitched,
    Cleared,
    TornDown,
    IdentifyStarted,
    IdentifySucceeded,
    IdentifyFailed,
    RecipeStarted,
    RecipeSucceeded,
    RecipeFailed,
]


# =============================================================================
# TRANSITIONS
# =============================================================================


def _reset_acquisition(state: SessionState, **changes) -> SessionState:
    """Drop the image, its results, the camera and the file input value."""
    return replace(
        state,
        image=None,
        food_items=None,
        recipe=None,
        camera=None,
        file_input_token=state.file_input_token + 1,
        **changes,
    )


def _with_new_image(state: SessionState, image: EncodedImage, **changes) -> SessionState:
    return replace(
        state,
        image=image,
        food_items=None,
        recipe=None,
        camera=None,
        phase=Phase.IMAGE_READY,
        **changes,
    )


def is_current(state: SessionState, tag: RequestTag) -> bool:
    """True if tag was issued against the image the session still holds."""
    return state.image is not None and state.image.image_id == tag.image_id


def reduce(state: SessionState, event: Event) -> SessionState:
    """Return the state that follows `event`."""
    # --- Upload path ---
    if isinstance(event, FileSelected):
        return replace(
            state, input_mode=InputMode.UPLOAD, phase=Phase.FILE_SELECTED, camera=None
        )

    if isinstance(event, FileRead):
        return _with_new_image(state, event.image, input_mode=InputMode.UPLOAD)

    if isinstance(event, FileReadFailed):
        return replace(
            state,
            phase=Phase.IMAGE_READY if state.image else Phase.IDLE,
            file_input_token=state.file_input_token + 1,
        )

    # --- Camera path ---
    if isinstance(event, CameraRequested):
        denied = state.camera_permission == CameraPermission.DENIED
        return _reset_acquisition(
            state,
            input_mode=InputMode.CAMERA,
            phase=Phase.IDLE if denied else Phase.CAMERA_ACTIVE,
        )

    if isinstance(event, CameraGranted):
        if state.input_mode != InputMode.CAMERA or state.phase != Phase.CAMERA_ACTIVE:
            # Camera mode was left while the browser was asking; keep nothing
            return replace(state, camera_permission=CameraPermission.GRANTED)
        return replace(
            state, camera_permission=CameraPermission.GRANTED, camera=event.handle
        )

    if isinstance(event, CameraDenied):
        return replace(
            state,
            camera_permission=CameraPermission.DENIED,
            camera=None,
            phase=Phase.IMAGE_READY if state.image else Phase.IDLE,
        )

    if isinstance(event, FrameCaptured):
        return _with_new_image(state, event.image)

    if isinstance(event, CameraCancelled):
        return replace(
            state,
            camera=None,
            phase=Phase.IMAGE_READY if state.image else Phase.IDLE,
        )

    # --- Mode switch, clear, teardown ---
    if isinstance(event, ModeSwitched):
        return _reset_acquisition(state, input_mode=event.mode, phase=Phase.IDLE)

    if isinstance(event, Cleared):
        return _reset_acquisition(state, phase=Phase.IDLE)

    if isinstance(event, TornDown):
        return SessionState(file_input_token=state.file_input_token + 1)

    # --- Identify ---
    if isinstance(event, IdentifyStarted):
        return replace(
            state,
            identify_in_flight=True,
            identify_tag=event.tag,
            food_items=None,
            recipe=None,
        )

    if isinstance(event, (IdentifySucceeded, IdentifyFailed)):
        if state.identify_tag != event.tag:
            # Superseded by a newer identify request
            return state
        done = replace(state, identify_in_flight=False, identify_tag=None)
        if isinstance(event, IdentifySucceeded) and is_current(state, event.tag):
            return replace(done, food_items=tuple(event.food_items))
        return done

    # --- Recipe ---
    if isinstance(event, RecipeStarted):
        return replace(
            state, recipe_in_flight=True, recipe_tag=event.tag, recipe=None
        )

    if isinstance(event, (RecipeSucceeded, RecipeFailed)):
        if state.recipe_tag != event.tag:
            return state
        done = replace(state, recipe_in_flight=False, recipe_tag=None)
        if isinstance(event, RecipeSucceeded) and is_current(state, event.tag):
            return replace(done, recipe=event.recipe)
        return done

    raise ValueError(f"Unknown session event: {event!r}")
