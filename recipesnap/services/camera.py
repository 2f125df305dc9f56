"""Camera stream handles and permission states."""
import logging
from abc import ABC, abstractmethod
from enum import Enum

logger = logging.getLogger(__name__)


class CameraPermission(str, Enum):
    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"


class CameraHandle(ABC):
    """
    Exclusive handle on a live camera stream.

    The session state holds at most one handle. Whoever drops it from the
    state must call release(), which stops every device track. release() may
    be called more than once.
    """

    @abstractmethod
    def release(self) -> None:
        """Stop all device tracks of the stream."""
        pass

    @property
    @abstractmethod
    def active_tracks(self) -> int:
        """Number of device tracks still running."""
        pass


class BrowserCameraHandle(CameraHandle):
    """
    Server-side proxy for a MediaStream owned by the page.

    The page cannot be reached directly, so release() only records the
    command; the HTTP layer forwards it as a camera-release event and the
    page script stops the stream's tracks.
    """

    def __init__(self, stream_id: str, track_count: int = 1):
        self.stream_id = stream_id
        self._track_count = max(track_count, 0)
        self._released = False

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        logger.info(
            "Releasing camera stream %s (%d tracks)", self.stream_id, self._track_count
        )
        self._track_count = 0

    @property
    def released(self) -> bool:
        return self._released

    @property
    def active_tracks(self) -> int:
        return self._track_count

    def __repr__(self) -> str:
        return f"BrowserCameraHandle(stream_id={self.stream_id!r}, released={self._released})"


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class CameraAccessError(Exception):
    """Camera permission denied or device unavailable."""

    pass


class CaptureNotReadyError(Exception):
    """Frame captured before the video stream has data."""

    pass
