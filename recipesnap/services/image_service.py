"""Image acquisition helpers: encode uploads and camera frames as data URIs."""
import base64
import hashlib
import logging
from dataclasses import dataclass
from io import BytesIO

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from recipesnap.config import settings
from recipesnap.services.ai_schemas import DATA_URI_PATTERN, SUPPORTED_MEDIA_TYPES
from recipesnap.services.camera import CaptureNotReadyError

logger = logging.getLogger(__name__)

# Browsers encode canvas.toDataURL('image/jpeg') at 0.92 by default
FRAME_JPEG_QUALITY = 92


@dataclass(frozen=True)
class EncodedImage:
    """One image as a media type plus base64 payload."""

    media_type: str
    data: str

    @classmethod
    def from_bytes(cls, content: bytes, media_type: str) -> "EncodedImage":
        return cls(
            media_type=media_type,
            data=base64.standard_b64encode(content).decode("utf-8"),
        )

    @classmethod
    def from_data_uri(cls, data_uri: str) -> "EncodedImage":
        match = DATA_URI_PATTERN.match(data_uri)
        if not match:
            raise InvalidImageError("Not a base64 data URI")
        return cls(media_type=match.group("media_type"), data=match.group("data"))

    @property
    def data_uri(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"

    @property
    def image_id(self) -> str:
        """Short content digest identifying this image within a session."""
        return hashlib.sha256(self.data.encode("ascii")).hexdigest()[:16]


class ImageService:
    """Turns uploaded files and captured camera frames into EncodedImages."""

    def __init__(self, max_upload_bytes: int | None = None):
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_bytes

    async def encode_upload(self, file: UploadFile) -> EncodedImage:
        """
        Read an uploaded image and encode it unchanged.

        Args:
            file: Uploaded file from FastAPI

        Returns:
            EncodedImage with the upload's media type

        Raises:
            InvalidImageError: If the file type is invalid, or the file is empty or too large
        """
        content_type = file.content_type
        if content_type == "image/jpg":
            content_type = "image/jpeg"
        if content_type not in SUPPORTED_MEDIA_TYPES:
            raise InvalidImageError(
                f"Invalid file type: {file.content_type}. Allowed: {sorted(SUPPORTED_MEDIA_TYPES)}"
            )

        contents = await file.read()
        if not contents:
            raise InvalidImageError("Uploaded file is empty")
        if len(contents) > self.max_upload_bytes:
            raise InvalidImageError(
                f"Image is too large ({len(contents)} bytes, max {self.max_upload_bytes})"
            )

        return EncodedImage.from_bytes(contents, content_type)

    def encode_frame(self, frame: bytes) -> EncodedImage:
        """
        Rasterize a captured video frame into a JPEG still.

        Args:
            frame: Encoded frame as sent by the browser (normally a PNG blob
                   drawn from the video element onto a canvas)

        Returns:
            EncodedImage with media type image/jpeg

        Raises:
            CaptureNotReadyError: If the frame is empty, unreadable or has no pixels
        """
        if not frame:
            raise CaptureNotReadyError("Camera frame has no data yet")

        try:
            with Image.open(BytesIO(frame)) as img:
                if img.width == 0 or img.height == 0:
                    raise CaptureNotReadyError("Camera frame has no pixels yet")

                # JPEG has no alpha channel
                if img.mode == "RGBA":
                    rgb_img = Image.new("RGB", img.size, (0, 0, 0))
                    rgb_img.paste(img, mask=img.split()[3])
                else:
                    rgb_img = img.convert("RGB")

                buffer = BytesIO()
                rgb_img.save(buffer, format="JPEG", quality=FRAME_JPEG_QUALITY)
        except (UnidentifiedImageError, OSError) as e:
            logger.warning("Could not decode camera frame: %s", e)
            raise CaptureNotReadyError("Camera frame could not be read") from e

        return EncodedImage.from_bytes(buffer.getvalue(), "image/jpeg")


class InvalidImageError(ValueError):
    """Uploaded image cannot be used."""

    pass


# Singleton instance
image_service = ImageService()
