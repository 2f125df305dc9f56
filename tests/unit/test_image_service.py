"""
Unit tests for image_service.

Covers upload validation, camera frame rasterization and the
EncodedImage value type.
"""

import base64
from io import BytesIO

import pytest
from PIL import Image

from recipesnap.services.camera import CaptureNotReadyError
from recipesnap.services.image_service import (
    EncodedImage,
    ImageService,
    InvalidImageError,
)
from tests.fixtures.mocks import create_mock_upload_file, make_image_bytes


@pytest.fixture
def service():
    return ImageService(max_upload_bytes=1024 * 1024)


# =============================================================================
# Uploads
# =============================================================================


class TestEncodeUpload:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content_type,filename",
        [
            ("image/png", "test.png"),
            ("image/jpeg", "test.jpg"),
            ("image/webp", "test.webp"),
        ],
    )
    async def test_valid_types(self, service, content_type, filename):
        upload = create_mock_upload_file(content_type, filename)

        image = await service.encode_upload(upload)

        assert image.media_type == content_type
        assert image.data_uri.startswith(f"data:{content_type};base64,")

    @pytest.mark.asyncio
    async def test_content_kept_unchanged(self, service):
        content = make_image_bytes("PNG", color="green")
        upload = create_mock_upload_file("image/png", "green.png", content)

        image = await service.encode_upload(upload)

        assert base64.standard_b64decode(image.data) == content

    @pytest.mark.asyncio
    async def test_jpg_alias(self, service):
        upload = create_mock_upload_file("image/jpg", "test.jpg")

        image = await service.encode_upload(upload)

        assert image.media_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_invalid_type(self, service):
        upload = create_mock_upload_file("application/pdf", "test.pdf", b"%PDF-1.4")

        with pytest.raises(InvalidImageError, match="Invalid file type"):
            await service.encode_upload(upload)

    @pytest.mark.asyncio
    async def test_empty_file(self, service):
        upload = create_mock_upload_file("image/png", "empty.png", b"")

        with pytest.raises(InvalidImageError, match="empty"):
            await service.encode_upload(upload)

    @pytest.mark.asyncio
    async def test_too_large(self):
        service = ImageService(max_upload_bytes=10)
        upload = create_mock_upload_file("image/png", "big.png")

        with pytest.raises(InvalidImageError, match="too large"):
            await service.encode_upload(upload)


# =============================================================================
# Camera Frames
# =============================================================================


class TestEncodeFrame:
    def test_png_frame_becomes_jpeg(self, service):
        image = service.encode_frame(make_image_bytes("PNG", size=(64, 48)))

        assert image.media_type == "image/jpeg"
        decoded = Image.open(BytesIO(base64.standard_b64decode(image.data)))
        assert decoded.format == "JPEG"
        assert decoded.size == (64, 48)

    def test_rgba_frame(self, service):
        frame = make_image_bytes("PNG", color=(255, 0, 0, 128), mode="RGBA")

        image = service.encode_frame(frame)

        decoded = Image.open(BytesIO(base64.standard_b64decode(image.data)))
        assert decoded.mode == "RGB"

    def test_empty_frame(self, service):
        with pytest.raises(CaptureNotReadyError):
            service.encode_frame(b"")

    def test_unreadable_frame(self, service):
        with pytest.raises(CaptureNotReadyError, match="could not be read"):
            service.encode_frame(b"not an image at all")


# =============================================================================
# EncodedImage
# =============================================================================


class TestEncodedImage:
    def test_data_uri_round_trip(self):
        image = EncodedImage(media_type="image/png", data="iVBORw0KGgo=")

        assert image.data_uri == "data:image/png;base64,iVBORw0KGgo="
        assert EncodedImage.from_data_uri(image.data_uri) == image

    def test_from_data_uri_rejects_plain_text(self):
        with pytest.raises(InvalidImageError):
            EncodedImage.from_data_uri("hello")

    def test_image_id_tracks_content(self, image_a, image_b):
        assert image_a.image_id == EncodedImage(image_a.media_type, image_a.data).image_id
        assert image_a.image_id != image_b.image_id
        assert len(image_a.image_id) == 16
