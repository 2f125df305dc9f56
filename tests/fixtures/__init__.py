"""Test fixtures for RecipeSnap."""

from tests.fixtures.mocks import (
    MockClaudeService,
    FakeCameraHandle,
    create_mock_upload_file,
    make_claude_response,
    make_image_bytes,
    session_id_from_page,
)

__all__ = [
    "MockClaudeService",
    "FakeCameraHandle",
    "create_mock_upload_file",
    "make_claude_response",
    "make_image_bytes",
    "session_id_from_page",
]
