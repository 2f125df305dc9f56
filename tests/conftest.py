"""
Test configuration and fixtures for RecipeSnap.

- Mock Claude service and fake camera handles
- SnapController wired to the mock
- TestClient with the session registry and AI service overridden
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from recipesnap.api.dependencies import SESSION_HEADER, get_ai_service, get_session_registry
from recipesnap.main import app
from recipesnap.services.image_service import EncodedImage, ImageService
from recipesnap.services.session_store import SessionRegistry
from recipesnap.services.snap_controller import SnapController
from tests.fixtures.mocks import (
    FakeCameraHandle,
    MockClaudeService,
    make_image_bytes,
    session_id_from_page,
)


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_claude_service() -> MockClaudeService:
    """
    Mock Claude service for testing AI functionality.

    Returns a mock service that can be configured per test.
    """
    return MockClaudeService()


@pytest.fixture
def camera_handle() -> FakeCameraHandle:
    return FakeCameraHandle(track_count=2)


@pytest.fixture
def image_a() -> EncodedImage:
    return EncodedImage.from_bytes(make_image_bytes("PNG", color="red"), "image/png")


@pytest.fixture
def image_b() -> EncodedImage:
    return EncodedImage.from_bytes(make_image_bytes("PNG", color="blue"), "image/png")


# =============================================================================
# Controller Fixtures
# =============================================================================


@pytest.fixture
def controller(mock_claude_service: MockClaudeService) -> SnapController:
    """SnapController backed by the mock Claude service."""
    return SnapController(mock_claude_service, image_service=ImageService())


# =============================================================================
# HTTP Fixtures
# =============================================================================


@pytest.fixture
def registry(mock_claude_service: MockClaudeService) -> SessionRegistry:
    return SessionRegistry(lambda: SnapController(mock_claude_service))


@pytest.fixture
def client(
    registry: SessionRegistry, mock_claude_service: MockClaudeService
) -> Generator[TestClient, None, None]:
    """
    TestClient with an isolated session registry and the mock AI service.

    Loads the home page first and sends its session id with every request.
    """
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_ai_service] = lambda: mock_claude_service

    with TestClient(app) as test_client:
        # Set default Referer so CSRF Origin middleware allows requests
        test_client.headers["referer"] = "http://testserver/"
        page = test_client.get("/")
        test_client.headers[SESSION_HEADER] = session_id_from_page(page.text)
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# pytest markers
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line(
        "markers", "security: marks tests as security tests (deselect with '-m not security')"
    )
