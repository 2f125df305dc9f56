"""Unit tests for the in-memory session registry."""

import pytest

from recipesnap.services.session_store import SessionRegistry
from recipesnap.services.snap_controller import SnapController
from recipesnap.services.snap_state import InputMode
from tests.fixtures.mocks import FakeCameraHandle


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timed_registry(mock_claude_service, clock) -> SessionRegistry:
    return SessionRegistry(
        lambda: SnapController(mock_claude_service),
        idle_timeout=60,
        max_sessions=3,
        clock=clock,
    )


def with_live_camera(controller: SnapController) -> FakeCameraHandle:
    handle = FakeCameraHandle()
    controller.enter_camera_mode()
    controller.camera_access_granted(handle)
    return handle


class TestCreateAndGet:
    def test_create(self, registry):
        session_id, controller = registry.create()

        assert session_id in registry
        assert len(registry) == 1
        assert controller.state.image is None

    def test_get_returns_same_controller(self, registry):
        session_id, controller = registry.create()

        assert registry.get(session_id) is controller

    def test_unknown_id_creates_nothing(self, registry):
        assert registry.get("forged-or-expired") is None
        assert len(registry) == 0

    def test_sessions_are_isolated(self, registry):
        _, first = registry.create()
        _, second = registry.create()

        first.switch_mode(InputMode.CAMERA)

        assert second.state.input_mode == InputMode.UPLOAD


class TestIdleExpiry:
    def test_idle_session_expires(self, timed_registry, clock):
        session_id, controller = timed_registry.create()
        handle = with_live_camera(controller)

        clock.now += 61

        assert timed_registry.get(session_id) is None
        assert session_id not in timed_registry
        assert handle.active_tracks == 0

    def test_access_keeps_session_alive(self, timed_registry, clock):
        session_id, controller = timed_registry.create()

        for _ in range(3):
            clock.now += 45
            assert timed_registry.get(session_id) is controller

    def test_create_sweeps_idle_sessions(self, timed_registry, clock):
        stale_id, _ = timed_registry.create()
        clock.now += 61

        timed_registry.create()

        assert stale_id not in timed_registry
        assert len(timed_registry) == 1

    def test_evict_idle_count(self, timed_registry, clock):
        timed_registry.create()
        timed_registry.create()
        clock.now += 30
        fresh_id, _ = timed_registry.create()
        clock.now += 31

        assert timed_registry.evict_idle() == 2
        assert fresh_id in timed_registry


class TestSessionLimit:
    def test_least_recently_used_evicted(self, timed_registry, clock):
        first_id, first = timed_registry.create()
        second_id, _ = timed_registry.create()
        third_id, _ = timed_registry.create()
        handle = with_live_camera(first)

        clock.now += 1
        timed_registry.get(first_id)
        fourth_id, _ = timed_registry.create()

        assert len(timed_registry) == 3
        assert second_id not in timed_registry
        assert first_id in timed_registry
        assert third_id in timed_registry
        assert fourth_id in timed_registry
        assert handle.active_tracks == 1

    def test_never_grows_past_limit(self, timed_registry):
        for _ in range(20):
            timed_registry.create()

        assert len(timed_registry) == 3


class TestDiscard:
    def test_discard_releases_camera(self, registry):
        session_id, controller = registry.create()
        handle = with_live_camera(controller)

        assert registry.discard(session_id)

        assert handle.active_tracks == 0
        assert session_id not in registry

    def test_discard_unknown(self, registry):
        assert not registry.discard("nope")

    def test_close_discards_all(self, registry):
        handles = [with_live_camera(registry.create()[1]) for _ in range(3)]

        registry.close()

        assert len(registry) == 0
        assert all(handle.active_tracks == 0 for handle in handles)
