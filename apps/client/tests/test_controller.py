"""Tests for the call controller with a fake SDK and a mocked backend."""
from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from video_client.api_client import APIClient
from video_client.controller import CallConfig, UiState, VideoCallController

BASE_URL = "https://video.example.com"


class FakeRoom:
    def __init__(self, name: str, remote_participants=None) -> None:
        self.sid = "RM1"
        self.name = name
        self.local_participant = SimpleNamespace(sid="PA-local", identity="alice")
        self.remote_participants = remote_participants or []
        self.disconnected = False

    def disconnect(self) -> None:
        self.disconnected = True


class FakeSDK:
    def __init__(self) -> None:
        self.connects: list[tuple[str, str, object]] = []
        self.room: FakeRoom | None = None

    def connect(self, token: str, room_name: str, observer: object) -> FakeRoom:
        self.connects.append((token, room_name, observer))
        self.room = FakeRoom(room_name)
        return self.room


class FakeTrack:
    def __init__(self) -> None:
        self.renderers: list[object] = []

    def add_renderer(self, renderer: object) -> None:
        self.renderers.append(renderer)


class Backend:
    """Records requests and answers like the video API."""

    def __init__(self, *, token_status: int = 200, room_status: int = 200) -> None:
        self.requests: list[httpx.Request] = []
        self.token_status = token_status
        self.room_status = room_status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/token":
            if self.token_status != 200:
                return httpx.Response(self.token_status, text="JWT does not have a signing key configured.")
            return httpx.Response(200, text="jwt-token")
        if path == "/create_room":
            if self.room_status != 200:
                return httpx.Response(self.room_status, text="Room error")
            return httpx.Response(200, text=json.dumps({"sid": "RM1", "unique_name": "standup"}))
        if path == "/create_composition":
            return httpx.Response(200, text="CJ1")
        return httpx.Response(404)

    @property
    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


def make_controller(backend: Backend, sdk: FakeSDK, *, record_room: bool = True, **kwargs) -> VideoCallController:
    api_client = APIClient(transport=httpx.MockTransport(backend))
    config = CallConfig(base_url=BASE_URL, username="alice", room_name="standup", record_room=record_room)
    return VideoCallController(api_client, sdk, config, **kwargs)


@pytest.mark.asyncio
async def test_connect_fetches_token_creates_room_then_joins() -> None:
    backend = Backend()
    sdk = FakeSDK()
    controller = make_controller(backend, sdk)

    room = await controller.connect()

    assert backend.paths == ["/token", "/create_room"]
    assert dict(backend.requests[0].url.params) == {"identity": "alice", "room": "standup"}
    assert backend.requests[1].method == "POST"
    assert dict(backend.requests[1].url.params) == {"room_name": "standup", "record_room": "true"}
    assert sdk.connects == [("jwt-token", "standup", controller)]
    assert controller.room is room


@pytest.mark.asyncio
async def test_connect_stops_when_token_fails() -> None:
    backend = Backend(token_status=403)
    sdk = FakeSDK()
    controller = make_controller(backend, sdk)

    assert await controller.connect() is None

    assert backend.paths == ["/token"]
    assert sdk.connects == []


@pytest.mark.asyncio
async def test_connect_still_joins_when_room_creation_fails() -> None:
    backend = Backend(room_status=403)
    sdk = FakeSDK()
    controller = make_controller(backend, sdk, record_room=False)

    await controller.connect()

    assert dict(backend.requests[1].url.params)["record_room"] == "false"
    assert len(sdk.connects) == 1


@pytest.mark.asyncio
async def test_disconnect_requests_composition_when_recording() -> None:
    backend = Backend()
    sdk = FakeSDK()
    states: list[tuple[bool, bool]] = []
    controller = make_controller(
        backend, sdk, on_change=lambda ui: states.append((ui.connect_visible, ui.disconnect_visible))
    )
    await controller.connect()
    controller.handle_event("room_did_connect", room=sdk.room)

    composition_id = await controller.disconnect()

    assert composition_id == "CJ1"
    assert sdk.room.disconnected
    assert backend.paths[-1] == "/create_composition"
    assert dict(backend.requests[-1].url.params) == {"room_id": "RM1", "participant_id": "PA-local", "email": ""}
    assert controller.room is None
    assert controller.remote_participant is None
    assert states == [(False, True), (True, False)]


@pytest.mark.asyncio
async def test_disconnect_without_recording_skips_composition() -> None:
    backend = Backend()
    sdk = FakeSDK()
    controller = make_controller(backend, sdk, record_room=False)
    await controller.connect()

    assert await controller.disconnect() is None
    assert "/create_composition" not in backend.paths
    assert controller.ui == UiState(connect_visible=True, disconnect_visible=False)


def test_room_events_track_remote_participant() -> None:
    controller = make_controller(Backend(), FakeSDK(), remote_renderer="remote-view")
    first = SimpleNamespace(identity="bob", observer=None)
    second = SimpleNamespace(identity="carol", observer=None)
    room = FakeRoom("standup", remote_participants=[first])

    controller.handle_event("room_did_connect", room=room)
    assert controller.remote_participant is first
    assert first.observer is controller
    assert controller.ui.disconnect_visible

    controller.handle_event("participant_did_connect", room=room, participant=second)
    assert controller.remote_participant is second

    track = FakeTrack()
    controller.handle_event("did_subscribe_to_video_track", video_track=track, track_name="Camera", participant=second)
    assert track.renderers == ["remote-view"]

    controller.handle_event("participant_did_disconnect", room=room, participant=second)
    assert controller.remote_participant is None


def test_unknown_and_logging_only_events_leave_state_alone() -> None:
    controller = make_controller(Backend(), FakeSDK())
    room = FakeRoom("standup")

    controller.handle_event("room_did_teleport", room=room)
    controller.handle_event("room_is_reconnecting", room=room, error=RuntimeError("network"))
    controller.handle_event("room_did_reconnect", room=room)
    controller.handle_event("room_did_disconnect", room=room, error=None)

    assert controller.room is None
    assert controller.ui == UiState()
