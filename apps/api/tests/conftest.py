"""Shared fakes standing in for the twilio REST client."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable

import pytest
from twilio.base.exceptions import TwilioRestException

from video_api.core.config import Settings

ROOMS_URI = "https://video.twilio.com/v1/Rooms"


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "twilio_account_sid": "AC" + "0" * 32,
        "twilio_api_key": "SK" + "0" * 32,
        "twilio_api_secret": "api-secret",
        "twilio_auth_token": "auth-token",
        "public_base_url": "https://video.example.com",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeRooms:
    def __init__(self) -> None:
        self.rooms: dict[str, SimpleNamespace] = {}
        self.create_calls: list[dict[str, Any]] = []
        self.error: TwilioRestException | None = None

    def create(self, **kwargs: Any) -> SimpleNamespace:
        self.create_calls.append(kwargs)
        if self.error is not None:
            raise self.error
        name = kwargs["unique_name"]
        if name in self.rooms:
            raise TwilioRestException(400, ROOMS_URI, msg=f"Room exists: {name}", code=53113, method="POST")
        now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        room = SimpleNamespace(
            sid=f"RM{len(self.rooms) + 1:032d}",
            unique_name=name,
            status="in-progress",
            date_created=now,
            date_updated=now,
            duration=None,
            record_participants_on_connect=kwargs["record_participants_on_connect"],
            url=f"{ROOMS_URI}/{name}",
            links={"recordings": f"{ROOMS_URI}/{name}/Recordings"},
        )
        self.rooms[name] = room
        return room

    def __call__(self, sid: str) -> SimpleNamespace:
        return SimpleNamespace(fetch=lambda: self.rooms[sid])


class FakeCompositions:
    def __init__(self) -> None:
        self.create_calls: list[dict[str, Any]] = []
        self.error: Exception | None = None

    def create(self, **kwargs: Any) -> SimpleNamespace:
        self.create_calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(sid="CJ" + "1" * 32)


class FakeRecordings:
    def __init__(self) -> None:
        self.list_calls: list[dict[str, Any]] = []
        self.error: Exception | None = None

    def list(self, **kwargs: Any) -> list[SimpleNamespace]:
        self.list_calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return [
            SimpleNamespace(
                sid="RT" + "2" * 32,
                date_created=datetime(2024, 5, 1, 12, 5, tzinfo=timezone.utc),
                duration=42,
                links={"media": "https://video.twilio.com/v1/Recordings/RT/Media"},
                grouping_sids={"room_sid": kwargs["grouping_sid"][0]},
                status="completed",
                url="https://video.twilio.com/v1/Recordings/RT",
                type="video",
            )
        ]


class FakeTwilioClient:
    def __init__(self) -> None:
        self.rooms = FakeRooms()
        self.compositions = FakeCompositions()
        self.recordings = FakeRecordings()
        self.video = SimpleNamespace(
            v1=SimpleNamespace(rooms=self.rooms, compositions=self.compositions, recordings=self.recordings)
        )
        self.requests: list[dict[str, Any]] = []
        self.media_status = 302
        self.media_body: dict[str, Any] = {"redirect_to": "https://media.example.com/file.mp4"}
        self.request_error: Exception | None = None

    def request(self, method: str, uri: str, params: dict[str, Any] | None = None, **kwargs: Any) -> SimpleNamespace:
        self.requests.append({"method": method, "uri": uri, "params": params})
        if self.request_error is not None:
            raise self.request_error
        return SimpleNamespace(status_code=self.media_status, text=json.dumps(self.media_body))


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def twilio_client() -> FakeTwilioClient:
    return FakeTwilioClient()
