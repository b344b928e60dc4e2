"""Thin pass-through to the Twilio Video management API.

Every method maps to a single outbound call. The twilio client is blocking,
so calls are pushed to the default executor to keep the event loop free.
"""
from __future__ import annotations

import asyncio
import json
import logging
from functools import partial
from typing import Any, Callable, TypeVar
from urllib.parse import urlencode

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

from ..core.config import Settings
from ..schemas.video import RecordingSummary, RoomResponse
from .errors import NoGroupingSidsError, VideoServiceError

VIDEO_API_BASE = "https://video.twilio.com/v1"
COMPOSITION_RESOLUTION = "1280x720"
COMPOSITION_FORMAT = "mp4"
ROOM_EXISTS_ERROR = 53113

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VideoService:
    """Room, composition and recording calls against Twilio.

    Rooms and recordings use the account sid / auth token pair; compositions
    and media lookups are signed with the API key pair.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        account_client: Client | None = None,
        key_client: Client | None = None,
    ) -> None:
        settings.require_credentials()
        self._settings = settings
        self._account_client = account_client or Client(
            settings.twilio_account_sid, settings.twilio_auth_token
        )
        self._key_client = key_client or Client(
            settings.twilio_api_key,
            settings.twilio_api_secret,
            settings.twilio_account_sid,
        )

    async def _run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(func, *args, **kwargs))
        except TwilioException as exc:
            logger.warning("Twilio call %s failed: %s", getattr(func, "__name__", func), exc)
            raise VideoServiceError.from_twilio(exc) from exc
        except Exception as exc:  # noqa: BLE001
            logger.warning("Twilio call %s failed before a response: %s", getattr(func, "__name__", func), exc)
            raise VideoServiceError(str(exc) or exc.__class__.__name__) from exc

    def status_callback_url(self, email: str) -> str:
        base = self._settings.public_base_url.rstrip("/")
        return f"{base}/composition_complete?{urlencode({'email': email})}"

    async def create_room(self, room_name: str, record_room: bool) -> RoomResponse:
        """Create the room, or reuse the in-progress room with the same unique name."""

        rooms = self._account_client.video.v1.rooms
        try:
            room = await self._run(
                rooms.create,
                unique_name=room_name,
                record_participants_on_connect=record_room,
            )
        except VideoServiceError as exc:
            cause = exc.__cause__
            if not (isinstance(cause, TwilioRestException) and cause.code == ROOM_EXISTS_ERROR):
                raise
            logger.info("Room %s already in progress; reusing it", room_name)
            room = await self._run(rooms(room_name).fetch)

        logger.info("Room ready: sid=%s unique_name=%s", room.sid, room.unique_name)
        return RoomResponse.model_validate(room)

    async def create_composition(self, room_id: str, participant_id: str, email: str = "") -> str:
        """Request a single-participant mp4 composition and return its sid."""

        composition = await self._run(
            self._key_client.video.v1.compositions.create,
            room_sid=room_id,
            audio_sources=["*"],
            video_layout={"single": {"video_sources": [participant_id]}},
            status_callback=self.status_callback_url(email),
            resolution=COMPOSITION_RESOLUTION,
            format=COMPOSITION_FORMAT,
        )
        logger.info("Composition %s queued for room %s", composition.sid, room_id)
        return composition.sid

    async def list_recordings(
        self, room_id: str | None = None, participant_id: str | None = None
    ) -> list[RecordingSummary]:
        grouping_sids = [sid for sid in (room_id, participant_id) if sid]
        if not grouping_sids:
            raise NoGroupingSidsError()

        recordings = await self._run(
            self._account_client.video.v1.recordings.list, grouping_sid=grouping_sids
        )
        return [RecordingSummary.model_validate(record) for record in recordings]

    async def composition_media_url(self, composition_id: str) -> str:
        uri = f"{VIDEO_API_BASE}/Compositions/{composition_id}/Media"
        return await self._media_redirect(uri, {"Ttl": self._settings.composition_media_ttl})

    async def recording_media_url(self, room_id: str, recording_id: str) -> str:
        uri = f"{VIDEO_API_BASE}/Rooms/{room_id}/Recordings/{recording_id}/Media"
        return await self._media_redirect(uri, None)

    async def _media_redirect(self, uri: str, params: dict[str, Any] | None) -> str:
        response = await self._run(self._key_client.request, "GET", uri, params=params)

        try:
            body = json.loads(response.text)
        except (TypeError, ValueError) as exc:
            raise VideoServiceError(f"Unexpected media response from {uri}") from exc
        if not isinstance(body, dict):
            raise VideoServiceError(f"Unexpected media response from {uri}")

        if response.status_code >= 400:
            raise VideoServiceError(str(body.get("message") or f"Media lookup failed ({response.status_code})"))

        redirect_to = body.get("redirect_to")
        if not redirect_to:
            raise VideoServiceError(f"No media location returned for {uri}")
        return redirect_to
