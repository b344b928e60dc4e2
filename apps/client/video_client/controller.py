"""Call controller: connect/disconnect flows and SDK room callbacks."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from .api_client import APIClient
from .sdk import RemoteParticipant, Room, VideoSDK, VideoTrack

logger = logging.getLogger(__name__)

ROOM_EVENTS = frozenset(
    {
        "room_did_connect",
        "room_did_disconnect",
        "room_did_fail_to_connect",
        "room_is_reconnecting",
        "room_did_reconnect",
        "participant_did_connect",
        "participant_did_disconnect",
        "did_subscribe_to_video_track",
        "did_unsubscribe_from_video_track",
        "did_subscribe_to_audio_track",
        "did_unsubscribe_from_audio_track",
        "did_fail_to_subscribe_to_track",
        "participant_did_publish_track",
        "participant_did_unpublish_track",
        "participant_did_toggle_track",
    }
)


@dataclass(slots=True)
class CallConfig:
    base_url: str
    username: str
    room_name: str
    record_room: bool = True

    def endpoint(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


@dataclass(slots=True)
class UiState:
    connect_visible: bool = True
    disconnect_visible: bool = False


class VideoCallController:
    """Owns the current room and remote participant for one call screen.

    All state changes happen on the event loop that drives the controller,
    including those triggered by SDK callbacks routed through ``handle_event``.
    """

    def __init__(
        self,
        api_client: APIClient,
        sdk: VideoSDK,
        config: CallConfig,
        *,
        remote_renderer: Any = None,
        on_change: Callable[[UiState], None] | None = None,
    ) -> None:
        self.api_client = api_client
        self.sdk = sdk
        self.config = config
        self.remote_renderer = remote_renderer
        self.on_change = on_change
        self.room: Room | None = None
        self.remote_participant: RemoteParticipant | None = None
        self.ui = UiState()

    def _set_connected(self, connected: bool) -> None:
        self.ui.connect_visible = not connected
        self.ui.disconnect_visible = connected
        if self.on_change:
            self.on_change(self.ui)

    # Connect / disconnect flows

    async def connect(self) -> Room | None:
        """Fetch a token, make sure the room exists, then join it."""

        token = await self.request_token()
        if token is None:
            return None
        await self.create_room()
        logger.debug("Room token: %s", token)
        self.room = self.sdk.connect(token, self.config.room_name, observer=self)
        return self.room

    async def request_token(self) -> str | None:
        result = await self.api_client.perform(
            "GET",
            self.config.endpoint("token"),
            query={"identity": self.config.username, "room": self.config.room_name},
        )
        if not result.ok:
            logger.error("Token creation error: %s", result.error)
            return None
        return result.value

    async def create_room(self) -> dict[str, Any] | None:
        result = await self.api_client.perform(
            "POST",
            self.config.endpoint("create_room"),
            query={
                "room_name": self.config.room_name,
                "record_room": "true" if self.config.record_room else "false",
            },
        )
        if not result.ok:
            logger.error("Room creation error: %s", result.error)
            return None
        try:
            room = json.loads(result.value)
        except (TypeError, ValueError) as exc:
            logger.error("JSON error: %s", exc)
            return None
        logger.info("Room: %s", room)
        return room

    async def disconnect(self) -> str | None:
        """Leave the room and, when recording, request its composition."""

        room = self.room
        if room is not None:
            room.disconnect()
        self.room = None
        self.remote_participant = None
        self._set_connected(False)

        if room is not None and self.config.record_room:
            return await self.create_composition(room)
        return None

    async def create_composition(self, room: Room) -> str | None:
        participant = room.local_participant
        if participant is None or not participant.sid:
            return None
        result = await self.api_client.perform(
            "POST",
            self.config.endpoint("create_composition"),
            query={"room_id": room.sid, "participant_id": participant.sid, "email": ""},
        )
        if not result.ok:
            logger.error("Composition error: %s", result.error)
            return None
        logger.info("Composition ID: %s", result.value)
        return result.value

    # SDK callbacks

    def handle_event(self, name: str, **payload: Any) -> None:
        """Route a named SDK callback to its handler."""

        if name not in ROOM_EVENTS:
            logger.debug("Ignoring unknown room event %s", name)
            return
        getattr(self, name)(**payload)

    def _adopt(self, participant: RemoteParticipant | None) -> None:
        self.remote_participant = participant
        if participant is not None:
            participant.observer = self

    def room_did_connect(self, room: Room) -> None:
        identity = room.local_participant.identity if room.local_participant else ""
        logger.info("Connected to room %s as %s", room.name, identity)
        self._adopt(room.remote_participants[0] if room.remote_participants else None)
        self._set_connected(True)

    def participant_did_connect(self, room: Room, participant: RemoteParticipant) -> None:
        logger.info("Participant %s connected", participant.identity)
        self._adopt(participant)

    def participant_did_disconnect(self, room: Room, participant: RemoteParticipant) -> None:
        logger.info("Room %s, participant %s disconnected", room.name, participant.identity)
        if self.remote_participant is participant:
            self.remote_participant = None

    def room_did_disconnect(self, room: Room, error: Exception | None = None) -> None:
        logger.info("Disconnected from room %s, error = %s", room.name, error)

    def room_did_fail_to_connect(self, room: Room, error: Exception) -> None:
        logger.error("Failed to connect to room with error = %s", error)

    def room_is_reconnecting(self, room: Room, error: Exception) -> None:
        logger.warning("Reconnecting to room %s, error = %s", room.name, error)

    def room_did_reconnect(self, room: Room) -> None:
        logger.info("Reconnected to room %s", room.name)

    def did_subscribe_to_video_track(
        self, video_track: VideoTrack, track_name: str, participant: RemoteParticipant
    ) -> None:
        logger.info("Subscribed to %s video track for participant %s", track_name, participant.identity)
        if self.remote_renderer is not None:
            video_track.add_renderer(self.remote_renderer)

    def did_unsubscribe_from_video_track(self, track_name: str, participant: RemoteParticipant, **_: Any) -> None:
        logger.info("Unsubscribed from %s video track for participant %s", track_name, participant.identity)

    def did_subscribe_to_audio_track(self, track_name: str, participant: RemoteParticipant, **_: Any) -> None:
        logger.info("Subscribed to %s audio track for participant %s", track_name, participant.identity)

    def did_unsubscribe_from_audio_track(self, track_name: str, participant: RemoteParticipant, **_: Any) -> None:
        logger.info("Unsubscribed from %s audio track for participant %s", track_name, participant.identity)

    def did_fail_to_subscribe_to_track(self, track_name: str, error: Exception, **_: Any) -> None:
        logger.warning("Failed to subscribe to %s track, error = %s", track_name, error)

    def participant_did_publish_track(self, participant: RemoteParticipant, track_name: str, kind: str) -> None:
        logger.info("Participant %s published %s %s track", participant.identity, track_name, kind)

    def participant_did_unpublish_track(self, participant: RemoteParticipant, track_name: str, kind: str) -> None:
        logger.info("Participant %s unpublished %s %s track", participant.identity, track_name, kind)

    def participant_did_toggle_track(
        self, participant: RemoteParticipant, track_name: str, kind: str, enabled: bool
    ) -> None:
        state = "enabled" if enabled else "disabled"
        logger.info("Participant %s %s %s %s track", participant.identity, state, track_name, kind)
