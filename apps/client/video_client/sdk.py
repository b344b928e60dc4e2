"""Seams for the vendor video SDK.

Capture, transport and rendering stay inside the SDK; the client only needs
these shapes to join a room and react to its callbacks.
"""
from __future__ import annotations

from typing import Any, Protocol, Sequence


class Participant(Protocol):
    sid: str | None
    identity: str


class RemoteParticipant(Participant, Protocol):
    observer: Any


class Room(Protocol):
    sid: str
    name: str
    local_participant: Participant | None
    remote_participants: Sequence[RemoteParticipant]

    def disconnect(self) -> None: ...


class VideoTrack(Protocol):
    def add_renderer(self, renderer: Any) -> None: ...


class VideoSDK(Protocol):
    def connect(self, token: str, room_name: str, observer: Any) -> Room:
        """Join ``room_name``; room lifecycle events are delivered to ``observer``."""
        ...
