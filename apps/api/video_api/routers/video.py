"""Token, room, composition and recording endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from ..core.config import Settings, get_settings
from ..dependencies import RequestParams, get_notifier, get_video_service, request_params, require_param
from ..schemas.video import CompositionEvent, RecordingSummary, RoomResponse
from ..services import tokens as token_service
from ..services.callbacks import CompositionNotifier, handle_status_callback
from ..services.errors import VideoServiceError
from ..services.video import VideoService

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/token", response_class=PlainTextResponse)
async def create_token(
    params: RequestParams = Depends(request_params),
    settings: Settings = Depends(get_settings),
) -> PlainTextResponse:
    """Return an access token granting the identity entry to the named room."""

    identity = params.get("identity") or token_service.DEFAULT_IDENTITY
    room = require_param(params, "room")
    logger.info("Issuing token for identity=%s room=%s", identity, room)
    token = token_service.issue_token(settings, room, identity)
    return PlainTextResponse(token)


@router.post("/create_room", response_model=RoomResponse)
async def create_room(
    params: RequestParams = Depends(request_params),
    service: VideoService = Depends(get_video_service),
) -> RoomResponse:
    """Create (or reuse) a room by unique name."""

    room_name = require_param(params, "room_name")
    record_room = params.get("record_room") == "true"
    return await service.create_room(room_name, record_room)


@router.post("/create_composition", response_class=PlainTextResponse)
async def create_composition(
    params: RequestParams = Depends(request_params),
    service: VideoService = Depends(get_video_service),
) -> PlainTextResponse:
    """Queue a composition of one participant's video over all room audio."""

    room_id = require_param(params, "room_id")
    participant_id = require_param(params, "participant_id")
    email = params.get("email", "")
    composition_sid = await service.create_composition(room_id, participant_id, email)
    return PlainTextResponse(composition_sid)


@router.post("/composition_complete", response_class=PlainTextResponse)
async def composition_complete(
    params: RequestParams = Depends(request_params),
    notifier: CompositionNotifier = Depends(get_notifier),
) -> PlainTextResponse:
    """Twilio status callback for compositions."""

    event = CompositionEvent(
        event=params.get("StatusCallbackEvent", ""),
        composition_sid=params.get("CompositionSid"),
        room_sid=params.get("RoomSid"),
        media_uri=params.get("MediaUri"),
        email=params.get("email", ""),
    )
    try:
        await handle_status_callback(event, notifier)
    except Exception as exc:
        logger.exception("Composition callback failed: %s", exc)
        raise VideoServiceError(str(exc)) from exc
    return PlainTextResponse("")


@router.get("/composition_media", response_class=PlainTextResponse)
async def composition_media(
    params: RequestParams = Depends(request_params),
    service: VideoService = Depends(get_video_service),
) -> PlainTextResponse:
    """Return a short-lived redirect URL for the composition's media file."""

    composition_id = require_param(params, "composition_id")
    return PlainTextResponse(await service.composition_media_url(composition_id))


@router.get("/recordings", response_model=list[RecordingSummary])
async def list_recordings(
    params: RequestParams = Depends(request_params),
    service: VideoService = Depends(get_video_service),
) -> list[RecordingSummary]:
    """List recordings grouped under the given room and/or participant."""

    return await service.list_recordings(params.get("room_id"), params.get("participant_id"))


@router.get("/recorded_media", response_class=PlainTextResponse)
async def recorded_media(
    params: RequestParams = Depends(request_params),
    service: VideoService = Depends(get_video_service),
) -> PlainTextResponse:
    """Return the redirect URL for a single track recording."""

    room_id = require_param(params, "room_id")
    recording_id = require_param(params, "recording_id")
    return PlainTextResponse(await service.recording_media_url(room_id, recording_id))
