"""FastAPI dependencies shared by the video routes."""
from __future__ import annotations

from fastapi import Depends, Request

from .core.config import Settings, get_settings
from .services.callbacks import CompositionNotifier, LoggingNotifier
from .services.errors import MissingParameterError
from .services.video import VideoService

RequestParams = dict[str, str]

_default_notifier = LoggingNotifier()


async def request_params(request: Request) -> RequestParams:
    """Merge query-string and form-body parameters, form values winning.

    Clients post their arguments in the query string while Twilio posts
    status callbacks as form bodies, so routes accept both.
    """

    params: RequestParams = dict(request.query_params)
    content_type = request.headers.get("content-type", "")
    if request.method in {"POST", "PUT", "PATCH"} and (
        content_type.startswith("application/x-www-form-urlencoded")
        or content_type.startswith("multipart/form-data")
    ):
        form = await request.form()
        for key, value in form.items():
            if isinstance(value, str):
                params[key] = value
    return params


def require_param(params: RequestParams, name: str) -> str:
    value = params.get(name, "").strip()
    if not value:
        raise MissingParameterError(f"Missing required parameter: {name}")
    return value


def get_video_service(settings: Settings = Depends(get_settings)) -> VideoService:
    """Build the Twilio-backed service; raises ConfigurationError on missing credentials."""

    return VideoService(settings)


def get_notifier() -> CompositionNotifier:
    return _default_notifier
