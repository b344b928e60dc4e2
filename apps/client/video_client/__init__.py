"""Client side of the video sample: HTTP adapter and call controller."""
from __future__ import annotations

from .api_client import APIClient, APIResult, ResponseEncoding, build_query_string
from .controller import CallConfig, UiState, VideoCallController

__all__ = [
    "APIClient",
    "APIResult",
    "CallConfig",
    "ResponseEncoding",
    "UiState",
    "VideoCallController",
    "build_query_string",
]
