"""Access token issuance for Twilio Video rooms."""
from __future__ import annotations

import logging

from twilio.jwt.access_token import AccessToken
from twilio.jwt.access_token.grants import VideoGrant

from ..core.config import Settings
from .errors import VideoServiceError

DEFAULT_IDENTITY = "identity"

logger = logging.getLogger(__name__)


def issue_token(settings: Settings, room: str, identity: str = DEFAULT_IDENTITY) -> str:
    """Return a signed JWT that lets ``identity`` join ``room``.

    The grant is scoped to the single named room. Any failure while building
    or signing the token (blank secret, bad key sid) surfaces as a
    ``VideoServiceError`` carrying the library message.
    """

    grant = VideoGrant(room=room)
    try:
        token = AccessToken(
            settings.twilio_account_sid,
            settings.twilio_api_key,
            settings.twilio_api_secret,
            grants=[grant],
            identity=identity,
        )
        jwt = token.to_jwt()
    except Exception as exc:
        logger.warning("Token construction failed for room=%s identity=%s: %s", room, identity, exc)
        raise VideoServiceError(str(exc)) from exc

    if isinstance(jwt, bytes):
        jwt = jwt.decode("utf-8")
    return jwt
