"""Composition status callback handling."""
from __future__ import annotations

import logging
from typing import Protocol

from ..schemas.video import CompositionEvent

COMPOSITION_AVAILABLE = "composition-available"

logger = logging.getLogger(__name__)


class CompositionNotifier(Protocol):
    """Follow-up hook run once a composition's media is ready."""

    async def composition_available(self, event: CompositionEvent) -> None: ...


class LoggingNotifier:
    """Default notifier: records the event and does nothing else.

    Deployments that want to e-mail the participant or copy the media swap
    in their own notifier through ``get_notifier``.
    """

    async def composition_available(self, event: CompositionEvent) -> None:
        logger.info(
            "Composition %s available for room %s (email=%r)",
            event.composition_sid,
            event.room_sid,
            event.email,
        )


async def handle_status_callback(event: CompositionEvent, notifier: CompositionNotifier) -> bool:
    """Dispatch a status callback; return whether the notifier ran."""

    if event.event != COMPOSITION_AVAILABLE:
        logger.debug("Ignoring composition callback event %s", event.event)
        return False

    await notifier.composition_available(event)
    return True
