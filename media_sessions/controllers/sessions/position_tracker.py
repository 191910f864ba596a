"""
PositionTracker: cooperative position polling loop of a session.

One loop per active session. Each tick polls the engine for the current
position (awaiting the result, so there is never more than one poll in flight),
applies it like a POSITION message, runs the fade logic and sleeps for the
poll interval. The loop checks the liveness of the session before every tick
and simply ends when the session is no longer playing or has been released:
there is no cancellation, stopping means "do not reschedule".
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from media_sessions.constants import LOGGER_NAME, TASK_ID_POSITION_TRACKER

if TYPE_CHECKING:
    from media_sessions.models.session import MediaSession

LOGGER = logging.getLogger(f"{LOGGER_NAME}.position")


class PositionTracker:
    """Drives the periodic position refresh of a single session."""

    def __init__(self, session: MediaSession) -> None:
        """Initialize the tracker."""
        self.session = session
        self.task_id = TASK_ID_POSITION_TRACKER.format(session_id=session.session_id)
        self.ticks = 0

    @property
    def running(self) -> bool:
        """Return if the tracking loop is alive."""
        task = self.session.media.get_task(self.task_id)
        return task is not None and not task.done()

    def start(self) -> None:
        """Start the tracking loop, unless it is already running."""
        if self.session.released:
            return
        # create_task returns the existing task while it is alive
        self.session.media.create_task(self._track, task_id=self.task_id)

    async def _track(self) -> None:
        LOGGER.debug("Position tracking started for session %s", self.session.session_id)
        while self.session.is_active:
            self.ticks += 1
            position = await self.session.get_current_position()
            if self.session.released:
                break
            # a failed poll was reported to the error callback, the next tick polls again
            if position is not None and self.session.is_active:
                await self.session.fades.tick()
            await asyncio.sleep(self.session.media.config.values.poll_interval)
        LOGGER.debug(
            "Position tracking stopped for session %s (%s)",
            self.session.session_id,
            self.session.state.label,
        )
