"""
FadeController: per-session fade-in/fade-out logic.

Called once per position tracking tick. Decides whether the session is inside
a fade-in or fade-out window, computes the equal-power gain and sends the
scaled volume to the engine. Entering the fade-out window is notified exactly
once (guarded by the fading out latch) and a fade-out that reaches its end
stops the session.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from media_sessions.constants import LOGGER_NAME, VERBOSE_LOG_LEVEL
from media_sessions.helpers.fades import fade_in_factor, fade_out_factor
from media_sessions.models.enums import FadeAction
from media_sessions.models.fade import NO_FADE, FadeConfig, FadeStep

if TYPE_CHECKING:
    from media_sessions.models.session import MediaSession

LOGGER = logging.getLogger(f"{LOGGER_NAME}.fades")


class FadeController:
    """Owns the fade configuration and the fading out latch of a session."""

    def __init__(self, session: MediaSession, config: FadeConfig) -> None:
        """Initialize the fade controller."""
        self.session = session
        self.config = config
        self.fading_out = False
        self.end_position: float | None = None
        self._stop_requested = False

    @property
    def fade_end_epsilon(self) -> float:
        """Return the gap below which a fade-out is considered complete."""
        return self.session.media.config.values.fade_end_epsilon

    @property
    def notify_forced_fade_out(self) -> bool:
        """Return if a forced fade-out latches and notifies like a natural one."""
        return self.session.media.config.values.notify_forced_fade_out

    def set_force_fade_out(self, value: bool) -> None:
        """Request (or cancel) an immediate fade-out."""
        self.config.force_fade_out = value
        if not value:
            self.end_position = None
            return
        end_position = max(self.session.position, 0.0) + self.config.fade_window_seconds
        if self.session.duration > 0:
            end_position = min(end_position, self.session.duration)
        self.end_position = end_position
        LOGGER.debug(
            "Forced fade out requested for session %s, ending at %.2f",
            self.session.session_id,
            end_position,
        )

    def reset(self) -> None:
        """Clear the forced fade out and fading out latches."""
        self.config.force_fade_out = False
        self.fading_out = False
        self.end_position = None

    def on_playback_start(self) -> None:
        """Rearm the fade-out completion for a new playback run."""
        self._stop_requested = False

    def evaluate(self) -> FadeStep:
        """Evaluate the fade windows against the current position."""
        if self._stop_requested:
            return NO_FADE
        window = self.config.fade_window_seconds
        if window <= 0:
            return NO_FADE
        position = self.session.position
        remaining = self.session.remaining
        duration = self.session.duration

        gaps: list[float] = []
        natural = (
            self.config.fade_out_enabled and duration > 0 and 0 <= remaining <= window
        )
        if natural:
            gaps.append(remaining)
        forced = False
        if self.config.force_fade_out and self.end_position is not None:
            forced = self.end_position - position <= window
            if forced:
                gaps.append(self.end_position - position)

        if gaps:
            # fade-out takes precedence over fade-in: it is the one that stops playback
            gap = min(gaps)
            enter = not self.fading_out and (natural or self.notify_forced_fade_out)
            if gap < self.fade_end_epsilon:
                return FadeStep(FadeAction.STOP, 0.0, enter)
            return FadeStep(FadeAction.FADE_OUT, fade_out_factor(gap, window), enter)

        if self.config.fade_in_enabled and 0 <= position < window:
            return FadeStep(FadeAction.FADE_IN, fade_in_factor(position, window))
        return NO_FADE

    async def tick(self) -> FadeStep:
        """Run the fade logic for one tick, issuing at most one volume command."""
        step = self.evaluate()
        if step.enter_fade_out:
            self.fading_out = True
            LOGGER.debug(
                "Session %s entering fade out at position %.2f",
                self.session.session_id,
                self.session.position,
            )
            self.session.enter_fade_out()
        if step.action == FadeAction.STOP:
            LOGGER.debug("Fade out of session %s reached its end", self.session.session_id)
            await self.session.stop()
            self._stop_requested = True
        elif step.action in (FadeAction.FADE_IN, FadeAction.FADE_OUT):
            LOGGER.log(
                VERBOSE_LOG_LEVEL,
                "%s session %s - gain %.3f",
                step.action.value,
                self.session.session_id,
                step.factor,
            )
            await self.session.set_fade_volume(step.factor)
        return step
