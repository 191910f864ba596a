"""Snapshot of the logical playback state of a session."""

from __future__ import annotations

from dataclasses import dataclass

from mashumaro import DataClassDictMixin

from media_sessions.constants import UNKNOWN_DURATION, UNKNOWN_POSITION

from .enums import MediaState


@dataclass(frozen=True)
class PlaybackSnapshot(DataClassDictMixin):
    """Immutable playback state of a session.

    The boolean flags are projections of ``state``: exactly one of them is set,
    except while fading out where ``playing`` stays set. ``paused`` may also be
    set as local (optimistic) intent until the next state message arrives.
    """

    state: MediaState = MediaState.NONE
    position: float = UNKNOWN_POSITION
    duration: float = UNKNOWN_DURATION
    remaining: float = UNKNOWN_POSITION
    loading: bool = False
    playing: bool = False
    paused: bool = True
    stopped: bool = False
    ended: bool = False
    # set once the end of playback has been notified, until playback restarts
    end_notified: bool = False

    @property
    def is_active(self) -> bool:
        """Return if audio is (logically) being played."""
        return self.state in (MediaState.RUNNING, MediaState.FADING_OUT)
