"""All enums used by the Media Sessions models."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class MediaState(IntEnum):
    """Logical playback state of a session (engine wire values)."""

    NONE = 0
    STARTING = 1
    RUNNING = 2
    PAUSED = 3
    STOPPED = 4
    ENDED = 5
    FADING_OUT = 6

    @property
    def label(self) -> str:
        """Return the human readable name of the state."""
        return _STATE_LABELS[self]

    @classmethod
    def _missing_(cls, value: object) -> MediaState | None:
        # some transports deliver the state as a string
        if isinstance(value, str) and value.isdigit():
            return cls(int(value))
        return None


_STATE_LABELS = {
    MediaState.NONE: "None",
    MediaState.STARTING: "Starting",
    MediaState.RUNNING: "Running",
    MediaState.PAUSED: "Paused",
    MediaState.STOPPED: "Stopped",
    MediaState.ENDED: "Ended",
    MediaState.FADING_OUT: "FadingOut",
}


class MessageType(IntEnum):
    """Kind of status message sent by the engine."""

    STATE = 1
    DURATION = 2
    POSITION = 3
    ERROR = 9


class MediaErrorCode(IntEnum):
    """Error codes reported by the native engine."""

    NONE_ACTIVE = 0
    ABORTED = 1
    NETWORK = 2
    DECODE = 3
    NONE_SUPPORTED = 4


class CallbackType(StrEnum):
    """Per-session callback slots."""

    SUCCESS = "success"
    ERROR = "error"
    STATUS = "status"
    POSITION = "position"


class EventType(StrEnum):
    """Events signaled on the controller event bus."""

    SESSION_ADDED = "session_added"
    SESSION_UPDATED = "session_updated"
    SESSION_REMOVED = "session_removed"
    SESSION_ENDED = "session_ended"
    SESSION_FADING_OUT = "session_fading_out"
    SHUTDOWN = "shutdown"


class FadeAction(StrEnum):
    """Outcome of a single fade evaluation."""

    NONE = "none"
    FADE_IN = "fade_in"
    FADE_OUT = "fade_out"
    STOP = "stop"
