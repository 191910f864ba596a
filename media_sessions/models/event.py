"""Messages, events and effects flowing through Media Sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from media_sessions.constants import (
    ATTR_ACTION,
    ATTR_ID,
    ATTR_MSG_TYPE,
    ATTR_STATUS,
    ATTR_VALUE,
    MESSAGE_ACTION_STATUS,
)

from .enums import CallbackType, EventType
from .errors import InvalidMessageError


@dataclass(frozen=True, slots=True)
class StatusMessage:
    """One inbound status message from the engine, addressed to a session."""

    session_id: str
    msg_type: int
    value: Any = None

    @classmethod
    def from_engine_message(cls, msg: Any) -> StatusMessage:
        """Parse a raw message as delivered by the engine message channel.

        :raises InvalidMessageError: if the message violates the channel contract.
        """
        if not isinstance(msg, dict):
            raise InvalidMessageError(f"Unknown media message: {msg!r}")
        action = msg.get(ATTR_ACTION)
        if action != MESSAGE_ACTION_STATUS:
            raise InvalidMessageError(f"Unknown media action {action}")
        status = msg.get(ATTR_STATUS)
        if not isinstance(status, dict) or ATTR_ID not in status or ATTR_MSG_TYPE not in status:
            raise InvalidMessageError(f"Malformed status message: {msg!r}")
        return cls(
            session_id=str(status[ATTR_ID]),
            msg_type=status[ATTR_MSG_TYPE],
            value=status.get(ATTR_VALUE),
        )


@dataclass(frozen=True, slots=True)
class SessionEvent:
    """Event signaled to subscribers of the controller event bus."""

    event: EventType
    object_id: str | None = None
    data: Any = None


# Effects produced by the (pure) transition functions and executed by the session.


@dataclass(frozen=True, slots=True)
class CallbackEffect:
    """Invoke one of the session callbacks."""

    callback: CallbackType
    args: tuple[Any, ...] = ()


@dataclass(frozen=True, slots=True)
class TrackPositionEffect:
    """(Re)start the position tracking loop."""


@dataclass(frozen=True, slots=True)
class SignalEffect:
    """Signal an event on the controller event bus."""

    event: EventType


@dataclass(frozen=True, slots=True)
class DiagnosticEffect:
    """Log a non-fatal diagnostic."""

    msg: str
    args: tuple[Any, ...] = field(default_factory=tuple)


Effect = CallbackEffect | TrackPositionEffect | SignalEffect | DiagnosticEffect
