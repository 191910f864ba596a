"""
Pure transition functions for the session state machine.

Every function takes the current PlaybackSnapshot plus an input and returns the
new snapshot together with the list of effects the session has to execute, in
order, after storing the new snapshot. No I/O happens here, which keeps the
state machine testable without a live engine.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from media_sessions.models.enums import CallbackType, EventType, MediaState, MessageType
from media_sessions.models.event import (
    CallbackEffect,
    DiagnosticEffect,
    Effect,
    SignalEffect,
    StatusMessage,
    TrackPositionEffect,
)
from media_sessions.models.playback import PlaybackSnapshot

TERMINAL_STATES = (MediaState.ENDED, MediaState.STOPPED)
RESTART_STATES = (MediaState.STARTING, MediaState.RUNNING)


def state_flags(state: MediaState) -> dict[str, bool]:
    """Return the boolean flags projected from a state."""
    return {
        "loading": state == MediaState.STARTING,
        "playing": state in (MediaState.RUNNING, MediaState.FADING_OUT),
        "paused": state == MediaState.PAUSED,
        "stopped": state == MediaState.STOPPED,
        "ended": state == MediaState.ENDED,
    }


def apply_message(
    snapshot: PlaybackSnapshot,
    message: StatusMessage,
    suppress_terminal_before_start: bool = True,
) -> tuple[PlaybackSnapshot, list[Effect]]:
    """Apply one inbound status message to a snapshot."""
    msg_type = message.msg_type
    if msg_type == MessageType.STATE:
        return apply_state(snapshot, message.value, suppress_terminal_before_start)
    if msg_type == MessageType.DURATION:
        return apply_duration(snapshot, message.value)
    if msg_type == MessageType.POSITION:
        return apply_position(snapshot, message.value)
    if msg_type == MessageType.ERROR:
        return snapshot, [CallbackEffect(CallbackType.ERROR, (message.value,))]
    return snapshot, [
        DiagnosticEffect("Unhandled status message type %s for session %s", (msg_type,))
    ]


def apply_state(
    snapshot: PlaybackSnapshot,
    value: Any,
    suppress_terminal_before_start: bool = True,
) -> tuple[PlaybackSnapshot, list[Effect]]:
    """Apply a STATE message."""
    try:
        state = MediaState(value)
    except ValueError:
        return snapshot, [DiagnosticEffect("Unknown media state %s for session %s", (value,))]
    if (
        suppress_terminal_before_start
        and snapshot.state == MediaState.NONE
        and state in TERMINAL_STATES
    ):
        # media that never started must not report ended/stopped
        return snapshot, []
    new_snapshot = replace(snapshot, state=state, **state_flags(state))
    if state in RESTART_STATES:
        new_snapshot = replace(new_snapshot, end_notified=False)
    effects: list[Effect] = [CallbackEffect(CallbackType.STATUS, (state,))]
    if state == MediaState.RUNNING:
        effects.append(TrackPositionEffect())
    if state == MediaState.ENDED and not snapshot.end_notified:
        new_snapshot = replace(new_snapshot, end_notified=True)
        effects.append(CallbackEffect(CallbackType.SUCCESS))
        effects.append(SignalEffect(EventType.SESSION_ENDED))
    effects.append(SignalEffect(EventType.SESSION_UPDATED))
    return new_snapshot, effects


def apply_duration(
    snapshot: PlaybackSnapshot, value: Any
) -> tuple[PlaybackSnapshot, list[Effect]]:
    """Apply a DURATION message.

    The remaining time is only recomputed on the next position update.
    """
    try:
        duration = float(value)
    except (TypeError, ValueError):
        return snapshot, [DiagnosticEffect("Invalid duration %s for session %s", (value,))]
    return replace(snapshot, duration=duration), []


def apply_position(
    snapshot: PlaybackSnapshot, value: Any
) -> tuple[PlaybackSnapshot, list[Effect]]:
    """Apply a POSITION message, detecting the natural end of the media."""
    try:
        position = float(value)
    except (TypeError, ValueError):
        return snapshot, [DiagnosticEffect("Invalid position %s for session %s", (value,))]
    remaining = snapshot.duration - position
    new_snapshot = replace(snapshot, position=position, remaining=remaining)
    effects: list[Effect] = [CallbackEffect(CallbackType.POSITION, (remaining,))]
    if (
        snapshot.duration > 0
        and position > 0
        and remaining <= 0
        and not snapshot.end_notified
    ):
        new_snapshot = replace(
            new_snapshot,
            state=MediaState.ENDED,
            **state_flags(MediaState.ENDED),
            end_notified=True,
        )
        new_snapshot = replace(new_snapshot, paused=True)
        effects.append(CallbackEffect(CallbackType.STATUS, (MediaState.ENDED,)))
        effects.append(CallbackEffect(CallbackType.SUCCESS))
        effects.append(SignalEffect(EventType.SESSION_ENDED))
        effects.append(SignalEffect(EventType.SESSION_UPDATED))
    return new_snapshot, effects


def enter_fading_out(snapshot: PlaybackSnapshot) -> tuple[PlaybackSnapshot, list[Effect]]:
    """Move an active session into the fading out state."""
    new_snapshot = replace(
        snapshot, state=MediaState.FADING_OUT, **state_flags(MediaState.FADING_OUT)
    )
    return new_snapshot, [
        CallbackEffect(CallbackType.STATUS, (MediaState.FADING_OUT,)),
        SignalEffect(EventType.SESSION_FADING_OUT),
        SignalEffect(EventType.SESSION_UPDATED),
    ]


def set_local_pause(snapshot: PlaybackSnapshot) -> PlaybackSnapshot:
    """Record the local intent to pause (superseded by the next state message)."""
    return replace(snapshot, paused=True)


def set_position(snapshot: PlaybackSnapshot, position: float) -> PlaybackSnapshot:
    """Store a position confirmed by a command acknowledgement."""
    return replace(snapshot, position=position)
