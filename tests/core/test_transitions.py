"""Tests for the session state machine transitions."""

from dataclasses import replace

from media_sessions.helpers.transitions import (
    apply_message,
    enter_fading_out,
    set_local_pause,
    state_flags,
)
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


def state_msg(value: object) -> StatusMessage:
    """Return a STATE message."""
    return StatusMessage("session", MessageType.STATE, value)


def position_msg(value: object) -> StatusMessage:
    """Return a POSITION message."""
    return StatusMessage("session", MessageType.POSITION, value)


def callbacks(effects: list[Effect], callback: CallbackType) -> list[tuple[object, ...]]:
    """Return the args of all callback effects of the given type."""
    return [x.args for x in effects if isinstance(x, CallbackEffect) and x.callback == callback]


def running(duration: float = 100) -> PlaybackSnapshot:
    """Return a snapshot of a running session."""
    return replace(
        PlaybackSnapshot(),
        state=MediaState.RUNNING,
        duration=duration,
        **state_flags(MediaState.RUNNING),
    )


def test_initial_snapshot() -> None:
    """Test the defaults of a fresh session."""
    snapshot = PlaybackSnapshot()
    assert snapshot.state == MediaState.NONE
    assert snapshot.position == -1
    assert snapshot.duration == -1
    assert snapshot.paused
    assert not snapshot.playing
    assert not snapshot.is_active


def test_terminal_state_before_start_is_ignored() -> None:
    """Media that never started must not report ended or stopped."""
    snapshot = PlaybackSnapshot()
    for state in (MediaState.ENDED, MediaState.STOPPED):
        new_snapshot, effects = apply_message(snapshot, state_msg(state))
        assert new_snapshot == snapshot
        assert effects == []

    # unless explicitly configured otherwise
    new_snapshot, effects = apply_message(
        snapshot, state_msg(MediaState.ENDED), suppress_terminal_before_start=False
    )
    assert new_snapshot.state == MediaState.ENDED
    assert callbacks(effects, CallbackType.SUCCESS) == [()]


def test_running_state() -> None:
    """Test the flags and effects of entering RUNNING."""
    snapshot, effects = apply_message(PlaybackSnapshot(), state_msg(2))
    assert snapshot.state == MediaState.RUNNING
    assert snapshot.playing
    assert not snapshot.paused
    assert not snapshot.loading
    assert callbacks(effects, CallbackType.STATUS) == [(MediaState.RUNNING,)]
    assert TrackPositionEffect() in effects
    assert effects[-1] == SignalEffect(EventType.SESSION_UPDATED)


def test_state_as_string() -> None:
    """Some transports deliver the state as a string."""
    snapshot, _ = apply_message(PlaybackSnapshot(), state_msg("3"))
    assert snapshot.state == MediaState.PAUSED
    assert snapshot.paused


def test_unknown_state_value() -> None:
    """An unknown state is a diagnostic, not an error."""
    snapshot = running()
    new_snapshot, effects = apply_message(snapshot, state_msg(42))
    assert new_snapshot == snapshot
    assert len(effects) == 1
    assert isinstance(effects[0], DiagnosticEffect)


def test_unknown_message_type() -> None:
    """Unknown message types are logged and dropped."""
    snapshot = running()
    new_snapshot, effects = apply_message(snapshot, StatusMessage("session", 7, 1))
    assert new_snapshot == snapshot
    assert len(effects) == 1
    assert isinstance(effects[0], DiagnosticEffect)
    assert effects[0].args == (7,)


def test_duration_message() -> None:
    """A duration does not update the remaining time by itself."""
    snapshot, effects = apply_message(
        PlaybackSnapshot(), StatusMessage("session", MessageType.DURATION, "180.5")
    )
    assert snapshot.duration == 180.5
    assert snapshot.remaining == -1
    assert effects == []


def test_error_message() -> None:
    """An ERROR message is passed to the error callback unchanged."""
    snapshot = running()
    new_snapshot, effects = apply_message(
        snapshot, StatusMessage("session", MessageType.ERROR, {"code": 2})
    )
    assert new_snapshot == snapshot
    assert callbacks(effects, CallbackType.ERROR) == [({"code": 2},)]


def test_position_updates_until_end() -> None:
    """The remaining time counts down and the end is notified exactly once."""
    snapshot = running(duration=100)
    remaining: list[object] = []
    success = 0
    for position in (0, 25, 50, 75):
        snapshot, effects = apply_message(snapshot, position_msg(position))
        remaining += [args[0] for args in callbacks(effects, CallbackType.POSITION)]
        success += len(callbacks(effects, CallbackType.SUCCESS))
        assert snapshot.state == MediaState.RUNNING
    assert success == 0

    snapshot, effects = apply_message(snapshot, position_msg(100))
    remaining += [args[0] for args in callbacks(effects, CallbackType.POSITION)]
    assert remaining == [100, 75, 50, 25, 0]
    assert snapshot.state == MediaState.ENDED
    assert snapshot.ended
    assert snapshot.paused
    assert not snapshot.playing
    assert callbacks(effects, CallbackType.STATUS) == [(MediaState.ENDED,)]
    assert callbacks(effects, CallbackType.SUCCESS) == [()]
    assert SignalEffect(EventType.SESSION_ENDED) in effects

    # a repeated end position (or the ENDED state of the engine) does not notify again
    snapshot, effects = apply_message(snapshot, position_msg(100))
    assert callbacks(effects, CallbackType.SUCCESS) == []
    snapshot, effects = apply_message(snapshot, state_msg(MediaState.ENDED))
    assert callbacks(effects, CallbackType.SUCCESS) == []


def test_end_notified_again_after_restart() -> None:
    """Each playback run notifies its end once."""
    snapshot, _ = apply_message(running(duration=10), position_msg(10))
    assert snapshot.end_notified

    snapshot, _ = apply_message(snapshot, state_msg(MediaState.STARTING))
    assert not snapshot.end_notified
    snapshot, _ = apply_message(snapshot, state_msg(MediaState.RUNNING))
    snapshot, effects = apply_message(snapshot, position_msg(10))
    assert callbacks(effects, CallbackType.SUCCESS) == [()]


def test_no_end_detection_without_duration() -> None:
    """Without a known duration the end is only reported by the engine."""
    snapshot, effects = apply_message(running(duration=-1), position_msg(30))
    assert snapshot.state == MediaState.RUNNING
    assert snapshot.remaining == -31
    assert callbacks(effects, CallbackType.SUCCESS) == []

    # position 0 never ends playback, even for media without length
    snapshot, effects = apply_message(running(duration=0.5), position_msg(0))
    assert snapshot.state == MediaState.RUNNING


def test_ended_state_notifies_success() -> None:
    """The ENDED state of the engine notifies success if not done yet."""
    snapshot, effects = apply_message(running(), state_msg(MediaState.ENDED))
    assert snapshot.ended
    assert snapshot.end_notified
    assert callbacks(effects, CallbackType.SUCCESS) == [()]


def test_invalid_position() -> None:
    """An invalid position is a diagnostic."""
    snapshot = running()
    new_snapshot, effects = apply_message(snapshot, position_msg("abc"))
    assert new_snapshot == snapshot
    assert isinstance(effects[0], DiagnosticEffect)


def test_enter_fading_out() -> None:
    """A fading out session is still playing."""
    snapshot, effects = enter_fading_out(running())
    assert snapshot.state == MediaState.FADING_OUT
    assert snapshot.playing
    assert snapshot.is_active
    assert callbacks(effects, CallbackType.STATUS) == [(MediaState.FADING_OUT,)]
    assert SignalEffect(EventType.SESSION_FADING_OUT) in effects


def test_local_pause_keeps_state() -> None:
    """The optimistic pause only sets the flag."""
    snapshot = set_local_pause(running())
    assert snapshot.paused
    assert snapshot.state == MediaState.RUNNING
