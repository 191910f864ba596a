"""
Model for a single media session.

A MediaSession is one logical audio playback unit. It holds the caller's intent
(volume, fade configuration, correlation tags) and the logical playback state
derived from the status messages of the engine. The state is only ever changed
through the transition functions in ``media_sessions.helpers.transitions``.

Commands are forwarded to the engine; their failures are reported to the
error callback of the session and never retried. Optimistic local changes
(e.g. ``paused`` on pause) are not rolled back: the next state message from
the engine is the source of truth.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from media_sessions.constants import (
    DEFAULT_INSTANCE_NUMBER,
    DEFAULT_MEDIA_ID,
    DEFAULT_VOLUME,
    VERBOSE_LOG_LEVEL,
)
from media_sessions.controllers.sessions.fades import FadeController
from media_sessions.controllers.sessions.position_tracker import PositionTracker
from media_sessions.helpers.transitions import (
    apply_message,
    enter_fading_out,
    set_local_pause,
    set_position,
)
from media_sessions.models.enums import CallbackType, MediaState, MessageType
from media_sessions.models.errors import EngineError, UnsupportedFeatureError
from media_sessions.models.event import (
    CallbackEffect,
    DiagnosticEffect,
    Effect,
    SignalEffect,
    StatusMessage,
    TrackPositionEffect,
)
from media_sessions.models.fade import FadeConfig
from media_sessions.models.playback import PlaybackSnapshot

if TYPE_CHECKING:
    from media_sessions.controllers.sessions import SessionController
    from media_sessions.models.engine import AudioEngine


@dataclass
class SessionCallbacks:
    """Optional caller-supplied callbacks of a session."""

    # called (without arguments) when the media played until its end
    success: Callable[[], None] | None = None
    # called with the raw engine error code
    error: Callable[[Any], None] | None = None
    # called with the new MediaState
    status: Callable[[MediaState], None] | None = None
    # called with the remaining time (in seconds)
    position: Callable[[float], None] | None = None


class MediaSession:
    """Representation of one audio playback session."""

    def __init__(
        self,
        controller: SessionController,
        session_id: str,
        source: str,
        callbacks: SessionCallbacks | None = None,
        fade_config: FadeConfig | None = None,
    ) -> None:
        """Initialize the session."""
        self.controller = controller
        self.media = controller.media
        self.logger = controller.logger
        self._session_id = session_id
        self._source = source
        self.callbacks = callbacks or SessionCallbacks()
        self.media_id: str = DEFAULT_MEDIA_ID
        self.instance_number: int = DEFAULT_INSTANCE_NUMBER
        self.playlist_index: int | None = None
        self.playback = PlaybackSnapshot()
        self.released = False
        self._volume = DEFAULT_VOLUME
        # the volume (possibly fade scaled) last sent to the engine
        self._applied_volume = DEFAULT_VOLUME
        if fade_config is None:
            fade_config = FadeConfig(
                fade_window_seconds=self.media.config.values.default_fade_window
            )
        self.fades = FadeController(self, fade_config)
        self.tracker = PositionTracker(self)

    @property
    def session_id(self) -> str:
        """Return the (unique) id of the session."""
        return self._session_id

    @property
    def source(self) -> str:
        """Return the source (file name or url) of the session."""
        return self._source

    @property
    def engine(self) -> AudioEngine:
        """Return the engine the session is playing on."""
        return self.controller.engine

    @property
    def state(self) -> MediaState:
        """Return the logical playback state."""
        return self.playback.state

    @property
    def state_label(self) -> str:
        """Return the human readable playback state."""
        return self.playback.state.label

    @property
    def position(self) -> float:
        """Return the last known position in seconds (-1 if unknown)."""
        return self.playback.position

    @property
    def duration(self) -> float:
        """Return the duration in seconds (-1 if unknown)."""
        return self.playback.duration

    @property
    def remaining(self) -> float:
        """Return the remaining time in seconds (-1 if unknown)."""
        return self.playback.remaining

    @property
    def loading(self) -> bool:
        """Return if the media is loading."""
        return self.playback.loading

    @property
    def playing(self) -> bool:
        """Return if the media is playing."""
        return self.playback.playing

    @property
    def paused(self) -> bool:
        """Return if the media is paused."""
        return self.playback.paused

    @property
    def stopped(self) -> bool:
        """Return if the media is stopped."""
        return self.playback.stopped

    @property
    def ended(self) -> bool:
        """Return if the media has ended."""
        return self.playback.ended

    @property
    def is_active(self) -> bool:
        """Return if the session is (logically) playing and not released."""
        return self.playback.is_active and not self.released

    @property
    def volume(self) -> float:
        """Return the volume as intended by the caller."""
        return self._volume

    @property
    def fade_config(self) -> FadeConfig:
        """Return the fade configuration."""
        return self.fades.config

    @property
    def fading_out(self) -> bool:
        """Return if the session entered its fade out window."""
        return self.fades.fading_out

    def set_fade_in(self, value: bool) -> None:
        """Enable/disable fading in at the start of the media."""
        self.fades.config.fade_in_enabled = value

    def set_fade_out(self, value: bool) -> None:
        """Enable/disable fading out at the end of the media."""
        self.fades.config.fade_out_enabled = value

    def set_fade_time(self, seconds: float) -> None:
        """Set the length of the fade window."""
        self.fades.config.fade_window_seconds = seconds

    def set_force_fade_out(self, value: bool) -> None:
        """Fade out now, regardless of the remaining time."""
        self.fades.set_force_fade_out(value)

    def set_fading_out(self, value: bool) -> None:
        """Set the fading out latch."""
        self.fades.fading_out = value

    def handle_message(self, message: StatusMessage) -> None:
        """Handle a status message from the engine."""
        if self.released:
            return
        self.playback, effects = apply_message(
            self.playback,
            message,
            self.media.config.values.suppress_terminal_before_start,
        )
        if message.msg_type == MessageType.STATE and self.state in (
            MediaState.STARTING,
            MediaState.RUNNING,
        ):
            self.fades.on_playback_start()
        self._execute(effects)

    def enter_fade_out(self) -> None:
        """Move the session into the fading out state."""
        self.playback, effects = enter_fading_out(self.playback)
        self._execute(effects)

    async def play(self, options: dict[str, Any] | None = None) -> None:
        """Start or resume playing.

        The state is not asserted here; it arrives with the next state messages.
        """
        self.fades.on_playback_start()
        if self._applied_volume != self._volume and not self.fades.config.fade_in_enabled:
            # restore the volume after a previous fade out
            await self._send_volume(self._volume)
        try:
            await self.engine.start_playing(self.session_id, self.source, options)
        except EngineError as err:
            self.handle_engine_error("start_playing", err)

    async def pause(self) -> None:
        """Pause playing."""
        self.playback = set_local_pause(self.playback)
        try:
            await self.engine.pause_playing(self.session_id)
        except EngineError as err:
            self.handle_engine_error("pause_playing", err)

    async def stop(self) -> None:
        """Stop playing."""
        # a stopped session must not be treated as fading out when replayed
        self.fades.reset()
        try:
            await self.engine.stop_playing(self.session_id)
        except EngineError as err:
            self.handle_engine_error("stop_playing", err)
            return
        if not self.released:
            self.playback = set_position(self.playback, 0.0)

    async def seek_to(self, milliseconds: int) -> None:
        """Seek to a new position (in milliseconds)."""
        try:
            position = await self.engine.seek_to(self.session_id, milliseconds)
        except EngineError as err:
            self.handle_engine_error("seek_to", err)
            return
        if not self.released and position is not None:
            self.playback = set_position(self.playback, float(position))

    async def set_volume(self, volume: float) -> None:
        """Set the (caller intended) volume, sent to the engine unscaled."""
        self._volume = volume
        await self._send_volume(volume)

    async def set_fade_volume(self, factor: float) -> None:
        """Send the caller volume scaled by a fade factor to the engine."""
        await self._send_volume(self._volume * factor)

    async def set_rate(self, rate: float) -> None:
        """Set the playback rate, if supported by the engine."""
        if not self.engine.supports_rate:
            self.logger.warning(
                "set_rate is not supported by the engine, ignoring for session %s",
                self.session_id,
            )
            return
        try:
            await self.engine.set_rate(self.session_id, rate)
        except EngineError as err:
            self.handle_engine_error("set_rate", err)

    async def get_current_position(self) -> float | None:
        """Fetch the current position from the engine and apply it.

        Returns None if the engine failed, returned an invalid position or the
        session was released meanwhile.
        """
        try:
            position = await self.engine.get_current_position(self.session_id)
        except EngineError as err:
            self.handle_engine_error("get_current_position", err)
            return None
        if self.released:
            self.logger.debug("Discarding position of released session %s", self.session_id)
            return None
        try:
            value = float(position)
        except (TypeError, ValueError):
            value = None
        # invalid values are logged as a diagnostic by the POSITION rule
        self.handle_message(StatusMessage(self.session_id, MessageType.POSITION, position))
        return value

    async def start_recording(self) -> None:
        """Start recording audio into the source of the session."""
        await self._recording_command("start_recording", self.source)

    async def stop_recording(self) -> None:
        """Stop recording."""
        await self._recording_command("stop_recording")

    async def pause_recording(self) -> None:
        """Pause recording."""
        await self._recording_command("pause_recording")

    async def resume_recording(self) -> None:
        """Resume recording."""
        await self._recording_command("resume_recording")

    async def get_current_amplitude(self) -> float | None:
        """Return the current recording amplitude."""
        return await self._recording_command("get_current_amplitude")

    async def release(self) -> None:
        """Release the session and its engine resources."""
        await self.controller.release(self.session_id)

    def on_release(self) -> None:
        """Handle logic when the session is removed from the registry."""
        self.released = True
        self.fades.reset()

    def handle_engine_error(self, command: str, err: EngineError) -> None:
        """Report a failed engine command to the error callback."""
        self.logger.warning(
            "Engine command %s failed for session %s: %s", command, self.session_id, err
        )
        self._invoke_callback(CallbackType.ERROR, err.code)

    def to_dict(self) -> dict[str, Any]:
        """Return a serializable snapshot of the session."""
        return {
            "session_id": self.session_id,
            "source": self.source,
            "media_id": self.media_id,
            "instance_number": self.instance_number,
            "playlist_index": self.playlist_index,
            "volume": self._volume,
            "fading_out": self.fading_out,
            "fade_config": self.fades.config.to_dict(),
            **self.playback.to_dict(),
        }

    async def _send_volume(self, volume: float) -> None:
        try:
            await self.engine.set_volume(self.session_id, volume)
        except EngineError as err:
            self.handle_engine_error("set_volume", err)
            return
        self._applied_volume = volume

    async def _recording_command(self, command: str, *args: Any) -> Any:
        try:
            return await getattr(self.engine, command)(self.session_id, *args)
        except NotImplementedError as err:
            msg = f"{type(self.engine).__name__} does not support {command}"
            raise UnsupportedFeatureError(msg) from err
        except EngineError as err:
            self.handle_engine_error(command, err)
            return None

    def _execute(self, effects: list[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, CallbackEffect):
                self._invoke_callback(effect.callback, *effect.args)
            elif isinstance(effect, TrackPositionEffect):
                self.tracker.start()
            elif isinstance(effect, SignalEffect):
                self.media.signal_event(
                    effect.event, object_id=self.session_id, data=self.to_dict()
                )
            elif isinstance(effect, DiagnosticEffect):
                self.logger.warning(effect.msg, *effect.args, self.session_id)

    def _invoke_callback(self, callback_type: CallbackType, *args: Any) -> None:
        callback = getattr(self.callbacks, callback_type.value)
        if callback is None:
            return
        self.logger.log(
            VERBOSE_LOG_LEVEL,
            "Invoking %s callback of session %s with %s",
            callback_type.value,
            self.session_id,
            args,
        )
        try:
            callback(*args)
        except Exception:
            self.logger.exception(
                "Error in %s callback of session %s", callback_type.value, self.session_id
            )

    def __repr__(self) -> str:
        """Return a string representation of the session."""
        return f"<MediaSession {self.session_id} {self.source} ({self.state_label})>"

