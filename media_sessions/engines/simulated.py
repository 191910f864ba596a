"""
Simulated (in-process) audio engine.

Does not produce any audio: it advances a playback clock per session and emits
the same status messages a native engine would (STATE, DURATION, POSITION)
on its message channel. Every command is recorded, which makes the engine
usable for tests and for running the controller without a native backend.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from media_sessions.constants import (
    ATTR_ACTION,
    ATTR_ID,
    ATTR_MSG_TYPE,
    ATTR_STATUS,
    ATTR_VALUE,
    LOGGER_NAME,
    MESSAGE_ACTION_STATUS,
)
from media_sessions.models.engine import AudioEngine
from media_sessions.models.enums import MediaErrorCode, MediaState, MessageType
from media_sessions.models.errors import EngineError

LOGGER = logging.getLogger(f"{LOGGER_NAME}.engine")

DEFAULT_DURATION = 30.0


@dataclass
class SimulatedPlayer:
    """Engine-side state of one session."""

    source: str
    duration: float
    state: MediaState = MediaState.NONE
    volume: float = 1.0
    rate: float = 1.0
    # position at the moment the clock was last (re)started
    offset: float = 0.0
    started_at: float | None = None
    end_timer: asyncio.TimerHandle | None = None
    recording: bool = False
    volume_history: list[float] = field(default_factory=list)


class SimulatedAudioEngine(AudioEngine):
    """Audio engine that simulates playback with a clock."""

    supports_rate = True

    def __init__(
        self,
        durations: dict[str, float] | None = None,
        default_duration: float = DEFAULT_DURATION,
        prepare_delay: float = 0.0,
    ) -> None:
        """Initialize the simulated engine.

        :param durations: Duration (in seconds) per source.
        :param default_duration: Duration of sources not in durations.
        :param prepare_delay: Time between STARTING and RUNNING.
        """
        self.durations = durations or {}
        self.default_duration = default_duration
        self.prepare_delay = prepare_delay
        self.players: dict[str, SimulatedPlayer] = {}
        self.commands: list[tuple[str, tuple[Any, ...]]] = []
        self._failures: dict[str, Any] = {}
        self._queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()

    def fail_next(self, command: str, code: Any = MediaErrorCode.ABORTED) -> None:
        """Let the next invocation of a command fail with the given error code."""
        self._failures[command] = code

    def get_player(self, session_id: str) -> SimulatedPlayer:
        """Return the engine-side player of a session."""
        if (player := self.players.get(session_id)) is None:
            raise EngineError(MediaErrorCode.NONE_ACTIVE, f"No player for {session_id}")
        return player

    def position(self, session_id: str) -> float:
        """Return the current (clock based) position of a session."""
        player = self.get_player(session_id)
        if player.started_at is None:
            return player.offset
        elapsed = (asyncio.get_running_loop().time() - player.started_at) * player.rate
        return min(player.offset + elapsed, player.duration)

    async def close(self) -> None:
        """Stop all clocks and end the message channel."""
        for player in self.players.values():
            self._stop_clock(player)
        self._queue.put_nowait(None)

    async def message_channel(self) -> AsyncIterator[dict[str, Any]]:
        """Yield the status messages emitted by the simulated players."""
        while True:
            msg = await self._queue.get()
            if msg is None:
                return
            yield msg

    async def create(self, session_id: str, source: str) -> None:
        """Allocate a simulated player."""
        self._record("create", session_id, source)
        duration = self.durations.get(source, self.default_duration)
        self.players[session_id] = SimulatedPlayer(source=source, duration=duration)

    async def start_playing(
        self, session_id: str, source: str, options: dict[str, Any] | None = None
    ) -> None:
        """Start (or resume) the clock of a player."""
        self._record("start_playing", session_id, source, options)
        player = self.get_player(session_id)
        if player.state == MediaState.RUNNING:
            return
        if player.state in (MediaState.NONE, MediaState.STOPPED, MediaState.ENDED):
            player.offset = 0.0
            self._set_state(session_id, player, MediaState.STARTING)
            if self.prepare_delay:
                await asyncio.sleep(self.prepare_delay)
            self._emit(session_id, MessageType.DURATION, player.duration)
        self._start_clock(session_id, player)
        self._set_state(session_id, player, MediaState.RUNNING)

    async def pause_playing(self, session_id: str) -> None:
        """Pause the clock of a player."""
        self._record("pause_playing", session_id)
        player = self.get_player(session_id)
        if player.state != MediaState.RUNNING:
            return
        player.offset = self.position(session_id)
        self._stop_clock(player)
        self._set_state(session_id, player, MediaState.PAUSED)

    async def stop_playing(self, session_id: str) -> None:
        """Stop a player and rewind it."""
        self._record("stop_playing", session_id)
        player = self.get_player(session_id)
        self._stop_clock(player)
        player.offset = 0.0
        if player.state in (MediaState.RUNNING, MediaState.PAUSED, MediaState.STARTING):
            self._set_state(session_id, player, MediaState.STOPPED)

    async def seek_to(self, session_id: str, position_ms: int) -> float:
        """Move the clock of a player to a new position."""
        self._record("seek_to", session_id, position_ms)
        player = self.get_player(session_id)
        position = min(max(position_ms / 1000, 0.0), player.duration)
        running = player.started_at is not None
        self._stop_clock(player)
        player.offset = position
        if running:
            self._start_clock(session_id, player)
        self._emit(session_id, MessageType.POSITION, position)
        return position

    async def get_current_position(self, session_id: str) -> float:
        """Return the clock based position of a player."""
        self._record("get_current_position", session_id)
        return self.position(session_id)

    async def set_volume(self, session_id: str, volume: float) -> None:
        """Store the volume of a player."""
        self._record("set_volume", session_id, volume)
        player = self.get_player(session_id)
        player.volume = volume
        player.volume_history.append(volume)

    async def set_rate(self, session_id: str, rate: float) -> None:
        """Change the playback rate of a player."""
        self._record("set_rate", session_id, rate)
        player = self.get_player(session_id)
        running = player.started_at is not None
        if running:
            player.offset = self.position(session_id)
            self._stop_clock(player)
        player.rate = rate
        if running:
            self._start_clock(session_id, player)

    async def release(self, session_id: str) -> None:
        """Drop a player."""
        self._record("release", session_id)
        if (player := self.players.pop(session_id, None)) is not None:
            self._stop_clock(player)

    async def start_recording(self, session_id: str, source: str) -> None:
        """Start a (fake) recording."""
        self._record("start_recording", session_id, source)
        player = self.players.setdefault(
            session_id, SimulatedPlayer(source=source, duration=0.0)
        )
        player.recording = True
        self._set_state(session_id, player, MediaState.RUNNING)

    async def stop_recording(self, session_id: str) -> None:
        """Stop a (fake) recording."""
        self._record("stop_recording", session_id)
        player = self.get_player(session_id)
        player.recording = False
        self._set_state(session_id, player, MediaState.STOPPED)

    async def pause_recording(self, session_id: str) -> None:
        """Pause a (fake) recording."""
        self._record("pause_recording", session_id)
        self._set_state(session_id, self.get_player(session_id), MediaState.PAUSED)

    async def resume_recording(self, session_id: str) -> None:
        """Resume a (fake) recording."""
        self._record("resume_recording", session_id)
        self._set_state(session_id, self.get_player(session_id), MediaState.RUNNING)

    async def get_current_amplitude(self, session_id: str) -> float:
        """Return a fixed amplitude while recording."""
        self._record("get_current_amplitude", session_id)
        return 0.5 if self.get_player(session_id).recording else 0.0

    def _record(self, command: str, *args: Any) -> None:
        self.commands.append((command, args))
        LOGGER.debug("%s %s", command, args)
        if command in self._failures:
            raise EngineError(self._failures.pop(command))

    def _emit(self, session_id: str, msg_type: MessageType, value: Any) -> None:
        self._queue.put_nowait(
            {
                ATTR_ACTION: MESSAGE_ACTION_STATUS,
                ATTR_STATUS: {ATTR_ID: session_id, ATTR_MSG_TYPE: int(msg_type), ATTR_VALUE: value},
            }
        )

    def _set_state(self, session_id: str, player: SimulatedPlayer, state: MediaState) -> None:
        if player.state == state:
            return
        player.state = state
        self._emit(session_id, MessageType.STATE, int(state))

    def _start_clock(self, session_id: str, player: SimulatedPlayer) -> None:
        loop = asyncio.get_running_loop()
        player.started_at = loop.time()
        delay = max(player.duration - player.offset, 0.0) / player.rate
        player.end_timer = loop.call_later(delay, self._on_completion, session_id)

    def _stop_clock(self, player: SimulatedPlayer) -> None:
        player.started_at = None
        if player.end_timer is not None:
            player.end_timer.cancel()
            player.end_timer = None

    def _on_completion(self, session_id: str) -> None:
        if (player := self.players.get(session_id)) is None:
            return
        player.end_timer = None
        player.started_at = None
        player.offset = player.duration
        self._set_state(session_id, player, MediaState.ENDED)
