"""
Base class for a native audio engine.

The engine owns the actual decode/output of audio. Media Sessions only issues
commands to it and consumes the status messages it emits on its message
channel. Engine implementations should inherit from this base model.

Messages on the channel have the following shape::

    {"action": "status", "status": {"id": "<session_id>", "msgType": 1, "value": 2}}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any


class AudioEngine(ABC):
    """Base representation of a native audio engine.

    All commands raise ``EngineError`` when the engine rejects them.
    """

    # whether the engine can change the playback rate
    supports_rate: bool = False

    async def start(self) -> None:
        """Handle async initialization of the engine."""

    async def close(self) -> None:
        """Handle close/cleanup of the engine."""

    @abstractmethod
    def message_channel(self) -> AsyncIterator[dict[str, Any]]:
        """Return the continuous stream of inbound status messages."""

    @abstractmethod
    async def create(self, session_id: str, source: str) -> None:
        """Allocate an engine-side player for the session."""

    @abstractmethod
    async def start_playing(
        self, session_id: str, source: str, options: dict[str, Any] | None = None
    ) -> None:
        """Start or resume playback."""

    @abstractmethod
    async def pause_playing(self, session_id: str) -> None:
        """Pause playback."""

    @abstractmethod
    async def stop_playing(self, session_id: str) -> None:
        """Stop playback."""

    @abstractmethod
    async def seek_to(self, session_id: str, position_ms: int) -> float:
        """Seek to the given position (in milliseconds), return the new position."""

    @abstractmethod
    async def get_current_position(self, session_id: str) -> float:
        """Return the current position (in seconds)."""

    @abstractmethod
    async def set_volume(self, session_id: str, volume: float) -> None:
        """Set the output gain (0..1)."""

    async def set_rate(self, session_id: str, rate: float) -> None:
        """Set the playback rate.

        Will only be called if ``supports_rate`` is set.
        """
        raise NotImplementedError

    @abstractmethod
    async def release(self, session_id: str) -> None:
        """Release the engine-side resources of the session."""

    async def start_recording(self, session_id: str, source: str) -> None:
        """Start recording audio into the given source."""
        raise NotImplementedError

    async def stop_recording(self, session_id: str) -> None:
        """Stop recording."""
        raise NotImplementedError

    async def pause_recording(self, session_id: str) -> None:
        """Pause recording."""
        raise NotImplementedError

    async def resume_recording(self, session_id: str) -> None:
        """Resume recording."""
        raise NotImplementedError

    async def get_current_amplitude(self, session_id: str) -> float:
        """Return the current recording amplitude (0..1)."""
        raise NotImplementedError
