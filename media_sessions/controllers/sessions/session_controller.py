"""
Media Sessions SessionController.

Registry of all media sessions, keyed by their (opaque) session id.
Routes the status messages of the engine to the matching session and
offers lookup, listing and filtering of the sessions.

Status messages for unknown (e.g. already released) sessions and unknown
message types are non-fatal: they are logged and dropped. A message that
violates the message channel contract is raised as InvalidMessageError.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import TYPE_CHECKING, Any, Concatenate, ParamSpec, TypeVar

import shortuuid

from media_sessions.constants import LOGGER_NAME
from media_sessions.models.enums import EventType, MediaState
from media_sessions.models.errors import (
    EngineError,
    MediaSessionError,
    SessionCommandFailed,
    UnknownSessionError,
)
from media_sessions.models.event import StatusMessage
from media_sessions.models.session import MediaSession, SessionCallbacks

if TYPE_CHECKING:
    from collections.abc import Iterator

    from media_sessions.controller import MediaController
    from media_sessions.models.engine import AudioEngine
    from media_sessions.models.fade import FadeConfig


SessionControllerT = TypeVar("SessionControllerT", bound="SessionController")
P = ParamSpec("P")
R = TypeVar("R")


def handle_session_command(
    func: Callable[Concatenate[SessionControllerT, P], Awaitable[R]],
) -> Callable[Concatenate[SessionControllerT, P], Coroutine[Any, Any, R | None]]:
    """Check and log commands to sessions."""

    @functools.wraps(func)
    async def wrapper(self: SessionControllerT, *args: P.args, **kwargs: P.kwargs) -> R | None:
        """Log and handle commands to sessions."""
        session_id = kwargs.get("session_id") or args[0]
        assert isinstance(session_id, str)  # for type checking
        if session_id not in self._sessions:
            self.logger.warning(
                "Ignoring command %s for unknown session %s",
                func.__name__,
                session_id,
            )
            return None
        self.logger.debug("Handling command %s for session %s", func.__name__, session_id)
        try:
            return await func(self, *args, **kwargs)
        except MediaSessionError:
            raise
        except Exception as err:
            raise SessionCommandFailed(str(err)) from err

    return wrapper


class SessionController:
    """Controller holding all registered media sessions."""

    def __init__(self, media: MediaController) -> None:
        """Initialize the session controller."""
        self.media = media
        self.logger = logging.getLogger(f"{LOGGER_NAME}.sessions")
        self._sessions: dict[str, MediaSession] = {}
        # sessions paused by pause_all, resumed by resume_all
        self._paused_by_focus: list[str] = []

    @property
    def engine(self) -> AudioEngine:
        """Return the engine the sessions play on."""
        return self.media.engine

    async def create(
        self,
        source: str,
        success_callback: Callable[[], None] | None = None,
        error_callback: Callable[[Any], None] | None = None,
        status_callback: Callable[[MediaState], None] | None = None,
        position_callback: Callable[[float], None] | None = None,
        fade_config: FadeConfig | None = None,
    ) -> MediaSession:
        """
        Create (and register) a new session for the given source.

        If the engine rejects the creation, the error callback is invoked and the
        session stays registered in the NONE state (the caller may release it).
        """
        session_id = shortuuid.uuid()
        callbacks = SessionCallbacks(
            success=success_callback,
            error=error_callback,
            status=status_callback,
            position=position_callback,
        )
        session = MediaSession(self, session_id, source, callbacks, fade_config)
        self._sessions[session_id] = session
        self.logger.debug("Session created: %s (%s)", session_id, source)
        self.media.signal_event(
            EventType.SESSION_ADDED, object_id=session_id, data=session.to_dict()
        )
        try:
            await self.engine.create(session_id, source)
        except EngineError as err:
            session.handle_engine_error("create", err)
        return session

    def get(self, session_id: str, raise_unavailable: bool = False) -> MediaSession | None:
        """
        Return a session by its id.

        :param session_id: ID of the session.
        :param raise_unavailable: Raise if the session is not registered.
        """
        if session := self._sessions.get(session_id):
            return session
        if raise_unavailable:
            msg = f"Session {session_id} is not registered"
            raise UnknownSessionError(msg)
        return None

    def get_by_media_id(self, media_id: str | int) -> MediaSession | None:
        """Return the first session with the given (caller-assigned) media id."""
        for session in self._sessions.values():
            if str(session.media_id) == str(media_id):
                return session
        return None

    def all(self) -> list[MediaSession]:
        """Return (a snapshot of) all registered sessions, in creation order."""
        return list(self._sessions.values())

    def running(self) -> list[MediaSession]:
        """Return all sessions that are currently running."""
        return [x for x in self._sessions.values() if x.state == MediaState.RUNNING]

    def dispatch(self, session_id: str, msg_type: int, value: Any = None) -> None:
        """Route one status message of the engine to its session."""
        if (session := self._sessions.get(session_id)) is None:
            self.logger.warning("Received status message for unknown session %s", session_id)
            return
        session.handle_message(StatusMessage(session_id, msg_type, value))

    def handle_engine_message(self, msg: dict[str, Any]) -> None:
        """Handle a raw message from the engine message channel.

        :raises InvalidMessageError: if the message violates the channel contract.
        """
        message = StatusMessage.from_engine_message(msg)
        self.dispatch(message.session_id, message.msg_type, message.value)

    async def release(self, session_id: str) -> None:
        """Remove a session from the registry and release its engine resources."""
        if (session := self._sessions.pop(session_id, None)) is None:
            return
        session.on_release()
        if session_id in self._paused_by_focus:
            self._paused_by_focus.remove(session_id)
        try:
            await self.engine.release(session_id)
        except EngineError as err:
            session.handle_engine_error("release", err)
        self.logger.debug("Session released: %s", session_id)
        self.media.signal_event(EventType.SESSION_REMOVED, object_id=session_id)

    async def release_all(self) -> None:
        """Release all registered sessions."""
        for session_id in list(self._sessions):
            await self.release(session_id)

    async def pause_all(self) -> None:
        """Pause all playing sessions (e.g. when audio focus is lost)."""
        # fading out sessions are still audible
        for session in [x for x in self._sessions.values() if x.is_active]:
            self._paused_by_focus.append(session.session_id)
            await session.pause()

    async def resume_all(self) -> None:
        """Resume the sessions paused by pause_all."""
        session_ids, self._paused_by_focus = self._paused_by_focus, []
        for session_id in session_ids:
            session = self._sessions.get(session_id)
            if session is None or session.state != MediaState.PAUSED:
                # released or stopped meanwhile
                continue
            await session.play()

    @handle_session_command
    async def cmd_play(self, session_id: str, options: dict[str, Any] | None = None) -> None:
        """Send PLAY command to given session."""
        await self._sessions[session_id].play(options)

    @handle_session_command
    async def cmd_pause(self, session_id: str) -> None:
        """Send PAUSE command to given session."""
        await self._sessions[session_id].pause()

    @handle_session_command
    async def cmd_stop(self, session_id: str) -> None:
        """Send STOP command to given session."""
        await self._sessions[session_id].stop()

    @handle_session_command
    async def cmd_seek(self, session_id: str, position_ms: int) -> None:
        """Handle SEEK command for given session."""
        await self._sessions[session_id].seek_to(position_ms)

    @handle_session_command
    async def cmd_volume_set(self, session_id: str, volume: float) -> None:
        """Send VOLUME_SET command to given session."""
        await self._sessions[session_id].set_volume(volume)

    def __iter__(self) -> Iterator[MediaSession]:
        """Iterate over all registered sessions."""
        return iter(self._sessions.values())

    def __len__(self) -> int:
        """Return the number of registered sessions."""
        return len(self._sessions)
