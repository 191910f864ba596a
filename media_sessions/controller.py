"""Main Media Sessions controller."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import TYPE_CHECKING, Any, Self, TypeVar, cast
from uuid import uuid4

from media_sessions.constants import LOGGER_NAME, TASK_ID_MESSAGE_CHANNEL, VERBOSE_LOG_LEVEL
from media_sessions.controllers.config import ConfigController
from media_sessions.controllers.sessions import SessionController
from media_sessions.helpers.log import setup_logging
from media_sessions.models.enums import EventType
from media_sessions.models.errors import InvalidMessageError
from media_sessions.models.event import SessionEvent

if TYPE_CHECKING:
    from types import TracebackType

    from media_sessions.models.engine import AudioEngine

EventCallBackType = (
    Callable[[SessionEvent], None] | Callable[[SessionEvent], Coroutine[Any, Any, None]]
)
EventSubscriptionType = tuple[
    EventCallBackType, tuple[EventType, ...] | None, tuple[str, ...] | None
]

LOGGER = logging.getLogger(LOGGER_NAME)

_R = TypeVar("_R")


class MediaController:
    """Process-level controller owning the engine, the sessions and their tasks."""

    loop: asyncio.AbstractEventLoop
    config: ConfigController
    sessions: SessionController

    def __init__(self, engine: AudioEngine, storage_path: str | None = None) -> None:
        """Initialize the MediaController."""
        self.engine = engine
        self.storage_path = storage_path
        self._subscribers: set[EventSubscriptionType] = set()
        self._tracked_tasks: dict[str, asyncio.Task[Any]] = {}
        self.closing = False

    async def start(self) -> None:
        """Start the controller and start consuming the engine messages."""
        self.loop = asyncio.get_running_loop()
        self.config = ConfigController(self)
        await self.config.setup()
        setup_logging(self.config.values.log_level)
        self.sessions = SessionController(self)
        await self.engine.start()
        self.create_task(self._read_message_channel, task_id=TASK_ID_MESSAGE_CHANNEL)
        LOGGER.info("Media controller started (engine: %s)", type(self.engine).__name__)

    async def stop(self) -> None:
        """Stop the controller, releasing all sessions."""
        LOGGER.info("Stop called, cleaning up...")
        self.signal_event(EventType.SHUTDOWN)
        await self.sessions.release_all()
        self.closing = True
        # cancel all running tasks
        for task in list(self._tracked_tasks.values()):
            task.cancel()
        await self.config.close()
        await self.engine.close()

    def signal_event(
        self,
        event: EventType,
        object_id: str | None = None,
        data: Any = None,
    ) -> None:
        """Signal event to subscribers."""
        if self.closing:
            return

        if LOGGER.isEnabledFor(VERBOSE_LOG_LEVEL):
            LOGGER.getChild("event").log(VERBOSE_LOG_LEVEL, "%s %s", event.value, object_id or "")

        event_obj = SessionEvent(event=event, object_id=object_id, data=data)
        for cb_func, event_filter, id_filter in list(self._subscribers):
            if not (event_filter is None or event in event_filter):
                continue
            if not (id_filter is None or object_id in id_filter):
                continue
            if inspect.iscoroutinefunction(cb_func):
                if TYPE_CHECKING:
                    cb_func = cast("Callable[[SessionEvent], Coroutine[Any, Any, None]]", cb_func)
                self.create_task(cb_func, event_obj)
            else:
                if TYPE_CHECKING:
                    cb_func = cast("Callable[[SessionEvent], None]", cb_func)
                self.loop.call_soon(cb_func, event_obj)

    def subscribe(
        self,
        cb_func: EventCallBackType,
        event_filter: EventType | tuple[EventType, ...] | None = None,
        id_filter: str | tuple[str, ...] | None = None,
    ) -> Callable[[], None]:
        """Add callback to event listeners.

        Returns function to remove the listener.
            :param cb_func: callback function or coroutine
            :param event_filter: Optionally only listen for these events
            :param id_filter: Optionally only listen for these session id's
        """
        if isinstance(event_filter, EventType):
            event_filter = (event_filter,)
        if isinstance(id_filter, str):
            id_filter = (id_filter,)
        listener = (cb_func, event_filter, id_filter)
        self._subscribers.add(listener)

        def remove_listener() -> None:
            self._subscribers.remove(listener)

        return remove_listener

    def create_task(
        self,
        target: Callable[..., Coroutine[Any, Any, _R]] | Awaitable[_R],
        *args: Any,
        task_id: str | None = None,
        abort_existing: bool = False,
        **kwargs: Any,
    ) -> asyncio.Task[_R]:
        """Create Task on (main) event loop from Coroutine(function).

        Tasks created by this helper will be properly cancelled on stop.
        """
        if task_id and (existing := self._tracked_tasks.get(task_id)) and not existing.done():
            # prevent duplicate tasks if task_id is given and already present
            if abort_existing:
                existing.cancel()
            else:
                return existing

        if inspect.iscoroutinefunction(target):
            task = self.loop.create_task(target(*args, **kwargs))
        elif inspect.iscoroutine(target):
            task = self.loop.create_task(target)
        elif callable(target):
            raise RuntimeError("Function is not a coroutine or coroutine function")
        else:
            raise RuntimeError("Target is missing")

        if task_id is None:
            task_id = uuid4().hex

        def task_done_callback(_task: asyncio.Task[Any]) -> None:
            if self._tracked_tasks.get(task_id) is _task:
                self._tracked_tasks.pop(task_id)
            # log unhandled exceptions
            if not _task.cancelled() and (err := _task.exception()):
                LOGGER.warning(
                    "Exception in task %s - target: %s: %s",
                    _task.get_name(),
                    str(target),
                    str(err),
                    exc_info=err if LOGGER.isEnabledFor(logging.DEBUG) else None,
                )

        self._tracked_tasks[task_id] = task
        task.add_done_callback(task_done_callback)
        return task

    def get_task(self, task_id: str) -> asyncio.Task[Any] | None:
        """Get existing scheduled task."""
        return self._tracked_tasks.get(task_id)

    async def _read_message_channel(self) -> None:
        """Consume the status messages of the engine."""
        async for msg in self.engine.message_channel():
            try:
                self.sessions.handle_engine_message(msg)
            except InvalidMessageError:
                # transport contract violation: the channel can no longer be trusted
                LOGGER.exception("Invalid message received on the engine message channel")
                raise

    async def __aenter__(self) -> Self:
        """Return Context manager."""
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        """Exit context manager."""
        await self.stop()
        return None
