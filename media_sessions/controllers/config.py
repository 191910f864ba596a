"""Logic to handle storage of persistent (configuration) settings."""

from __future__ import annotations

import contextlib
import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import aiofiles
from aiofiles.os import wrap
from mashumaro import DataClassDictMixin
from mashumaro.exceptions import InvalidFieldValue, MissingField

from media_sessions.constants import (
    DEFAULT_FADE_WINDOW,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SAVE_DELAY,
    FADE_END_EPSILON,
    LOGGER_NAME,
    SETTINGS_FILENAME,
)
from media_sessions.helpers.json import (
    JSON_DECODE_EXCEPTIONS,
    async_json_dumps,
    async_json_loads,
)
from media_sessions.helpers.log import is_valid_log_level, setup_logging
from media_sessions.models.errors import InvalidConfigError

if TYPE_CHECKING:
    import asyncio

    from media_sessions.controller import MediaController

LOGGER = logging.getLogger(f"{LOGGER_NAME}.config")

isfile = wrap(os.path.isfile)
remove = wrap(os.remove)
rename = wrap(os.rename)


@dataclass
class ControllerConfig(DataClassDictMixin):
    """Tunable settings of the media controller."""

    poll_interval: float = DEFAULT_POLL_INTERVAL
    default_fade_window: float = DEFAULT_FADE_WINDOW
    fade_end_epsilon: float = FADE_END_EPSILON
    # whether a forced fade out latches and notifies FADING_OUT like a natural one
    notify_forced_fade_out: bool = True
    # ignore ENDED/STOPPED for sessions that never started
    suppress_terminal_before_start: bool = True
    log_level: str = "info"

    def __post_init__(self) -> None:
        """Validate the values."""
        if self.poll_interval <= 0:
            msg = f"poll_interval must be positive, got {self.poll_interval}"
            raise InvalidConfigError(msg)
        if self.default_fade_window < 0:
            msg = f"default_fade_window must not be negative, got {self.default_fade_window}"
            raise InvalidConfigError(msg)
        if self.fade_end_epsilon < 0:
            msg = f"fade_end_epsilon must not be negative, got {self.fade_end_epsilon}"
            raise InvalidConfigError(msg)
        if not is_valid_log_level(self.log_level):
            msg = f"Unknown log_level {self.log_level}"
            raise InvalidConfigError(msg)


def parse_config(data: dict[str, Any]) -> ControllerConfig:
    """Parse (and validate) the stored settings, ignoring unknown keys."""
    try:
        return ControllerConfig.from_dict(data)
    except (InvalidFieldValue, MissingField) as err:
        raise InvalidConfigError(str(err)) from err


class ConfigController:
    """Controller that handles storage of persistent configuration settings."""

    def __init__(self, media: MediaController) -> None:
        """Initialize config controller."""
        self.media = media
        self.initialized = False
        self._data: dict[str, Any] = {}
        self.filename = (
            os.path.join(media.storage_path, SETTINGS_FILENAME) if media.storage_path else None
        )
        self._timer_handle: asyncio.TimerHandle | None = None
        self.values = ControllerConfig()

    async def setup(self) -> None:
        """Async initialize of controller."""
        await self._load()
        self.values = parse_config(self._data)
        self.initialized = True
        LOGGER.debug("Initialized.")

    async def close(self) -> None:
        """Handle logic on shutdown: write pending changes to disk."""
        if self._timer_handle is None:
            return
        self._timer_handle.cancel()
        self._timer_handle = None
        await self._async_save()

    def get(self, key: str, default: Any = None) -> Any:
        """Get value(s) for a specific key."""
        return self.values.to_dict().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set value(s) for a specific key and schedule a save to disk."""
        if key not in ControllerConfig.__dataclass_fields__:
            msg = f"Unknown config key {key}"
            raise KeyError(msg)
        data = {**self.values.to_dict(), key: value}
        # validate before storing
        self.values = parse_config(data)
        self._data[key] = value
        if key == "log_level":
            setup_logging(value)
        self.save()

    def save(self, immediate: bool = False) -> None:
        """Schedule save of data to disk."""
        if self.filename is None:
            return
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None

        if immediate:
            self.media.create_task(self._async_save())
        else:
            # schedule the save for later
            self._timer_handle = self.media.loop.call_later(
                DEFAULT_SAVE_DELAY, self.media.create_task, self._async_save
            )

    async def _load(self) -> None:
        """Load data from persistent storage."""
        assert not self._data, "Already loaded"
        if self.filename is None:
            LOGGER.debug("No storage path configured, using default settings.")
            return

        for filename in (self.filename, f"{self.filename}.backup"):
            try:
                async with aiofiles.open(filename, encoding="utf-8") as _file:
                    self._data = await async_json_loads(await _file.read())
                    LOGGER.debug("Loaded persistent settings from %s", filename)
                    return
            except FileNotFoundError:
                pass
            except JSON_DECODE_EXCEPTIONS:
                LOGGER.exception("Error while reading persistent storage file %s", filename)
        LOGGER.debug("Started with empty storage: No persistent storage file found.")

    async def _async_save(self) -> None:
        """Save persistent data to disk."""
        self._timer_handle = None
        assert self.filename is not None
        filename_backup = f"{self.filename}.backup"
        # make backup before we write a new file
        if await isfile(self.filename):
            with contextlib.suppress(FileNotFoundError):
                await remove(filename_backup)
            await rename(self.filename, filename_backup)

        async with aiofiles.open(self.filename, "w", encoding="utf-8") as _file:
            await _file.write(await async_json_dumps(self._data, indent=True))
        LOGGER.debug("Saved data to persistent storage")
