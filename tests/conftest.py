"""Fixtures for testing Media Sessions."""

import asyncio
import logging
import pathlib
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from media_sessions.controller import MediaController
from media_sessions.models.engine import AudioEngine


async def idle_message_channel() -> AsyncIterator[dict[str, Any]]:
    """Message channel that never delivers a message."""
    await asyncio.Event().wait()
    yield {}


@pytest.fixture(name="caplog")
def caplog_fixture(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Set log level to debug for tests using the caplog fixture."""
    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def engine() -> AsyncMock:
    """Return a mocked audio engine that accepts every command."""
    engine = AsyncMock(spec=AudioEngine)
    engine.supports_rate = False
    engine.message_channel = Mock(side_effect=idle_message_channel)
    engine.get_current_position.return_value = 0.0
    engine.seek_to.return_value = 0.0
    return engine


@pytest.fixture
async def controller(
    engine: AsyncMock, tmp_path: pathlib.Path
) -> AsyncGenerator[MediaController, None]:
    """Start a MediaController on the mocked engine.

    :param engine: Mocked audio engine.
    :param tmp_path: Temporary directory for the settings.
    """
    async with MediaController(engine, str(tmp_path)) as controller:
        yield controller
