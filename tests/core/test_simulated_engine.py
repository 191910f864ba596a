"""End-to-end tests of the controller running on the simulated engine."""

import asyncio
from collections.abc import AsyncGenerator
from unittest.mock import Mock

import pytest

from media_sessions.controller import MediaController
from media_sessions.engines.simulated import SimulatedAudioEngine
from media_sessions.models.enums import EventType, MediaErrorCode, MediaState
from media_sessions.models.event import SessionEvent
from media_sessions.models.fade import FadeConfig


@pytest.fixture
def simulated_engine() -> SimulatedAudioEngine:
    """Return a simulated engine with some short media."""
    return SimulatedAudioEngine(
        durations={"short.mp3": 0.3, "fade.mp3": 0.8, "long.mp3": 60}, default_duration=10
    )


@pytest.fixture
async def simulated(
    simulated_engine: SimulatedAudioEngine,
) -> AsyncGenerator[MediaController, None]:
    """Start a MediaController on the simulated engine, polling fast."""
    async with MediaController(simulated_engine) as controller:
        controller.config.set("poll_interval", 0.01)
        yield controller


async def test_play_until_end(simulated: MediaController) -> None:
    """Playing media to its end notifies success once per run."""
    success_callback = Mock()
    status: list[MediaState] = []
    session = await simulated.sessions.create(
        "short.mp3", success_callback=success_callback, status_callback=status.append
    )

    await session.play()
    await asyncio.sleep(0.6)

    assert session.state == MediaState.ENDED
    assert session.ended
    assert session.duration == 0.3
    assert status[:2] == [MediaState.STARTING, MediaState.RUNNING]
    assert MediaState.ENDED in status
    success_callback.assert_called_once_with()
    assert not session.tracker.running

    # playing again is a new run
    await session.play()
    await asyncio.sleep(0.6)
    assert session.state == MediaState.ENDED
    assert success_callback.call_count == 2


async def test_fade_out_to_stop(
    simulated: MediaController, simulated_engine: SimulatedAudioEngine
) -> None:
    """A session fading out at its end lowers the volume and stops."""
    events: list[SessionEvent] = []
    simulated.subscribe(events.append, EventType.SESSION_FADING_OUT)
    status: list[MediaState] = []
    session = await simulated.sessions.create(
        "fade.mp3",
        status_callback=status.append,
        fade_config=FadeConfig(fade_out_enabled=True, fade_window_seconds=0.4),
    )

    await session.play()
    await asyncio.sleep(1.0)

    assert status.count(MediaState.FADING_OUT) == 1
    assert len(events) == 1
    assert session.state == MediaState.STOPPED
    assert session.position == 0
    volumes = simulated_engine.commands
    gains = [args[1] for command, args in volumes if command == "set_volume"]
    assert gains
    assert min(gains) < 1.0
    assert [x for x in simulated_engine.commands if x[0] == "stop_playing"] == [
        ("stop_playing", (session.session_id,))
    ]


async def test_pause_and_resume(simulated: MediaController) -> None:
    """A paused session keeps its position."""
    session = await simulated.sessions.create("long.mp3")
    await session.play()
    await asyncio.sleep(0.1)

    await session.pause()
    await asyncio.sleep(0.05)
    assert session.state == MediaState.PAUSED
    assert not session.tracker.running
    position = await session.get_current_position()
    assert position is not None
    assert position > 0

    await session.play()
    await asyncio.sleep(0.05)
    assert session.state == MediaState.RUNNING
    assert session.position >= position


async def test_seek_and_rate(
    simulated: MediaController, simulated_engine: SimulatedAudioEngine
) -> None:
    """Test seeking and changing the playback rate."""
    session = await simulated.sessions.create("long.mp3")

    await session.seek_to(30000)
    assert session.position == 30

    await session.set_rate(2.0)
    assert simulated_engine.get_player(session.session_id).rate == 2.0


async def test_engine_failure(
    simulated: MediaController, simulated_engine: SimulatedAudioEngine
) -> None:
    """A failing engine command reaches the error callback."""
    error_callback = Mock()
    session = await simulated.sessions.create("long.mp3", error_callback=error_callback)
    simulated_engine.fail_next("start_playing", MediaErrorCode.NETWORK)

    await session.play()
    await asyncio.sleep(0.05)

    error_callback.assert_called_once_with(MediaErrorCode.NETWORK)
    assert session.state == MediaState.NONE


async def test_audio_focus(simulated: MediaController) -> None:
    """Running sessions pause on focus loss and resume afterwards."""
    first = await simulated.sessions.create("long.mp3")
    second = await simulated.sessions.create("long.mp3")
    await first.play()
    await second.play()
    await asyncio.sleep(0.05)
    assert len(simulated.sessions.running()) == 2

    await simulated.sessions.pause_all()
    await asyncio.sleep(0.05)
    assert first.state == MediaState.PAUSED
    assert second.state == MediaState.PAUSED

    await simulated.sessions.resume_all()
    await asyncio.sleep(0.05)
    assert simulated.sessions.running() == [first, second]


async def test_recording(simulated: MediaController) -> None:
    """Test a recording session."""
    session = await simulated.sessions.create("memo.m4a")

    await session.start_recording()
    await asyncio.sleep(0.05)
    assert session.state == MediaState.RUNNING
    assert await session.get_current_amplitude() == 0.5

    await session.stop_recording()
    await asyncio.sleep(0.05)
    assert session.state == MediaState.STOPPED
    assert await session.get_current_amplitude() == 0.0


async def test_invalid_message_ends_channel(
    simulated: MediaController,
    simulated_engine: SimulatedAudioEngine,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """A message violating the channel contract is fatal for the reader."""
    simulated_engine._queue.put_nowait({"action": "bogus"})
    await asyncio.sleep(0.05)

    assert "Invalid message received on the engine message channel" in caplog.text
    assert simulated.get_task("engine_message_channel") is None


async def test_stop_releases_all(simulated_engine: SimulatedAudioEngine) -> None:
    """Stopping the controller releases all sessions on the engine."""
    async with MediaController(simulated_engine) as controller:
        session = await controller.sessions.create("long.mp3")
        await session.play()
        await asyncio.sleep(0.05)

    assert simulated_engine.players == {}
    assert session.released
    assert ("release", (session.session_id,)) in simulated_engine.commands
