"""Media Sessions: client-side controller for native audio playback sessions."""

from .controller import MediaController
from .models.engine import AudioEngine
from .models.enums import EventType, MediaErrorCode, MediaState, MessageType
from .models.fade import FadeConfig
from .models.session import MediaSession

__all__ = [
    "AudioEngine",
    "EventType",
    "FadeConfig",
    "MediaController",
    "MediaErrorCode",
    "MediaSession",
    "MediaState",
    "MessageType",
]
