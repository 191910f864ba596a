"""All constants for Media Sessions."""

from typing import Final

LOGGER_NAME: Final[str] = "media_sessions"
VERBOSE_LOG_LEVEL: Final[int] = 5

# position tracking
DEFAULT_POLL_INTERVAL: Final[float] = 0.15
TASK_ID_POSITION_TRACKER: Final[str] = "position_tracker_{session_id}"
TASK_ID_MESSAGE_CHANNEL: Final[str] = "engine_message_channel"

# fades
DEFAULT_FADE_WINDOW: Final[float] = 5.0
# polling granularity never lands exactly on the fade end
FADE_END_EPSILON: Final[float] = 0.2

# session defaults
UNKNOWN_DURATION: Final[float] = -1
UNKNOWN_POSITION: Final[float] = -1
DEFAULT_MEDIA_ID: Final[str] = "0"
DEFAULT_INSTANCE_NUMBER: Final[int] = -1
DEFAULT_VOLUME: Final[float] = 1.0

# engine message channel
MESSAGE_ACTION_STATUS: Final[str] = "status"
ATTR_ACTION: Final[str] = "action"
ATTR_STATUS: Final[str] = "status"
ATTR_ID: Final[str] = "id"
ATTR_MSG_TYPE: Final[str] = "msgType"
ATTR_VALUE: Final[str] = "value"

# config
SETTINGS_FILENAME: Final[str] = "settings.json"
DEFAULT_SAVE_DELAY: Final[int] = 5
