"""Session controller and its per-session components."""

from .session_controller import SessionController

__all__ = ["SessionController"]
