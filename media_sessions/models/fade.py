"""Fade configuration and fade evaluation models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from mashumaro import DataClassDictMixin

from media_sessions.constants import DEFAULT_FADE_WINDOW

from .enums import FadeAction


@dataclass
class FadeConfig(DataClassDictMixin):
    """Per-session fade configuration, mutable by the caller at any time."""

    fade_in_enabled: bool = False
    fade_out_enabled: bool = False
    fade_window_seconds: float = DEFAULT_FADE_WINDOW
    # fade out immediately, regardless of the natural remaining time
    force_fade_out: bool = False


class FadeStep(NamedTuple):
    """Result of evaluating the fade windows for one tick."""

    action: FadeAction
    factor: float = 1.0
    enter_fade_out: bool = False


NO_FADE = FadeStep(FadeAction.NONE)
