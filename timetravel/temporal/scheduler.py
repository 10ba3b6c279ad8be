"""
Autoplay Scheduler
==================

Timed loop that steps the navigator forward.

STATE MACHINE:
    STOPPED --start()--> PLAYING --stop() / tick at tip--> STOPPED

Time is logical: the host feeds elapsed milliseconds through advance()
(or calls tick() directly). One tick is due every 1000 / speed ms.
A speed change while playing applies from the next tick onward.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional
import math

from ..contracts.events import NavigationResult
from ..observability import get_logger
from .navigator import Navigator


logger = get_logger(__name__)

BASE_INTERVAL_MS = 1000.0


class SchedulerState(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"


@dataclass(frozen=True)
class AutoplayState:
    """Playback flag and speed. Independent of the log's own invariants."""
    is_playing: bool
    speed_multiplier: float

    def to_dict(self) -> dict:
        return {
            'isPlaying': self.is_playing,
            'speedMultiplier': self.speed_multiplier,
        }


def validate_speed(speed: float) -> float:
    try:
        value = float(speed)
    except (TypeError, ValueError):
        raise ValueError(f"Speed must be a number, got {speed!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"Speed must be a positive finite number, got {speed!r}")
    return value


class AutoplayScheduler:
    """
    Drives Navigator.step_forward() at a configurable rate.

    GUARANTEES:
    ===========
    - stop() is valid in any state and idempotent
    - A tick that finds the cursor at the tip stops playback instead of stepping
    - Never mutates the log except through the navigator's cursor moves
    """

    def __init__(self, navigator: Navigator, speed: float = 1.0):
        self._navigator = navigator
        self._speed = validate_speed(speed)
        self._state = SchedulerState.STOPPED
        self._elapsed_ms = 0.0
        self._tick_count = 0
        self._listeners: List[Callable[[AutoplayState], None]] = []

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state is SchedulerState.PLAYING

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def interval_ms(self) -> float:
        return BASE_INTERVAL_MS / self._speed

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def autoplay_state(self) -> AutoplayState:
        return AutoplayState(is_playing=self.is_playing, speed_multiplier=self._speed)

    def subscribe(self, listener: Callable[[AutoplayState], None]) -> None:
        """Register a callback fired on every PLAYING/STOPPED transition."""
        self._listeners.append(listener)

    def start(self) -> None:
        if self._state is SchedulerState.PLAYING:
            return
        self._state = SchedulerState.PLAYING
        self._elapsed_ms = 0.0
        logger.info("Autoplay started at %.2gx", self._speed)
        self._notify()

    def stop(self) -> None:
        if self._state is SchedulerState.STOPPED:
            return
        self._state = SchedulerState.STOPPED
        self._elapsed_ms = 0.0
        logger.info("Autoplay stopped at cursor %d", self._navigator.cursor)
        self._notify()

    def toggle(self) -> None:
        if self.is_playing:
            self.stop()
        else:
            self.start()

    def set_speed(self, speed: float) -> None:
        self._speed = validate_speed(speed)

    def tick(self) -> Optional[NavigationResult]:
        """
        Run one logical tick.

        Returns the navigation result when a step happened, None otherwise.
        """
        if self._state is not SchedulerState.PLAYING:
            return None

        self._tick_count += 1
        if self._navigator.at_tip():
            logger.debug("Autoplay reached tip")
            self.stop()
            return None
        return self._navigator.step_forward()

    def advance(self, elapsed_ms: float) -> int:
        """
        Feed elapsed host time; fires every tick that became due.

        Returns the number of ticks fired.
        """
        if self._state is not SchedulerState.PLAYING:
            return 0

        self._elapsed_ms += elapsed_ms
        fired = 0
        while self._state is SchedulerState.PLAYING and self._elapsed_ms >= self.interval_ms:
            self._elapsed_ms -= self.interval_ms
            self.tick()
            fired += 1
        return fired

    def _notify(self) -> None:
        snapshot = self.autoplay_state
        for listener in list(self._listeners):
            listener(snapshot)
