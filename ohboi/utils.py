"""Small helpers shared by the emulator components."""

from __future__ import annotations

from enum import IntEnum


class Interrupt(IntEnum):
    """Interrupt sources, numbered by their bit in the IF/IE registers."""

    VBLANK = 0
    LCD = 1
    TIMER = 2
    SERIAL = 3
    JOYPAD = 4


class Counter:
    """Counts up to ``limit``, advancing once every ``period`` steps."""

    def __init__(self, limit: int, period: int) -> None:
        self.limit = limit
        self._period = period
        self._count = 0
        self._period_count = 0

    def step(self) -> bool:
        """Advance by one step and report whether the limit has been reached."""
        if self._count < self.limit:
            self._period_count += 1
            if self._period_count == self._period:
                self._period_count = 0
                self._count += 1
        return self._count == self.limit

    def reset(self) -> None:
        self._count = 0
        self._period_count = 0

    def expired(self) -> bool:
        return self._count == self.limit


class FallingEdgeDetector:
    """Reports transitions of a boolean signal from high to low."""

    def __init__(self, initial: bool) -> None:
        self._old = initial

    def detect(self, new: bool) -> bool:
        falling = self._old and not new
        self._old = new
        return falling