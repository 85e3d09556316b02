"""The DIV/TIMA/TMA/TAC timer unit."""

from __future__ import annotations

from typing import Callable

from .utils import Interrupt

_TAC_MASK = 0b1111_1000
_TAC_ENABLE = 0b0000_0100
_TAC_SPEED = 0b0000_0011
_TAC_FREQS = (0b10_0000_0000, 0b1000, 0b10_0000, 0b1000_0000)
_INITIAL_COUNTER = 0xABCC


class Timer:
    """Timer driven by a 16-bit internal counter, raising the timer interrupt on overflow."""

    def __init__(self, raise_interrupt: Callable[[Interrupt], None]) -> None:
        self._raise_interrupt = raise_interrupt
        self.tima = 0
        self.tma = 0
        self._tac = 0
        self._counter = _INITIAL_COUNTER
        self._old_output = False
        self._overflow = False
        self._written_tma = False

    def divider(self) -> int:
        return (self._counter >> 8) & 0xFF

    def divider_lo(self) -> int:
        return self._counter & 0xFF

    def tac(self) -> int:
        return self._tac | _TAC_MASK

    def _enabled(self) -> bool:
        return bool(self._tac & _TAC_ENABLE)

    def _freq_mask(self) -> int:
        return _TAC_FREQS[self._tac & _TAC_SPEED]

    def _increment_tima(self) -> bool:
        overflow = self.tima == 0xFF
        self.tima = (self.tima + 1) & 0xFF
        return overflow

    def set_tac(self, val: int) -> None:
        old_bit = bool(self._counter & self._freq_mask())
        self._tac = val & 0xFF
        new = bool(self._counter & self._freq_mask()) and self._enabled()
        if (self._old_output and not new) or (not old_bit and new):
            self._overflow = self._increment_tima()
        self._old_output = new

    def set_tima(self, val: int) -> None:
        if not self._written_tma:
            self.tima = val & 0xFF
        self._overflow = False

    def set_tma(self, val: int) -> None:
        self.tma = val & 0xFF
        if self._written_tma:
            self.tima = self.tma

    def clock(self) -> None:
        """Advance the timer by one machine cycle (four clocks)."""
        self._written_tma = False
        if self._overflow:
            self._written_tma = True
            self._overflow = False
            self.tima = self.tma
            self._raise_interrupt(Interrupt.TIMER)
        self._counter = (self._counter + 4) & 0xFFFF
        new_output = bool(self._counter & self._freq_mask()) and self._enabled()
        if self._old_output and not new_output:
            self._overflow = self._increment_tima()
        self._old_output = new_output

    def reset_counter(self) -> None:
        self._counter = 0
        if self._old_output:
            overflow = self._increment_tima()
            self._old_output = False
            self._overflow = self._overflow or overflow

    def reset(self) -> None:
        self.tima = 0
        self.tma = 0
        self.set_tac(0)
        self._counter = _INITIAL_COUNTER