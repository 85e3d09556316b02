"""OAM DMA and colour-mode HDMA/GDMA transfer controllers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

DMA_SIZE = 0xA0
DMA_BASE_ADDR = 0xFE00
_STAT_ADDR = 0xFF41
_HBLANK_MODE = 0


class Bus(Protocol):
    """The memory operations the transfer controllers need."""

    def read(self, addr: int) -> int: ...

    def dma_read(self, addr: int) -> int: ...

    def dma_write(self, addr: int, val: int) -> None: ...


class DmaPhase(Enum):
    TRIGGERED = auto()
    WAITING = auto()
    RESTART_TRIGGERED = auto()
    WAITING_RESTART = auto()
    RUNNING = auto()
    COMPLETED = auto()


@dataclass(frozen=True)
class DmaState:
    """The OAM DMA phase; restart phases carry the pending source page."""

    phase: DmaPhase
    index: int | None = None


_COPYING = (DmaPhase.RUNNING, DmaPhase.RESTART_TRIGGERED, DmaPhase.WAITING_RESTART)


class DmaController:
    """Copies 160 bytes from a source page into OAM, one byte per cycle."""

    def __init__(self, bus: Bus) -> None:
        self._bus = bus
        self._mem_index = 0
        self._base_addr = 0
        self._dma_index = 0
        self._state = DmaState(DmaPhase.COMPLETED)

    def _start(self, index: int) -> None:
        self._mem_index = index & 0xFF
        self._base_addr = self._mem_index << 8
        self._dma_index = 0

    def trigger(self, index: int) -> None:
        """Start a transfer from page ``index``, or schedule a restart if one is running."""
        if self._state.phase is DmaPhase.COMPLETED:
            self._start(index)
            self._state = DmaState(DmaPhase.TRIGGERED)
        else:
            self._state = DmaState(DmaPhase.RESTART_TRIGGERED, index & 0xFF)

    def is_addr_accessible(self, addr: int) -> bool:
        if self._state.phase in (DmaPhase.COMPLETED, DmaPhase.TRIGGERED, DmaPhase.WAITING):
            return True
        return (
            (addr & 0xFF00) != self._base_addr and not 0xFE00 <= addr <= 0xFE9F
        ) or 0xFF80 <= addr <= 0xFFFE

    def state(self) -> DmaState:
        return self._state

    def mem_index(self) -> int:
        return self._mem_index

    def clock(self) -> None:
        state = self._state
        phase = state.phase
        if phase in _COPYING:
            value = self._bus.dma_read(self._base_addr + self._dma_index)
            self._bus.dma_write(DMA_BASE_ADDR + self._dma_index, value)
            self._dma_index += 1
            if self._dma_index == DMA_SIZE:
                self._state = DmaState(DmaPhase.COMPLETED)
            elif phase is DmaPhase.RESTART_TRIGGERED:
                self._state = DmaState(DmaPhase.WAITING_RESTART, state.index)
            elif phase is DmaPhase.WAITING_RESTART:
                self._start(state.index)
                self._state = DmaState(DmaPhase.RUNNING)
        elif phase is DmaPhase.TRIGGERED:
            self._state = DmaState(DmaPhase.WAITING)
        elif phase is DmaPhase.WAITING:
            self._state = DmaState(DmaPhase.RUNNING)


class HdmaState(Enum):
    HBLANK_TRANSFER = auto()
    HBLANK_TRANSFER_WAIT = auto()
    HBLANK_TRANSFER_FINISHED_BLOCK = auto()
    GDMA_TRANSFER = auto()
    IDLE = auto()


class HdmaController:
    """General-purpose and HBlank DMA from memory into VRAM."""

    def __init__(self, bus: Bus) -> None:
        self._bus = bus
        self._hdma1 = 0
        self._hdma2 = 0
        self._hdma3 = 0
        self._hdma4 = 0
        self._hdma5 = 0
        self._source = 0
        self._dest = 0
        self._length = 0
        self._active = False
        self._index = 0
        self._state = HdmaState.IDLE

    def write(self, addr: int, val: int) -> None:
        val &= 0xFF
        if addr == 0xFF51:
            self._hdma1 = val
        elif addr == 0xFF52:
            self._hdma2 = val & 0xF0
        elif addr == 0xFF53:
            self._hdma3 = val & 0x1F
        elif addr == 0xFF54:
            self._hdma4 = val & 0xF0
        elif addr == 0xFF55:
            if self._active and not val & 0x80:
                self._active = False
                self._hdma5 |= 0x80
                self._state = HdmaState.IDLE
            else:
                self._hdma5 = val
                self.start_hdma()
        else:
            raise ValueError(f"Invalid write to HDMA controller at address {addr:04X}")

    def read(self, addr: int) -> int:
        if 0xFF51 <= addr <= 0xFF54:
            return 0xFF
        if addr == 0xFF55:
            return self._hdma5
        raise ValueError(f"Invalid read from HDMA controller at address {addr:04X}")

    def start_hdma(self) -> None:
        """Latch the source, destination and length registers and begin a transfer."""
        self._source = (self._hdma1 << 8) | self._hdma2
        self._dest = ((self._hdma3 << 8) | self._hdma4) + 0x8000
        self._length = ((self._hdma5 & 0x7F) << 4) + 1
        self._active = True
        self._index = 0
        self._state = (
            HdmaState.HBLANK_TRANSFER_WAIT if self._hdma5 & 0x80 else HdmaState.GDMA_TRANSFER
        )
        self._hdma5 &= 0x7F

    def _transfer_block(self) -> None:
        for _ in range(8):
            dst = self._dest + self._index
            if self._index == self._length or dst >= 0xA000:
                break
            value = self._bus.dma_read((self._source + self._index) & 0xFFFF)
            self._bus.dma_write(dst, value)
            self._index += 1

    def _finish(self) -> None:
        self._active = False
        self._hdma5 = 0xFF
        self._state = HdmaState.IDLE

    def _in_hblank(self) -> bool:
        return (self._bus.read(_STAT_ADDR) & 0x03) == _HBLANK_MODE

    def clock(self) -> None:
        if not self._active:
            return
        state = self._state
        if state is HdmaState.HBLANK_TRANSFER_WAIT:
            if self._in_hblank():
                self._state = HdmaState.HBLANK_TRANSFER
        elif state is HdmaState.HBLANK_TRANSFER_FINISHED_BLOCK:
            if not self._in_hblank():
                self._state = HdmaState.HBLANK_TRANSFER_WAIT
        elif state is HdmaState.HBLANK_TRANSFER:
            self._transfer_block()
            if self._index % 0x10 == 0:
                self._hdma5 = (((self._length - self._index) >> 4) - 1) & 0xFF
                if self._hdma5 == 0xFF:
                    self._active = False
                    self._state = HdmaState.IDLE
                else:
                    self._state = HdmaState.HBLANK_TRANSFER_FINISHED_BLOCK
            if self._dest + self._index >= 0xA000:
                self._finish()
        elif state is HdmaState.GDMA_TRANSFER:
            while True:
                self._transfer_block()
                if self._index == self._length or self._dest + self._index >= 0xA000:
                    self._finish()
                    break

    def state(self) -> HdmaState:
        return self._state