"""MBC3 memory bank controller with its optional real-time clock."""

from __future__ import annotations

import logging
import time
from typing import Callable

from .header import CartridgeHeader
from .mbc import EXT_RAM_BASE, RAM_BANK_SIZE, ROM_BANK_SIZE, Mbc

logger = logging.getLogger(__name__)

RTC_SAVE_SIZE = 48
_RTC_MIN_SIZE = 40
_FIELD_STRIDE = 4

_DAY_HI_BIT = 0x01
_HALT = 0x40
_DAY_CARRY = 0x80

_REG_SECONDS = 0x8
_REG_MINUTES = 0x9
_REG_HOURS = 0xA
_REG_DAY = 0xB
_REG_DAY_HI = 0xC


class Rtc:
    """The MBC3 clock registers, advanced from a wall clock given in seconds."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self.seconds = 0
        self.minutes = 0
        self.hours = 0
        self.day = 0
        self.day_hi = 0
        self.latched_seconds = 0
        self.latched_minutes = 0
        self.latched_hours = 0
        self.latched_day = 0
        self.latched_day_hi = 0
        self.current_time = clock()

    def load(self, buf: bytes) -> None:
        """Restore the registers from a saved block; short blocks are ignored."""
        if len(buf) < _RTC_MIN_SIZE:
            logger.warning("Buffer size is too small to read RTC data")
            return
        (
            self.seconds,
            self.minutes,
            self.hours,
            self.day,
            self.day_hi,
            self.latched_seconds,
            self.latched_minutes,
            self.latched_hours,
            self.latched_day,
            self.latched_day_hi,
        ) = (buf[i] for i in range(0, _RTC_MIN_SIZE, _FIELD_STRIDE))
        if len(buf) > _RTC_MIN_SIZE:
            stamp = bytes(buf[_RTC_MIN_SIZE:RTC_SAVE_SIZE])
            if len(stamp) != 8:
                raise ValueError("RTC timestamp must be 8 bytes long")
            self.current_time = int.from_bytes(stamp, "little")
        else:
            self.current_time = self._clock()

    def to_bytes(self) -> bytes:
        """Bring the clock up to date and serialise it as a 48-byte block."""
        self.update_time()
        buf = bytearray(RTC_SAVE_SIZE)
        values = (
            self.seconds,
            self.minutes,
            self.hours,
            self.day,
            self.day_hi,
            self.latched_seconds,
            self.latched_minutes,
            self.latched_hours,
            self.latched_day,
            self.latched_day_hi,
        )
        for position, value in zip(range(0, _RTC_MIN_SIZE, _FIELD_STRIDE), values):
            buf[position] = value & 0xFF
        elapsed = max(0, int(self.current_time))
        buf[_RTC_MIN_SIZE:RTC_SAVE_SIZE] = (elapsed & 0xFFFF_FFFF_FFFF_FFFF).to_bytes(8, "little")
        return bytes(buf)

    def update_time(self) -> None:
        """Advance the registers by the whole seconds elapsed since the last update."""
        now = self._clock()
        if self.day_hi & _HALT:
            return
        if now >= self.current_time:
            difference = int(now - self.current_time) & 0xFFFF_FFFF
            new_secs = self.seconds + difference
            new_mins = self.minutes + new_secs // 60
            new_hours = self.hours + new_mins // 60
            if new_secs == self.seconds:
                return
            self.seconds = new_secs % 60
            self.minutes = new_mins % 60
            self.hours = new_hours % 24
            days = ((self.day_hi & _DAY_HI_BIT) << 8) | self.day
            new_days = days + new_hours // 24
            self.day = new_days % 256
            self.day_hi &= 0xFE
            if new_days >> 8:
                self.day_hi |= _DAY_HI_BIT
            if new_days > 511:
                self.day_hi |= _DAY_CARRY
        self.current_time = now

    def latch_time(self) -> None:
        self.latched_seconds = self.seconds
        self.latched_minutes = self.minutes
        self.latched_hours = self.hours
        self.latched_day = self.day
        self.latched_day_hi = self.day_hi


class Mbc3(Mbc):
    """MBC3: 7-bit ROM banking, four RAM banks and clock registers."""

    def __init__(
        self,
        rom: bytes,
        header: CartridgeHeader,
        sav: bytes | None,
        battery: bool,
        rtc: bool | Rtc,
    ) -> None:
        self.rom = bytes(rom)
        if sav is not None:
            self.ram = bytearray(sav)
        elif header.ram_size != 0:
            self.ram = bytearray(header.ram_size)
        else:
            self.ram = None
        if isinstance(rtc, Rtc):
            self.rtc: Rtc | None = rtc
        else:
            self.rtc = Rtc() if rtc else None
        self.battery = battery
        self._enabled = False
        self._ram_bank_rtc_reg = 0
        self._rom_bank = 1
        self._n_rom_banks = header.rom_size // ROM_BANK_SIZE
        self._n_ram_banks = header.ram_size // RAM_BANK_SIZE
        self._latch = False

    def read(self, addr: int) -> int:
        bank = 0 if addr < 0x4000 else self._rom_bank
        bank %= self._n_rom_banks
        return self.rom[ROM_BANK_SIZE * bank + addr % ROM_BANK_SIZE]

    def write(self, addr: int, val: int) -> None:
        if 0x0000 <= addr <= 0x1FFF:
            self._enabled = val & 0xF == 0xA
        elif 0x2000 <= addr <= 0x3FFF:
            self._rom_bank = val & 0x7F or 1
        elif 0x4000 <= addr <= 0x5FFF:
            self._ram_bank_rtc_reg = val & 0xF
        elif 0x6000 <= addr <= 0x7FFF and self.rtc is not None:
            latch = val & 0x1 == 1
            if not self._latch and latch:
                self.rtc.latch_time()
            self._latch = latch

    def _ram_offset(self, addr: int) -> int:
        return self._ram_bank_rtc_reg * RAM_BANK_SIZE + (addr - EXT_RAM_BASE)

    def read_ext_ram(self, addr: int) -> int:
        if not self._enabled:
            return 0xFF
        if self._ram_bank_rtc_reg < 4:
            return 0xFF if self.ram is None else self.ram[self._ram_offset(addr)]
        rtc = self.rtc
        if rtc is None:
            return 0xFF
        match self._ram_bank_rtc_reg:
            case 0x8:
                return rtc.latched_seconds
            case 0x9:
                return rtc.latched_minutes
            case 0xA:
                return rtc.latched_hours
            case 0xB:
                return rtc.latched_day
            case 0xC:
                return rtc.latched_day_hi
            case _:
                return 0xFF

    def write_ext_ram(self, addr: int, val: int) -> None:
        if not self._enabled:
            return
        val &= 0xFF
        if self._ram_bank_rtc_reg < 4:
            if self.ram is not None:
                self.ram[self._ram_offset(addr)] = val
            return
        rtc = self.rtc
        if rtc is None:
            return
        match self._ram_bank_rtc_reg:
            case 0x8:
                rtc.seconds = val
            case 0x9:
                rtc.minutes = val
            case 0xA:
                rtc.hours = val
            case 0xB:
                rtc.day = val
            case 0xC:
                rtc.day_hi = val