"""Memory bank controllers: none, MBC1 and MBC5."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum, auto

from .header import CartridgeHeader

logger = logging.getLogger(__name__)

ROM_BANK_SIZE = 0x4000
RAM_BANK_SIZE = 0x2000
EXT_RAM_BASE = 0xA000


class BankingMode(Enum):
    ROM = auto()
    RAM = auto()


def _initial_ram(header: CartridgeHeader, sav: bytes | None) -> bytearray | None:
    if sav is not None:
        return bytearray(sav)
    if header.ram_size != 0:
        return bytearray(header.ram_size)
    return None


class Mbc(ABC):
    """Maps ROM and external RAM accesses onto the cartridge banks."""

    rom: bytes
    ram: bytearray | None = None
    battery: bool = False

    @abstractmethod
    def read(self, addr: int) -> int:
        """Read a byte from the ROM area 0x0000-0x7FFF."""

    @abstractmethod
    def write(self, addr: int, val: int) -> None:
        """Write a control register in the ROM area."""

    def read_ext_ram(self, addr: int) -> int:
        return 0xFF

    def write_ext_ram(self, addr: int, val: int) -> None:
        return None

    def has_battery(self) -> bool:
        return self.battery

    def has_ram(self) -> bool:
        return self.ram is not None


class NoMbc(Mbc):
    """A plain 32 KiB ROM without banking."""

    def __init__(self, rom: bytes) -> None:
        self.rom = bytes(rom)

    def read(self, addr: int) -> int:
        return self.rom[addr]

    def write(self, addr: int, val: int) -> None:
        return None


class Mbc1(Mbc):
    def __init__(
        self, rom: bytes, header: CartridgeHeader, sav: bytes | None, battery: bool
    ) -> None:
        self.rom = bytes(rom)
        self.ram = _initial_ram(header, sav)
        self.battery = battery
        self._ram_enabled = False
        self._mode = BankingMode.ROM
        self._bank_hi = 0
        self._bank_lo = 1
        self._n_rom_banks = header.rom_size // ROM_BANK_SIZE

    def read(self, addr: int) -> int:
        bank = 0 if addr < 0x4000 else ((self._bank_hi << 5) | self._bank_lo) & 0x7F
        if bank == 0 and self._mode is BankingMode.RAM:
            bank = self._bank_hi << 5
        bank %= self._n_rom_banks
        return self.rom[ROM_BANK_SIZE * bank + addr % ROM_BANK_SIZE]

    def write(self, addr: int, val: int) -> None:
        if 0x0000 <= addr <= 0x1FFF:
            self._ram_enabled = val & 0xF == 0xA
        elif 0x2000 <= addr <= 0x3FFF:
            self._bank_lo = val & 0x1F or 1
        elif 0x4000 <= addr <= 0x5FFF:
            self._bank_hi = val & 0x3
        elif 0x6000 <= addr <= 0x7FFF:
            self._mode = BankingMode.RAM if val == 0 else BankingMode.ROM
        else:
            raise ValueError(f"Invalid write to cartridge at address {addr:04X}")

    def _ram_offset(self, addr: int) -> int:
        bank = self._bank_hi if self._mode is BankingMode.RAM else 0
        return bank * RAM_BANK_SIZE + (addr - EXT_RAM_BASE)

    def read_ext_ram(self, addr: int) -> int:
        if self.ram is None:
            logger.warning("Tried reading from external RAM when cartridge has none")
            return 0xFF
        return self.ram[self._ram_offset(addr)]

    def write_ext_ram(self, addr: int, val: int) -> None:
        if self.ram is None:
            logger.warning("Tried writing to external RAM when cartridge has none")
            return
        self.ram[self._ram_offset(addr)] = val & 0xFF


class Mbc5(Mbc):
    def __init__(
        self, rom: bytes, header: CartridgeHeader, sav: bytes | None, battery: bool
    ) -> None:
        self.rom = bytes(rom)
        self.ram = _initial_ram(header, sav)
        self.battery = battery
        self._ram_enabled = False
        self._ram_bank = 0
        self._bank_hi = 0
        self._bank_lo = 1
        self._n_rom_banks = header.rom_size // ROM_BANK_SIZE

    def read(self, addr: int) -> int:
        bank = 0 if addr < 0x4000 else (self._bank_hi << 8) | self._bank_lo
        bank %= self._n_rom_banks
        return self.rom[ROM_BANK_SIZE * bank + addr % ROM_BANK_SIZE]

    def write(self, addr: int, val: int) -> None:
        if 0x0000 <= addr <= 0x1FFF:
            self._ram_enabled = val & 0xF == 0xA
        elif 0x2000 <= addr <= 0x2FFF:
            self._bank_lo = val & 0xFF
        elif 0x3000 <= addr <= 0x3FFF:
            self._bank_hi = val & 0x1
        elif 0x4000 <= addr <= 0x5FFF:
            self._ram_bank = val & 0xF
        else:
            logger.debug("Invalid write to cartridge at address %04X", addr)

    def _ram_offset(self, addr: int) -> int:
        return self._ram_bank * RAM_BANK_SIZE + (addr - EXT_RAM_BASE)

    def read_ext_ram(self, addr: int) -> int:
        if self.ram is None or not self._ram_enabled:
            return 0xFF
        return self.ram[self._ram_offset(addr)]

    def write_ext_ram(self, addr: int, val: int) -> None:
        if self.ram is None or not self._ram_enabled:
            return
        self.ram[self._ram_offset(addr)] = val & 0xFF