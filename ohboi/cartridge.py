"""Cartridges: ROM file loading, controller selection and battery saves."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .header import CartridgeHeader, CartridgeType
from .mbc import Mbc, Mbc1, Mbc5, NoMbc
from .mbc3 import Mbc3

logger = logging.getLogger(__name__)


def make_mbc(header: CartridgeHeader, rom: bytes, sav: bytes | None) -> Mbc:
    """Build the bank controller that the header's cartridge type calls for."""
    kind = header.cart_type
    if kind is CartridgeType.NONE:
        return NoMbc(rom)
    if kind is CartridgeType.MBC1:
        return Mbc1(rom, header, None, False)
    if kind is CartridgeType.MBC1_RAM:
        return Mbc1(rom, header, sav, False)
    if kind is CartridgeType.MBC1_RAM_BATTERY:
        return Mbc1(rom, header, sav, True)
    if kind is CartridgeType.MBC3_TIMER_BATTERY:
        return Mbc3(rom, header, None, True, True)
    if kind is CartridgeType.MBC3_TIMER_RAM_BATTERY:
        return Mbc3(rom, header, sav, True, True)
    if kind is CartridgeType.MBC3:
        return Mbc3(rom, header, None, False, False)
    if kind is CartridgeType.MBC3_RAM:
        return Mbc3(rom, header, sav, False, False)
    if kind is CartridgeType.MBC3_RAM_BATTERY:
        return Mbc3(rom, header, sav, True, False)
    if kind is CartridgeType.MBC5:
        return Mbc5(rom, header, None, False)
    if kind is CartridgeType.MBC5_RAM:
        return Mbc5(rom, header, sav, False)
    if kind is CartridgeType.MBC5_RAM_BATTERY:
        return Mbc5(rom, header, sav, True)
    logger.warning("Unimplemented cartridge type %r. Falling back to None", kind)
    return NoMbc(rom)


@dataclass
class Cartridge:
    """A loaded ROM with its bank controller and save file location."""

    rom_path: Path
    sav_path: Path
    header: CartridgeHeader
    mbc: Mbc

    @classmethod
    def open(cls, rom_path: str | Path) -> "Cartridge":
        """Load a ROM file and, if present, the ``.sav`` file next to it."""
        rom_path = Path(rom_path)
        rom = rom_path.read_bytes()
        sav_path = rom_path.with_suffix(".sav")
        try:
            sav: bytes | None = sav_path.read_bytes()
        except FileNotFoundError:
            sav = None
        header = CartridgeHeader.from_rom(rom)
        if len(rom) != header.rom_size:
            logger.warning(
                "Inconsistent ROM size. Cartridge header reports %x, but actual size is %x",
                header.rom_size,
                len(rom),
            )
        return cls(rom_path, sav_path, header, make_mbc(header, rom, sav))

    def read(self, addr: int) -> int:
        if 0x0000 <= addr <= 0x7FFF:
            return self.mbc.read(addr)
        if 0xA000 <= addr <= 0xBFFF:
            return self.mbc.read_ext_ram(addr)
        logger.warning("Reading from invalid cartridge address 0x%x. Returning 0xFF", addr)
        return 0xFF

    def write(self, addr: int, val: int) -> None:
        if 0x0000 <= addr <= 0x7FFF:
            self.mbc.write(addr, val)
        elif 0xA000 <= addr <= 0xBFFF:
            self.mbc.write_ext_ram(addr, val)
        else:
            logger.warning("Writing to invalid cartridge address 0x%x value %x", addr, val)

    def save(self) -> None:
        """Write battery-backed external RAM to the save file."""
        if self.mbc.has_ram() and self.mbc.has_battery():
            logger.warning("Writing save file to %s", self.sav_path)
            self.sav_path.write_bytes(bytes(self.mbc.ram))

    def is_cgb(self) -> bool:
        return self.header.cgb

    def rom(self) -> bytes:
        return self.mbc.rom

    def ext_ram(self) -> bytes | None:
        ram = self.mbc.ram
        return None if ram is None else bytes(ram)

    def __getitem__(self, index):
        return self.mbc.rom[index]