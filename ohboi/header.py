"""Cartridge type codes and the ROM header."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum

logger = logging.getLogger(__name__)

HEADER_END = 0x150
INVALID_STRING = "<Invalid string>"
_ROM_BANK = 0x4000
_RAM_BANK = 0x2000


class CartridgeType(IntEnum):
    """Memory bank controller and extras, as coded at 0x147."""

    NONE = 0x00
    MBC1 = 0x01
    MBC1_RAM = 0x02
    MBC1_RAM_BATTERY = 0x03
    MBC3_TIMER_BATTERY = 0x0F
    MBC3_TIMER_RAM_BATTERY = 0x10
    MBC3 = 0x11
    MBC3_RAM = 0x12
    MBC3_RAM_BATTERY = 0x13
    MBC5 = 0x19
    MBC5_RAM = 0x1A
    MBC5_RAM_BATTERY = 0x1B

    @classmethod
    def from_code(cls, value: int) -> "CartridgeType":
        """Decode a type byte; unknown codes fall back to NONE."""
        try:
            return cls(value)
        except ValueError:
            logger.warning("Unknown cartridge type 0x%x. Falling back to None", value)
            return cls.NONE


def _text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return INVALID_STRING


def _rom_size(code: int) -> int:
    if 0x00 <= code <= 0x08:
        return 0x8000 * (1 << code)
    sizes = {0x52: 72 * _ROM_BANK, 0x53: 80 * _ROM_BANK, 0x54: 96 * _ROM_BANK}
    if code in sizes:
        return sizes[code]
    logger.warning("Unknown ROM size %x. Falling back to 32 KiB", code)
    return 0x8000


def _ram_size(code: int) -> int:
    sizes = {
        0x00: 0,
        0x01: 0,
        0x02: _RAM_BANK,
        0x03: 4 * _RAM_BANK,
        0x04: 16 * _RAM_BANK,
        0x05: 8 * _RAM_BANK,
    }
    if code in sizes:
        return sizes[code]
    logger.warning("Unknown RAM size 0x%x. Falling back to 0", code)
    return 0


@dataclass(frozen=True)
class CartridgeHeader:
    """Metadata read from the cartridge header area 0x100-0x14F."""

    entry_point: bytes
    logo: bytes
    title: str
    manufacturer_code: str
    cgb: bool
    new_licensee_code: str
    sgb: bool
    cart_type: CartridgeType
    rom_size: int
    ram_size: int
    dest_code: int
    old_licensee_code: int
    version: int
    header_checksum: int
    global_checksum: bytes

    @classmethod
    def from_rom(cls, rom: bytes) -> "CartridgeHeader":
        if len(rom) < HEADER_END:
            raise ValueError(f"ROM of {len(rom)} bytes is too small to hold a header")
        return cls(
            entry_point=bytes(rom[0x100:0x104]),
            logo=bytes(rom[0x104:0x134]),
            title=_text(bytes(rom[0x134:0x144])),
            manufacturer_code=_text(bytes(rom[0x13F:0x143])),
            cgb=rom[0x143] & 0x80 == 0x80,
            new_licensee_code=_text(bytes(rom[0x144:0x146])),
            sgb=rom[0x146] == 0x03,
            cart_type=CartridgeType.from_code(rom[0x147]),
            rom_size=_rom_size(rom[0x148]),
            ram_size=_ram_size(rom[0x149]),
            dest_code=rom[0x14A],
            old_licensee_code=rom[0x14B],
            version=rom[0x14C],
            header_checksum=rom[0x14D],
            global_checksum=bytes(rom[0x14E:0x150]),
        )