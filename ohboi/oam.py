"""Object attribute memory and sprite entries."""

from __future__ import annotations

from dataclasses import dataclass

OAM_SIZE = 0xA0


@dataclass(frozen=True)
class Sprite:
    """One four-byte OAM entry together with its position in OAM."""

    oam_offset: int = 0
    y: int = 0
    x: int = 0
    tile_location: int = 0
    attributes: int = 0

    @classmethod
    def from_bytes(cls, oam_offset: int, data: bytes) -> "Sprite":
        y, x, tile, attributes = data[:4]
        return cls(oam_offset, y, x, tile, attributes)

    def cgb_palette_number(self) -> int:
        return self.attributes & 0x7

    def vram_bank(self) -> int:
        return (self.attributes >> 3) & 1

    def dmg_palette_number(self) -> int:
        return (self.attributes >> 4) & 1

    def x_flip(self) -> bool:
        return bool(self.attributes & 0x20)

    def y_flip(self) -> bool:
        return bool(self.attributes & 0x40)

    def has_priority(self) -> bool:
        """True when the sprite is drawn above non-zero background pixels."""
        return not self.attributes & 0x80


class Oam:
    """The 160-byte sprite attribute table."""

    def __init__(self) -> None:
        self._mem = bytearray(OAM_SIZE)

    def reset(self) -> None:
        self._mem[:] = bytes(OAM_SIZE)

    def __getitem__(self, index):
        return self._mem[index]

    def __setitem__(self, index: int, value: int) -> None:
        self._mem[index] = value & 0xFF

    def sprite(self, index: int) -> Sprite:
        start = index * 4
        return Sprite.from_bytes(index, bytes(self._mem[start:start + 4]))