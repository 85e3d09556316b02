"""Video RAM, tiles and background map attributes."""

from __future__ import annotations

from dataclasses import dataclass, field

VRAM_SIZE = 0x4000
BANK_SIZE = 0x2000

Row = tuple[int, ...]


def _empty_rows() -> tuple[Row, ...]:
    return tuple((0,) * 8 for _ in range(8))


@dataclass(frozen=True)
class Tile:
    """An 8x8 tile of 2-bit colour indices; column 0 is the rightmost pixel."""

    rows: tuple[Row, ...] = field(default_factory=_empty_rows)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Tile":
        rows = []
        for y in range(8):
            lo, hi = data[y * 2], data[y * 2 + 1]
            rows.append(tuple(((hi >> x) & 1) << 1 | ((lo >> x) & 1) for x in range(8)))
        return cls(tuple(rows))

    def __getitem__(self, row: int) -> Row:
        return self.rows[row]


@dataclass(frozen=True)
class TileAttributes:
    """A colour background map attribute byte."""

    value: int = 0

    def palette(self) -> int:
        return self.value & 0x7

    def bank(self) -> int:
        return (self.value >> 3) & 1

    def x_flip(self) -> bool:
        return bool(self.value & 0x20)

    def y_flip(self) -> bool:
        return bool(self.value & 0x40)

    def priority(self) -> bool:
        return bool(self.value & 0x80)


def _tile_address(tile_index: int, signed: bool, bank: int) -> int:
    if not signed:
        return tile_index * 16 + bank * BANK_SIZE
    offset = tile_index - 256 if tile_index >= 128 else tile_index
    return bank * BANK_SIZE + (offset + 256) * 16


class Vram:
    """16 KiB of video RAM split into two banks; bank 1 only exists in colour mode."""

    def __init__(self, cgb: bool) -> None:
        self._mem = bytearray(VRAM_SIZE)
        self._bank = 0
        self._cgb = cgb

    def read(self, addr: int) -> int:
        return self._mem[self._bank * BANK_SIZE + addr]

    def write(self, addr: int, val: int) -> None:
        self._mem[self._bank * BANK_SIZE + addr] = val & 0xFF

    def bank(self) -> int:
        return self._bank

    def set_bank(self, bank: int) -> None:
        if self._cgb:
            self._bank = bank

    def get_tile(self, tile_map_index: int, signed: bool) -> tuple[Tile, TileAttributes]:
        """Look up the tile referenced by a background map entry."""
        attributes = (
            TileAttributes(self._mem[tile_map_index + BANK_SIZE]) if self._cgb else TileAttributes(0)
        )
        tile_index = self._mem[tile_map_index]
        address = _tile_address(tile_index, signed, attributes.bank())
        return Tile.from_bytes(self._mem[address:address + 16]), attributes

    def get_sprite_tile(self, tile_index: int, bank: int) -> Tile:
        address = _tile_address(tile_index, False, bank)
        return Tile.from_bytes(self._mem[address:address + 16])

    def reset(self) -> None:
        self._mem[:] = bytes(VRAM_SIZE)
        self._bank = 0

    def __getitem__(self, index):
        if isinstance(index, slice):
            return bytes(self._mem[index])
        return self._mem[index]