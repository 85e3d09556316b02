"""Monochrome and colour palettes."""

from __future__ import annotations

DMG_COLORS = (
    bytes((0xFF, 0xFF, 0xFF, 0xFF)),
    bytes((0xCC, 0xCC, 0xCC, 0xFF)),
    bytes((0x77, 0x77, 0x77, 0xFF)),
    bytes((0x00, 0x00, 0x00, 0xFF)),
)


class DmgPalette:
    """A BGP/OBP register decoded into four RGBA shades."""

    def __init__(self, value: int) -> None:
        self.value = 0
        self._colors: tuple[bytes, ...] = DMG_COLORS
        self.update(value)

    def update(self, value: int) -> None:
        self.value = value & 0xFF
        self._colors = tuple(DMG_COLORS[(self.value >> (2 * i)) & 3] for i in range(4))

    def colors(self) -> tuple[bytes, ...]:
        return self._colors


def _expand(component: int) -> int:
    return (component << 3) | (component >> 2)


def _rgb(raw: int) -> tuple[int, int, int]:
    return (
        _expand(raw & 0x1F),
        _expand((raw >> 5) & 0x1F),
        _expand((raw >> 10) & 0x1F),
    )


class CgbPalette:
    """Eight palettes of four 15-bit colours, accessed through an index register."""

    def __init__(self) -> None:
        self._data = [[0] * 4 for _ in range(8)]
        self._index = 0

    @property
    def _palette(self) -> int:
        return (self._index >> 3) & 0x7

    @property
    def _color(self) -> int:
        return (self._index >> 1) & 0x3

    @property
    def _high_byte(self) -> bool:
        return bool(self._index & 1)

    @property
    def _auto_increment(self) -> bool:
        return bool(self._index & 0x80)

    def write_data(self, val: int) -> None:
        row = self._data[self._palette]
        current = row[self._color]
        if self._high_byte:
            row[self._color] = (current & 0x00FF) | ((val & 0xFF) << 8)
        else:
            row[self._color] = (current & 0xFF00) | (val & 0xFF)
        if self._auto_increment:
            self.increment_index()

    def write_index(self, val: int) -> None:
        self._index = val & 0xFF

    def read_data(self) -> int:
        raw = self._data[self._palette][self._color]
        return (raw >> 8) & 0xFF if self._high_byte else raw & 0xFF

    def read_index(self) -> int:
        return self._index

    def increment_index(self) -> None:
        self._index = (self._index & 0xC0) | (((self._index & 0x3F) + 1) % 64)

    def color(self) -> int:
        """The currently indexed colour as 0xRRGGBBFF."""
        r, g, b = _rgb(self._data[self._palette][self._color])
        return 0xFF | (r << 24) | (g << 16) | (b << 8)

    def color_array(self, palette_index: int) -> tuple[bytes, ...]:
        """The four colours of a palette as RGBA byte strings."""
        return tuple(bytes((*_rgb(raw), 0xFF)) for raw in self._data[palette_index])