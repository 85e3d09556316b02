"""The pixel fetcher and its background and sprite pixel queues."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto

from .oam import Sprite
from .vram import Tile, TileAttributes, Vram

_FIFO_THRESHOLD = 8


class _FetcherState(Enum):
    GET_TILE = auto()
    GET_TILE_DATA_LO = auto()
    GET_TILE_DATA_HI = auto()
    SLEEP = auto()
    PUSH = auto()


@dataclass
class TilePixel:
    """A background pixel: colour index, palette number and priority flag."""

    color: int = 0
    palette: int = 0
    priority: bool = False


@dataclass
class SpritePixel:
    """A sprite pixel together with the OAM position of the sprite it came from."""

    pixel: TilePixel
    oam_offset: int


@dataclass
class _TileData:
    row_index: int = 0
    row_addr: int = 0
    tile_index: int = 0
    tile_y: int = 0
    tile: Tile = field(default_factory=Tile)
    attributes: TileAttributes = field(default_factory=TileAttributes)

    def reset(self) -> None:
        self.row_index = 0
        self.row_addr = 0
        self.tile_index = 0
        self.tile_y = 0
        self.attributes = TileAttributes()

    def start_fetch(self, x: int, y: int, tile_map: int) -> None:
        self.tile_index = 0
        self.tile_y = y & 7
        self.row_index = (x & 0xFF) >> 3
        self.row_addr = tile_map + (((y & 0xFF) >> 3) << 5)

    def update_tile(self, vram: Vram, signed_tileset: bool) -> None:
        self.tile, self.attributes = vram.get_tile(self.row_addr + self.row_index, signed_tileset)

    def pixel(self, cgb: bool, x: int) -> TilePixel:
        if not cgb:
            return TilePixel(self.tile[self.tile_y][x], 0, False)
        if self.attributes.x_flip():
            x = 7 - x
        y = 7 - self.tile_y if self.attributes.y_flip() else self.tile_y
        return TilePixel(self.tile[y][x], self.attributes.palette(), self.attributes.priority())

    def increment_row_index(self) -> None:
        self.row_index = (self.row_index + 1) & 0x1F


@dataclass
class _SpriteData:
    sprite: Sprite = field(default_factory=Sprite)
    tile_index: int = 0
    tile_y: int = 0

    def reset(self) -> None:
        self.sprite = Sprite()
        self.tile_index = 0
        self.tile_y = 0

    def start_fetch(self, y: int, sprite: Sprite, use_8x16: bool) -> None:
        y &= 0xFF
        lower_half = y >= ((sprite.y - 8) & 0xFF)
        self.tile_index = sprite.tile_location
        if use_8x16:
            self.tile_index = self.tile_index | 1 if lower_half else self.tile_index & 0xFE
        self.tile_y = ((y - sprite.y) & 0xFF) & 0b111
        if sprite.y_flip():
            self.tile_y = 7 - self.tile_y
            if use_8x16:
                self.tile_index = self.tile_index & 0xFE if lower_half else self.tile_index | 1
        self.sprite = sprite

    def pixel(self, tile_x: int, cgb: bool, vram: Vram) -> SpritePixel:
        x = tile_x if self.sprite.x_flip() else 7 - tile_x
        tile = vram.get_sprite_tile(self.tile_index, self.sprite.vram_bank())
        palette = self.sprite.cgb_palette_number() if cgb else self.sprite.dmg_palette_number()
        return SpritePixel(
            TilePixel(tile[self.tile_y][x], palette, self.sprite.has_priority()),
            self.sprite.oam_offset,
        )

    def has_priority_over(self, oam_offset: int) -> bool:
        return self.sprite.oam_offset < oam_offset


class PixelFetcher:
    """Fetches background and sprite tiles, feeding two pixel queues."""

    def __init__(self) -> None:
        self._state = _FetcherState.GET_TILE
        self._tile_data = _TileData()
        self._sprite_data = _SpriteData()
        self._scroll_quantity = 0
        self.rendering_sprites = False
        self._dot_clock_divider = False
        self._bg_fifo: deque[TilePixel] = deque()
        self._spr_fifo: deque[SpritePixel] = deque()

    def reset(self) -> None:
        self._state = _FetcherState.GET_TILE
        self._tile_data.reset()
        self._sprite_data.reset()
        self._scroll_quantity = 0
        self.rendering_sprites = False
        self._dot_clock_divider = False
        self.clear_queues()

    def start(self, x: int, y: int, tile_map: int, scroll: int) -> None:
        """Begin fetching background tiles for a line, discarding ``scroll`` pixels."""
        self._state = _FetcherState.GET_TILE
        self._dot_clock_divider = False
        self._scroll_quantity = scroll
        self.rendering_sprites = False
        self._tile_data.start_fetch(x, y, tile_map)
        self._bg_fifo.clear()

    def start_sprite_fetch(self, sprite: Sprite, use_8x16: bool, y: int) -> None:
        self._state = _FetcherState.GET_TILE
        self._dot_clock_divider = False
        self.rendering_sprites = True
        self._sprite_data.start_fetch(y, sprite, use_8x16)

    def step(self, vram: Vram, cgb: bool, signed_tileset: bool) -> None:
        """Advance the fetcher by one dot."""
        state = self._state
        if state is _FetcherState.GET_TILE:
            if self._tick():
                if not self.rendering_sprites:
                    self._tile_data.update_tile(vram, signed_tileset)
                self._state = _FetcherState.GET_TILE_DATA_LO
        elif state is _FetcherState.GET_TILE_DATA_LO:
            if self._tick():
                self._state = _FetcherState.GET_TILE_DATA_HI
        elif state is _FetcherState.GET_TILE_DATA_HI:
            if self._tick():
                fifo = self._spr_fifo if self.rendering_sprites else self._bg_fifo
                self._state = (
                    _FetcherState.PUSH if len(fifo) <= _FIFO_THRESHOLD else _FetcherState.SLEEP
                )
        elif state is _FetcherState.SLEEP:
            if self._tick():
                self._state = _FetcherState.PUSH
        else:
            self._push(cgb, vram)

    def _tick(self) -> bool:
        self._dot_clock_divider = not self._dot_clock_divider
        return self._dot_clock_divider

    def _push(self, cgb: bool, vram: Vram) -> None:
        if self.rendering_sprites:
            if len(self._spr_fifo) <= _FIFO_THRESHOLD:
                for tile_x in range(8):
                    sprite_pixel = self._sprite_data.pixel(tile_x, cgb, vram)
                    if len(self._spr_fifo) <= tile_x:
                        self._spr_fifo.append(sprite_pixel)
                    else:
                        existing = self._spr_fifo[tile_x]
                        if existing.pixel.color == 0 or (
                            cgb and self._sprite_data.has_priority_over(existing.oam_offset)
                        ):
                            self._spr_fifo[tile_x] = sprite_pixel
                self.rendering_sprites = False
        elif len(self._bg_fifo) <= _FIFO_THRESHOLD:
            first = 7 - self._scroll_quantity
            self._scroll_quantity = 0
            self._bg_fifo.extend(self._tile_data.pixel(cgb, x) for x in range(first, -1, -1))
            self._tile_data.increment_row_index()
        self._state = _FetcherState.GET_TILE

    def clear_queues(self) -> None:
        self._bg_fifo.clear()
        self._spr_fifo.clear()

    def pop_bg(self) -> TilePixel | None:
        return self._bg_fifo.popleft() if self._bg_fifo else None

    def pop_spr(self) -> SpritePixel | None:
        return self._spr_fifo.popleft() if self._spr_fifo else None

    def spr_front(self) -> SpritePixel | None:
        return self._spr_fifo[0] if self._spr_fifo else None

    def is_bg_fifo_full(self) -> bool:
        return len(self._bg_fifo) >= _FIFO_THRESHOLD

    def is_spr_fifo_full(self) -> bool:
        return len(self._spr_fifo) >= _FIFO_THRESHOLD