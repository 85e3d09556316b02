"""The picture processing unit: LCD registers, scanline timing and pixel output."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

from .fifo import PixelFetcher, TilePixel
from .oam import Oam, Sprite
from .palettes import CgbPalette, DmgPalette
from .utils import Interrupt
from .vram import Tile, Vram

logger = logging.getLogger(__name__)

WIDTH = 160
HEIGHT = 144
SCANLINE_DOTS = 456
OAM_SEARCH_DOTS = 80
LINES = 154
MAX_SPRITES_PER_LINE = 10

# LCDC bits
_BG_WINDOW_ENABLE = 0x01
_OBJ_ENABLE = 0x02
_OBJ_SIZE = 0x04
_BG_TILE_MAP = 0x08
_BG_WINDOW_TILE_DATA = 0x10
_WINDOW_ENABLE = 0x20
_WINDOW_TILE_MAP = 0x40
_LCD_ENABLED = 0x80

# STAT bits
_STAT_MODE = 0x03
_STAT_LY_COMPARE = 0x04
_STAT_HBLANK_INTERRUPT = 0x08
_STAT_VBLANK_INTERRUPT = 0x10
_STAT_OAM_INTERRUPT = 0x20
_STAT_UNUSED = 0x80

_BG_PALETTE = 0

_TILESET_ROWS = 12 * 8
_TILESET_COLUMNS = 32 * 8


class PpuState(IntEnum):
    """The PPU mode, numbered as reported in the STAT register."""

    HBLANK = 0
    VBLANK = 1
    OAM_SEARCH = 2
    PIXEL_TRANSFER = 3


@dataclass
class _Window:
    x: int = 0
    y: int = 0
    rendering: bool = True
    line_counter: int = 0


def _default_dmg_palettes() -> list[DmgPalette]:
    return [DmgPalette(0xFC), DmgPalette(0xFF), DmgPalette(0xFF)]


class Ppu:
    """Renders the 160x144 RGBA screen and exposes the LCD I/O registers."""

    def __init__(self, raise_interrupt: Callable[[Interrupt], None], cgb: bool) -> None:
        self._raise_interrupt = raise_interrupt
        self._cgb = cgb
        self._screen = bytearray(WIDTH * HEIGHT * 4)
        self._vram = Vram(cgb)
        self._oam = Oam()
        self.state = PpuState.VBLANK
        self._sprites: list[Sprite] = []
        self._lcdc = 0x91
        self._lcd_stat = _STAT_UNUSED | PpuState.VBLANK
        self._scroll_x = 0
        self._scroll_y = 0
        self._ly = 0
        self._ly_compare = 0
        self._window = _Window()
        self._dmg_palettes = _default_dmg_palettes()
        self._current_pixel = 0
        self._scanline_counter = 0
        self._fetcher = PixelFetcher()
        self._cgb_bg_pal = CgbPalette() if cgb else None
        self._cgb_obj_pal = CgbPalette() if cgb else None

    def reset(self) -> None:
        self.state = PpuState.VBLANK
        self._lcdc |= _LCD_ENABLED | _BG_WINDOW_TILE_DATA | _BG_WINDOW_ENABLE
        self._lcd_stat = (self._lcd_stat & ~_STAT_MODE & 0xFF) | _STAT_UNUSED | PpuState.VBLANK
        self._scroll_x = 0
        self._scroll_y = 0
        self._ly = 0
        self._ly_compare = 0
        self._window = _Window()
        self._dmg_palettes = _default_dmg_palettes()
        self._current_pixel = 0
        self._scanline_counter = 0
        self._fetcher.reset()
        self._sprites.clear()
        self._screen = bytearray(WIDTH * HEIGHT * 4)
        self._vram.reset()
        self._oam.reset()

    # Register helpers

    def _lcdc_flag(self, mask: int) -> bool:
        return bool(self._lcdc & mask)

    def _set_mode(self, state: PpuState) -> None:
        self._lcd_stat = (self._lcd_stat & ~_STAT_MODE & 0xFF) | int(state)

    # Memory access

    def _read_vram(self, addr: int) -> int:
        if self.state is PpuState.PIXEL_TRANSFER:
            return 0xFF
        return self._vram.read(addr)

    def _write_vram(self, addr: int, val: int) -> None:
        if self.state is not PpuState.PIXEL_TRANSFER:
            self._vram.write(addr, val)

    def _oam_blocked(self, dma: bool) -> bool:
        return not dma and self.state in (PpuState.OAM_SEARCH, PpuState.PIXEL_TRANSFER)

    def read(self, addr: int, dma: bool) -> int:
        if 0x8000 <= addr <= 0x9FFF:
            return self._read_vram(addr - 0x8000)
        if 0xFE00 <= addr <= 0xFE9F:
            return 0xFF if self._oam_blocked(dma) else self._oam[addr - 0xFE00]
        if addr == 0xFF40:
            return self._lcdc
        if addr == 0xFF41:
            return self._lcd_stat & (0xFF if self._lcdc_flag(_LCD_ENABLED) else 0xFC)
        if addr == 0xFF42:
            return self._scroll_y
        if addr == 0xFF43:
            return self._scroll_x
        if addr == 0xFF44:
            return self._ly & 0xFF
        if addr == 0xFF45:
            return self._ly_compare
        if 0xFF47 <= addr <= 0xFF49:
            return self._dmg_palettes[addr - 0xFF47].value
        if addr == 0xFF4A:
            return self._window.y
        if addr == 0xFF4B:
            return self._window.x
        if addr == 0xFF4F:
            return (self._vram.bank() | 0xFE) & 0xFF
        if addr == 0xFF68:
            return self._cgb_bg_pal.read_index() if self._cgb_bg_pal else 0xFF
        if addr == 0xFF69:
            return self._cgb_bg_pal.read_data() if self._cgb_bg_pal else 0xFF
        if addr == 0xFF6A:
            return self._cgb_obj_pal.read_index() if self._cgb_obj_pal else 0xFF
        if addr == 0xFF6B:
            return self._cgb_obj_pal.read_data() if self._cgb_obj_pal else 0xFF
        logger.warning("Read from unimplemented I/O port: %04X", addr)
        return 0xFF

    def _write_palette_data(self, palette: CgbPalette | None, val: int) -> None:
        if palette is None:
            return
        if self.state is PpuState.PIXEL_TRANSFER:
            palette.increment_index()
        else:
            palette.write_data(val)

    def write(self, addr: int, val: int, dma: bool) -> None:
        val &= 0xFF
        if 0x8000 <= addr <= 0x9FFF:
            self._write_vram(addr - 0x8000, val)
        elif 0xFE00 <= addr <= 0xFE9F:
            if not self._oam_blocked(dma):
                self._oam[addr - 0xFE00] = val
        elif addr == 0xFF40:
            self._lcdc = val
            if not self._lcdc_flag(_LCD_ENABLED):
                self._disable_lcd()
        elif addr == 0xFF41:
            self._lcd_stat = _STAT_UNUSED | val
        elif addr == 0xFF42:
            self._scroll_y = val
        elif addr == 0xFF43:
            self._scroll_x = val
        elif addr == 0xFF44:
            self._ly = 0
        elif addr == 0xFF45:
            self._ly_compare = val
        elif 0xFF47 <= addr <= 0xFF49:
            self._dmg_palettes[addr - 0xFF47].update(val)
        elif addr == 0xFF4A:
            self._window.y = val
        elif addr == 0xFF4B:
            self._window.x = val
        elif addr == 0xFF4F and self._cgb:
            self._vram.set_bank(val & 1)
        elif addr == 0xFF68:
            if self._cgb_bg_pal:
                self._cgb_bg_pal.write_index(val)
        elif addr == 0xFF69:
            self._write_palette_data(self._cgb_bg_pal, val)
        elif addr == 0xFF6A:
            if self._cgb_obj_pal:
                self._cgb_obj_pal.write_index(val)
        elif addr == 0xFF6B:
            self._write_palette_data(self._cgb_obj_pal, val)
        else:
            logger.warning("Write of value %02X to unimplemented I/O port: %04X", val, addr)

    # Timing

    def clock(self) -> None:
        """Advance the PPU by one machine cycle (four dots)."""
        if not self._lcdc_flag(_LCD_ENABLED):
            return
        for _ in range(4):
            self._scanline_counter = (self._scanline_counter + 1) % SCANLINE_DOTS
            state = self.state
            if state is PpuState.HBLANK:
                if self._scanline_counter == 0:
                    self._hblank()
            elif state is PpuState.VBLANK:
                if self._scanline_counter == 0:
                    self._vblank()
            elif state is PpuState.OAM_SEARCH:
                if self._scanline_counter == OAM_SEARCH_DOTS:
                    self._oam_search()
            else:
                self._pixel_transfer()
                self._fetcher.step(
                    self._vram, self._cgb, not self._lcdc_flag(_BG_WINDOW_TILE_DATA)
                )

    def _update_state(self, new_state: PpuState) -> None:
        self.state = new_state
        self._set_mode(new_state)
        interrupt_mask = {
            PpuState.HBLANK: _STAT_HBLANK_INTERRUPT,
            PpuState.VBLANK: _STAT_VBLANK_INTERRUPT,
            PpuState.OAM_SEARCH: _STAT_OAM_INTERRUPT,
        }.get(new_state, 0)
        if self._lcd_stat & interrupt_mask:
            self._raise_interrupt(Interrupt.LCD)

    def _hblank(self) -> None:
        self._advance_scanline()
        if self._ly == HEIGHT:
            self._raise_interrupt(Interrupt.VBLANK)
            self._update_state(PpuState.VBLANK)
        else:
            self._update_state(PpuState.OAM_SEARCH)

    def _vblank(self) -> None:
        self._advance_scanline()
        if self._ly == 0:
            self._window.line_counter = 0
            self._update_state(PpuState.OAM_SEARCH)

    def _oam_search(self) -> None:
        self._sprites.clear()
        obj_size = 16 if self._lcdc_flag(_OBJ_SIZE) else 8
        line = self._ly + 16
        for index in range(40):
            sprite = self._oam.sprite(index)
            if sprite.y <= line < sprite.y + obj_size:
                self._sprites.append(sprite)
            if len(self._sprites) == MAX_SPRITES_PER_LINE:
                break
        if not self._cgb:
            self._sprites.sort(key=lambda s: s.x)

        y = (self._ly + self._scroll_y) & 0xFF
        self._window.rendering = False
        tilemap = 0x1C00 if self._lcdc_flag(_BG_TILE_MAP) else 0x1800
        self._fetcher.clear_queues()
        self._fetcher.start(self._scroll_x, y, tilemap, self._scroll_x & 0b111)
        self._update_state(PpuState.PIXEL_TRANSFER)

    def _find_sprite(self) -> int | None:
        pixel = self._current_pixel
        for index, sprite in enumerate(self._sprites):
            if sprite.x != 0 and max(sprite.x - 8, 0) <= pixel < sprite.x:
                return index
        return None

    def _pixel_transfer(self) -> None:
        if self._fetcher.rendering_sprites:
            return

        if self._lcdc_flag(_OBJ_ENABLE):
            index = self._find_sprite()
            if index is not None and self._fetcher.is_bg_fifo_full():
                sprite = self._sprites.pop(index)
                self._fetcher.start_sprite_fetch(
                    sprite, self._lcdc_flag(_OBJ_SIZE), self._ly & 0xFF
                )
                return

        if not self._window.rendering and self._is_window_visible():
            self._window.rendering = True
            x = (self._current_pixel - ((self._window.x - 7) & 0xFF)) & 0xFF
            tilemap = 0x1C00 if self._lcdc_flag(_WINDOW_TILE_MAP) else 0x1800
            self._fetcher.start(x, self._window.line_counter, tilemap, 0)
            return

        if not self._fetcher.is_bg_fifo_full():
            return

        popped = self._fetcher.pop_bg()
        bg_enabled = self._lcdc_flag(_BG_WINDOW_ENABLE)
        tile_pixel = popped if popped is not None and (bg_enabled or self._cgb) else TilePixel()
        color = tile_pixel.color
        if self._cgb:
            palette = self._cgb_bg_pal.color_array(tile_pixel.palette)
        else:
            palette = self._dmg_palettes[_BG_PALETTE].colors()

        sprite_pixel = self._fetcher.pop_spr()
        if sprite_pixel is not None and sprite_pixel.pixel.color != 0:
            spr = sprite_pixel.pixel
            if self._cgb:
                if (
                    not bg_enabled
                    or (not tile_pixel.priority and spr.priority)
                    or tile_pixel.color == 0
                ):
                    color = spr.color
                    palette = self._cgb_obj_pal.color_array(spr.palette)
            elif not bg_enabled or spr.priority or tile_pixel.color == 0:
                color = spr.color
                palette = self._dmg_palettes[spr.palette + 1].colors()

        offset = (self._ly * WIDTH + self._current_pixel) * 4
        self._screen[offset:offset + 4] = palette[color]
        self._advance_x()

    def _advance_x(self) -> None:
        self._current_pixel = (self._current_pixel + 1) % WIDTH
        if self._current_pixel == 0:
            if self._window.rendering:
                self._window.line_counter = (self._window.line_counter + 1) & 0xFF
            self._update_state(PpuState.HBLANK)

    def _advance_scanline(self) -> None:
        self._ly += 1
        if self._ly == LINES:
            self._ly = 0
        if (self._ly & 0xFF) == self._ly_compare:
            self._lcd_stat |= _STAT_LY_COMPARE
            self._raise_interrupt(Interrupt.LCD)
        else:
            self._lcd_stat &= ~_STAT_LY_COMPARE & 0xFF

    def _is_window_visible(self) -> bool:
        window = self._window
        y_visible = self._ly <= HEIGHT - 1 and window.y <= (self._ly & 0xFF)
        x_visible = window.x <= 166 and self._current_pixel >= ((window.x - 7) & 0xFF)
        return self._lcdc_flag(_WINDOW_ENABLE) and y_visible and x_visible

    def _disable_lcd(self) -> None:
        self._scanline_counter = 0
        self._ly = 0
        self._set_mode(PpuState.VBLANK)
        self.state = PpuState.VBLANK

    # Output

    def screen(self) -> bytes:
        """The current frame as RGBA bytes, row by row."""
        return bytes(self._screen)

    def _render_tileset(self, base: int, palette_for: Callable[[int], tuple[bytes, ...]]) -> bytes:
        tiles: dict[int, Tile] = {}
        out = bytearray()
        for y in range(_TILESET_ROWS):
            line = y % 8
            for x in range(_TILESET_COLUMNS):
                offset = (y // 8) * 12 + x // 8
                tile = tiles.get(offset)
                if tile is None:
                    start = base + offset * 16
                    tile = Tile.from_bytes(self._vram[start:start + 16])
                    tiles[offset] = tile
                color = tile[line][7 - x % 8]
                out += palette_for(color)[color]
        return bytes(out)

    def tileset0(self) -> bytes:
        """The tiles of VRAM bank 0 laid out as an RGBA image."""
        if self._cgb:
            return self._render_tileset(0, self._cgb_bg_pal.color_array)
        colors = self._dmg_palettes[_BG_PALETTE].colors()
        return self._render_tileset(0, lambda _color: colors)

    def tileset1(self) -> bytes | None:
        """The tiles of VRAM bank 1 as an RGBA image, or None outside colour mode."""
        if not self._cgb:
            return None
        return self._render_tileset(0x2000, self._cgb_bg_pal.color_array)