import pytest

from ohboi.fifo import PixelFetcher
from ohboi.oam import Sprite
from ohboi.vram import Vram

MAP = 0x1800


def write_tile_row(vram, tile, row, lo, hi, base=0):
    addr = base + tile * 16 + row * 2
    vram.write(addr, lo)
    vram.write(addr + 1, hi)


def run(fetcher, vram, steps, cgb=False, signed=False):
    for _ in range(steps):
        fetcher.step(vram, cgb, signed)


def drain_bg(fetcher):
    pixels = []
    while (p := fetcher.pop_bg()) is not None:
        pixels.append(p)
    return pixels


def drain_spr(fetcher):
    pixels = []
    while (p := fetcher.pop_spr()) is not None:
        pixels.append(p)
    return pixels


@pytest.fixture
def vram():
    return Vram(False)


def test_scroll_discards_leading_pixels(vram):
    vram.write(MAP, 1)
    write_tile_row(vram, 1, 0, 0xFF, 0x00)
    fetcher = PixelFetcher()
    fetcher.start(0, 0, MAP, 3)
    run(fetcher, vram, 7)
    pixels = drain_bg(fetcher)
    assert len(pixels) == 8 - 3
    assert all(p.color == 1 for p in pixels)


def test_second_push_reads_next_map_entry(vram):
    vram.write(MAP, 0)
    vram.write(MAP + 1, 1)
    write_tile_row(vram, 1, 0, 0x80, 0x80)
    fetcher = PixelFetcher()
    fetcher.start(0, 0, MAP, 0)
    run(fetcher, vram, 14)
    colors = [p.color for p in drain_bg(fetcher)]
    assert len(colors) == 16
    assert colors[:8] == [0] * 8
    assert colors[8] == 3


def test_row_within_tile_follows_y(vram):
    vram.write(MAP, 1)
    write_tile_row(vram, 1, 5, 0x80, 0x00)
    fetcher = PixelFetcher()
    fetcher.start(0, 5, MAP, 0)
    run(fetcher, vram, 7)
    assert fetcher.pop_bg().color == 1


def test_signed_tileset_addresses_upper_block(vram):
    vram.write(MAP, 0)
    vram.write(0x1000, 0x80)
    vram.write(0x1001, 0x80)
    fetcher = PixelFetcher()
    fetcher.start(0, 0, MAP, 0)
    run(fetcher, vram, 7, signed=True)
    assert fetcher.pop_bg().color == 3


def test_queue_is_bounded_without_popping(vram):
    fetcher = PixelFetcher()
    fetcher.start(0, 0, MAP, 0)
    run(fetcher, vram, 200)
    assert len(drain_bg(fetcher)) == 16


def test_cgb_attributes_flip_and_palette():
    vram = Vram(True)
    vram.write(MAP, 1)
    write_tile_row(vram, 1, 0, 0x80, 0x80)
    vram.set_bank(1)
    vram.write(MAP, 0x20 | 0x05 | 0x80)
    vram.set_bank(0)
    fetcher = PixelFetcher()
    fetcher.start(0, 0, MAP, 0)
    run(fetcher, vram, 7, cgb=True)
    pixels = drain_bg(fetcher)
    assert [p.color for p in pixels] == [0, 0, 0, 0, 0, 0, 0, 3]
    assert all(p.palette == 5 and p.priority for p in pixels)


def test_sprite_fetch_pushes_eight_pixels(vram):
    write_tile_row(vram, 1, 0, 0x80, 0x80)
    fetcher = PixelFetcher()
    sprite = Sprite(oam_offset=4, y=16, x=8, tile_location=1, attributes=0x10)
    fetcher.start_sprite_fetch(sprite, False, 16)
    assert fetcher.rendering_sprites
    run(fetcher, vram, 7)
    assert not fetcher.rendering_sprites
    assert fetcher.is_spr_fifo_full()
    assert fetcher.spr_front().pixel.color == 3
    pixels = drain_spr(fetcher)
    assert [p.pixel.color for p in pixels] == [3, 0, 0, 0, 0, 0, 0, 0]
    assert all(p.oam_offset == 4 and p.pixel.palette == 1 for p in pixels)
    assert all(p.pixel.priority for p in pixels)


def test_sprite_x_flip_mirrors_row(vram):
    write_tile_row(vram, 1, 0, 0x80, 0x80)
    fetcher = PixelFetcher()
    sprite = Sprite(oam_offset=0, y=16, x=8, tile_location=1, attributes=0x20)
    fetcher.start_sprite_fetch(sprite, False, 16)
    run(fetcher, vram, 7)
    assert [p.pixel.color for p in drain_spr(fetcher)] == [0, 0, 0, 0, 0, 0, 0, 3]


def test_sprite_behind_background_has_no_priority(vram):
    fetcher = PixelFetcher()
    sprite = Sprite(oam_offset=0, y=16, x=8, tile_location=1, attributes=0x80)
    fetcher.start_sprite_fetch(sprite, False, 16)
    run(fetcher, vram, 7)
    priorities = [p.pixel.priority for p in drain_spr(fetcher)]
    assert priorities == [False] * 8


def test_overlapping_sprite_only_fills_transparent_pixels(vram):
    write_tile_row(vram, 1, 0, 0x80, 0x80)
    write_tile_row(vram, 2, 0, 0xFF, 0x00)
    fetcher = PixelFetcher()
    fetcher.start_sprite_fetch(Sprite(oam_offset=0, y=16, x=8, tile_location=1), False, 16)
    run(fetcher, vram, 7)
    fetcher.start_sprite_fetch(Sprite(oam_offset=1, y=16, x=8, tile_location=2), False, 16)
    run(fetcher, vram, 7)
    pixels = drain_spr(fetcher)
    assert [p.pixel.color for p in pixels] == [3, 1, 1, 1, 1, 1, 1, 1]
    assert pixels[0].oam_offset == 0
    assert pixels[1].oam_offset == 1


def test_tall_sprite_lower_half_uses_odd_tile(vram):
    write_tile_row(vram, 3, 0, 0x80, 0x80)
    fetcher = PixelFetcher()
    fetcher.start_sprite_fetch(Sprite(oam_offset=0, y=16, x=8, tile_location=2), True, 16)
    run(fetcher, vram, 7)
    assert fetcher.pop_spr().pixel.color == 3


def test_tall_sprite_y_flip_uses_even_tile_and_mirrored_row(vram):
    write_tile_row(vram, 2, 7, 0x80, 0x80)
    fetcher = PixelFetcher()
    sprite = Sprite(oam_offset=0, y=16, x=8, tile_location=3, attributes=0x40)
    fetcher.start_sprite_fetch(sprite, True, 16)
    run(fetcher, vram, 7)
    assert fetcher.pop_spr().pixel.color == 3


def test_clear_and_reset_empty_the_queues(vram):
    fetcher = PixelFetcher()
    fetcher.start(0, 0, MAP, 0)
    run(fetcher, vram, 7)
    fetcher.clear_queues()
    assert fetcher.pop_bg() is None
    run(fetcher, vram, 7)
    fetcher.reset()
    assert fetcher.pop_bg() is None
    assert fetcher.spr_front() is None
    assert not fetcher.rendering_sprites