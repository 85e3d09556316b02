import pytest

from ohboi.vram import Tile, TileAttributes, Vram


def _tile_bytes(seed):
    return bytes((seed * 7 + i * 13) & 0xFF for i in range(16))


def test_tile_low_plane_only():
    tile = Tile.from_bytes(bytes([0xFF, 0x00] * 8))
    assert all(row == (1,) * 8 for row in tile.rows)


def test_tile_high_plane_only():
    tile = Tile.from_bytes(bytes([0x00, 0xFF] * 8))
    assert tile[3] == (2,) * 8


def test_tile_bit_order():
    tile = Tile.from_bytes(bytes([0x01, 0x80]) + bytes(14))
    assert tile[0][0] == 1
    assert tile[0][7] == 2
    assert tile[0][1:7] == (0,) * 6
    assert tile[1] == (0,) * 8


def test_default_tile_is_blank():
    assert Tile() == Tile.from_bytes(bytes(16))


def test_tile_attribute_bits():
    attrs = TileAttributes(0xFF)
    assert (attrs.palette(), attrs.bank()) == (7, 1)
    assert attrs.x_flip() and attrs.y_flip() and attrs.priority()
    blank = TileAttributes()
    assert not (blank.x_flip() or blank.y_flip() or blank.priority())


def test_read_write_round_trip():
    vram = Vram(False)
    vram.write(0x1234, 0x99)
    assert vram.read(0x1234) == 0x99
    assert vram[0x1234] == 0x99


def test_bank_switch_ignored_without_colour():
    vram = Vram(False)
    vram.set_bank(1)
    assert vram.bank() == 0


def test_colour_banks_are_separate():
    vram = Vram(True)
    vram.write(0x0010, 0x01)
    vram.set_bank(1)
    assert vram.bank() == 1
    assert vram.read(0x0010) == 0
    vram.write(0x0010, 0x02)
    vram.set_bank(0)
    assert vram.read(0x0010) == 0x01
    assert vram[0x2010] == 0x02


def _fill(vram, addr, data):
    for offset, value in enumerate(data):
        vram.write(addr + offset, value)


def test_get_tile_unsigned_addressing():
    vram = Vram(False)
    data = _tile_bytes(1)
    _fill(vram, 2 * 16, data)
    vram.write(0x1800, 2)
    tile, attrs = vram.get_tile(0x1800, False)
    assert tile == Tile.from_bytes(data)
    assert attrs == TileAttributes(0)


@pytest.mark.parametrize("tile_index,address", [(0x00, 0x1000), (0x7F, 0x17F0), (0x80, 0x0800), (0xFF, 0x0FF0)])
def test_get_tile_signed_addressing(tile_index, address):
    vram = Vram(False)
    data = _tile_bytes(tile_index)
    _fill(vram, address, data)
    vram.write(0x1800, tile_index)
    tile, _ = vram.get_tile(0x1800, True)
    assert tile == Tile.from_bytes(data)


def test_get_tile_uses_colour_attributes_and_bank():
    vram = Vram(True)
    data = _tile_bytes(3)
    vram.write(0x1900, 5)
    vram.set_bank(1)
    _fill(vram, 5 * 16, data)
    vram.write(0x1900, 0x08 | 0x20 | 0x03)
    vram.set_bank(0)
    tile, attrs = vram.get_tile(0x1900, False)
    assert tile == Tile.from_bytes(data)
    assert attrs.bank() == 1
    assert attrs.x_flip() is True
    assert attrs.palette() == 3


def test_get_sprite_tile_reads_requested_bank():
    vram = Vram(True)
    data = _tile_bytes(9)
    vram.set_bank(1)
    _fill(vram, 9 * 16, data)
    vram.set_bank(0)
    assert vram.get_sprite_tile(9, 1) == Tile.from_bytes(data)
    assert vram.get_sprite_tile(9, 0) == Tile()


def test_slice_access_and_reset():
    vram = Vram(True)
    data = _tile_bytes(4)
    _fill(vram, 0x40, data)
    assert vram[0x40:0x50] == data
    vram.set_bank(1)
    vram.reset()
    assert vram.bank() == 0
    assert vram[0x40:0x50] == bytes(16)