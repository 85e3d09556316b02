import pytest

from ohboi.header import CartridgeHeader, CartridgeType
from ohboi.mbc3 import Mbc3, Rtc


class FakeClock:
    def __init__(self, now: int = 1_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def make_rom(cart_type: int, rom_code: int = 0, ram_code: int = 0) -> bytes:
    size = 0x8000 << rom_code
    rom = bytearray(size)
    for bank in range(size // 0x4000):
        rom[bank * 0x4000] = bank
    rom[0x147] = cart_type
    rom[0x148] = rom_code
    rom[0x149] = ram_code
    return bytes(rom)


def make_mbc(rom_code=2, ram_code=3, rtc=True):
    rom = make_rom(CartridgeType.MBC3_TIMER_RAM_BATTERY, rom_code, ram_code)
    header = CartridgeHeader.from_rom(rom)
    return Mbc3(rom, header, None, True, rtc)


def total_seconds(rtc: Rtc) -> int:
    days = ((rtc.day_hi & 1) << 8) | rtc.day
    return days * 86400 + rtc.hours * 3600 + rtc.minutes * 60 + rtc.seconds


def test_rom_bank_selection():
    mbc = make_mbc()
    mbc.write(0x2000, 5)
    assert mbc.read(0x4000) == 5
    assert mbc.read(0x0000) == 0


def test_rom_bank_zero_selects_one():
    mbc = make_mbc()
    mbc.write(0x2000, 0)
    assert mbc.read(0x4000) == 1


def test_rom_bank_wraps_to_bank_count():
    mbc = make_mbc(rom_code=1)
    mbc.write(0x2000, 4 + 3)
    assert mbc.read(0x4000) == 3


def test_ext_ram_disabled_reads_ff():
    mbc = make_mbc()
    mbc.write_ext_ram(0xA000, 0x12)
    assert mbc.read_ext_ram(0xA000) == 0xFF
    assert mbc.ram[0] == 0


def test_ext_ram_banks_are_separate():
    mbc = make_mbc()
    mbc.write(0x0000, 0x0A)
    mbc.write(0x4000, 0)
    mbc.write_ext_ram(0xA010, 0x11)
    mbc.write(0x4000, 2)
    mbc.write_ext_ram(0xA010, 0x22)
    assert mbc.read_ext_ram(0xA010) == 0x22
    mbc.write(0x4000, 0)
    assert mbc.read_ext_ram(0xA010) == 0x11


def test_sav_data_is_used_as_ram():
    rom = make_rom(CartridgeType.MBC3_RAM_BATTERY, 0, 2)
    mbc = Mbc3(rom, CartridgeHeader.from_rom(rom), b"\x42" * 0x2000, True, False)
    mbc.write(0x0000, 0x0A)
    assert mbc.read_ext_ram(0xA000) == 0x42
    assert mbc.has_ram() and mbc.has_battery()


def test_rtc_registers_read_latched_values():
    mbc = make_mbc(rtc=Rtc(FakeClock()))
    mbc.write(0x0000, 0x0A)
    mbc.write(0x4000, 0x8)
    mbc.write_ext_ram(0xA000, 30)
    assert mbc.read_ext_ram(0xA000) == 0
    mbc.write(0x6000, 0)
    mbc.write(0x6000, 1)
    assert mbc.read_ext_ram(0xA000) == 30


def test_latch_only_on_rising_edge():
    rtc = Rtc(FakeClock())
    mbc = make_mbc(rtc=rtc)
    mbc.write(0x0000, 0x0A)
    mbc.write(0x4000, 0x9)
    mbc.write_ext_ram(0xA000, 7)
    mbc.write(0x6000, 1)
    mbc.write_ext_ram(0xA000, 9)
    mbc.write(0x6000, 1)
    assert mbc.read_ext_ram(0xA000) == 7
    assert rtc.minutes == 9


def test_rtc_registers_without_rtc_read_ff():
    mbc = make_mbc(rtc=False)
    mbc.write(0x0000, 0x0A)
    mbc.write(0x4000, 0x8)
    mbc.write_ext_ram(0xA000, 5)
    assert mbc.read_ext_ram(0xA000) == 0xFF


def test_update_time_accumulates_elapsed_seconds():
    clock = FakeClock()
    rtc = Rtc(clock)
    elapsed = 3 * 86400 + 5 * 3600 + 7 * 60 + 11
    clock.now += elapsed
    rtc.update_time()
    assert total_seconds(rtc) == elapsed
    assert rtc.current_time == clock.now


def test_update_time_halted_does_nothing():
    clock = FakeClock()
    rtc = Rtc(clock)
    rtc.day_hi = 0x40
    start = rtc.current_time
    clock.now += 500
    rtc.update_time()
    assert rtc.seconds == 0
    assert rtc.current_time == start


def test_day_counter_overflow_sets_carry():
    clock = FakeClock()
    rtc = Rtc(clock)
    clock.now += 512 * 86400
    rtc.update_time()
    assert rtc.day == 0
    assert rtc.day_hi == 0x81


def test_to_bytes_load_round_trip():
    clock = FakeClock()
    rtc = Rtc(clock)
    rtc.seconds, rtc.minutes, rtc.hours, rtc.day = 12, 34, 5, 200
    rtc.latch_time()
    data = rtc.to_bytes()
    assert len(data) == 48
    restored = Rtc(clock)
    restored.load(data)
    assert (restored.seconds, restored.minutes, restored.hours, restored.day) == (12, 34, 5, 200)
    assert restored.latched_day == 200
    assert restored.to_bytes() == data


def test_load_short_buffer_is_ignored():
    rtc = Rtc(FakeClock())
    rtc.load(bytes([9] * 39))
    assert rtc.seconds == 0


def test_load_truncated_timestamp_raises():
    rtc = Rtc(FakeClock())
    with pytest.raises(ValueError):
        rtc.load(bytes(44))