# ohboi

Building blocks for a Game Boy / Game Boy Color emulator, in plain Python
with no third-party dependencies. Each component is a self-contained object
that you clock and poke through its registers. Components that raise
interrupts take a callback that receives an `ohboi.utils.Interrupt` value.

## Components

- `ohboi.timers.Timer`: the DIV/TIMA/TMA/TAC timer. `clock()` advances it by
  one machine cycle. TIMA increments on the falling edge of the selected
  counter bit. On overflow, TIMA is reloaded from TMA one cycle later and
  `Interrupt.TIMER` is raised. `divider()`, `tac()`, `set_tac()`,
  `set_tima()`, `set_tma()`, `reset_counter()` and `reset()` cover the
  register behaviour.
- `ohboi.wram.WorkRam`: eight 4 KiB work RAM banks. `0xC000`–`0xCFFF` is
  fixed. `0xD000`–`0xDFFF` maps the bank chosen with `switch_bank()`.
  Addresses outside that range raise `ValueError`.
- `ohboi.ppu.Ppu`: the picture processing unit. It provides:
  - the LCD I/O registers through `read(addr, dma)` and `write(addr, val, dma)`;
  - VRAM and OAM access, blocked during the modes that block it;
  - scanline timing through the HBlank, VBlank, OAM search and pixel
    transfer modes (`ohboi.ppu.PpuState`);
  - background, window and sprite rendering;
  - STAT, LYC and VBlank interrupts.

  `screen()` returns the 160×144 frame as RGBA bytes.
  `tileset0()` / `tileset1()` render the tile data of VRAM bank 0 / bank 1
  as an RGBA image. `tileset1()` returns `None` outside colour mode.
- `ohboi.fifo.PixelFetcher`: the tile fetcher with its background and
  sprite pixel queues (`TilePixel`, `SpritePixel`), used by the PPU.
- `ohboi.vram`: `Vram`, with two banks in colour mode, together with `Tile`
  and `TileAttributes` decoding.
- `ohboi.oam`: `Oam`, the sprite attribute table, and `Sprite` entries.
- `ohboi.palettes`: `DmgPalette` (BGP/OBP shades) and `CgbPalette`
  (indexed 15-bit colour palettes with auto-increment).
- `ohboi.dma`:
  - `DmaController` performs the 160-byte OAM DMA, including restarts,
    and reports through `is_addr_accessible()` which addresses the CPU
    may touch during a transfer.
  - `HdmaController` performs colour-mode general-purpose and HBlank DMA
    into VRAM.

  Both work against any object with `read`, `dma_read` and `dma_write`
  methods.
- `ohboi.header`: `CartridgeHeader.from_rom()` parses the header at
  `0x100`–`0x14F`. `CartridgeType` lists the supported mapper codes.
  Unknown type, ROM-size and RAM-size codes are logged and fall back to
  defaults.
- `ohboi.mbc`: the bank controllers `NoMbc`, `Mbc1` and `Mbc5`.
  `ohboi.mbc3` adds `Mbc3` with its real-time clock `Rtc`, which can be
  saved to and loaded from a 48-byte block.
- `ohboi.cartridge`: `Cartridge.open(path)` loads a ROM together with the
  `.sav` file next to it, if there is one, and picks the bank controller
  through `make_mbc()`. `read()` and `write()` serve `0x0000`–`0x7FFF` and
  `0xA000`–`0xBFFF`. `save()` writes battery-backed RAM back to the
  `.sav` file.
- `ohboi.logsetup.setup_logger(verbosity, cpu_verbosity, buffer)` sets the
  root logger level and the `ohboi.cpu` logger level, each from 0 (off) to
  4 (trace). It prints to stdout and appends `LogLine` records to a deque,
  keeping about the last thousand.
- `ohboi.utils`: `Interrupt`, plus the small `Counter` and
  `FallingEdgeDetector` helpers.

## Example

```python
from ohboi.cartridge import Cartridge
from ohboi.ppu import Ppu
from ohboi.timers import Timer

cart = Cartridge.open("game.gb")
print(cart.is_cgb(), hex(cart.read(0x0100)))

raised = []
timer = Timer(raised.append)
timer.set_tac(0b101)
for _ in range(16):
    timer.clock()
print(timer.tima, timer.divider())

ppu = Ppu(raised.append, cgb=cart.is_cgb())
for _ in range(70224 // 4):
    ppu.clock()
frame = ppu.screen()  # 160 x 144 RGBA bytes
```

## What it does not do

The package has no CPU, no memory bus tying the components together, no
sound unit and no joypad. It therefore cannot run a game on its own.
There is no window, audio output or command-line program: you drive the
components and display `Ppu.screen()` yourself.

## Installation and tests

```
pip install .
pip install .[test]
pytest
```