"""Game Boy and Game Boy Color emulator components: timer, work RAM, PPU, DMA and cartridges."""

__version__ = "0.1.0"