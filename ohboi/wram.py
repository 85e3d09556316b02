"""Banked work RAM."""

from __future__ import annotations

BANK_SIZE = 0x1000


class WorkRam:
    """Eight 4 KiB banks: bank 0 is fixed at 0xC000, 0xD000 maps a switchable bank."""

    def __init__(self) -> None:
        self._mem = bytearray(BANK_SIZE * 8)
        self.bank1_index = 1

    def _offset(self, addr: int) -> int:
        index = addr & 0xFFF
        if 0xC000 <= addr <= 0xCFFF:
            return index
        if 0xD000 <= addr <= 0xDFFF:
            return BANK_SIZE * self.bank1_index + index
        raise ValueError(f"Invalid address {addr}!")

    def read(self, addr: int) -> int:
        return self._mem[self._offset(addr)]

    def write(self, addr: int, val: int) -> None:
        self._mem[self._offset(addr)] = val & 0xFF

    def switch_bank(self, new_bank: int) -> None:
        """Select the bank at 0xD000; bank 0 selects bank 1."""
        self.bank1_index = 1 if new_bank == 0 else new_bank & 0b111