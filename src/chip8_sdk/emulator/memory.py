"""
Memory Subsystem for CHIP-8 Emulator
====================================

Memory Map:
    $000-$04F  Interpreter area (unused, zero)
    $050-$09F  Built-in font: 16 hex glyphs x 5 bytes (read-only)
    $0A0-$1FF  Interpreter area (unused, zero)
    $200-$FFF  Program ROM image and working memory

The font is written once at initialization. Writes that land in the
font area afterwards are ignored, the same way ROM writes are ignored
on real hardware.

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

import logging

from chip8_sdk.errors import MemoryAccessError, RomTooLargeError

logger = logging.getLogger(__name__)


MEMORY_SIZE = 0x1000
FONT_START = 0x050
FONT_GLYPH_SIZE = 5
ROM_START = 0x200
MAX_ROM_SIZE = MEMORY_SIZE - ROM_START

# 4x5 hex digit glyphs, one byte per row, high nibble used
FONT = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])

FONT_END = FONT_START + len(FONT)


class Memory:
    """
    Flat 4KB CHIP-8 address space with the built-in font.

    Every access is bounds-checked: addresses outside $000-$FFF raise
    MemoryAccessError instead of wrapping.

    Example:
        >>> mem = Memory()
        >>> mem.initialize(bytes([0x60, 0x01]))
        >>> hex(mem.read_word(0x200))
        '0x6001'
    """

    def __init__(self):
        self._data = bytearray(MEMORY_SIZE)
        self._data[FONT_START:FONT_END] = FONT
        self._rom_size = 0

    @property
    def rom_size(self) -> int:
        """Length of the currently loaded ROM image."""
        return self._rom_size

    def initialize(self, rom: bytes = b"") -> None:
        """
        Reset memory to the power-on image and load a ROM.

        Zeroes the whole address space, writes the font at $050 and
        copies the ROM to $200. The size check happens first, so a
        rejected image leaves memory untouched.

        Args:
            rom: Raw program bytes

        Raises:
            RomTooLargeError: If the image is longer than 3584 bytes
        """
        if len(rom) > MAX_ROM_SIZE:
            raise RomTooLargeError(len(rom), MAX_ROM_SIZE)

        self._data = bytearray(MEMORY_SIZE)
        self._data[FONT_START:FONT_END] = FONT
        self._data[ROM_START:ROM_START + len(rom)] = rom
        self._rom_size = len(rom)
        logger.debug(f"Loaded {len(rom)} byte ROM at ${ROM_START:04X}")

    def _check(self, address: int, count: int = 1) -> None:
        """Raise MemoryAccessError unless [address, address+count) is mapped."""
        if address < 0:
            raise MemoryAccessError(address & 0xFFFF)
        end = address + count - 1
        if end >= MEMORY_SIZE:
            raise MemoryAccessError(max(address, MEMORY_SIZE))

    def read(self, address: int) -> int:
        """
        Read byte from memory.

        Args:
            address: 12-bit address

        Returns:
            Byte value at address

        Raises:
            MemoryAccessError: If address is outside $000-$FFF
        """
        self._check(address)
        return self._data[address]

    def read_word(self, address: int) -> int:
        """Read a big-endian 16-bit word from address and address+1."""
        self._check(address, 2)
        return (self._data[address] << 8) | self._data[address + 1]

    def read_block(self, address: int, count: int) -> bytes:
        """Read count bytes starting at address."""
        self._check(address, count)
        return bytes(self._data[address:address + count])

    def write(self, address: int, value: int) -> None:
        """
        Write byte to memory.

        Writes into the font area are ignored.

        Args:
            address: 12-bit address
            value: Byte value to write

        Raises:
            MemoryAccessError: If address is outside $000-$FFF
        """
        self._check(address)
        if FONT_START <= address < FONT_END:
            logger.warning(f"Ignored write of ${value & 0xFF:02X} to font area ${address:04X}")
            return
        self._data[address] = value & 0xFF

    def write_block(self, address: int, data: bytes) -> None:
        """
        Write a run of bytes starting at address.

        The whole range is checked before anything is written.
        """
        self._check(address, len(data))
        for offset, value in enumerate(data):
            self.write(address + offset, value)

    def get_snapshot_data(self) -> list[int]:
        """
        Get complete memory state for snapshot.

        Layout: 4096 memory bytes, then the ROM size (hi, lo).
        """
        data = list(self._data)
        data.extend([(self._rom_size >> 8) & 0xFF, self._rom_size & 0xFF])
        return data

    def apply_snapshot_data(self, data: list[int], offset: int = 0) -> int:
        """Restore memory state from snapshot. The font area is always rebuilt."""
        rom_size = (data[offset + MEMORY_SIZE] << 8) | data[offset + MEMORY_SIZE + 1]
        if rom_size > MAX_ROM_SIZE:
            raise ValueError(f"Invalid snapshot: ROM size {rom_size}")
        self._data = bytearray(data[offset:offset + MEMORY_SIZE])
        self._data[FONT_START:FONT_END] = FONT
        self._rom_size = rom_size
        return MEMORY_SIZE + 2
