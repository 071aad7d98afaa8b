"""
Memory Subsystem Unit Tests
===========================

Tests for the 4KB address space: ROM loading, the font table and
bounds checking.

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

import logging

import pytest
from chip8_sdk.emulator import FONT, FONT_START, MAX_ROM_SIZE, MEMORY_SIZE, ROM_START, Memory
from chip8_sdk.errors import MemoryAccessError, RomTooLargeError


# =============================================================================
# ROM Loading Tests
# =============================================================================

class TestRomLoading:
    """Test Memory.initialize()."""

    def test_rom_copied_to_0x200(self):
        """ROM bytes land at $200 exactly."""
        rom = bytes(range(1, 33))
        mem = Memory()
        mem.initialize(rom)
        assert mem.read_block(ROM_START, len(rom)) == rom
        assert mem.rom_size == len(rom)

    def test_bytes_after_rom_are_zero(self):
        """Memory past the ROM is cleared."""
        mem = Memory()
        mem.initialize(bytes([0xAA, 0xBB]))
        assert mem.read(ROM_START + 2) == 0
        assert mem.read(MEMORY_SIZE - 1) == 0

    def test_max_size_rom_fits(self):
        """A 3584 byte ROM fills memory up to $FFF."""
        rom = bytes([0x5A]) * MAX_ROM_SIZE
        mem = Memory()
        mem.initialize(rom)
        assert MAX_ROM_SIZE == 3584
        assert mem.read(MEMORY_SIZE - 1) == 0x5A

    def test_oversize_rom_rejected(self):
        """A 3585 byte ROM raises RomTooLargeError."""
        mem = Memory()
        with pytest.raises(RomTooLargeError) as exc_info:
            mem.initialize(bytes(MAX_ROM_SIZE + 1))
        assert exc_info.value.size == MAX_ROM_SIZE + 1
        assert exc_info.value.limit == MAX_ROM_SIZE

    def test_rejected_rom_leaves_memory_untouched(self):
        """A failed load does not disturb the previous image."""
        mem = Memory()
        mem.initialize(bytes([0x12, 0x34]))
        with pytest.raises(RomTooLargeError):
            mem.initialize(bytes([0xFF]) * (MAX_ROM_SIZE + 10))
        assert mem.read_word(ROM_START) == 0x1234
        assert mem.rom_size == 2

    def test_reinitialize_clears_previous_rom(self):
        """Loading a shorter ROM zeroes leftovers of the longer one."""
        mem = Memory()
        mem.initialize(bytes([0x11, 0x22, 0x33, 0x44]))
        mem.initialize(bytes([0x99]))
        assert mem.read_block(ROM_START, 4) == bytes([0x99, 0, 0, 0])

    def test_empty_rom(self):
        """An empty ROM is accepted."""
        mem = Memory()
        mem.initialize(b"")
        assert mem.rom_size == 0
        assert mem.read(ROM_START) == 0


# =============================================================================
# Font Tests
# =============================================================================

class TestFont:
    """Test the built-in hex font."""

    def test_font_installed(self):
        """Font occupies $050-$09F."""
        mem = Memory()
        assert len(FONT) == 80
        assert mem.read_block(FONT_START, len(FONT)) == FONT

    def test_glyph_zero(self):
        """The first glyph is the digit 0."""
        mem = Memory()
        assert mem.read_block(FONT_START, 5) == bytes([0xF0, 0x90, 0x90, 0x90, 0xF0])

    def test_glyph_f(self):
        """The last glyph is the digit F."""
        mem = Memory()
        assert mem.read_block(FONT_START + 15 * 5, 5) == bytes([0xF0, 0x80, 0xF0, 0x80, 0x80])

    def test_font_write_ignored(self, caplog):
        """Writes into the font area are dropped with a warning."""
        mem = Memory()
        with caplog.at_level(logging.WARNING, logger="chip8_sdk.emulator.memory"):
            mem.write(FONT_START, 0x00)
        assert mem.read(FONT_START) == 0xF0
        assert "font area" in caplog.text

    def test_block_write_spanning_font(self):
        """Only bytes outside the font land when a block overlaps it."""
        mem = Memory()
        mem.write_block(FONT_START - 2, bytes([0x11, 0x22, 0x33, 0x44]))
        assert mem.read(FONT_START - 2) == 0x11
        assert mem.read(FONT_START - 1) == 0x22
        assert mem.read_block(FONT_START, 2) == FONT[:2]

    def test_font_survives_reload(self):
        """Font is rebuilt on every initialize()."""
        mem = Memory()
        mem.initialize(bytes([0x00]) * 10)
        assert mem.read_block(FONT_START, len(FONT)) == FONT


# =============================================================================
# Access Tests
# =============================================================================

class TestAccess:
    """Test reads, writes and bounds checking."""

    def test_read_write(self):
        mem = Memory()
        mem.write(0x300, 0x42)
        assert mem.read(0x300) == 0x42

    def test_write_masks_to_byte(self):
        mem = Memory()
        mem.write(0x300, 0x1FF)
        assert mem.read(0x300) == 0xFF

    def test_read_word_big_endian(self):
        mem = Memory()
        mem.write_block(0x300, bytes([0xA2, 0x1E]))
        assert mem.read_word(0x300) == 0xA21E

    def test_interpreter_area_writable(self):
        """$000-$04F and $0A0-$1FF are ordinary RAM."""
        mem = Memory()
        mem.write(0x000, 0x12)
        mem.write(0x1FF, 0x34)
        assert mem.read(0x000) == 0x12
        assert mem.read(0x1FF) == 0x34

    def test_read_out_of_range(self):
        mem = Memory()
        with pytest.raises(MemoryAccessError) as exc_info:
            mem.read(0x1000)
        assert exc_info.value.target == 0x1000

    def test_word_read_straddling_end(self):
        """A word at $FFF would need $1000."""
        mem = Memory()
        with pytest.raises(MemoryAccessError):
            mem.read_word(0xFFF)

    def test_block_checked_before_write(self):
        """An out-of-range block write changes nothing."""
        mem = Memory()
        with pytest.raises(MemoryAccessError):
            mem.write_block(0xFFE, bytes([1, 2, 3]))
        assert mem.read(0xFFE) == 0
        assert mem.read(0xFFF) == 0

    def test_block_read_at_end(self):
        """The last bytes of memory are readable."""
        mem = Memory()
        assert mem.read_block(0xFFD, 3) == bytes(3)

    def test_snapshot_roundtrip(self):
        mem = Memory()
        mem.initialize(bytes([0x60, 0x01]))
        mem.write(0x400, 0x77)
        data = mem.get_snapshot_data()

        other = Memory()
        consumed = other.apply_snapshot_data(data)
        assert consumed == MEMORY_SIZE + 2
        assert other.rom_size == 2
        assert other.read(0x400) == 0x77
        assert other.read_word(ROM_START) == 0x6001
