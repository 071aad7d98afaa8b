"""
CHIP-8 Emulator
===============

An interpreter for the CHIP-8 virtual machine.

This package provides:

- **CPU**: All 35 standard instructions, decoded into tagged values
- **Memory**: 4KB address space with the built-in hex font
- **Display**: 64x32 monochrome XOR framebuffer with text/pixel/PNG APIs
- **Keypad**: 16-key hex keypad snapshot
- **Debugging**: Breakpoints, register conditions, single-step

Quick Start
-----------

Basic usage::

    >>> from chip8_sdk.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(seed=1))
    >>> emu.load_rom(bytes([0x60, 0x01, 0xA0, 0x50, 0xD0, 0x15]))
    >>> emu.run(3).reason
    <BreakReason.MAX_CYCLES: 6>
    >>> print(emu.display_text.splitlines()[0][:6])
    .####.

With debugging::

    >>> emu.reset()
    >>> emu.breakpoints.add_breakpoint(0x204)
    >>> event = emu.run()
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Stopped at ${event.address:04X}")
    Stopped at $0204

Timing
------

There is no internal clock. The host calls cycle() or run() at whatever
rate it likes; both timers tick once per cycle. Hosts wanting the usual
60Hz timer rate should pace cycles accordingly.

Module Structure
----------------

- `emulator.py`: Main Emulator class (high-level API)
- `cpu.py`: Fetch/decode/execute engine and registers
- `opcodes.py`: Instruction table and decoder
- `memory.py`: 4KB memory and font
- `display.py`: Framebuffer
- `keyboard.py`: Keypad state
- `breakpoints.py`: Debugging support

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

# Main entry point
from .emulator import Emulator, EmulatorConfig

# CPU components
from .cpu import Chip8CPU, CPUState
from .opcodes import (
    Op,
    OperandFormat,
    OpcodeInfo,
    Instruction,
    OPCODE_TABLE,
    decode,
    format_instruction,
)

# Memory subsystem
from .memory import Memory, FONT, FONT_START, ROM_START, MAX_ROM_SIZE, MEMORY_SIZE

# I/O
from .display import Display, DisplayState, DISPLAY_WIDTH, DISPLAY_HEIGHT
from .keyboard import Keypad, QWERTY_LAYOUT, key_index, key_for_host

# Debugging support
from .breakpoints import (
    BreakpointManager,
    BreakEvent,
    BreakReason,
    RegisterCondition,
)

__all__ = [
    # Main API
    "Emulator",
    "EmulatorConfig",

    # CPU
    "Chip8CPU",
    "CPUState",
    "Op",
    "OperandFormat",
    "OpcodeInfo",
    "Instruction",
    "OPCODE_TABLE",
    "decode",
    "format_instruction",

    # Memory
    "Memory",
    "FONT",
    "FONT_START",
    "ROM_START",
    "MAX_ROM_SIZE",
    "MEMORY_SIZE",

    # Display
    "Display",
    "DisplayState",
    "DISPLAY_WIDTH",
    "DISPLAY_HEIGHT",

    # Keypad
    "Keypad",
    "QWERTY_LAYOUT",
    "key_index",
    "key_for_host",

    # Debugging
    "BreakpointManager",
    "BreakEvent",
    "BreakReason",
    "RegisterCondition",
]
