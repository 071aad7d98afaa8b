"""
CHIP-8 SDK - Interpreter and Tools for the CHIP-8 Virtual Machine
================================================================

This package provides an embeddable CHIP-8 interpreter plus the tooling
around it for running and inspecting CHIP-8 programs.

CHIP-8 is a small interpreted machine from the late 1970s: 4KB of
memory, sixteen 8-bit registers, a 64x32 monochrome display, a 16-key
hex keypad and two countdown timers. Programs ("ROMs") are loaded at
address $200.

Main Components
---------------
- **emulator**: The interpreter core
    CPU, memory, framebuffer, keypad and breakpoint support behind a
    single Emulator class

- **disassembler**: CHIP-8 disassembler (c8disasm)
    Converts ROM images back to readable assembly listings

- **cli**: Command-line tools
    c8run runs a ROM headlessly and dumps the screen

Quick Start
-----------
Run a ROM:
    >>> from chip8_sdk import Emulator
    >>> emu = Emulator()
    >>> emu.load_rom_file("maze.ch8")
    >>> emu.run(5000)
    >>> print(emu.display_text)

Disassemble a ROM:
    >>> from chip8_sdk import Chip8Disassembler
    >>> with open("maze.ch8", "rb") as f:
    ...     for ins in Chip8Disassembler().disassemble(f.read()):
    ...         print(ins)

Or use the command-line tools:
    $ c8run maze.ch8 --cycles 5000 --png maze.png
    $ c8disasm maze.ch8 -o maze.lst

Version History
---------------
1.0.0 - Initial release with interpreter, disassembler and CLI tools
"""

__version__ = "1.0.0"
__author__ = "CHIP-8 SDK Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from chip8_sdk.errors import (
    Chip8Error,
    RomError,
    RomTooLargeError,
    ExecutionError,
    IllegalOpcodeError,
    StackOverflowError,
    StackUnderflowError,
    MemoryAccessError,
    InvalidKeyError,
    EmulatorHaltedError,
)

from chip8_sdk.emulator import (
    Emulator,
    EmulatorConfig,
    BreakEvent,
    BreakReason,
)

from chip8_sdk.disassembler import Chip8Disassembler, DisassembledInstruction

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Emulator
    "Emulator",
    "EmulatorConfig",
    "BreakEvent",
    "BreakReason",
    # Disassembler
    "Chip8Disassembler",
    "DisassembledInstruction",
    # Exception hierarchy
    "Chip8Error",
    "RomError",
    "RomTooLargeError",
    "ExecutionError",
    "IllegalOpcodeError",
    "StackOverflowError",
    "StackUnderflowError",
    "MemoryAccessError",
    "InvalidKeyError",
    "EmulatorHaltedError",
]
