"""
CHIP-8 Emulator - Main Orchestrator
===================================

This module provides the main `Emulator` class that wires the CPU,
memory, display and keypad together behind a high-level API for running
and testing ROMs.

The Emulator class:
- Loads ROM images from bytes or files
- Supports execution control (cycle, step, run, run_until_pc)
- Integrates breakpoints for debugging
- Exposes the framebuffer, keypad and sound timer to host collaborators
- Converts fatal emulation errors into break events and a latched fault

Example usage:
    >>> from chip8_sdk.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(seed=1))
    >>> emu.load_rom_file("pong.ch8")
    >>> event = emu.run(10_000)
    >>> print(emu.display_text)

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

import logging
import os
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from chip8_sdk.errors import Chip8Error, EmulatorHaltedError

from .breakpoints import BreakEvent, BreakpointManager, BreakReason
from .cpu import Chip8CPU
from .display import Display
from .keyboard import KeyName, Keypad
from .memory import MAX_ROM_SIZE, Memory
from .opcodes import Instruction

logger = logging.getLogger(__name__)

SNAPSHOT_MAGIC = b"C8S\x02"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class EmulatorConfig:
    """
    Configuration for emulator initialization.

    Attributes:
        seed: Seed for the RND instruction's random source. None gives a
              fresh, unpredictable sequence.
        mask_random_with_kk: AND the RND byte with KK. Off by default, so
              RND stores the raw random byte; turn on for ROMs that rely
              on the masked variant.
        trace: Log every executed instruction at DEBUG level.

    Example:
        >>> config = EmulatorConfig(seed=42)
        >>> config = EmulatorConfig.from_env()
    """
    seed: Optional[int] = None
    mask_random_with_kk: bool = False
    trace: bool = False

    @classmethod
    def from_env(cls) -> "EmulatorConfig":
        """
        Create EmulatorConfig from environment variables.

        Environment variables (all optional):
            CHIP8_SEED: Integer RND seed
            CHIP8_MASK_RANDOM: 1/true/yes/on to mask RND with KK
            CHIP8_TRACE: 1/true/yes/on to trace instructions

        Invalid values are ignored.
        """
        seed = None
        if raw_seed := os.environ.get("CHIP8_SEED"):
            try:
                seed = int(raw_seed, 0)
            except ValueError:
                logger.warning(f"Ignoring invalid CHIP8_SEED={raw_seed!r}")

        return cls(
            seed=seed,
            mask_random_with_kk=_env_flag("CHIP8_MASK_RANDOM", False),
            trace=_env_flag("CHIP8_TRACE", False),
        )


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean environment variable, falling back on bad values."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    if raw.lower() in _TRUE_VALUES:
        return True
    if raw.lower() in _FALSE_VALUES:
        return False
    logger.warning(f"Ignoring invalid {name}={raw!r}")
    return default


class Emulator:
    """
    CHIP-8 emulator with instrumentation support.

    This is the main entry point for emulator usage. The machine is
    owned by one thread: drive cycle()/run() and update the keypad from
    the same thread, or serialize them yourself.

    Fatal conditions (illegal opcode, stack overflow/underflow, memory
    access outside 4KB, bad key index) stop execution. run() and step()
    report them as BreakReason.ERROR events; cycle() lets them propagate.
    Either way the fault is latched and further execution raises
    EmulatorHaltedError until reset() or a new ROM is loaded.

    Attributes:
        config: The EmulatorConfig used to initialize this instance
        cpu: The Chip8CPU instance
        memory: The 4KB address space
        display: The framebuffer
        keypad: The 16-key input snapshot
        breakpoints: The breakpoint manager
    """

    def __init__(self, config: Optional[EmulatorConfig] = None):
        """
        Initialize the emulator with given configuration.

        The machine starts with an empty ROM: memory holds only the font.
        """
        self.config = config or EmulatorConfig()

        self.memory = Memory()
        self.display = Display()
        self.keypad = Keypad()
        self.cpu = Chip8CPU(
            self.memory,
            self.display,
            self.keypad,
            rng=random.Random(self.config.seed),
            mask_random_with_kk=self.config.mask_random_with_kk,
        )
        self.cpu.trace = self.config.trace

        self.breakpoints = BreakpointManager()
        self.cpu.on_instruction = self._instruction_hook

        self._rom = b""
        self._fault: Optional[Chip8Error] = None
        self.memory.initialize(self._rom)

    def _instruction_hook(self, pc: int, opcode: Optional[int]) -> bool:
        """Connect the CPU's execution loop to the breakpoint manager."""
        return self.breakpoints.check_instruction(self.cpu, pc, opcode)

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load_rom(self, data: bytes) -> None:
        """
        Load a ROM image and reset the machine.

        Args:
            data: Raw program bytes, at most 3584

        Raises:
            RomTooLargeError: If the image does not fit. The machine is
                left exactly as it was.
        """
        data = bytes(data)
        self.memory.initialize(data)
        self._rom = data
        self._reset_machine()
        logger.info(f"Loaded ROM ({len(data)} bytes)")

    def load_rom_file(self, path: Union[str, Path]) -> None:
        """
        Load a ROM image from a file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            RomTooLargeError: If the image does not fit
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"ROM file not found: {path}")
        self.load_rom(path.read_bytes())

    @property
    def rom(self) -> bytes:
        """The currently loaded ROM image."""
        return self._rom

    # =========================================================================
    # Execution Control
    # =========================================================================

    def _reset_machine(self) -> None:
        self.cpu.reset()
        self.display.reset()
        self.keypad.release_all()
        self.breakpoints.clear_break_request()
        self.breakpoints.clear_last_event()
        self._fault = None

    def reset(self) -> None:
        """
        Reset to power-on state and reload the current ROM.

        Clears any latched fault. Breakpoints are kept.
        """
        self.memory.initialize(self._rom)
        self._reset_machine()

    @property
    def fault(self) -> Optional[Chip8Error]:
        """The error that halted the machine, or None."""
        return self._fault

    @property
    def halted(self) -> bool:
        """True while a fault is latched."""
        return self._fault is not None

    def _check_runnable(self) -> None:
        if self._fault is not None:
            raise EmulatorHaltedError(self._fault)

    def _latch(self, error: Chip8Error) -> BreakEvent:
        """Record a fatal error and build its break event."""
        self._fault = error
        logger.error(f"Emulation halted: {error}")
        return self.breakpoints.record(BreakEvent(
            BreakReason.ERROR,
            address=getattr(error, "address", None),
            opcode=getattr(error, "opcode", None),
            error=error,
        ))

    def cycle(self) -> Instruction:
        """
        Run exactly one fetch-decode-execute-tick cycle.

        This is the entry point for a host driver that paces execution
        itself. Breakpoints are not checked.

        Returns:
            The executed instruction

        Raises:
            EmulatorHaltedError: If a fault is latched
            ExecutionError: On a fatal condition (the fault is latched)
        """
        self._check_runnable()
        try:
            return self.cpu.cycle()
        except Chip8Error as e:
            self._latch(e)
            raise

    def step(self) -> BreakEvent:
        """
        Execute a single instruction, regardless of breakpoints.

        Returns:
            BreakEvent with reason=STEP, or reason=ERROR on a fault

        Raises:
            EmulatorHaltedError: If a fault is already latched
        """
        self._check_runnable()
        try:
            self.cpu.step()
        except Chip8Error as e:
            return self._latch(e)

        return BreakEvent(
            BreakReason.STEP,
            address=self.cpu.pc,
            message=f"Step at ${self.cpu.pc:04X}"
        )

    def run(self, max_cycles: int = 1_000_000) -> BreakEvent:
        """
        Run until breakpoint, fault or max cycles reached.

        A breakpoint at the current PC is stepped over, so calling run()
        again after a breakpoint hit resumes execution.

        Args:
            max_cycles: Maximum cycles to execute

        Returns:
            BreakEvent describing why execution stopped

        Raises:
            EmulatorHaltedError: If a fault is already latched
        """
        self._check_runnable()
        self.breakpoints.clear_last_event()

        executed = 0
        try:
            if max_cycles > 0 and self.breakpoints.has_breakpoint(self.cpu.pc):
                self.cpu.step()
                executed = 1
            executed += self.cpu.run(max_cycles - executed)
        except Chip8Error as e:
            return self._latch(e)

        if executed < max_cycles and self.breakpoints.last_event is not None:
            return self.breakpoints.last_event
        return self.breakpoints.record(BreakEvent(
            BreakReason.MAX_CYCLES,
            address=self.cpu.pc,
            message=f"Reached max cycles ({max_cycles})"
        ))

    def run_until_pc(self, address: int, max_cycles: int = 1_000_000) -> bool:
        """
        Run until PC reaches a specific address.

        Creates a temporary breakpoint at the address and runs until hit.
        If PC is already there nothing is executed.

        Returns:
            True if address was reached, False on max_cycles or fault
        """
        self._check_runnable()
        if self.cpu.pc == address:
            return True

        was_set = self.breakpoints.has_breakpoint(address)
        if not was_set:
            self.breakpoints.add_breakpoint(address)

        try:
            event = self.run(max_cycles)
            return (event.reason == BreakReason.PC_BREAKPOINT and
                    event.address == address)
        finally:
            if not was_set:
                self.breakpoints.remove_breakpoint(address)

    # =========================================================================
    # Keypad Input
    # =========================================================================

    def press_key(self, key: KeyName) -> None:
        """Press a keypad key (0-15 or "0"-"F"). It stays down until released."""
        self.keypad.key_down(key)

    def release_key(self, key: KeyName) -> None:
        """Release a keypad key."""
        self.keypad.key_up(key)

    def set_keys(self, states: Iterable[bool]) -> None:
        """Replace the whole keypad snapshot with 16 booleans."""
        self.keypad.set_state(states)

    def tap_key(self, key: KeyName, hold_cycles: int = 10) -> BreakEvent:
        """Press a key, run hold_cycles cycles, release it."""
        self.press_key(key)
        try:
            return self.run(hold_cycles)
        finally:
            self.release_key(key)

    # =========================================================================
    # Display and Sound Output
    # =========================================================================

    @property
    def display_text(self) -> str:
        """Framebuffer as text, '#' for lit pixels, '.' for dark ones."""
        return self.display.get_text()

    @property
    def display_pixels(self) -> bytes:
        """Raw framebuffer, row-major, $00 or $FF per pixel."""
        return self.display.pixels

    def render_display(self, scale: int = 8) -> Optional[bytes]:
        """PNG image of the framebuffer, or None without Pillow."""
        return self.display.render_image(scale=scale)

    @property
    def sound_timer(self) -> int:
        """Current sound timer value."""
        return self.cpu.sound_timer

    @property
    def sound_active(self) -> bool:
        """True while the host should be playing a tone."""
        return self.cpu.sound_timer > 0

    # =========================================================================
    # Memory Access
    # =========================================================================

    def read_byte(self, address: int) -> int:
        """Read a single byte from memory."""
        return self.memory.read(address)

    def read_word(self, address: int) -> int:
        """Read a 16-bit big-endian word from memory."""
        return self.memory.read_word(address)

    def read_bytes(self, address: int, count: int) -> bytes:
        """Read multiple bytes from memory."""
        return self.memory.read_block(address, count)

    def write_byte(self, address: int, value: int) -> None:
        """Write a single byte to memory (font area writes are ignored)."""
        self.memory.write(address, value)

    def write_bytes(self, address: int, data: bytes) -> None:
        """Write multiple bytes to memory."""
        self.memory.write_block(address, data)

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def registers(self) -> dict:
        """
        Get current CPU register values as a dictionary.

        Returns:
            Dictionary with keys v0-vf, i, pc, sp, delay_timer, sound_timer
        """
        regs = {f"v{n:x}": self.cpu.v[n] for n in range(16)}
        regs.update({
            "i": self.cpu.i,
            "pc": self.cpu.pc,
            "sp": self.cpu.sp,
            "delay_timer": self.cpu.delay_timer,
            "sound_timer": self.cpu.sound_timer,
        })
        return regs

    @property
    def total_cycles(self) -> int:
        """Cycles executed since last reset."""
        return self.cpu.cycles

    def disassemble_at(self, address: Optional[int] = None, count: int = 10) -> List[str]:
        """
        Disassemble instructions from memory.

        Args:
            address: Starting address (default: current PC)
            count: Number of instructions
        """
        from chip8_sdk.disassembler import Chip8Disassembler

        start = self.cpu.pc if address is None else address
        end = min(start + 2 * count, 0x1000)
        data = self.memory.read_block(start, max(end - start, 0))
        return [str(ins) for ins in Chip8Disassembler().disassemble(data, start_address=start, count=count)]

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def save_snapshot(self, path: Union[str, Path]) -> None:
        """
        Save complete machine state to a file.

        The snapshot holds CPU registers, stack, timers, framebuffer,
        memory and the loaded ROM image, so reset() after loading it
        reloads the same program. Keypad state and breakpoints are not
        saved.
        """
        data = bytearray(SNAPSHOT_MAGIC)
        data.extend(bytes(self.cpu.get_snapshot_data()))
        data.extend(bytes(self.display.get_snapshot_data()))
        data.extend(bytes(self.memory.get_snapshot_data()))
        data.extend(self._rom)
        Path(path).write_bytes(bytes(data))

    def load_snapshot(self, path: Union[str, Path]) -> None:
        """
        Load machine state from a snapshot file.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If snapshot format is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")

        raw = path.read_bytes()
        if raw[:len(SNAPSHOT_MAGIC)] != SNAPSHOT_MAGIC:
            raise ValueError("Invalid snapshot format (bad header)")

        # Fixed part, ending with the ROM size; the ROM image follows
        fixed = (
            len(SNAPSHOT_MAGIC)
            + len(self.cpu.get_snapshot_data())
            + len(self.display.get_snapshot_data())
            + len(self.memory.get_snapshot_data())
        )
        if len(raw) < fixed:
            raise ValueError(f"Invalid snapshot size ({len(raw)} bytes, expected at least {fixed})")
        rom_size = (raw[fixed - 2] << 8) | raw[fixed - 1]
        if rom_size > MAX_ROM_SIZE:
            raise ValueError(f"Invalid snapshot: ROM size {rom_size}")
        if len(raw) != fixed + rom_size:
            raise ValueError(f"Invalid snapshot size ({len(raw)} bytes, expected {fixed + rom_size})")

        data = list(raw)
        offset = len(SNAPSHOT_MAGIC)
        offset += self.cpu.apply_snapshot_data(data, offset)
        offset += self.display.apply_snapshot_data(data, offset)
        offset += self.memory.apply_snapshot_data(data, offset)
        self._rom = raw[offset:]
        self._fault = None

    def __repr__(self) -> str:
        """Return string representation of emulator state."""
        state = "halted" if self._fault else "ok"
        return (
            f"Emulator(pc=${self.cpu.pc:04X}, "
            f"cycles={self.cpu.cycles}, {state})"
        )
