"""
Breakpoint System for CHIP-8 Emulator
=====================================

Provides debugging capabilities:
- PC breakpoints (break when PC reaches address)
- Register conditions (break when registers match)
- Single-step and external break requests

The BreakpointManager is attached to the CPU's on_instruction hook and
checked before every instruction.

Example usage:

    >>> from chip8_sdk.emulator import Emulator, BreakReason
    >>> emu = Emulator()
    >>> emu.load_rom(rom_bytes)
    >>> emu.breakpoints.add_breakpoint(0x20A)
    >>> event = emu.run(10_000)
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Hit breakpoint at ${event.address:04X}")

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from chip8_sdk.errors import Chip8Error
    from .cpu import Chip8CPU


class BreakReason(Enum):
    """
    Enumeration of reasons why execution stopped.

    Used in BreakEvent to indicate what triggered the break.
    """
    NONE = auto()           # No specific reason (normal termination)
    PC_BREAKPOINT = auto()  # PC reached a breakpoint address
    REGISTER_CONDITION = auto()  # Register condition met
    STEP = auto()           # Single-step mode
    USER_INTERRUPT = auto() # User requested stop
    MAX_CYCLES = auto()     # Maximum cycle count reached
    ERROR = auto()          # Fatal emulation error


@dataclass
class BreakEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        address: PC address involved (if applicable)
        opcode: Instruction word at that address (if applicable)
        error: The fatal error, for ERROR events
        message: Human-readable description
    """
    reason: BreakReason
    address: Optional[int] = None
    opcode: Optional[int] = None
    error: Optional["Chip8Error"] = None
    message: str = ""

    def __str__(self) -> str:
        """Return human-readable description."""
        if self.message:
            return self.message
        match self.reason:
            case BreakReason.PC_BREAKPOINT:
                return f"Breakpoint at ${self.address:04X}" if self.address is not None else "Breakpoint"
            case BreakReason.REGISTER_CONDITION:
                return "Register condition met"
            case BreakReason.STEP:
                return "Single step"
            case BreakReason.USER_INTERRUPT:
                return "User interrupt"
            case BreakReason.MAX_CYCLES:
                return "Maximum cycles reached"
            case BreakReason.ERROR:
                return f"Emulation error: {self.error}" if self.error else "Emulation error"
            case _:
                return "Unknown"


VALID_REGISTERS = frozenset(
    [f"v{n:x}" for n in range(16)]
    + ["i", "pc", "sp", "delay_timer", "sound_timer"]
)

VALID_OPERATORS = frozenset(["==", "!=", "<", "<=", ">", ">=", "&"])


class RegisterCondition:
    """
    Condition on CPU registers.

    Supported registers: v0-vf, i, pc, sp, delay_timer, sound_timer

    Supported operators:
    - '==' : Equal
    - '!=' : Not equal
    - '<'  : Less than
    - '<=' : Less than or equal
    - '>'  : Greater than
    - '>=' : Greater than or equal
    - '&'  : Bitwise AND test (true if result non-zero)

    Examples:
        >>> cond = RegisterCondition('v3', '==', 0x42)
        >>> cond = RegisterCondition('vf', '&', 1)  # Flag set
        >>> cond = RegisterCondition('i', '>=', 0x300)
    """

    def __init__(
        self,
        register: str,
        operator: str,
        value: int,
        description: str = ""
    ):
        """
        Create a register condition.

        Args:
            register: Register name (v0-vf, i, pc, sp, delay_timer, sound_timer)
            operator: Comparison operator (==, !=, <, <=, >, >=, &)
            value: Value to compare against
            description: Optional description for debugging

        Raises:
            ValueError: If register or operator is unknown
        """
        self.register = register.lower()
        self.operator = operator
        self.value = value
        self.description = description or f"{register} {operator} {value}"

        if self.register not in VALID_REGISTERS:
            raise ValueError(
                f"Unknown register '{register}'. Valid registers: {', '.join(sorted(VALID_REGISTERS))}"
            )
        if self.operator not in VALID_OPERATORS:
            raise ValueError(
                f"Unknown operator '{operator}'. Valid operators: {', '.join(sorted(VALID_OPERATORS))}"
            )

    def _read(self, cpu: "Chip8CPU") -> int:
        if self.register.startswith("v") and len(self.register) == 2:
            return cpu.v[int(self.register[1], 16)]
        return getattr(cpu, self.register)

    def check(self, cpu: "Chip8CPU") -> bool:
        """
        Check if condition is met against CPU state.

        Args:
            cpu: CPU instance to check

        Returns:
            True if condition is met, False otherwise
        """
        actual = self._read(cpu)

        match self.operator:
            case '==':
                return actual == self.value
            case '!=':
                return actual != self.value
            case '<':
                return actual < self.value
            case '<=':
                return actual <= self.value
            case '>':
                return actual > self.value
            case '>=':
                return actual >= self.value
            case '&':
                return (actual & self.value) != 0
            case _:
                return False

    def __repr__(self) -> str:
        return f"RegisterCondition({self.register!r}, {self.operator!r}, {self.value!r})"


class BreakpointManager:
    """
    Manages breakpoints and register conditions.

    The manager integrates with the CPU via check_instruction, called
    before each instruction.

    Example:
        >>> mgr = BreakpointManager()
        >>> mgr.add_breakpoint(0x210)
        >>> mgr.add_condition('v0', '==', 0)
        >>> cpu.on_instruction = lambda pc, op: mgr.check_instruction(cpu, pc, op)
    """

    def __init__(self):
        """Initialize empty breakpoint manager."""
        self._pc_breakpoints: Set[int] = set()

        # Register conditions (list with possible None holes)
        self._register_conditions: List[Optional[RegisterCondition]] = []

        # Last break event (for inspection after break)
        self._last_event: Optional[BreakEvent] = None

        self._step_mode: bool = False
        self._break_requested: bool = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def last_event(self) -> Optional[BreakEvent]:
        """Get the last break event that occurred."""
        return self._last_event

    @property
    def step_mode(self) -> bool:
        """Check if step mode is active."""
        return self._step_mode

    @step_mode.setter
    def step_mode(self, value: bool) -> None:
        self._step_mode = value

    @property
    def breakpoint_count(self) -> int:
        """Number of active PC breakpoints."""
        return len(self._pc_breakpoints)

    # =========================================================================
    # PC Breakpoints
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """
        Add PC breakpoint at address.

        Execution will stop when PC reaches this address, before the
        instruction at that address is executed.
        """
        self._pc_breakpoints.add(address & 0xFFFF)

    def remove_breakpoint(self, address: int) -> None:
        """Remove PC breakpoint at address."""
        self._pc_breakpoints.discard(address & 0xFFFF)

    def has_breakpoint(self, address: int) -> bool:
        """Check if breakpoint exists at address."""
        return (address & 0xFFFF) in self._pc_breakpoints

    def clear_breakpoints(self) -> None:
        """Remove all PC breakpoints."""
        self._pc_breakpoints.clear()

    def list_breakpoints(self) -> List[int]:
        """Sorted list of breakpoint addresses."""
        return sorted(self._pc_breakpoints)

    # =========================================================================
    # Register Conditions
    # =========================================================================

    def add_register_condition(self, condition: RegisterCondition) -> int:
        """
        Add register condition.

        Returns:
            Condition ID for later removal
        """
        for i, c in enumerate(self._register_conditions):
            if c is None:
                self._register_conditions[i] = condition
                return i
        self._register_conditions.append(condition)
        return len(self._register_conditions) - 1

    def add_condition(
        self,
        register: str,
        operator: str,
        value: int,
        description: str = ""
    ) -> int:
        """Add register condition using parameters. Returns condition ID."""
        return self.add_register_condition(
            RegisterCondition(register, operator, value, description)
        )

    def remove_register_condition(self, condition_id: int) -> None:
        """Remove register condition by ID."""
        if 0 <= condition_id < len(self._register_conditions):
            self._register_conditions[condition_id] = None

    def clear_register_conditions(self) -> None:
        """Remove all register conditions."""
        self._register_conditions.clear()

    def list_register_conditions(self) -> List[tuple[int, RegisterCondition]]:
        """List of (id, condition) tuples for active conditions."""
        return [
            (i, c) for i, c in enumerate(self._register_conditions)
            if c is not None
        ]

    # =========================================================================
    # Break Control
    # =========================================================================

    def request_break(self) -> None:
        """
        Request execution to break at next opportunity.

        The flag is a plain attribute; a host driving the emulator from
        another thread must serialize this with its run() calls.
        """
        self._break_requested = True

    def clear_break_request(self) -> None:
        """Clear any pending break request."""
        self._break_requested = False

    def record(self, event: BreakEvent) -> BreakEvent:
        """Store an event raised outside the hook (errors, cycle limits)."""
        self._last_event = event
        return event

    def clear_last_event(self) -> None:
        """Forget the last break event."""
        self._last_event = None

    def clear_all(self) -> None:
        """Remove all breakpoints and conditions."""
        self.clear_breakpoints()
        self.clear_register_conditions()
        self._step_mode = False
        self._break_requested = False
        self._last_event = None

    # =========================================================================
    # Check Function (called by CPU hook)
    # =========================================================================

    def check_instruction(
        self,
        cpu: "Chip8CPU",
        pc: int,
        opcode: Optional[int]
    ) -> bool:
        """
        Check if we should break before executing instruction.

        Args:
            cpu: CPU instance
            pc: Current program counter
            opcode: Instruction word about to be executed

        Returns:
            True to continue execution, False to break
        """
        if self._break_requested:
            self._break_requested = False
            self._last_event = BreakEvent(
                BreakReason.USER_INTERRUPT,
                address=pc,
                opcode=opcode,
                message="User interrupt"
            )
            return False

        if self._step_mode:
            self._step_mode = False
            self._last_event = BreakEvent(
                BreakReason.STEP,
                address=pc,
                opcode=opcode,
                message=f"Step at ${pc:04X}"
            )
            return False

        if pc in self._pc_breakpoints:
            self._last_event = BreakEvent(
                BreakReason.PC_BREAKPOINT,
                address=pc,
                opcode=opcode,
                message=f"Breakpoint at ${pc:04X}"
            )
            return False

        for cond in self._register_conditions:
            if cond is not None and cond.check(cpu):
                self._last_event = BreakEvent(
                    BreakReason.REGISTER_CONDITION,
                    address=pc,
                    opcode=opcode,
                    message=f"Condition: {cond.description}"
                )
                return False

        return True
