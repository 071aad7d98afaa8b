"""
CHIP-8 SDK Error Hierarchy
==========================

This module defines the exception hierarchy for the entire CHIP-8 SDK.
All exceptions inherit from Chip8Error, allowing callers to catch all
SDK-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
Chip8Error (base)
├── RomError (ROM image handling)
│   └── RomTooLargeError - image does not fit above $200
├── ExecutionError (raised while running an instruction)
│   ├── IllegalOpcodeError - no handler for the fetched word
│   ├── StackOverflowError - CALL with 16 return addresses already stacked
│   ├── StackUnderflowError - RET with an empty call stack
│   ├── MemoryAccessError - fetch or indexed access outside $000-$FFF
│   └── InvalidKeyError - key skip on a register holding a value above $F
└── EmulatorHaltedError - cycle requested after a fault, before reset

Design Philosophy
-----------------
The CPU raises these errors at the point of failure, before the
faulting instruction mutates any state. The Emulator orchestrator
catches them and turns them into a break event plus a latched fault,
so a host application can report the problem and load another ROM
instead of the whole process going down.

Error messages follow this format:
    $0204: illegal opcode $E0FF
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Chip8Error(Exception):
    """
    Base exception for all CHIP-8 SDK errors.

    All exceptions in the SDK inherit from this class, allowing callers
    to catch all SDK-related errors with a single except clause:

        try:
            emulator.load_rom(data)
        except Chip8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# ROM Exceptions
# =============================================================================

class RomError(Chip8Error):
    """Base exception for ROM image problems."""
    pass


class RomTooLargeError(RomError):
    """
    ROM image does not fit in program memory.

    Programs are loaded at $200, so at most 4096 - 512 = 3584 bytes fit.
    Nothing is written to memory when this is raised.

    Attributes:
        size: Length of the rejected image in bytes
        limit: Maximum accepted length in bytes
    """

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"ROM is {size} bytes, but only {limit} bytes fit above $0200"
        )


# =============================================================================
# Execution Exceptions
# =============================================================================

class ExecutionError(Chip8Error):
    """
    Base exception for errors raised while executing an instruction.

    Attributes:
        message: The error description
        address: Address of the faulting instruction (optional)
        opcode: The 16-bit instruction word being executed (optional)
    """

    def __init__(
        self,
        message: str,
        address: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.message = message
        self.address = address
        self.opcode = opcode
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with the faulting address.

        Example output:
            $0204: illegal opcode $E0FF
        """
        if self.address is not None:
            return f"${self.address:04X}: {self.message}"
        return self.message

    def locate(self, address: int, opcode: Optional[int] = None) -> "ExecutionError":
        """
        Attach the faulting instruction's address (and word) after the fact.

        Lower layers such as Memory raise without knowing which
        instruction caused the access; the CPU fills this in.

        Returns:
            self, so callers can write `raise e.locate(pc)`
        """
        self.address = address
        if opcode is not None:
            self.opcode = opcode
        self.args = (self._format_message(),)
        return self


class IllegalOpcodeError(ExecutionError):
    """
    The fetched word matches no CHIP-8 instruction.

    Raised for unknown sub-selectors in the $0, $8, $E and $F families.
    The program counter is left pointing at the offending word.
    """

    def __init__(self, opcode: int, address: Optional[int] = None):
        super().__init__(f"illegal opcode ${opcode:04X}", address, opcode)


class StackOverflowError(ExecutionError):
    """CALL executed while the call stack already holds 16 entries."""

    def __init__(self, address: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__("call stack overflow (16 levels)", address, opcode)


class StackUnderflowError(ExecutionError):
    """RET executed with an empty call stack."""

    def __init__(self, address: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__("return with empty call stack", address, opcode)


class MemoryAccessError(ExecutionError):
    """
    Fetch or indexed memory access outside the 4KB address space.

    Attributes:
        target: The first out-of-range address that would have been touched
    """

    def __init__(
        self,
        target: int,
        address: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.target = target
        super().__init__(
            f"memory access at ${target:04X} outside $0000-$0FFF", address, opcode
        )


class InvalidKeyError(ExecutionError):
    """
    Key skip instruction on a register holding a value above $F.

    Attributes:
        key: The register value that was used as a key index
    """

    def __init__(
        self,
        key: int,
        address: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.key = key
        super().__init__(f"key index ${key:02X} outside $0-$F", address, opcode)


# =============================================================================
# Orchestration Exceptions
# =============================================================================

class EmulatorHaltedError(Chip8Error):
    """
    Execution requested while the emulator holds an unrecovered fault.

    Attributes:
        fault: The error that halted the machine
    """

    def __init__(self, fault: Chip8Error):
        self.fault = fault
        super().__init__(f"emulator halted by earlier fault: {fault}")
