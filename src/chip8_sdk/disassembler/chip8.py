"""
CHIP-8 Disassembler
===================

Disassembles CHIP-8 ROM images into readable assembly listings.

Every CHIP-8 instruction is one 16-bit big-endian word, so disassembly
is a straight walk over the image two bytes at a time. Decoding goes
through the same `decode()` the interpreter uses, so the listing always
agrees with what the CPU would execute.

CHIP-8 programs freely mix sprite data with code. Words that do not
decode are emitted as `.WORD` data lines rather than failing the whole
listing, and an odd trailing byte is emitted as `.BYTE`.

Usage:
    disasm = Chip8Disassembler()

    # Disassemble a ROM image loaded at $200
    instructions = disasm.disassemble(rom_bytes)

    # Disassemble a single instruction
    instr = disasm.disassemble_one(rom_bytes, address=0x200)
    print(f"{instr.address:04X}: {instr.mnemonic} {instr.operand_str}")

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from chip8_sdk.emulator.memory import FONT_END, FONT_START, ROM_START
from chip8_sdk.emulator.opcodes import Op, decode, format_operands
from chip8_sdk.errors import IllegalOpcodeError


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    Represents a single disassembled CHIP-8 instruction.

    Attributes:
        address: Memory address of the instruction
        word: The instruction word (or the lone byte for a trailing .BYTE)
        mnemonic: The instruction mnemonic (e.g., "LD", "DRW", ".WORD")
        operand_str: Formatted operand string for display
        raw_bytes: All bytes comprising this instruction
        comment: Optional comment (symbol names, illegal opcodes)
    """
    address: int
    word: int
    mnemonic: str
    operand_str: str
    raw_bytes: bytes
    comment: str = ""

    @property
    def size(self) -> int:
        """Number of bytes this line covers."""
        return len(self.raw_bytes)

    @property
    def text(self) -> str:
        """Mnemonic and operands without address or bytes."""
        if self.operand_str:
            return f"{self.mnemonic} {self.operand_str}"
        return self.mnemonic

    def __str__(self) -> str:
        """Format as assembly line: ADDRESS: BYTES  MNEMONIC OPERAND"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(8)
        if self.comment:
            return f"${self.address:04X}: {hex_bytes}  {self.text:<16} ; {self.comment}"
        return f"${self.address:04X}: {hex_bytes}  {self.text}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:04X}",
            "address_int": self.address,
            "word": f"${self.word:04X}",
            "mnemonic": self.mnemonic,
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "comment": self.comment,
        }


# Instructions whose NNN field is an address worth annotating
_ADDRESS_OPS = frozenset([Op.JP, Op.CALL, Op.LD_I])


# =============================================================================
# CHIP-8 Disassembler
# =============================================================================

class Chip8Disassembler:
    """
    Disassembler for CHIP-8 programs.

    Attributes:
        _symbol_table: Optional address -> name map used to annotate
            jump, call and LD I targets
    """

    def __init__(self, symbol_table: Optional[Dict[int, str]] = None):
        """
        Initialize the disassembler.

        Args:
            symbol_table: Optional dict mapping addresses to symbol names.
        """
        self._symbol_table = symbol_table or {}

    def disassemble_one(
        self,
        data: bytes,
        address: int = ROM_START,
        offset: int = 0
    ) -> DisassembledInstruction:
        """
        Disassemble a single instruction.

        Args:
            data: Byte buffer containing the instruction
            address: Memory address of the instruction (for display)
            offset: Offset into data buffer where instruction starts

        Returns:
            DisassembledInstruction with decoded information

        Raises:
            ValueError: If offset is beyond the end of data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        if offset + 1 >= len(data):
            value = data[offset]
            return DisassembledInstruction(
                address=address,
                word=value,
                mnemonic=".BYTE",
                operand_str=f"${value:02X}",
                raw_bytes=bytes([value]),
                comment="incomplete instruction",
            )

        raw_bytes = bytes(data[offset:offset + 2])
        word = (raw_bytes[0] << 8) | raw_bytes[1]

        try:
            instruction = decode(word)
        except IllegalOpcodeError:
            return DisassembledInstruction(
                address=address,
                word=word,
                mnemonic=".WORD",
                operand_str=f"${word:04X}",
                raw_bytes=raw_bytes,
                comment="illegal opcode",
            )

        return DisassembledInstruction(
            address=address,
            word=word,
            mnemonic=instruction.info.mnemonic,
            operand_str=format_operands(instruction),
            raw_bytes=raw_bytes,
            comment=self._annotate(instruction.op, instruction.nnn),
        )

    def _annotate(self, op: Op, target: int) -> str:
        """Comment for an address operand, if one is known."""
        if op in _ADDRESS_OPS:
            if target in self._symbol_table:
                return self._symbol_table[target]
            if op == Op.LD_I and FONT_START <= target < FONT_END:
                return "font"
        return ""

    def disassemble(
        self,
        data: bytes,
        start_address: int = ROM_START,
        count: Optional[int] = None
    ) -> List[DisassembledInstruction]:
        """
        Disassemble multiple instructions.

        Args:
            data: Byte buffer containing the program
            start_address: Memory address of first byte (default $200)
            count: Maximum number of instructions to disassemble (None = all)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        offset = 0
        address = start_address

        while offset < len(data):
            if count is not None and len(result) >= count:
                break

            instr = self.disassemble_one(data, address, offset)
            result.append(instr)

            offset += instr.size
            address += instr.size

        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = ROM_START,
        count: Optional[int] = None
    ) -> str:
        """Disassemble and return a multi-line listing."""
        instructions = self.disassemble(data, start_address, count)
        return "\n".join(str(instr) for instr in instructions)

    def add_symbol(self, address: int, name: str) -> None:
        """Add a symbol to the symbol table."""
        self._symbol_table[address] = name

    def add_symbols(self, symbols: Dict[int, str]) -> None:
        """Add multiple symbols to the symbol table."""
        self._symbol_table.update(symbols)
