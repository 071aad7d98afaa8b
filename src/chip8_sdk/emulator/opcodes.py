"""
CHIP-8 Instruction Set Definition
=================================

This module defines the 35 CHIP-8 instructions and the decoder that
turns a 16-bit instruction word into a tagged Instruction.

Encoding
--------
Every instruction is one big-endian 16-bit word. The high nibble
selects one of 16 families. Families $0, $8, $E and $F share their
high nibble between several instructions and need a second lookup:

    Family  Selector       Instructions
    ------  -------------  ------------------------------------------
    $0      low byte       00E0 CLS, 00EE RET, 0000 NOP (padding)
    $8      low nibble     8XY0-8XY7, 8XYE
    $E      low byte       EX9E SKP, EXA1 SKNP
    $F      low byte       FX07 ... FX65

Operand fields:

    X   = bits 8-11   register index
    Y   = bits 4-7    register index
    N   = bits 0-3    4-bit immediate (sprite height)
    KK  = bits 0-7    byte immediate
    NNN = bits 0-11   address

Mnemonics follow the widely used Cowgod reference syntax.

Reference
---------
- Cowgod's CHIP-8 Technical Reference
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Union

from chip8_sdk.errors import IllegalOpcodeError


# =============================================================================
# Instruction Tags
# =============================================================================

class Op(Enum):
    """One tag per CHIP-8 instruction form, plus the padding no-op."""
    NOP = auto()         # 0000
    CLS = auto()         # 00E0
    RET = auto()         # 00EE
    JP = auto()          # 1NNN
    CALL = auto()        # 2NNN
    SE_BYTE = auto()     # 3XKK
    SNE_BYTE = auto()    # 4XKK
    SE_REG = auto()      # 5XY0
    LD_BYTE = auto()     # 6XKK
    ADD_BYTE = auto()    # 7XKK
    LD_REG = auto()      # 8XY0
    OR = auto()          # 8XY1
    AND = auto()         # 8XY2
    XOR = auto()         # 8XY3
    ADD_REG = auto()     # 8XY4
    SUB = auto()         # 8XY5
    SHR = auto()         # 8XY6
    SUBN = auto()        # 8XY7
    SHL = auto()         # 8XYE
    SNE_REG = auto()     # 9XY0
    LD_I = auto()        # ANNN
    JP_V0 = auto()       # BNNN
    RND = auto()         # CXKK
    DRW = auto()         # DXYN
    SKP = auto()         # EX9E
    SKNP = auto()        # EXA1
    LD_VX_DT = auto()    # FX07
    LD_VX_K = auto()     # FX0A
    LD_DT_VX = auto()    # FX15
    LD_ST_VX = auto()    # FX18
    ADD_I_VX = auto()    # FX1E
    LD_F_VX = auto()     # FX29
    LD_B_VX = auto()     # FX33
    LD_MEM_VX = auto()   # FX55
    LD_VX_MEM = auto()   # FX65


class OperandFormat(Enum):
    """How an instruction's operands are written in assembly."""
    NONE = auto()        # CLS
    ADDR = auto()        # JP $NNN
    VX_BYTE = auto()     # SE VX, $KK
    VX_VY = auto()       # SE VX, VY
    VX = auto()          # SHR VX
    I_ADDR = auto()      # LD I, $NNN
    V0_ADDR = auto()     # JP V0, $NNN
    VX_VY_N = auto()     # DRW VX, VY, N
    VX_DT = auto()       # LD VX, DT
    VX_K = auto()        # LD VX, K
    DT_VX = auto()       # LD DT, VX
    ST_VX = auto()       # LD ST, VX
    I_VX = auto()        # ADD I, VX
    F_VX = auto()        # LD F, VX
    B_VX = auto()        # LD B, VX
    MEM_VX = auto()      # LD [I], VX
    VX_MEM = auto()      # LD VX, [I]


@dataclass(frozen=True)
class OpcodeInfo:
    """
    Static information about one instruction form.

    Attributes:
        mnemonic: Assembly mnemonic (e.g., "LD", "DRW")
        operands: Operand syntax used by the disassembler
        pattern: Canonical encoding pattern (e.g., "8XY4")
    """
    mnemonic: str
    operands: OperandFormat
    pattern: str


OPCODE_TABLE: Dict[Op, OpcodeInfo] = {
    Op.NOP: OpcodeInfo("NOP", OperandFormat.NONE, "0000"),
    Op.CLS: OpcodeInfo("CLS", OperandFormat.NONE, "00E0"),
    Op.RET: OpcodeInfo("RET", OperandFormat.NONE, "00EE"),
    Op.JP: OpcodeInfo("JP", OperandFormat.ADDR, "1NNN"),
    Op.CALL: OpcodeInfo("CALL", OperandFormat.ADDR, "2NNN"),
    Op.SE_BYTE: OpcodeInfo("SE", OperandFormat.VX_BYTE, "3XKK"),
    Op.SNE_BYTE: OpcodeInfo("SNE", OperandFormat.VX_BYTE, "4XKK"),
    Op.SE_REG: OpcodeInfo("SE", OperandFormat.VX_VY, "5XY0"),
    Op.LD_BYTE: OpcodeInfo("LD", OperandFormat.VX_BYTE, "6XKK"),
    Op.ADD_BYTE: OpcodeInfo("ADD", OperandFormat.VX_BYTE, "7XKK"),
    Op.LD_REG: OpcodeInfo("LD", OperandFormat.VX_VY, "8XY0"),
    Op.OR: OpcodeInfo("OR", OperandFormat.VX_VY, "8XY1"),
    Op.AND: OpcodeInfo("AND", OperandFormat.VX_VY, "8XY2"),
    Op.XOR: OpcodeInfo("XOR", OperandFormat.VX_VY, "8XY3"),
    Op.ADD_REG: OpcodeInfo("ADD", OperandFormat.VX_VY, "8XY4"),
    Op.SUB: OpcodeInfo("SUB", OperandFormat.VX_VY, "8XY5"),
    Op.SHR: OpcodeInfo("SHR", OperandFormat.VX, "8XY6"),
    Op.SUBN: OpcodeInfo("SUBN", OperandFormat.VX_VY, "8XY7"),
    Op.SHL: OpcodeInfo("SHL", OperandFormat.VX, "8XYE"),
    Op.SNE_REG: OpcodeInfo("SNE", OperandFormat.VX_VY, "9XY0"),
    Op.LD_I: OpcodeInfo("LD", OperandFormat.I_ADDR, "ANNN"),
    Op.JP_V0: OpcodeInfo("JP", OperandFormat.V0_ADDR, "BNNN"),
    Op.RND: OpcodeInfo("RND", OperandFormat.VX_BYTE, "CXKK"),
    Op.DRW: OpcodeInfo("DRW", OperandFormat.VX_VY_N, "DXYN"),
    Op.SKP: OpcodeInfo("SKP", OperandFormat.VX, "EX9E"),
    Op.SKNP: OpcodeInfo("SKNP", OperandFormat.VX, "EXA1"),
    Op.LD_VX_DT: OpcodeInfo("LD", OperandFormat.VX_DT, "FX07"),
    Op.LD_VX_K: OpcodeInfo("LD", OperandFormat.VX_K, "FX0A"),
    Op.LD_DT_VX: OpcodeInfo("LD", OperandFormat.DT_VX, "FX15"),
    Op.LD_ST_VX: OpcodeInfo("LD", OperandFormat.ST_VX, "FX18"),
    Op.ADD_I_VX: OpcodeInfo("ADD", OperandFormat.I_VX, "FX1E"),
    Op.LD_F_VX: OpcodeInfo("LD", OperandFormat.F_VX, "FX29"),
    Op.LD_B_VX: OpcodeInfo("LD", OperandFormat.B_VX, "FX33"),
    Op.LD_MEM_VX: OpcodeInfo("LD", OperandFormat.MEM_VX, "FX55"),
    Op.LD_VX_MEM: OpcodeInfo("LD", OperandFormat.VX_MEM, "FX65"),
}


# =============================================================================
# Decode Tables
# =============================================================================
# First level: high nibble -> Op, or a (selector mask, sub-table) pair.

_FAMILY_0 = {0x00: Op.NOP, 0xE0: Op.CLS, 0xEE: Op.RET}

_FAMILY_8 = {
    0x0: Op.LD_REG, 0x1: Op.OR, 0x2: Op.AND, 0x3: Op.XOR,
    0x4: Op.ADD_REG, 0x5: Op.SUB, 0x6: Op.SHR, 0x7: Op.SUBN,
    0xE: Op.SHL,
}

_FAMILY_E = {0x9E: Op.SKP, 0xA1: Op.SKNP}

_FAMILY_F = {
    0x07: Op.LD_VX_DT, 0x0A: Op.LD_VX_K, 0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX, 0x1E: Op.ADD_I_VX, 0x29: Op.LD_F_VX,
    0x33: Op.LD_B_VX, 0x55: Op.LD_MEM_VX, 0x65: Op.LD_VX_MEM,
}

DECODE_TABLE: Dict[int, Union[Op, tuple[int, Dict[int, Op]]]] = {
    0x0: (0x00FF, _FAMILY_0),
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x5: Op.SE_REG,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0x8: (0x000F, _FAMILY_8),
    0x9: Op.SNE_REG,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
    0xE: (0x00FF, _FAMILY_E),
    0xF: (0x00FF, _FAMILY_F),
}


# =============================================================================
# Decoded Instruction
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    A decoded CHIP-8 instruction.

    All operand fields are extracted for every instruction; handlers use
    the ones their form defines. X and Y are nibbles, so register indices
    are always in range 0-15 by construction.

    Attributes:
        op: Instruction tag
        word: The raw 16-bit instruction word
        x: Register index from bits 8-11
        y: Register index from bits 4-7
        n: 4-bit immediate from bits 0-3
        kk: Byte immediate from bits 0-7
        nnn: 12-bit address from bits 0-11
    """
    op: Op
    word: int
    x: int
    y: int
    n: int
    kk: int
    nnn: int

    @property
    def info(self) -> OpcodeInfo:
        """Static table entry for this instruction's form."""
        return OPCODE_TABLE[self.op]

    def __str__(self) -> str:
        return format_instruction(self)


def decode(word: int) -> Instruction:
    """
    Decode a 16-bit instruction word.

    Args:
        word: Instruction word (big-endian composition of two bytes)

    Returns:
        Decoded Instruction

    Raises:
        IllegalOpcodeError: If the word's sub-selector matches no instruction.
            The error carries the word but no address; callers that know
            the address attach it.
    """
    word &= 0xFFFF
    entry = DECODE_TABLE[word >> 12]

    if isinstance(entry, Op):
        op = entry
    else:
        mask, table = entry
        op = table.get(word & mask)
        if op is None:
            raise IllegalOpcodeError(word)

    return Instruction(
        op=op,
        word=word,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        n=word & 0xF,
        kk=word & 0xFF,
        nnn=word & 0xFFF,
    )


def format_operands(instruction: Instruction) -> str:
    """Render an instruction's operand field in assembly syntax."""
    x = f"V{instruction.x:X}"
    y = f"V{instruction.y:X}"

    match instruction.info.operands:
        case OperandFormat.NONE:
            return ""
        case OperandFormat.ADDR:
            return f"${instruction.nnn:03X}"
        case OperandFormat.VX_BYTE:
            return f"{x}, ${instruction.kk:02X}"
        case OperandFormat.VX_VY:
            return f"{x}, {y}"
        case OperandFormat.VX:
            return x
        case OperandFormat.I_ADDR:
            return f"I, ${instruction.nnn:03X}"
        case OperandFormat.V0_ADDR:
            return f"V0, ${instruction.nnn:03X}"
        case OperandFormat.VX_VY_N:
            return f"{x}, {y}, {instruction.n}"
        case OperandFormat.VX_DT:
            return f"{x}, DT"
        case OperandFormat.VX_K:
            return f"{x}, K"
        case OperandFormat.DT_VX:
            return f"DT, {x}"
        case OperandFormat.ST_VX:
            return f"ST, {x}"
        case OperandFormat.I_VX:
            return f"I, {x}"
        case OperandFormat.F_VX:
            return f"F, {x}"
        case OperandFormat.B_VX:
            return f"B, {x}"
        case OperandFormat.MEM_VX:
            return f"[I], {x}"
        case OperandFormat.VX_MEM:
            return f"{x}, [I]"
    return ""


def format_instruction(instruction: Instruction) -> str:
    """Render an instruction as 'MNEMONIC OPERANDS'."""
    operands = format_operands(instruction)
    if operands:
        return f"{instruction.info.mnemonic} {operands}"
    return instruction.info.mnemonic
