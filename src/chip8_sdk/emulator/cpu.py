"""
CHIP-8 CPU Emulator
===================

Instruction-processing engine for the CHIP-8 virtual machine.

Machine state:
- 16 general 8-bit registers V0-VF. VF doubles as the carry, borrow,
  shift-out and sprite-collision flag.
- I: 16-bit index register used by memory and sprite instructions
- PC: program counter, starts at $200, advances 2 bytes per instruction
- 16-entry call stack with an explicit stack pointer
- Delay and sound timers: 8-bit, decremented once per cycle while non-zero

One cycle is fetch, decode, execute, then tick both timers. There is no
internal clock: the caller decides how often to cycle.

Errors are raised before the faulting instruction changes any state,
so the machine can be inspected exactly as it was when the fault hit.

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from chip8_sdk.errors import (
    ExecutionError,
    IllegalOpcodeError,
    InvalidKeyError,
    StackOverflowError,
    StackUnderflowError,
)

from .display import Display
from .keyboard import Keypad, NUM_KEYS
from .memory import FONT_GLYPH_SIZE, FONT_START, ROM_START, Memory
from .opcodes import Instruction, Op, decode

logger = logging.getLogger(__name__)

NUM_REGISTERS = 16
STACK_DEPTH = 16
FLAG = 0xF


@dataclass
class CPUState:
    """
    Complete CPU state for snapshotting.

    All values stored as Python ints but represent:
    - v: 16 unsigned bytes (V0-VF)
    - i, pc: 16-bit unsigned (0-65535)
    - stack: 16 return addresses, sp of them in use
    - delay_timer, sound_timer: 8-bit unsigned
    - opcode: last fetched instruction word
    """
    v: bytearray = field(default_factory=lambda: bytearray(NUM_REGISTERS))
    i: int = 0
    pc: int = ROM_START
    stack: list[int] = field(default_factory=lambda: [0] * STACK_DEPTH)
    sp: int = 0
    delay_timer: int = 0
    sound_timer: int = 0
    opcode: int = 0


class Chip8CPU:
    """
    CHIP-8 CPU with instrumentation support.

    The CPU owns its registers and reads/writes the memory, display and
    keypad it is given. Instructions are decoded into tagged
    Instruction values and dispatched through a table keyed by Op.

    Instrumentation hooks allow:
    - Tracing every instruction before execution
    - Implementing breakpoints (return False from on_instruction)

    Example:
        >>> cpu = Chip8CPU(Memory(), Display(), Keypad())
        >>> cpu.memory.initialize(bytes([0x60, 0x2A]))
        >>> instruction = cpu.cycle()
        >>> hex(cpu.v[0])
        '0x2a'
    """

    def __init__(
        self,
        memory: Memory,
        display: Display,
        keypad: Keypad,
        rng: Optional[random.Random] = None,
        mask_random_with_kk: bool = False,
    ):
        """
        Initialize CPU with its peripherals.

        Args:
            memory: 4KB address space
            display: Framebuffer drawn by CLS and DRW
            keypad: Key snapshot read by SKP, SKNP and LD Vx, K
            rng: Random source for RND (default: unseeded random.Random)
            mask_random_with_kk: AND the RND byte with KK. Off by default:
                RND stores the raw random byte.
        """
        self.memory = memory
        self.display = display
        self.keypad = keypad
        self.rng = rng or random.Random()
        self.mask_random_with_kk = mask_random_with_kk
        self.state = CPUState()

        # Log every executed instruction at DEBUG level
        self.trace = False

        # on_instruction(pc, opcode) -> bool: return False to stop execution.
        # opcode is None when PC is outside memory.
        self.on_instruction: Optional[Callable[[int, Optional[int]], bool]] = None

        # Address of the instruction being executed, for error reports
        self._current_address = ROM_START

        self._cycles = 0

        self._handlers: Dict[Op, Callable[[Instruction], None]] = {
            Op.NOP: self._op_nop,
            Op.CLS: self._op_cls,
            Op.RET: self._op_ret,
            Op.JP: self._op_jp,
            Op.CALL: self._op_call,
            Op.SE_BYTE: self._op_se_byte,
            Op.SNE_BYTE: self._op_sne_byte,
            Op.SE_REG: self._op_se_reg,
            Op.LD_BYTE: self._op_ld_byte,
            Op.ADD_BYTE: self._op_add_byte,
            Op.LD_REG: self._op_ld_reg,
            Op.OR: self._op_or,
            Op.AND: self._op_and,
            Op.XOR: self._op_xor,
            Op.ADD_REG: self._op_add_reg,
            Op.SUB: self._op_sub,
            Op.SHR: self._op_shr,
            Op.SUBN: self._op_subn,
            Op.SHL: self._op_shl,
            Op.SNE_REG: self._op_sne_reg,
            Op.LD_I: self._op_ld_i,
            Op.JP_V0: self._op_jp_v0,
            Op.RND: self._op_rnd,
            Op.DRW: self._op_drw,
            Op.SKP: self._op_skp,
            Op.SKNP: self._op_sknp,
            Op.LD_VX_DT: self._op_ld_vx_dt,
            Op.LD_VX_K: self._op_ld_vx_k,
            Op.LD_DT_VX: self._op_ld_dt_vx,
            Op.LD_ST_VX: self._op_ld_st_vx,
            Op.ADD_I_VX: self._op_add_i_vx,
            Op.LD_F_VX: self._op_ld_f_vx,
            Op.LD_B_VX: self._op_ld_b_vx,
            Op.LD_MEM_VX: self._op_ld_mem_vx,
            Op.LD_VX_MEM: self._op_ld_vx_mem,
        }

    # ========================================
    # Register Access
    # ========================================

    @property
    def v(self) -> bytearray:
        """General registers V0-VF (mutable view)."""
        return self.state.v

    def get_register(self, index: int) -> int:
        """
        Read general register V[index].

        Raises:
            IndexError: If index is not 0-15
        """
        if not 0 <= index < NUM_REGISTERS:
            raise IndexError(f"Register index must be 0-15, got {index}")
        return self.state.v[index]

    def set_register(self, index: int, value: int) -> None:
        """
        Write general register V[index], masked to 8 bits.

        Raises:
            IndexError: If index is not 0-15
        """
        if not 0 <= index < NUM_REGISTERS:
            raise IndexError(f"Register index must be 0-15, got {index}")
        self.state.v[index] = value & 0xFF

    @property
    def i(self) -> int:
        """Index register (16-bit)."""
        return self.state.i

    @i.setter
    def i(self, value: int) -> None:
        self.state.i = value & 0xFFFF

    @property
    def pc(self) -> int:
        """Program counter (16-bit)."""
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value & 0xFFFF

    @property
    def sp(self) -> int:
        """Stack pointer: number of return addresses on the stack."""
        return self.state.sp

    @property
    def stack(self) -> list[int]:
        """Return addresses currently on the stack, oldest first."""
        return self.state.stack[:self.state.sp]

    @property
    def delay_timer(self) -> int:
        """Delay timer (8-bit)."""
        return self.state.delay_timer

    @delay_timer.setter
    def delay_timer(self, value: int) -> None:
        self.state.delay_timer = value & 0xFF

    @property
    def sound_timer(self) -> int:
        """Sound timer (8-bit). A tone should play while non-zero."""
        return self.state.sound_timer

    @sound_timer.setter
    def sound_timer(self, value: int) -> None:
        self.state.sound_timer = value & 0xFF

    @property
    def opcode(self) -> int:
        """Last fetched instruction word."""
        return self.state.opcode

    @property
    def cycles(self) -> int:
        """Completed cycles since reset."""
        return self._cycles

    # ========================================
    # Reset
    # ========================================

    def reset(self) -> None:
        """
        Reset CPU to power-on state.

        Clears registers, stack and timers and sets PC to $200. Memory,
        display and keypad are reset by their owners.
        """
        self.state = CPUState()
        self._current_address = ROM_START
        self._cycles = 0

    # ========================================
    # Fetch / Decode / Execute
    # ========================================

    def _skip(self) -> None:
        """Skip the next instruction."""
        self.pc = self.pc + 2

    def _error(self, error_type, *args) -> ExecutionError:
        """Build an execution error tagged with the current instruction."""
        return error_type(*args, address=self._current_address, opcode=self.state.opcode)

    def fetch_and_decode(self) -> Instruction:
        """
        Fetch the instruction word at PC, decode it and advance PC by 2.

        Returns:
            Decoded Instruction

        Raises:
            MemoryAccessError: If PC or PC+1 is outside memory
            IllegalOpcodeError: If the word is not a CHIP-8 instruction.
                PC is left pointing at it.
        """
        address = self.pc
        self._current_address = address
        try:
            word = self.memory.read_word(address)
        except ExecutionError as e:
            raise e.locate(address) from None

        self.state.opcode = word
        try:
            instruction = decode(word)
        except IllegalOpcodeError:
            raise IllegalOpcodeError(word, address) from None

        self.pc = address + 2
        return instruction

    def execute(self, instruction: Instruction) -> None:
        """
        Execute one decoded instruction.

        Memory access errors are tagged with the instruction's address.
        On any execution error PC is put back on the faulting word.
        """
        if self.trace:
            logger.debug(f"${self._current_address:04X}: {instruction.word:04X}  {instruction}")
        try:
            self._handlers[instruction.op](instruction)
        except ExecutionError as e:
            if e.address is None:
                e.locate(self._current_address, instruction.word)
            self.pc = self._current_address
            raise

    def tick_timers(self) -> None:
        """Decrement delay and sound timers by one, stopping at zero."""
        if self.state.delay_timer > 0:
            self.state.delay_timer -= 1
        if self.state.sound_timer > 0:
            self.state.sound_timer -= 1

    def cycle(self) -> Instruction:
        """
        Run exactly one fetch-decode-execute-tick sequence.

        Returns:
            The instruction that was executed

        Raises:
            ExecutionError: On any fatal condition. Timers are not ticked
                for a faulting cycle.
        """
        instruction = self.fetch_and_decode()
        self.execute(instruction)
        self.tick_timers()
        self._cycles += 1
        return instruction

    def peek_opcode(self) -> Optional[int]:
        """Instruction word at PC without fetching it, or None if PC is unmapped."""
        try:
            return self.memory.read_word(self.pc)
        except ExecutionError:
            return None

    def run(self, max_cycles: int) -> int:
        """
        Execute up to max_cycles cycles.

        Args:
            max_cycles: Maximum number of cycles to run

        Returns:
            Number of cycles actually executed

        Note:
            Execution stops early if on_instruction returns False. The
            instruction at PC has not been executed in that case.
        """
        executed = 0
        while executed < max_cycles:
            if self.on_instruction:
                if not self.on_instruction(self.pc, self.peek_opcode()):
                    return executed
            self.cycle()
            executed += 1
        return executed

    def step(self) -> Instruction:
        """Execute exactly one instruction, bypassing the instruction hook."""
        return self.cycle()

    # ========================================
    # Instruction Handlers
    # ========================================

    def _op_nop(self, ins: Instruction) -> None:
        """0000: padding, does nothing."""
        pass

    def _op_cls(self, ins: Instruction) -> None:
        self.display.clear()

    def _op_ret(self, ins: Instruction) -> None:
        if self.state.sp == 0:
            raise self._error(StackUnderflowError)
        self.state.sp -= 1
        self.pc = self.state.stack[self.state.sp]

    def _op_jp(self, ins: Instruction) -> None:
        self.pc = ins.nnn

    def _op_call(self, ins: Instruction) -> None:
        if self.state.sp >= STACK_DEPTH:
            raise self._error(StackOverflowError)
        self.state.stack[self.state.sp] = self.pc
        self.state.sp += 1
        self.pc = ins.nnn

    def _op_se_byte(self, ins: Instruction) -> None:
        if self.state.v[ins.x] == ins.kk:
            self._skip()

    def _op_sne_byte(self, ins: Instruction) -> None:
        if self.state.v[ins.x] != ins.kk:
            self._skip()

    def _op_se_reg(self, ins: Instruction) -> None:
        if self.state.v[ins.x] == self.state.v[ins.y]:
            self._skip()

    def _op_sne_reg(self, ins: Instruction) -> None:
        if self.state.v[ins.x] != self.state.v[ins.y]:
            self._skip()

    def _op_ld_byte(self, ins: Instruction) -> None:
        self.state.v[ins.x] = ins.kk

    def _op_add_byte(self, ins: Instruction) -> None:
        """7XKK: add without touching VF."""
        self.state.v[ins.x] = (self.state.v[ins.x] + ins.kk) & 0xFF

    # ALU group. Flag and result are both computed from the operands as
    # they were before the instruction; VF is written first, then VX.

    def _op_ld_reg(self, ins: Instruction) -> None:
        self.state.v[ins.x] = self.state.v[ins.y]

    def _op_or(self, ins: Instruction) -> None:
        self.state.v[ins.x] |= self.state.v[ins.y]

    def _op_and(self, ins: Instruction) -> None:
        self.state.v[ins.x] &= self.state.v[ins.y]

    def _op_xor(self, ins: Instruction) -> None:
        self.state.v[ins.x] ^= self.state.v[ins.y]

    def _op_add_reg(self, ins: Instruction) -> None:
        v = self.state.v
        total = v[ins.x] + v[ins.y]
        v[FLAG] = 1 if total > 0xFF else 0
        v[ins.x] = total & 0xFF

    def _op_sub(self, ins: Instruction) -> None:
        v = self.state.v
        vx, vy = v[ins.x], v[ins.y]
        v[FLAG] = 1 if vx > vy else 0
        v[ins.x] = (vx - vy) & 0xFF

    def _op_subn(self, ins: Instruction) -> None:
        v = self.state.v
        vx, vy = v[ins.x], v[ins.y]
        v[FLAG] = 1 if vy > vx else 0
        v[ins.x] = (vy - vx) & 0xFF

    def _op_shr(self, ins: Instruction) -> None:
        """8XY6: shift VX right, VY is ignored."""
        v = self.state.v
        vx = v[ins.x]
        v[FLAG] = vx & 0x01
        v[ins.x] = vx >> 1

    def _op_shl(self, ins: Instruction) -> None:
        """8XYE: shift VX left, VY is ignored."""
        v = self.state.v
        vx = v[ins.x]
        v[FLAG] = (vx & 0x80) >> 7
        v[ins.x] = (vx << 1) & 0xFF

    def _op_ld_i(self, ins: Instruction) -> None:
        self.i = ins.nnn

    def _op_jp_v0(self, ins: Instruction) -> None:
        self.pc = self.state.v[0] + ins.nnn

    def _op_rnd(self, ins: Instruction) -> None:
        value = self.rng.randrange(256)
        if self.mask_random_with_kk:
            value &= ins.kk
        self.state.v[ins.x] = value

    def _op_drw(self, ins: Instruction) -> None:
        """
        DXYN: draw an N-row sprite from memory[I] at (VX, VY).

        VF is cleared, then set to 1 if any lit pixel was turned off.
        """
        v = self.state.v
        x, y = v[ins.x], v[ins.y]
        sprite = self.memory.read_block(self.i, ins.n)
        v[FLAG] = 0
        if self.display.draw_sprite(x, y, sprite):
            v[FLAG] = 1

    def _key_in(self, ins: Instruction) -> int:
        """Key index held in VX, validated."""
        key = self.state.v[ins.x]
        if key >= NUM_KEYS:
            raise self._error(InvalidKeyError, key)
        return key

    def _op_skp(self, ins: Instruction) -> None:
        if self.keypad.is_pressed(self._key_in(ins)):
            self._skip()

    def _op_sknp(self, ins: Instruction) -> None:
        if not self.keypad.is_pressed(self._key_in(ins)):
            self._skip()

    def _op_ld_vx_dt(self, ins: Instruction) -> None:
        self.state.v[ins.x] = self.state.delay_timer

    def _op_ld_vx_k(self, ins: Instruction) -> None:
        """
        FX0A: wait for a key.

        Takes the lowest-numbered key that is down. With no key down the
        PC is moved back so this instruction runs again next cycle.
        """
        key = self.keypad.first_pressed()
        if key is None:
            self.pc = self.pc - 2
        else:
            self.state.v[ins.x] = key

    def _op_ld_dt_vx(self, ins: Instruction) -> None:
        self.state.delay_timer = self.state.v[ins.x]

    def _op_ld_st_vx(self, ins: Instruction) -> None:
        self.state.sound_timer = self.state.v[ins.x]

    def _op_add_i_vx(self, ins: Instruction) -> None:
        self.i = self.i + self.state.v[ins.x]

    def _op_ld_f_vx(self, ins: Instruction) -> None:
        self.i = FONT_START + FONT_GLYPH_SIZE * self.state.v[ins.x]

    def _op_ld_b_vx(self, ins: Instruction) -> None:
        """FX33: store VX as three BCD digits at I, I+1, I+2."""
        value = self.state.v[ins.x]
        self.memory.write_block(self.i, bytes([value // 100, (value // 10) % 10, value % 10]))

    def _op_ld_mem_vx(self, ins: Instruction) -> None:
        self.memory.write_block(self.i, bytes(self.state.v[:ins.x + 1]))

    def _op_ld_vx_mem(self, ins: Instruction) -> None:
        data = self.memory.read_block(self.i, ins.x + 1)
        self.state.v[:ins.x + 1] = data

    # ========================================
    # Snapshot Support
    # ========================================

    def get_snapshot_data(self) -> list[int]:
        """
        Get CPU state as a list of bytes.

        Layout: V0-VF, I (hi, lo), PC (hi, lo), SP, 16 stack words
        (hi, lo), delay timer, sound timer, last opcode (hi, lo).
        """
        data = list(self.state.v)
        data.extend([(self.state.i >> 8) & 0xFF, self.state.i & 0xFF])
        data.extend([(self.state.pc >> 8) & 0xFF, self.state.pc & 0xFF])
        data.append(self.state.sp)
        for address in self.state.stack:
            data.extend([(address >> 8) & 0xFF, address & 0xFF])
        data.extend([self.state.delay_timer, self.state.sound_timer])
        data.extend([(self.state.opcode >> 8) & 0xFF, self.state.opcode & 0xFF])
        return data

    def apply_snapshot_data(self, data: list[int], offset: int = 0) -> int:
        """Restore CPU state from snapshot. Returns bytes consumed."""
        pos = offset
        state = CPUState()
        state.v = bytearray(data[pos:pos + NUM_REGISTERS])
        pos += NUM_REGISTERS
        state.i = (data[pos] << 8) | data[pos + 1]
        state.pc = (data[pos + 2] << 8) | data[pos + 3]
        state.sp = data[pos + 4]
        pos += 5
        if state.sp > STACK_DEPTH:
            raise ValueError(f"Invalid snapshot: stack pointer {state.sp}")
        state.stack = [
            (data[pos + 2 * n] << 8) | data[pos + 2 * n + 1] for n in range(STACK_DEPTH)
        ]
        pos += 2 * STACK_DEPTH
        state.delay_timer = data[pos]
        state.sound_timer = data[pos + 1]
        state.opcode = (data[pos + 2] << 8) | data[pos + 3]
        pos += 4
        self.state = state
        self._current_address = state.pc
        return pos - offset
