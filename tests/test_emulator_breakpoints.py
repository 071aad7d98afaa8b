"""
Breakpoint System Tests
=======================

Tests for BreakpointManager, RegisterCondition and BreakEvent.

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

import pytest
from chip8_sdk.emulator import (
    BreakEvent,
    BreakpointManager,
    BreakReason,
    Chip8CPU,
    Display,
    Keypad,
    Memory,
    RegisterCondition,
)


@pytest.fixture
def cpu():
    return Chip8CPU(Memory(), Display(), Keypad())


class TestRegisterCondition:
    """Test register condition evaluation."""

    def test_general_register(self, cpu):
        cpu.set_register(3, 0x42)
        assert RegisterCondition("v3", "==", 0x42).check(cpu)
        assert RegisterCondition("V3", "!=", 0x41).check(cpu)

    def test_special_registers(self, cpu):
        cpu.i = 0x300
        cpu.sound_timer = 4
        assert RegisterCondition("i", ">=", 0x300).check(cpu)
        assert RegisterCondition("sound_timer", ">", 0).check(cpu)
        assert RegisterCondition("pc", "==", 0x200).check(cpu)
        assert RegisterCondition("sp", "<", 1).check(cpu)

    def test_bit_test(self, cpu):
        cpu.set_register(0xF, 1)
        assert RegisterCondition("vf", "&", 1).check(cpu)
        assert not RegisterCondition("vf", "&", 2).check(cpu)

    def test_unknown_register(self):
        with pytest.raises(ValueError, match="Unknown register"):
            RegisterCondition("a", "==", 0)

    def test_unknown_operator(self):
        with pytest.raises(ValueError, match="Unknown operator"):
            RegisterCondition("v0", "=~", 0)


class TestBreakpointManager:
    """Test breakpoint bookkeeping and checks."""

    def test_add_remove(self):
        mgr = BreakpointManager()
        mgr.add_breakpoint(0x210)
        mgr.add_breakpoint(0x204)
        assert mgr.list_breakpoints() == [0x204, 0x210]
        assert mgr.breakpoint_count == 2
        mgr.remove_breakpoint(0x210)
        assert not mgr.has_breakpoint(0x210)

    def test_pc_breakpoint(self, cpu):
        mgr = BreakpointManager()
        mgr.add_breakpoint(0x200)
        assert mgr.check_instruction(cpu, 0x200, 0x6001) is False
        assert mgr.last_event.reason == BreakReason.PC_BREAKPOINT
        assert mgr.last_event.opcode == 0x6001
        assert mgr.check_instruction(cpu, 0x202, 0x6001) is True

    def test_condition_ids_reused(self):
        mgr = BreakpointManager()
        first = mgr.add_condition("v0", "==", 1)
        second = mgr.add_condition("v1", "==", 1)
        mgr.remove_register_condition(first)
        assert mgr.add_condition("v2", "==", 1) == first
        assert [cid for cid, _ in mgr.list_register_conditions()] == [first, second]

    def test_register_condition_break(self, cpu):
        mgr = BreakpointManager()
        mgr.add_condition("v5", "==", 7, "v5 is seven")
        assert mgr.check_instruction(cpu, 0x200, None)
        cpu.set_register(5, 7)
        assert not mgr.check_instruction(cpu, 0x200, None)
        assert mgr.last_event.reason == BreakReason.REGISTER_CONDITION
        assert "v5 is seven" in str(mgr.last_event)

    def test_request_break_is_one_shot(self, cpu):
        mgr = BreakpointManager()
        mgr.request_break()
        assert not mgr.check_instruction(cpu, 0x200, None)
        assert mgr.last_event.reason == BreakReason.USER_INTERRUPT
        assert mgr.check_instruction(cpu, 0x200, None)

    def test_step_mode_is_one_shot(self, cpu):
        mgr = BreakpointManager()
        mgr.step_mode = True
        assert not mgr.check_instruction(cpu, 0x200, None)
        assert mgr.last_event.reason == BreakReason.STEP
        assert not mgr.step_mode

    def test_clear_all(self, cpu):
        mgr = BreakpointManager()
        mgr.add_breakpoint(0x200)
        mgr.add_condition("v0", "==", 0)
        mgr.clear_all()
        assert mgr.check_instruction(cpu, 0x200, None)
        assert mgr.last_event is None


class TestBreakEvent:
    """Test BreakEvent descriptions."""

    def test_message_wins(self):
        event = BreakEvent(BreakReason.STEP, message="custom")
        assert str(event) == "custom"

    def test_default_descriptions(self):
        assert str(BreakEvent(BreakReason.PC_BREAKPOINT, address=0x20A)) == "Breakpoint at $020A"
        assert str(BreakEvent(BreakReason.MAX_CYCLES)) == "Maximum cycles reached"
        assert str(BreakEvent(BreakReason.ERROR)) == "Emulation error"
