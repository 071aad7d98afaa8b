"""
Keypad Unit Tests
=================

Tests for the 16-key hex keypad and host key mapping.

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

import pytest
from chip8_sdk.emulator import QWERTY_LAYOUT, Keypad, key_for_host, key_index


class TestKeyIndex:
    """Test key_index() resolution."""

    @pytest.mark.parametrize("key,expected", [
        (0, 0), (15, 15), ("0", 0), ("a", 0xA), ("F", 0xF),
    ])
    def test_valid(self, key, expected):
        assert key_index(key) == expected

    @pytest.mark.parametrize("key", [16, -1, "G", "10", "", True, None])
    def test_invalid(self, key):
        with pytest.raises(ValueError):
            key_index(key)


class TestKeypad:
    """Test Keypad state handling."""

    def test_initially_released(self):
        keypad = Keypad()
        assert keypad.pressed_keys == []
        assert keypad.first_pressed() is None

    def test_press_and_release(self):
        keypad = Keypad()
        keypad.key_down("C")
        assert keypad.is_pressed(0xC)
        keypad.key_up(0xC)
        assert not keypad.is_pressed("c")

    def test_first_pressed_is_lowest(self):
        keypad = Keypad()
        keypad.key_down(9)
        keypad.key_down(2)
        assert keypad.first_pressed() == 2
        assert keypad.pressed_keys == [2, 9]

    def test_set_state(self):
        keypad = Keypad()
        states = [False] * 16
        states[4] = True
        keypad.set_state(states)
        assert keypad.pressed_keys == [4]

    def test_set_state_wrong_length(self):
        keypad = Keypad()
        with pytest.raises(ValueError):
            keypad.set_state([True] * 15)

    def test_state_is_a_copy(self):
        keypad = Keypad()
        state = keypad.state
        state[0] = True
        assert not keypad.is_pressed(0)

    def test_release_all(self):
        keypad = Keypad()
        keypad.key_down(1)
        keypad.key_down(2)
        keypad.release_all()
        assert keypad.pressed_keys == []

    def test_repr(self):
        keypad = Keypad()
        keypad.key_down(0xA)
        assert repr(keypad) == "Keypad(pressed=[A])"


class TestHostMapping:
    """Test the QWERTY layout."""

    def test_layout_covers_all_keys(self):
        assert sorted(QWERTY_LAYOUT.values()) == list(range(16))

    @pytest.mark.parametrize("name,key", [("1", 0x1), ("4", 0xC), ("q", 0x4), ("X", 0x0), ("V", 0xF)])
    def test_mapping(self, name, key):
        assert key_for_host(name) == key

    def test_unmapped(self):
        assert key_for_host("P") is None
