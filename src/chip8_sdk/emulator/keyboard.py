"""
Hex Keypad for CHIP-8 Emulator
==============================

The CHIP-8 keypad has 16 keys labelled with the hex digits 0-F:

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F

The core only sees 16 booleans. An input collaborator writes them
between cycles; instructions read them during a cycle and never write.
`set_state()` replaces all 16 at once so a cycle never sees a
half-updated snapshot.

Host keyboards conventionally map the left-hand 4x4 block onto the
keypad (see QWERTY_LAYOUT).

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

from typing import Dict, Iterable, List, Optional, Union

NUM_KEYS = 16

# Host key name -> keypad index
QWERTY_LAYOUT: Dict[str, int] = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}

KeyName = Union[int, str]


def key_index(key: KeyName) -> int:
    """
    Resolve a keypad key to its index.

    Args:
        key: Index 0-15, or a single hex digit string ("0"-"F", any case)

    Returns:
        Key index 0-15

    Raises:
        ValueError: If the key does not name a keypad key
    """
    if isinstance(key, bool):
        raise ValueError(f"Unknown key: {key!r}")
    if isinstance(key, int):
        if 0 <= key < NUM_KEYS:
            return key
        raise ValueError(f"Key index must be 0-15, got {key}")
    if isinstance(key, str) and len(key) == 1:
        try:
            return int(key, 16)
        except ValueError:
            pass
    raise ValueError(f"Unknown key: {key!r}")


def key_for_host(name: str) -> Optional[int]:
    """Keypad index for a host key under QWERTY_LAYOUT, or None if unmapped."""
    return QWERTY_LAYOUT.get(name.upper())


class Keypad:
    """
    16-key hex keypad state.

    Example:
        >>> keypad = Keypad()
        >>> keypad.key_down("A")
        >>> keypad.is_pressed(0xA)
        True
        >>> keypad.first_pressed()
        10
        >>> keypad.key_up(10)
    """

    def __init__(self):
        self._keys = [False] * NUM_KEYS

    def key_down(self, key: KeyName) -> None:
        """Press a key. It stays down until key_up() or release_all()."""
        self._keys[key_index(key)] = True

    def key_up(self, key: KeyName) -> None:
        """Release a key."""
        self._keys[key_index(key)] = False

    def is_pressed(self, key: KeyName) -> bool:
        """Check whether a key is down."""
        return self._keys[key_index(key)]

    def set_state(self, states: Iterable[bool]) -> None:
        """
        Replace the whole keypad snapshot.

        Args:
            states: Exactly 16 booleans, index 0 first

        Raises:
            ValueError: If the iterable does not hold 16 values
        """
        new_keys = [bool(state) for state in states]
        if len(new_keys) != NUM_KEYS:
            raise ValueError(f"Keypad state needs {NUM_KEYS} values, got {len(new_keys)}")
        self._keys = new_keys

    def release_all(self) -> None:
        """Release every key."""
        self._keys = [False] * NUM_KEYS

    def first_pressed(self) -> Optional[int]:
        """Lowest-numbered key that is down, or None."""
        for index, down in enumerate(self._keys):
            if down:
                return index
        return None

    @property
    def pressed_keys(self) -> List[int]:
        """Indices of all keys currently down, ascending."""
        return [index for index, down in enumerate(self._keys) if down]

    @property
    def state(self) -> List[bool]:
        """Copy of the 16 key states."""
        return list(self._keys)

    def __repr__(self) -> str:
        pressed = ",".join(f"{k:X}" for k in self.pressed_keys)
        return f"Keypad(pressed=[{pressed}])"
