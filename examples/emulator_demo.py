#!/usr/bin/env python3
"""
CHIP-8 Emulator Demo
====================

This script demonstrates how to use the CHIP-8 SDK emulator to:
1. Load a ROM
2. Run it and read the screen back
3. Stop on breakpoints and single-step
4. Feed keypad input
5. Save a screenshot and a snapshot

The ROM is built inline, so no files are needed.

Usage:
    python examples/emulator_demo.py

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

from pathlib import Path

from chip8_sdk.emulator import BreakReason, Emulator, EmulatorConfig


def words(*values: int) -> bytes:
    return b"".join(value.to_bytes(2, "big") for value in values)


# Wait for a key, then draw its hex digit at (8, 4) and loop forever.
KEY_ECHO_ROM = words(
    0x6008,  # $200: LD V0, 8
    0x6104,  # $202: LD V1, 4
    0xF20A,  # $204: LD V2, K
    0xF229,  # $206: LD F, V2
    0xD015,  # $208: DRW V0, V1, 5
    0x120A,  # $20A: JP $20A
)


def main():
    output_dir = Path("trash")
    output_dir.mkdir(exist_ok=True)

    # ==========================================================================
    # 1. Create an emulator and load the ROM
    # ==========================================================================
    emu = Emulator(EmulatorConfig(seed=42))
    emu.load_rom(KEY_ECHO_ROM)

    print("Listing:")
    for line in emu.disassemble_at(0x200, count=6):
        print(f"  {line}")

    # ==========================================================================
    # 2. Run until the program blocks on the keypad
    # ==========================================================================
    event = emu.run(100)
    print(f"\nAfter 100 cycles: {event}, PC=${emu.registers['pc']:04X}")

    # ==========================================================================
    # 3. Break before the draw, then single-step it
    # ==========================================================================
    emu.breakpoints.add_breakpoint(0x208)
    emu.press_key("A")
    event = emu.run(100)
    print(f"Stopped: {event}")
    print(f"  V2 = ${emu.registers['v2']:02X}, I = ${emu.registers['i']:04X}")

    event = emu.step()
    print(f"Stepped: {event}")
    emu.release_key("A")

    # ==========================================================================
    # 4. Read the screen back
    # ==========================================================================
    print("\nScreen (top 10 rows):")
    for row in emu.display_text.splitlines()[:10]:
        print(f"  {row[:20]}")

    # ==========================================================================
    # 5. Screenshot and snapshot
    # ==========================================================================
    png = emu.render_display(scale=10)
    if png is not None:
        (output_dir / "key_echo.png").write_bytes(png)
        print(f"\nScreenshot saved to {output_dir / 'key_echo.png'}")
    else:
        print("\nPillow not installed, skipping screenshot")

    emu.save_snapshot(output_dir / "key_echo.c8s")
    restored = Emulator()
    restored.load_snapshot(output_dir / "key_echo.c8s")
    assert restored.display_text == emu.display_text

    # ==========================================================================
    # 6. Faults are reported, not raised, by run()
    # ==========================================================================
    emu.load_rom(words(0x00EE))
    event = emu.run(10)
    if event.reason == BreakReason.ERROR:
        print(f"\nFaulting ROM: {event}")


if __name__ == "__main__":
    main()
