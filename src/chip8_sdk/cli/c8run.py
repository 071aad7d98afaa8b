"""
c8run - Headless CHIP-8 Runner
==============================

This module implements a command-line runner for CHIP-8 ROMs. It loads
a ROM, holds down any requested keys, runs a fixed number of cycles
with no display window or clock pacing, then prints the final screen
and register state.

It is meant for smoke-testing ROMs and for scripted checks: the output
is plain text and emulation faults give a non-zero exit code.

Usage Examples
--------------
Run a ROM for 1000 cycles and dump the screen:
    $ c8run maze.ch8

Run longer with a fixed random seed:
    $ c8run maze.ch8 --cycles 20000 --seed 7

Hold keypad keys 5 and A down for the whole run:
    $ c8run game.ch8 --key 5 --key A

Save the screen as a PNG (requires Pillow):
    $ c8run maze.ch8 --png maze.png --scale 10

Log every executed instruction:
    $ c8run maze.ch8 --cycles 50 --trace

Exit Codes
----------
0 - Success
1 - ROM rejected or emulation fault
2 - Invalid arguments
3 - Internal error
"""

from pathlib import Path
from typing import Optional, Tuple

import click

from chip8_sdk import __version__
from chip8_sdk.cli.errors import handle_cli_exception, setup_logging
from chip8_sdk.emulator import BreakReason, Emulator, EmulatorConfig
from chip8_sdk.emulator.keyboard import key_index


def _parse_keys(ctx: click.Context, param: click.Parameter, value: Tuple[str, ...]) -> Tuple[int, ...]:
    """Resolve --key values to keypad indices."""
    keys = []
    for key in value:
        try:
            keys.append(key_index(key))
        except ValueError:
            raise click.BadParameter(f"'{key}' is not a keypad key (0-9, A-F)") from None
    return tuple(keys)


def format_registers(emu: Emulator) -> str:
    """Register summary as two lines of text."""
    regs = emu.registers
    general = " ".join(f"V{n:X}={regs[f'v{n:x}']:02X}" for n in range(16))
    special = (
        f"PC={regs['pc']:04X} I={regs['i']:04X} SP={regs['sp']} "
        f"DT={regs['delay_timer']:02X} ST={regs['sound_timer']:02X} "
        f"cycles={emu.total_cycles}"
    )
    return f"{general}\n{special}"


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "rom_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-n", "--cycles",
    type=click.IntRange(min=0),
    default=1000,
    show_default=True,
    help="Number of cycles to run",
)
@click.option(
    "-k", "--key",
    "keys",
    multiple=True,
    callback=_parse_keys,
    help="Keypad key (0-9, A-F) to hold down for the whole run. Repeatable.",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Seed for the RND instruction (default: CHIP8_SEED or random)",
)
@click.option(
    "--mask-random",
    is_flag=True,
    help="AND random bytes with the RND immediate",
)
@click.option(
    "--png",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the final screen to a PNG file (requires Pillow)",
)
@click.option(
    "--scale",
    type=click.IntRange(min=1),
    default=8,
    show_default=True,
    help="Pixel scale factor for --png",
)
@click.option(
    "--trace",
    is_flag=True,
    help="Log every executed instruction to stderr",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c8run")
def main(
    rom_file: Path,
    cycles: int,
    keys: Tuple[int, ...],
    seed: Optional[int],
    mask_random: bool,
    png: Optional[Path],
    scale: int,
    trace: bool,
    verbose: bool,
) -> None:
    """
    Run a CHIP-8 ROM headlessly and print the final screen.

    ROM_FILE is the program image to load at $200.

    Examples:

        # Run 5000 cycles
        c8run maze.ch8 --cycles 5000

        # Hold key 5 and save a screenshot
        c8run game.ch8 --key 5 --png game.png
    """
    setup_logging(verbose or trace)

    try:
        env = EmulatorConfig.from_env()
        config = EmulatorConfig(
            seed=seed if seed is not None else env.seed,
            mask_random_with_kk=mask_random or env.mask_random_with_kk,
            trace=trace or env.trace,
        )

        emu = Emulator(config)
        emu.load_rom_file(rom_file)
        for key in keys:
            emu.press_key(key)

        if verbose:
            click.echo(f"ROM: {rom_file} ({len(emu.rom)} bytes)", err=True)
            held = ",".join(f"{k:X}" for k in keys) or "none"
            click.echo(f"Running {cycles} cycles, keys held: {held}", err=True)

        event = emu.run(cycles)

        click.echo(emu.display_text)
        click.echo(format_registers(emu))

        if png:
            image = emu.render_display(scale=scale)
            if image is None:
                click.echo("Warning: Pillow is not installed, PNG not written", err=True)
            else:
                png.write_bytes(image)
                if verbose:
                    click.echo(f"Screen written to: {png}", err=True)

        if event.reason == BreakReason.ERROR:
            handle_cli_exception(event.error, verbose=verbose, error_type="Emulation")

        if verbose:
            click.echo(f"Stopped: {event}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Emulation")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
