"""
c8disasm - CHIP-8 Disassembler Command-Line Interface
=====================================================

This module implements the command-line interface for the CHIP-8
disassembler.

Usage Examples
--------------
Disassemble a ROM (loaded at $200):
    $ c8disasm maze.ch8

With a different base address:
    $ c8disasm fragment.bin --address 0x300

Limit number of instructions:
    $ c8disasm maze.ch8 --count 20

Output to file:
    $ c8disasm maze.ch8 -o maze.lst

Hex dump with disassembly:
    $ c8disasm maze.ch8 --hex
"""

from pathlib import Path
from typing import List, Optional

import click

from chip8_sdk import __version__
from chip8_sdk.cli.errors import handle_cli_exception, parse_address, setup_logging
from chip8_sdk.disassembler import Chip8Disassembler, DisassembledInstruction


def format_hex_dump(data: bytes, base_address: int) -> List[str]:
    """Hex dump of data as comment lines, 16 bytes per line."""
    lines = ["; Hex dump:", "; " + "-" * 60]
    for i in range(0, len(data), 16):
        chunk = data[i:i + 16]
        hex_str = " ".join(f"{b:02X}" for b in chunk)
        lines.append(f"; ${base_address + i:04X}: {hex_str}")
    lines.append("; " + "-" * 60)
    lines.append("")
    return lines


def format_compact(instr: DisassembledInstruction) -> str:
    """Listing line without raw bytes."""
    line = f"${instr.address:04X}: {instr.text}"
    if instr.comment:
        line += f"  ; {instr.comment}"
    return line


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default="0x200",
    help="Load address of the first byte ($hex, 0xhex or decimal). Default: 0x200",
)
@click.option(
    "-c", "--count",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "--hex",
    "show_hex",
    is_flag=True,
    help="Include hex dump before disassembly",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw bytes from output (show only mnemonic and operand)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c8disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
    show_hex: bool,
    no_bytes: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a CHIP-8 ROM image.

    INPUT_FILE is the binary file to disassemble.

    Examples:

        # Disassemble a whole ROM
        c8disasm maze.ch8

        # First 20 instructions to a file
        c8disasm maze.ch8 --count 20 -o maze.lst
    """
    setup_logging(verbose)

    try:
        base_address = parse_address(address)

        data = input_file.read_bytes()
        if len(data) == 0:
            raise click.BadParameter(f"{input_file} is empty")

        if verbose:
            click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
            click.echo(f"Base address: ${base_address:04X}", err=True)

        output_lines = [
            f"; Disassembly of {input_file.name}",
            f"; Size: {len(data)} bytes",
            f"; Base address: ${base_address:04X}",
            "",
        ]

        if show_hex:
            output_lines.extend(format_hex_dump(data, base_address))

        instructions = Chip8Disassembler().disassemble(
            data, start_address=base_address, count=count
        )
        for instr in instructions:
            output_lines.append(format_compact(instr) if no_bytes else str(instr))

        result = "\n".join(output_lines) + "\n"

        if output:
            output.write_text(result, encoding="utf-8")
            if verbose:
                click.echo(f"Output written to: {output}", err=True)
        else:
            click.echo(result, nl=False)

        if verbose:
            click.echo(f"Instructions disassembled: {len(instructions)}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Disassembly")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
