"""
Disassembler Tests
==================

Tests for the CHIP-8 disassembler and its command-line interface.

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

import pytest
from chip8_sdk.disassembler import Chip8Disassembler, DisassembledInstruction


@pytest.fixture
def disasm():
    return Chip8Disassembler()


# =============================================================================
# Single Instruction Tests
# =============================================================================

class TestDisassembleOne:
    """Test disassemble_one() formatting."""

    @pytest.mark.parametrize("data,text", [
        (bytes([0x00, 0xE0]), "CLS"),
        (bytes([0x00, 0xEE]), "RET"),
        (bytes([0x12, 0x4E]), "JP $24E"),
        (bytes([0x23, 0x00]), "CALL $300"),
        (bytes([0x3A, 0x10]), "SE VA, $10"),
        (bytes([0x51, 0x20]), "SE V1, V2"),
        (bytes([0x60, 0x01]), "LD V0, $01"),
        (bytes([0x7F, 0xFF]), "ADD VF, $FF"),
        (bytes([0x83, 0x44]), "ADD V3, V4"),
        (bytes([0x83, 0x46]), "SHR V3"),
        (bytes([0xA2, 0x1E]), "LD I, $21E"),
        (bytes([0xB4, 0x00]), "JP V0, $400"),
        (bytes([0xC0, 0x0F]), "RND V0, $0F"),
        (bytes([0xD0, 0x15]), "DRW V0, V1, 5"),
        (bytes([0xE5, 0x9E]), "SKP V5"),
        (bytes([0xF2, 0x0A]), "LD V2, K"),
        (bytes([0xF2, 0x1E]), "ADD I, V2"),
        (bytes([0xF2, 0x29]), "LD F, V2"),
        (bytes([0xF2, 0x33]), "LD B, V2"),
        (bytes([0xF2, 0x55]), "LD [I], V2"),
        (bytes([0xF2, 0x65]), "LD V2, [I]"),
    ])
    def test_mnemonics(self, disasm, data, text):
        assert disasm.disassemble_one(data).text == text

    def test_fields(self, disasm):
        instr = disasm.disassemble_one(bytes([0x60, 0x01]), address=0x200)
        assert instr.address == 0x200
        assert instr.word == 0x6001
        assert instr.mnemonic == "LD"
        assert instr.operand_str == "V0, $01"
        assert instr.raw_bytes == bytes([0x60, 0x01])
        assert instr.size == 2

    def test_listing_line(self, disasm):
        instr = disasm.disassemble_one(bytes([0x60, 0x01]), address=0x200)
        assert str(instr) == "$0200: 60 01     LD V0, $01"

    def test_illegal_word(self, disasm):
        instr = disasm.disassemble_one(bytes([0xF0, 0xFF]))
        assert instr.mnemonic == ".WORD"
        assert instr.operand_str == "$F0FF"
        assert instr.comment == "illegal opcode"
        assert instr.size == 2

    def test_trailing_byte(self, disasm):
        instr = disasm.disassemble_one(bytes([0x60, 0x01, 0x7A]), address=0x202, offset=2)
        assert instr.mnemonic == ".BYTE"
        assert instr.operand_str == "$7A"
        assert instr.size == 1

    def test_offset_past_end(self, disasm):
        with pytest.raises(ValueError):
            disasm.disassemble_one(bytes([0x60, 0x01]), offset=2)

    def test_font_annotation(self, disasm):
        instr = disasm.disassemble_one(bytes([0xA0, 0x5A]))
        assert instr.comment == "font"
        assert str(instr).endswith("; font")

    def test_symbol_annotation(self):
        disasm = Chip8Disassembler(symbol_table={0x300: "draw_score"})
        assert disasm.disassemble_one(bytes([0x23, 0x00])).comment == "draw_score"
        disasm.add_symbols({0x210: "main_loop"})
        assert disasm.disassemble_one(bytes([0x12, 0x10])).comment == "main_loop"

    def test_to_dict(self, disasm):
        info = disasm.disassemble_one(bytes([0xD0, 0x15]), address=0x204).to_dict()
        assert info["address"] == "$0204"
        assert info["word"] == "$D015"
        assert info["bytes"] == ["$D0", "$15"]


# =============================================================================
# Program Tests
# =============================================================================

class TestDisassemble:
    """Test disassemble() over whole images."""

    PROGRAM = bytes([0x60, 0x01, 0xA0, 0x50, 0xD0, 0x15, 0x12, 0x06])

    def test_addresses_from_0x200(self, disasm):
        result = disasm.disassemble(self.PROGRAM)
        assert [i.address for i in result] == [0x200, 0x202, 0x204, 0x206]
        assert all(isinstance(i, DisassembledInstruction) for i in result)

    def test_start_address(self, disasm):
        result = disasm.disassemble(self.PROGRAM, start_address=0x300)
        assert result[-1].address == 0x306

    def test_count(self, disasm):
        assert len(disasm.disassemble(self.PROGRAM, count=2)) == 2

    def test_sprite_data_does_not_stop_listing(self, disasm):
        data = self.PROGRAM + bytes([0xFF, 0xFF, 0x00, 0xE0])
        result = disasm.disassemble(data)
        assert result[4].mnemonic == ".WORD"
        assert result[5].text == "CLS"

    def test_odd_length(self, disasm):
        result = disasm.disassemble(self.PROGRAM + bytes([0x42]))
        assert result[-1].mnemonic == ".BYTE"
        assert result[-1].address == 0x208

    def test_to_text(self, disasm):
        text = disasm.disassemble_to_text(self.PROGRAM)
        assert text.splitlines()[0] == "$0200: 60 01     LD V0, $01"


# =============================================================================
# CLI Tests
# =============================================================================

class TestCLI:
    """Test c8disasm command."""

    def test_basic_listing(self, tmp_path):
        from click.testing import CliRunner
        from chip8_sdk.cli.c8disasm import main

        rom_file = tmp_path / "prog.ch8"
        rom_file.write_bytes(TestDisassemble.PROGRAM)

        runner = CliRunner()
        result = runner.invoke(main, [str(rom_file)])
        assert result.exit_code == 0
        assert "; Disassembly of prog.ch8" in result.output
        assert "$0200: 60 01     LD V0, $01" in result.output
        assert "DRW V0, V1, 5" in result.output

    def test_address_and_count(self, tmp_path):
        from click.testing import CliRunner
        from chip8_sdk.cli.c8disasm import main

        rom_file = tmp_path / "prog.ch8"
        rom_file.write_bytes(TestDisassemble.PROGRAM)

        runner = CliRunner()
        result = runner.invoke(main, [str(rom_file), "-a", "$300", "-c", "1"])
        assert result.exit_code == 0
        assert "$0300: 60 01" in result.output
        assert "$0302" not in result.output

    def test_no_bytes(self, tmp_path):
        from click.testing import CliRunner
        from chip8_sdk.cli.c8disasm import main

        rom_file = tmp_path / "prog.ch8"
        rom_file.write_bytes(TestDisassemble.PROGRAM)

        runner = CliRunner()
        result = runner.invoke(main, [str(rom_file), "--no-bytes"])
        assert result.exit_code == 0
        assert "$0200: LD V0, $01" in result.output

    def test_hex_dump(self, tmp_path):
        from click.testing import CliRunner
        from chip8_sdk.cli.c8disasm import main

        rom_file = tmp_path / "prog.ch8"
        rom_file.write_bytes(TestDisassemble.PROGRAM)

        runner = CliRunner()
        result = runner.invoke(main, [str(rom_file), "--hex"])
        assert result.exit_code == 0
        assert "; $0200: 60 01 A0 50 D0 15 12 06" in result.output

    def test_output_file(self, tmp_path):
        from click.testing import CliRunner
        from chip8_sdk.cli.c8disasm import main

        rom_file = tmp_path / "prog.ch8"
        rom_file.write_bytes(TestDisassemble.PROGRAM)
        out_file = tmp_path / "prog.lst"

        runner = CliRunner()
        result = runner.invoke(main, [str(rom_file), "-o", str(out_file)])
        assert result.exit_code == 0
        assert "LD I, $050" in out_file.read_text()

    def test_bad_address(self, tmp_path):
        from click.testing import CliRunner
        from chip8_sdk.cli.c8disasm import main

        rom_file = tmp_path / "prog.ch8"
        rom_file.write_bytes(TestDisassemble.PROGRAM)

        runner = CliRunner()
        result = runner.invoke(main, [str(rom_file), "-a", "zzz"])
        assert result.exit_code == 2

    def test_empty_file(self, tmp_path):
        from click.testing import CliRunner
        from chip8_sdk.cli.c8disasm import main

        rom_file = tmp_path / "empty.ch8"
        rom_file.write_bytes(b"")

        runner = CliRunner()
        result = runner.invoke(main, [str(rom_file)])
        assert result.exit_code == 2
